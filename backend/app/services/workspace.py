"""
Workspace service: loading, default seeding and the mutations that feed
the gamification stats.
"""

from datetime import date, datetime

from app.config import Settings, settings as default_settings
from app.logging import get_logger
from app.models import (
    EditorSettings,
    EditorSettingsChanged,
    Folder,
    FolderChanged,
    FolderCreate,
    FolderUpdate,
    FontFamily,
    InspirationChanged,
    InspirationItem,
    Note,
    NoteChanged,
    NoteCreate,
    NoteUpdate,
    StatsChanged,
    UserStats,
    Workspace,
    normalize_email,
    now_ms,
)
from app.services import seed
from app.services.stats import (
    EVENT_ACHIEVEMENTS,
    RULES_BY_ID,
    AchievementContext,
    check_achievements,
    content_features,
    count_words,
    derive,
    goal_reached,
    initial_stats,
    reconcile,
    record_words,
    unlock,
)
from app.services.sync import SyncService

logger = get_logger("services.workspace")


class WorkspaceService:
    """Per-user workspace operations on top of the sync facade."""

    def __init__(self, sync: SyncService, settings: Settings | None = None):
        self.sync = sync
        self.settings = settings or default_settings

    # ── Loading ──

    async def load(self, user_id: str, today: date | None = None) -> Workspace:
        """
        Load every collection, seeding defaults where nothing exists yet,
        and reconcile stats against the loaded notes.

        :param user_id: User email
        :type user_id: str
        :param today: Reference day for the stats history
        :type today: date | None
        :return: The user's workspace
        :rtype: Workspace
        """
        email = normalize_email(user_id)

        folders = await self.sync.get_folders(email)
        if folders is None:
            folders = seed.default_folders()
            await self.sync.save_folders(folders, email)
            logger.info(f"Seeded default folders for {email}")

        notes = await self.sync.get_notes(email)
        if notes is None:
            notes = seed.default_notes()
            for note in notes:
                await self.sync.save_note(note, email)
            logger.info(f"Seeded default notes for {email}")

        inspiration = await self.sync.get_inspiration(email)
        if inspiration is None:
            inspiration = seed.default_inspiration()
            await self.sync.save_inspiration(inspiration, email)

        editor_settings = await self.sync.get_editor_settings(email)
        if editor_settings is None:
            editor_settings = seed.default_editor_settings()
            await self.sync.save_editor_settings(editor_settings, email)

        persisted = await self.sync.get_stats(email)
        derived = derive(notes, today=today, days=self.settings.STATS_HISTORY_DAYS)
        stats, unlocked = reconcile(
            derived,
            persisted,
            folder_count=len(folders),
            inspiration_count=len(inspiration),
            today=today,
        )
        if editor_settings.font_family == FontFamily.MONO:
            stats, typewriter = unlock(stats, "typewriter")
            if typewriter:
                unlocked.append("typewriter")
        await self.sync.save_stats(stats, email)

        return Workspace(
            notes=sorted(notes, key=lambda n: n.updated_at, reverse=True),
            folders=folders,
            inspiration=inspiration,
            stats=stats,
            editor_settings=editor_settings,
            unlocked=unlocked,
        )

    async def end_session(self, user_id: str) -> int:
        """
        Drop the user's pending remote writes on logout or user switch.

        The remote client carries no per-user state, so it stays up for
        everyone else.

        :return: Number of pending writes dropped
        :rtype: int
        """
        email = normalize_email(user_id)
        dropped = self.sync.drop_pending(email)
        logger.info(f"Session ended for {email}; {dropped} pending write(s) dropped")
        return dropped

    # ── Helpers ──

    def _stats(self, email: str) -> UserStats:
        stats = self.sync.peek_stats(email)
        if stats is not None:
            return stats
        # Achievements are left for the caller's check so new unlocks get reported.
        notes = self.sync.peek_notes(email) or []
        return initial_stats(derive(notes, days=self.settings.STATS_HISTORY_DAYS))

    def _context(self, email: str, stats: UserStats, flags: set[str] | None = None) -> AchievementContext:
        return AchievementContext(
            total_words=stats.total_words_written,
            current_streak=stats.current_streak,
            note_count=len(self.sync.peek_notes(email) or []),
            folder_count=len(self.sync.peek_folders(email) or []),
            inspiration_count=len(self.sync.peek_inspiration(email) or []),
            flags=set(flags or ()),
        )

    async def _check(self, email: str, flags: set[str] | None = None) -> StatsChanged:
        stats = self._stats(email)
        stats, unlocked = check_achievements(stats, self._context(email, stats, flags))
        if unlocked:
            await self.sync.save_stats(stats, email)
        return StatsChanged(stats=stats, unlocked=unlocked)

    # ── Notes ──

    async def create_note(self, user_id: str, data: NoteCreate) -> NoteChanged:
        email = normalize_email(user_id)
        folders = self.sync.peek_folders(email) or []
        folder_id = data.folder_id
        if not folder_id:
            if folders:
                folder_id = folders[0].id
            else:
                drafts = Folder(name="Drafts")
                await self.sync.save_folders([drafts], email)
                folder_id = drafts.id

        template = seed.find_template(data.template_id)
        note = Note(
            folder_id=folder_id,
            title=(template.default_title or "") if template else "",
            content=template.content if template else "",
        )
        await self.sync.save_note(note, email)

        changed = await self._check(email, content_features(note.content))
        return NoteChanged(note=note, stats=changed.stats, unlocked=changed.unlocked)

    async def update_note(
        self,
        user_id: str,
        note_id: str,
        data: NoteUpdate,
        now: datetime | None = None,
    ) -> NoteChanged | None:
        """
        Save new note content and run the incremental stats path.

        :return: Updated note and stats, or None if the note does not exist
        :rtype: NoteChanged | None
        """
        email = normalize_email(user_id)
        now = now or datetime.now()
        existing = next((n for n in self.sync.peek_notes(email) or [] if n.id == note_id), None)
        if existing is None:
            return None

        note = existing.model_copy(
            update={
                "content": data.content,
                "title": existing.title if data.title is None else data.title,
                "target_word_count": data.target_word_count,
                "updated_at": int(now.timestamp() * 1000),
            }
        )
        await self.sync.save_note(note, email)

        flags = content_features(note.content)
        if goal_reached(note):
            flags.add("goal")

        words_added = count_words(note.content) - count_words(existing.content)
        stats = self._stats(email)
        context = self._context(email, stats, flags)
        if words_added > 0:
            stats, unlocked = record_words(stats, words_added, now=now, context=context)
            await self.sync.save_stats(stats, email)
        else:
            stats, unlocked = check_achievements(stats, context, unlocked_at=int(now.timestamp() * 1000))
            if unlocked:
                await self.sync.save_stats(stats, email)

        return NoteChanged(
            note=note,
            stats=stats,
            unlocked=unlocked,
            words_added=max(words_added, 0),
        )

    async def move_note(self, user_id: str, note_id: str, folder_id: str) -> Note | None:
        email = normalize_email(user_id)
        existing = next((n for n in self.sync.peek_notes(email) or [] if n.id == note_id), None)
        if existing is None:
            return None
        if not any(f.id == folder_id for f in self.sync.peek_folders(email) or []):
            raise LookupError(f"Folder not found: {folder_id}")
        note = existing.model_copy(update={"folder_id": folder_id, "updated_at": now_ms()})
        await self.sync.save_note(note, email)
        return note

    async def delete_note(self, user_id: str, note_id: str) -> bool:
        email = normalize_email(user_id)
        exists = any(n.id == note_id for n in self.sync.peek_notes(email) or [])
        await self.sync.delete_note(note_id, email)
        return exists

    # ── Folders ──

    async def create_folder(self, user_id: str, data: FolderCreate) -> FolderChanged:
        email = normalize_email(user_id)
        name = data.name.strip()
        if not name:
            raise ValueError("Folder name must not be empty")
        folder = Folder(name=name, color=data.color)
        folders = (self.sync.peek_folders(email) or []) + [folder]
        await self.sync.save_folders(folders, email)
        changed = await self._check(email)
        return FolderChanged(folders=folders, folder=folder, stats=changed.stats, unlocked=changed.unlocked)

    async def update_folder(self, user_id: str, folder_id: str, data: FolderUpdate) -> Folder | None:
        email = normalize_email(user_id)
        folders = self.sync.peek_folders(email) or []
        target = next((f for f in folders if f.id == folder_id), None)
        if target is None:
            return None
        target.name = data.name
        target.color = data.color
        await self.sync.save_folders(folders, email)
        return target

    async def reorder_folders(self, user_id: str, from_index: int, to_index: int) -> list[Folder]:
        email = normalize_email(user_id)
        folders = self.sync.peek_folders(email) or []
        if not (0 <= from_index < len(folders)) or not (0 <= to_index < len(folders)):
            raise ValueError("Folder index out of range")
        moved = folders.pop(from_index)
        folders.insert(to_index, moved)
        await self.sync.save_folders(folders, email)
        return folders

    # ── Inspiration ──

    async def save_inspiration_item(self, user_id: str, item: InspirationItem) -> InspirationChanged:
        email = normalize_email(user_id)
        items = self.sync.peek_inspiration(email) or []
        for index, existing in enumerate(items):
            if existing.id == item.id:
                items[index] = item
                break
        else:
            items.append(item)
        await self.sync.save_inspiration(items, email)
        changed = await self._check(email)
        return InspirationChanged(items=items, stats=changed.stats, unlocked=changed.unlocked)

    async def delete_inspiration_item(self, user_id: str, item_id: str) -> bool:
        email = normalize_email(user_id)
        exists = any(i.id == item_id for i in self.sync.peek_inspiration(email) or [])
        await self.sync.delete_inspiration(item_id, email)
        return exists

    # ── Settings & events ──

    async def update_editor_settings(self, user_id: str, editor_settings: EditorSettings) -> EditorSettingsChanged:
        email = normalize_email(user_id)
        await self.sync.save_editor_settings(editor_settings, email)
        flags = {"mono"} if editor_settings.font_family == FontFamily.MONO else set()
        changed = await self._check(email, flags)
        return EditorSettingsChanged(
            editor_settings=editor_settings,
            stats=changed.stats,
            unlocked=changed.unlocked,
        )

    async def unlock_achievement(self, user_id: str, achievement_id: str) -> StatsChanged:
        """Unlock an achievement triggered by a UI event (AI assist, publish, ...)."""
        if achievement_id not in RULES_BY_ID:
            raise LookupError(f"Unknown achievement: {achievement_id}")
        if achievement_id not in EVENT_ACHIEVEMENTS:
            raise ValueError(f"Achievement {achievement_id} is not unlocked by events")
        email = normalize_email(user_id)
        stats, changed = unlock(self._stats(email), achievement_id)
        if not changed:
            return StatsChanged(stats=stats)
        await self.sync.save_stats(stats, email)
        return StatsChanged(stats=stats, unlocked=[achievement_id])
