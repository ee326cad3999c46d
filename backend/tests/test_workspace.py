from __future__ import annotations

import asyncio
from datetime import date, datetime

import pytest

from app.models import (
    Collection,
    EditorSettings,
    FolderCreate,
    FolderUpdate,
    FontFamily,
    InspirationItem,
    InspirationType,
    Note,
    NoteCreate,
    NoteUpdate,
    UserStats,
)

from conftest import DEBOUNCE

EMAIL = "ada@example.com"


def _unlocked(stats: UserStats) -> set[str]:
    return {a.id for a in stats.achievements if a.unlocked}


@pytest.mark.asyncio
async def test_first_load_seeds_defaults(workspace) -> None:
    loaded = await workspace.load(EMAIL)

    assert [f.name for f in loaded.folders] == ["Drafts", "Ideas", "Blog Posts"]
    assert [n.id for n in loaded.notes] == ["n1"]
    assert [i.id for i in loaded.inspiration] == ["i1", "i2"]
    assert loaded.editor_settings == EditorSettings()
    assert {"first_word", "organizer"} <= set(loaded.unlocked)
    assert loaded.stats.total_words_written > 0
    assert workspace.sync.peek_stats(EMAIL) == loaded.stats


@pytest.mark.asyncio
async def test_second_load_keeps_data_and_unlocks_nothing_new(workspace) -> None:
    first = await workspace.load(EMAIL)
    second = await workspace.load(EMAIL)

    assert [n.id for n in second.notes] == [n.id for n in first.notes]
    assert second.unlocked == []
    assert _unlocked(second.stats) == _unlocked(first.stats)


@pytest.mark.asyncio
async def test_load_sorts_notes_newest_first(workspace) -> None:
    sync = workspace.sync
    sync.cache.write(EMAIL, Collection.NOTES, [
        Note(id="old", folder_id="f1", updated_at=1_000).model_dump(),
        Note(id="new", folder_id="f1", updated_at=9_000).model_dump(),
    ])

    loaded = await workspace.load(EMAIL, today=date(2024, 1, 11))

    assert [n.id for n in loaded.notes] == ["new", "old"]


@pytest.mark.asyncio
async def test_load_with_mono_font_unlocks_typewriter(workspace) -> None:
    await workspace.sync.save_editor_settings(EditorSettings(font_family=FontFamily.MONO), EMAIL)

    loaded = await workspace.load(EMAIL)

    assert "typewriter" in loaded.unlocked
    assert "typewriter" in _unlocked(loaded.stats)


@pytest.mark.asyncio
async def test_update_note_records_written_words(workspace) -> None:
    await workspace.load(EMAIL)
    before = workspace.sync.peek_stats(EMAIL)

    changed = await workspace.update_note(
        EMAIL,
        "n1",
        NoteUpdate(content="<p>just five words right here</p>", title="Short"),
        now=datetime.now(),
    )

    assert changed is not None
    assert changed.note.title == "Short"
    # Shrinking a note never takes words back.
    assert changed.words_added == 0
    assert changed.stats.total_words_written == before.total_words_written

    grown = await workspace.update_note(
        EMAIL,
        "n1",
        NoteUpdate(content="<p>just five words right here and then three more</p>", title="Short"),
    )
    assert grown.words_added == 4
    assert grown.stats.total_words_written == before.total_words_written + 4
    assert grown.stats.points == pytest.approx(before.points + 0.4)
    assert workspace.sync.peek_stats(EMAIL) == grown.stats


@pytest.mark.asyncio
async def test_update_note_unlocks_goal_met(workspace) -> None:
    await workspace.load(EMAIL)

    changed = await workspace.update_note(
        EMAIL, "n1", NoteUpdate(content="one two three", target_word_count=3)
    )

    assert "goal_met" in changed.unlocked


@pytest.mark.asyncio
async def test_update_missing_note_returns_none(workspace) -> None:
    await workspace.load(EMAIL)
    assert await workspace.update_note(EMAIL, "missing", NoteUpdate(content="x")) is None


@pytest.mark.asyncio
async def test_create_note_from_template_lands_in_first_folder(workspace) -> None:
    await workspace.load(EMAIL)

    changed = await workspace.create_note(EMAIL, NoteCreate(template_id="script"))

    assert changed.note.folder_id == "f1"
    assert changed.note.title == "New Video Script"
    assert "structural_engineer" in changed.unlocked
    assert changed.note.id in {n.id for n in workspace.sync.peek_notes(EMAIL)}


@pytest.mark.asyncio
async def test_create_note_without_folders_creates_drafts(workspace) -> None:
    changed = await workspace.create_note(EMAIL, NoteCreate())

    folders = workspace.sync.peek_folders(EMAIL)
    assert [f.name for f in folders] == ["Drafts"]
    assert changed.note.folder_id == folders[0].id


@pytest.mark.asyncio
async def test_move_note_requires_existing_folder(workspace) -> None:
    await workspace.load(EMAIL)

    moved = await workspace.move_note(EMAIL, "n1", "f2")
    assert moved.folder_id == "f2"

    with pytest.raises(LookupError):
        await workspace.move_note(EMAIL, "n1", "nope")
    assert await workspace.move_note(EMAIL, "missing", "f2") is None


@pytest.mark.asyncio
async def test_delete_note(workspace) -> None:
    await workspace.load(EMAIL)

    assert await workspace.delete_note(EMAIL, "n1") is True
    assert await workspace.delete_note(EMAIL, "n1") is False
    assert workspace.sync.peek_notes(EMAIL) == []


@pytest.mark.asyncio
async def test_third_folder_unlocks_organizer(workspace) -> None:
    await workspace.create_folder(EMAIL, FolderCreate(name="One"))
    await workspace.create_folder(EMAIL, FolderCreate(name="Two"))
    changed = await workspace.create_folder(EMAIL, FolderCreate(name="Three", color="#fff"))

    assert "organizer" in changed.unlocked
    assert [f.name for f in changed.folders] == ["One", "Two", "Three"]


@pytest.mark.asyncio
async def test_create_folder_rejects_blank_name(workspace) -> None:
    with pytest.raises(ValueError):
        await workspace.create_folder(EMAIL, FolderCreate(name="   "))


@pytest.mark.asyncio
async def test_update_and_reorder_folders(workspace) -> None:
    await workspace.load(EMAIL)

    renamed = await workspace.update_folder(EMAIL, "f2", FolderUpdate(name="Sparks", color="#000"))
    assert renamed.name == "Sparks"
    assert await workspace.update_folder(EMAIL, "nope", FolderUpdate(name="x")) is None

    reordered = await workspace.reorder_folders(EMAIL, 2, 0)
    assert [f.id for f in reordered] == ["f3", "f1", "f2"]
    assert [f.id for f in workspace.sync.peek_folders(EMAIL)] == ["f3", "f1", "f2"]

    with pytest.raises(ValueError):
        await workspace.reorder_folders(EMAIL, 0, 7)


@pytest.mark.asyncio
async def test_fifth_inspiration_item_unlocks_inspired(workspace) -> None:
    await workspace.load(EMAIL)
    changed = None
    for i in range(3):
        changed = await workspace.save_inspiration_item(
            EMAIL, InspirationItem(type=InspirationType.TEXT, content=f"quote {i}")
        )

    assert len(changed.items) == 5
    assert "inspiration_5" in _unlocked(changed.stats)

    replaced = await workspace.save_inspiration_item(
        EMAIL, InspirationItem(id="i1", type=InspirationType.TEXT, content="edited")
    )
    assert len(replaced.items) == 5
    assert await workspace.delete_inspiration_item(EMAIL, "i1") is True


@pytest.mark.asyncio
async def test_mono_font_setting_unlocks_typewriter(workspace) -> None:
    changed = await workspace.update_editor_settings(EMAIL, EditorSettings(font_family=FontFamily.MONO))

    assert changed.unlocked == ["typewriter"]
    assert (await workspace.sync.get_editor_settings(EMAIL)).font_family == FontFamily.MONO


@pytest.mark.asyncio
async def test_unlock_event_achievement(workspace) -> None:
    await workspace.load(EMAIL)

    first = await workspace.unlock_achievement(EMAIL, "zen_master")
    again = await workspace.unlock_achievement(EMAIL, "zen_master")

    assert first.unlocked == ["zen_master"]
    assert again.unlocked == []
    assert "zen_master" in _unlocked(workspace.sync.peek_stats(EMAIL))

    with pytest.raises(LookupError):
        await workspace.unlock_achievement(EMAIL, "nope")
    with pytest.raises(ValueError):
        await workspace.unlock_achievement(EMAIL, "first_word")


@pytest.mark.asyncio
async def test_end_session_drops_only_that_users_pending_writes(workspace, configured, fake_remote) -> None:
    bob = "bob@example.com"
    mine = await workspace.create_note(EMAIL, NoteCreate())
    theirs = await workspace.create_note(bob, NoteCreate())
    assert f"notes:{EMAIL}:{mine.note.id}" in workspace.sync.coalescer.pending_keys

    dropped = await workspace.end_session(" ADA@example.com")
    await asyncio.sleep(DEBOUNCE * 3)
    await workspace.sync.coalescer.drain()

    assert dropped >= 1
    remote_ids = {row["id"] for row in fake_remote.rows("notes")}
    assert remote_ids == {theirs.note.id}
    assert {row["user_email"] for row in fake_remote.rows("folders")} == {bob}
    # Local state survives the session.
    assert [n.id for n in workspace.sync.peek_notes(EMAIL)] == [mine.note.id]


@pytest.mark.asyncio
async def test_update_note_without_title_keeps_existing_title(workspace) -> None:
    await workspace.load(EMAIL)

    changed = await workspace.update_note(EMAIL, "n1", NoteUpdate(content="fresh words"))

    assert changed.note.title == "Welcome to Beyond Words"
    assert workspace.sync.peek_notes(EMAIL)[0].title == "Welcome to Beyond Words"


@pytest.mark.asyncio
async def test_mutations_after_reload_do_not_unlock_daily_volume(workspace) -> None:
    long_note = Note(id="long", folder_id="f1", content="word " * 2500)
    workspace.sync.cache.write(EMAIL, Collection.NOTES, [long_note.model_dump()])

    loaded = await workspace.load(EMAIL)
    changed = await workspace.create_folder(EMAIL, FolderCreate(name="Fourth"))

    for unlocked in (loaded.unlocked, changed.unlocked):
        assert "speed_writer" not in unlocked
        assert "marathon" not in unlocked
    assert "words_1000" in loaded.unlocked


@pytest.mark.asyncio
async def test_load_with_remote_prefers_remote_rows(workspace, configured, fake_remote) -> None:
    fake_remote.seed("folders", {"id": "rf", "user_email": EMAIL, "name": "Remote", "color": None})
    fake_remote.seed("notes", {
        "id": "rn", "user_email": EMAIL, "folder_id": "rf", "title": "From remote",
        "content": "three remote words", "updated_at": "1700000000000", "target_word_count": None,
    })

    loaded = await workspace.load(EMAIL)

    assert [f.id for f in loaded.folders] == ["rf"]
    assert [n.id for n in loaded.notes] == ["rn"]
    assert loaded.notes[0].updated_at == 1_700_000_000_000
    assert loaded.stats.total_words_written == 3
