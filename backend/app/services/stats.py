"""
Writing statistics: full derivation, reconciliation and incremental updates.

derive() is the canonical aggregation over the note set. reconcile() adopts
its totals and history on every load and merges achievements one by one so
an unlocked achievement is never relocked. record_words() is the cheap path
applied between loads; the next reconcile() corrects any drift.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from app.models import Achievement, DailyStat, DerivedStats, Note, UserStats, now_ms

HISTORY_CAP = 30
POINTS_PER_WORD = 0.1

_TAG_RE = re.compile(r"<[^>]*>")

# Markup fragments that mark a structural feature in note content.
FEATURE_MARKERS = {
    "image": "<img",
    "video": "<iframe",
    "table": "<table",
}

FEATURE_ACHIEVEMENTS = {
    "image": "visual_storyteller",
    "video": "director",
    "table": "structural_engineer",
    "goal": "goal_met",
}


def count_words(content: str | None) -> int:
    """Count whitespace-separated words after stripping markup."""
    if not content:
        return 0
    text = _TAG_RE.sub(" ", content).replace("&nbsp;", " ")
    return len(text.split())


def content_features(content: str | None) -> set[str]:
    if not content:
        return set()
    return {name for name, marker in FEATURE_MARKERS.items() if marker in content}


def day_str(value: date) -> str:
    return value.isoformat()


def note_day(note: Note) -> str:
    return day_str(datetime.fromtimestamp(note.updated_at / 1000).date())


def goal_reached(note: Note) -> bool:
    target = note.target_word_count
    return bool(target) and count_words(note.content) >= target


def derive(notes: Iterable[Note], today: date | None = None, days: int = HISTORY_CAP) -> DerivedStats:
    """
    Aggregate word totals and a per-day history from the full note set.

    Each note's words are attributed to the calendar day of its last
    modification. The history covers the ``days`` days ending today, oldest
    first, with missing days filled with zero.

    :param notes: Every note the user owns
    :type notes: Iterable[Note]
    :param today: Reference day; defaults to the local date
    :type today: date | None
    :param days: Length of the history window
    :type days: int
    :return: Totals, history and detected content features
    :rtype: DerivedStats
    """
    today = today or date.today()
    days = max(int(days), 1)
    buckets: dict[str, int] = {}
    total = 0
    count = 0
    features: set[str] = set()

    for note in notes:
        words = count_words(note.content)
        total += words
        count += 1
        day = note_day(note)
        buckets[day] = buckets.get(day, 0) + words
        features |= content_features(note.content)
        if goal_reached(note):
            features.add("goal")

    history = []
    for offset in range(days - 1, -1, -1):
        day = day_str(today - timedelta(days=offset))
        history.append(DailyStat(date=day, word_count=buckets.get(day, 0)))

    return DerivedStats(
        total_words=total,
        note_count=count,
        daily_history=history,
        features=features,
    )


# ── Achievements ──

@dataclass
class AchievementContext:
    """Everything achievement rules may look at."""
    total_words: int = 0
    current_streak: int = 0
    note_count: int = 0
    folder_count: int = 0
    inspiration_count: int = 0
    today_words: int = 0
    hour: int | None = None
    weekday: int | None = None  # Monday == 0
    flags: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class AchievementRule:
    id: str
    title: str
    description: str
    icon: str
    check: Callable[[AchievementContext], bool] | None = None

    def to_achievement(self) -> Achievement:
        return Achievement(
            id=self.id,
            title=self.title,
            description=self.description,
            icon=self.icon,
        )


def _flag(name: str) -> Callable[[AchievementContext], bool]:
    return lambda ctx: name in ctx.flags


def _words(n: int) -> Callable[[AchievementContext], bool]:
    return lambda ctx: ctx.total_words >= n


def _streak(n: int) -> Callable[[AchievementContext], bool]:
    return lambda ctx: ctx.current_streak >= n


def _notes(n: int) -> Callable[[AchievementContext], bool]:
    return lambda ctx: ctx.note_count >= n


def _today(n: int) -> Callable[[AchievementContext], bool]:
    return lambda ctx: ctx.today_words >= n


def _hour_between(start: int, end: int) -> Callable[[AchievementContext], bool]:
    return lambda ctx: ctx.hour is not None and start <= ctx.hour < end


ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    # Writing volume
    AchievementRule("first_word", "First Ink", "Wrote your first word.", "Feather", _words(1)),
    AchievementRule("words_1000", "Scribe", "Wrote 1,000 words total.", "Scroll", _words(1000)),
    AchievementRule("words_10000", "Author", "Wrote 10,000 words total.", "BookOpen", _words(10000)),
    AchievementRule("words_50000", "Masterpiece", "Wrote 50,000 words total.", "Crown", _words(50000)),
    AchievementRule("words_100000", "Legend", "Wrote 100,000 words total.", "Crown", _words(100000)),
    # Streaks
    AchievementRule("streak_3", "Consistency", "Reached a 3-day writing streak.", "Flame", _streak(3)),
    AchievementRule("streak_7", "Novelist", "Reached a 7-day writing streak.", "Flame", _streak(7)),
    AchievementRule("streak_30", "Dedicated", "Reached a 30-day writing streak.", "Flame", _streak(30)),
    AchievementRule("streak_100", "Century Club", "Reached a 100-day writing streak.", "Flame", _streak(100)),
    # Habits
    AchievementRule("night_owl", "Night Owl", "Wrote something between 12 AM and 5 AM.", "Moon", _hour_between(0, 5)),
    AchievementRule("early_bird", "Early Bird", "Wrote something between 6 AM and 9 AM.", "Sun", _hour_between(6, 9)),
    AchievementRule(
        "weekend_warrior", "Weekend Warrior", "Wrote on a Saturday or Sunday.", "Calendar",
        lambda ctx: ctx.weekday is not None and ctx.weekday >= 5,
    ),
    AchievementRule("speed_writer", "Speed Writer", "Wrote 500 words in one day.", "Wind", _today(500)),
    AchievementRule("marathon", "Marathon", "Wrote 2000 words in one day.", "TrendingUp", _today(2000)),
    # Collection
    AchievementRule("notes_10", "Collector", "Created 10 notes.", "Files", _notes(10)),
    AchievementRule("notes_50", "Librarian", "Created 50 notes.", "Files", _notes(50)),
    AchievementRule("notes_100", "Archivist", "Created 100 notes.", "Files", _notes(100)),
    AchievementRule("organizer", "Organizer", "Created 3 folders.", "Folder", lambda ctx: ctx.folder_count >= 3),
    # Features
    AchievementRule("goal_met", "Goal Setter", "Reached a word count goal.", "Target", _flag("goal")),
    AchievementRule("ai_assist", "Co-Pilot", "Used AI assistance.", "Zap"),
    AchievementRule(
        "inspiration_5", "Inspired", "Added 5 items to inspiration board.", "Lightbulb",
        lambda ctx: ctx.inspiration_count >= 5,
    ),
    AchievementRule("published_1", "Publisher", "Published a note.", "Globe"),
    AchievementRule("zen_master", "Zen Master", "Used Focus Mode.", "Maximize"),
    AchievementRule("socialite", "Socialite", "Used Social Preview.", "Eye"),
    AchievementRule("visual_storyteller", "Visual Storyteller", "Inserted an image into a note.", "Image", _flag("image")),
    AchievementRule("director", "Director", "Inserted a video into a note.", "Video", _flag("video")),
    AchievementRule("structural_engineer", "Engineer", "Used a table in a note.", "Table", _flag("table")),
    AchievementRule("typewriter", "Typewriter", "Used the Monospace font setting.", "Type", _flag("mono")),
    AchievementRule("editor_chief", "Editor-in-Chief", "Fixed grammar using AI.", "CheckCircle"),
    AchievementRule("dark_side", "Dark Side", "Enabled Dark Mode.", "Moon"),
)

RULES_BY_ID = {rule.id: rule for rule in ACHIEVEMENT_RULES}

# Achievements with no rule are unlocked only by an explicit UI event.
EVENT_ACHIEVEMENTS = frozenset(rule.id for rule in ACHIEVEMENT_RULES if rule.check is None)


def merge_achievements(
    persisted: Iterable[Achievement] | None,
    context: AchievementContext,
    unlocked_at: int | None = None,
) -> tuple[list[Achievement], list[str]]:
    """
    Evaluate every rule and merge with the persisted set, id by id.

    An achievement is unlocked when it was already unlocked or its rule holds
    now. Persisted records keep their original unlock time. Persisted ids no
    longer in the catalog are carried over unchanged.

    :return: Merged achievements in catalog order, and newly unlocked ids
    :rtype: tuple[list[Achievement], list[str]]
    """
    stamp = unlocked_at if unlocked_at is not None else now_ms()
    previous = {a.id: a for a in (persisted or [])}
    merged: list[Achievement] = []
    newly: list[str] = []

    for rule in ACHIEVEMENT_RULES:
        old = previous.pop(rule.id, None)
        if old is not None and old.unlocked:
            merged.append(old.model_copy())
            continue
        record = rule.to_achievement()
        if rule.check is not None and rule.check(context):
            record.unlocked = True
            record.unlocked_at = stamp
            newly.append(rule.id)
        merged.append(record)

    merged.extend(a.model_copy() for a in previous.values())
    return merged, newly


def unlock(stats: UserStats, achievement_id: str, unlocked_at: int | None = None) -> tuple[UserStats, bool]:
    """Unlock one achievement by id. Returns the stats and whether it changed."""
    if achievement_id not in RULES_BY_ID:
        raise LookupError(f"Unknown achievement: {achievement_id}")
    updated = stats.model_copy(deep=True)
    if not any(a.id == achievement_id for a in updated.achievements):
        updated.achievements.append(RULES_BY_ID[achievement_id].to_achievement())
    for achievement in updated.achievements:
        if achievement.id == achievement_id:
            if achievement.unlocked:
                return stats, False
            achievement.unlocked = True
            achievement.unlocked_at = unlocked_at if unlocked_at is not None else now_ms()
    return updated, True


def check_achievements(
    stats: UserStats,
    context: AchievementContext,
    unlocked_at: int | None = None,
) -> tuple[UserStats, list[str]]:
    achievements, newly = merge_achievements(stats.achievements, context, unlocked_at)
    if not newly and len(achievements) == len(stats.achievements):
        return stats, []
    return stats.model_copy(update={"achievements": achievements}, deep=True), newly


def today_words(stats: UserStats, today: date) -> int:
    key = day_str(today)
    for entry in stats.daily_history:
        if entry.date == key:
            return entry.word_count
    return 0


# ── Reconciliation ──

def initial_stats(derived: DerivedStats, today: date | None = None) -> UserStats:
    """Stats for a user with nothing persisted yet."""
    today = today or date.today()
    wrote = derived.total_words > 0
    return UserStats(
        total_words_written=derived.total_words,
        current_streak=1 if wrote else 0,
        max_streak=1 if wrote else 0,
        last_written_date=day_str(today) if wrote else None,
        daily_history=[d.model_copy() for d in derived.daily_history],
        points=round(derived.total_words * POINTS_PER_WORD, 2),
    )


def reconcile(
    derived: DerivedStats,
    persisted: UserStats | None,
    *,
    folder_count: int = 0,
    inspiration_count: int = 0,
    today: date | None = None,
    unlocked_at: int | None = None,
) -> tuple[UserStats, list[str]]:
    """
    Merge freshly derived aggregates into the persisted stats.

    Totals and history come from ``derived``. Streak, points and any unlocked
    achievement come from ``persisted``. Rules are evaluated against the
    combined state. Habit and daily-volume rules need a write and never fire
    here: derived history puts a whole note on its last-modified day.

    :return: Reconciled stats and the ids unlocked by this call
    :rtype: tuple[UserStats, list[str]]
    """
    today = today or date.today()
    if persisted is None:
        base = initial_stats(derived, today)
    else:
        base = persisted.model_copy(
            update={
                "total_words_written": derived.total_words,
                "daily_history": [d.model_copy() for d in derived.daily_history],
                "max_streak": max(persisted.max_streak, persisted.current_streak),
            },
            deep=True,
        )

    context = AchievementContext(
        total_words=base.total_words_written,
        current_streak=base.current_streak,
        note_count=derived.note_count,
        folder_count=folder_count,
        inspiration_count=inspiration_count,
        flags=set(derived.features),
    )
    achievements, newly = merge_achievements(base.achievements, context, unlocked_at)
    base.achievements = achievements
    return base, newly


# ── Incremental path ──

def advance_streak(last_written_date: str | None, current_streak: int, today: date) -> int:
    """
    Streak after writing on ``today``.

    Same day keeps the streak, the day after the last write extends it, and
    any longer gap (or no previous write) restarts it at 1.
    """
    if last_written_date == day_str(today):
        return max(current_streak, 1)
    if last_written_date == day_str(today - timedelta(days=1)):
        return current_streak + 1
    return 1


def record_words(
    stats: UserStats,
    words_added: int,
    now: datetime | None = None,
    context: AchievementContext | None = None,
) -> tuple[UserStats, list[str]]:
    """
    Apply a positive word delta written at ``now``.

    Updates the lifetime total, points, today's history bucket (capped at
    HISTORY_CAP entries, oldest evicted) and the streak, then evaluates
    achievements including the time-of-day habits.

    :return: Updated stats and newly unlocked achievement ids
    :rtype: tuple[UserStats, list[str]]
    """
    if words_added <= 0:
        return stats, []
    now = now or datetime.now()
    today = now.date()
    key = day_str(today)

    history = [d.model_copy() for d in stats.daily_history]
    for entry in history:
        if entry.date == key:
            entry.word_count += words_added
            break
    else:
        history.append(DailyStat(date=key, word_count=words_added))
        while len(history) > HISTORY_CAP:
            history.pop(0)

    streak = advance_streak(stats.last_written_date, stats.current_streak, today)
    updated = stats.model_copy(
        update={
            "total_words_written": stats.total_words_written + words_added,
            "points": round(stats.points + words_added * POINTS_PER_WORD, 2),
            "daily_history": history,
            "current_streak": streak,
            "max_streak": max(streak, stats.max_streak),
            "last_written_date": key,
        },
        deep=True,
    )

    ctx = context or AchievementContext()
    ctx.total_words = updated.total_words_written
    ctx.current_streak = updated.current_streak
    ctx.today_words = today_words(updated, today)
    ctx.hour = now.hour
    ctx.weekday = now.weekday()
    return check_achievements(updated, ctx, unlocked_at=int(now.timestamp() * 1000))
