"""Gamification stats domain models."""

from pydantic import BaseModel, Field
from typing import Optional


class Achievement(BaseModel):
    """An unlockable badge. Once unlocked it stays unlocked."""
    id: str
    title: str
    description: str
    icon: str
    unlocked: bool = False
    unlocked_at: Optional[int] = None


class DailyStat(BaseModel):
    """Words written on one calendar day (YYYY-MM-DD)."""
    date: str
    word_count: int = 0


class UserStats(BaseModel):
    """Per-user singleton, stored remotely as one opaque JSON blob."""
    total_words_written: int = 0
    current_streak: int = 0
    max_streak: int = 0
    last_written_date: Optional[str] = None
    daily_history: list[DailyStat] = Field(default_factory=list)
    achievements: list[Achievement] = Field(default_factory=list)
    points: float = 0.0


class DerivedStats(BaseModel):
    """Aggregates recomputed from the full note set."""
    total_words: int
    note_count: int
    daily_history: list[DailyStat]
    features: set[str] = Field(default_factory=set)


class AchievementUnlock(BaseModel):
    """Payload for unlocking an event-driven achievement."""
    achievement_id: str
