"""
Result models for workspace operations.
"""

from pydantic import BaseModel, Field
from typing import Optional

from app.models.domain.folder import Folder
from app.models.domain.inspiration import InspirationItem
from app.models.domain.note import Note
from app.models.domain.settings import EditorSettings
from app.models.domain.stats import UserStats


class Workspace(BaseModel):
    """Everything the UI needs after login, defaults already seeded."""
    notes: list[Note]
    folders: list[Folder]
    inspiration: list[InspirationItem]
    stats: UserStats
    editor_settings: EditorSettings
    unlocked: list[str] = Field(default_factory=list)


class StatsChanged(BaseModel):
    """Stats after a mutation, with achievement ids unlocked by it."""
    stats: UserStats
    unlocked: list[str] = Field(default_factory=list)


class NoteChanged(StatsChanged):
    note: Note
    words_added: int = 0


class FolderChanged(StatsChanged):
    folders: list[Folder]
    folder: Optional[Folder] = None


class InspirationChanged(StatsChanged):
    items: list[InspirationItem]


class EditorSettingsChanged(StatsChanged):
    editor_settings: EditorSettings
