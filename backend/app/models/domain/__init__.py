"""Domain models: the entities a writer's workspace is made of."""

from app.models.domain.note import Note, NoteCreate, NoteUpdate, NoteMove, Template, now_ms
from app.models.domain.folder import Folder, FolderCreate, FolderUpdate, FolderReorder
from app.models.domain.inspiration import InspirationItem
from app.models.domain.stats import (
    Achievement,
    AchievementUnlock,
    DailyStat,
    DerivedStats,
    UserStats,
)
from app.models.domain.settings import EditorSettings, RemoteConfig, RemoteConfigUpdate

__all__ = [
    "Note", "NoteCreate", "NoteUpdate", "NoteMove", "Template", "now_ms",
    "Folder", "FolderCreate", "FolderUpdate", "FolderReorder",
    "InspirationItem",
    "Achievement", "AchievementUnlock", "DailyStat", "DerivedStats", "UserStats",
    "EditorSettings", "RemoteConfig", "RemoteConfigUpdate",
]
