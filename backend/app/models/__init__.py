"""
Beyond Words models.

Usage:
    from app.models import Note, Folder, InspirationItem, UserStats
    from app.models import Collection, InspirationType, normalize_email
    from app.models import Workspace, NoteChanged, ConnectionTested
"""

# --- Enums & utilities ---
from app.models.enums import (
    Collection,
    InspirationType,
    FontFamily,
    FontSize,
    MaxWidth,
    normalize_email,
)

# --- Domain models ---
from app.models.domain import (
    Note, NoteCreate, NoteUpdate, NoteMove, Template, now_ms,
    Folder, FolderCreate, FolderUpdate, FolderReorder,
    InspirationItem,
    Achievement, AchievementUnlock, DailyStat, DerivedStats, UserStats,
    EditorSettings, RemoteConfig, RemoteConfigUpdate,
)

# --- Result models ---
from app.models.results import (
    RemoteResult, ConnectionTested, ConfigStatus,
    Workspace, StatsChanged, NoteChanged, FolderChanged,
    InspirationChanged, EditorSettingsChanged,
)

__all__ = [
    # Enums
    "Collection", "InspirationType", "FontFamily", "FontSize", "MaxWidth", "normalize_email",
    # Domain
    "Note", "NoteCreate", "NoteUpdate", "NoteMove", "Template", "now_ms",
    "Folder", "FolderCreate", "FolderUpdate", "FolderReorder",
    "InspirationItem",
    "Achievement", "AchievementUnlock", "DailyStat", "DerivedStats", "UserStats",
    "EditorSettings", "RemoteConfig", "RemoteConfigUpdate",
    # Results
    "RemoteResult", "ConnectionTested", "ConfigStatus",
    "Workspace", "StatsChanged", "NoteChanged", "FolderChanged",
    "InspirationChanged", "EditorSettingsChanged",
]
