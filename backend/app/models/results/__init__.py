"""Result models for service operations."""

from app.models.results.remote import RemoteResult, ConnectionTested, ConfigStatus
from app.models.results.workspace import (
    Workspace, StatsChanged, NoteChanged, FolderChanged,
    InspirationChanged, EditorSettingsChanged,
)

__all__ = [
    "RemoteResult", "ConnectionTested", "ConfigStatus",
    "Workspace", "StatsChanged", "NoteChanged", "FolderChanged",
    "InspirationChanged", "EditorSettingsChanged",
]
