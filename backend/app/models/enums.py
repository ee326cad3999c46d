"""
Enum definitions for the Beyond Words API.
"""
from enum import Enum


class Collection(str, Enum):
    """Per-user snapshot collections held in the local cache."""
    NOTES = "notes"
    FOLDERS = "folders"
    INSPIRATION = "inspiration"
    STATS = "stats"
    EDITOR_SETTINGS = "editor_settings"


class InspirationType(str, Enum):
    """Kind of item pinned to the inspiration board."""
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    LINK = "link"
    HIGHLIGHT = "highlight"


class FontFamily(str, Enum):
    SERIF = "serif"
    SANS = "sans"
    MONO = "mono"


class FontSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class MaxWidth(str, Enum):
    NARROW = "narrow"
    MEDIUM = "medium"
    WIDE = "wide"
    FULL = "full"


def normalize_email(email: str) -> str:
    """
    Normalize a user email into the partition key used for every stored row.

    Examples:
        "Ada@Example.com" -> "ada@example.com"
        " bob@x.io " -> "bob@x.io"
    """
    return email.strip().lower()
