"""Note domain model."""

from pydantic import BaseModel, Field
from typing import Optional
from time import time
from uuid import uuid4


def now_ms() -> int:
    return int(time() * 1000)


class NoteCreate(BaseModel):
    """Payload for creating a note, optionally from a template."""
    folder_id: Optional[str] = None
    template_id: Optional[str] = None


class NoteUpdate(BaseModel):
    """Payload for updating a note's content, title or goal."""
    content: str
    title: Optional[str] = None
    target_word_count: Optional[int] = None


class NoteMove(BaseModel):
    """Payload for moving a note into another folder."""
    folder_id: str


class Note(BaseModel):
    """A piece of writing. Content is an opaque rich-text blob to this layer."""
    id: str = Field(default_factory=lambda: f"n-{uuid4()}")
    folder_id: str
    title: str = ""
    content: str = ""
    updated_at: int = Field(default_factory=now_ms)
    target_word_count: Optional[int] = None


class Template(BaseModel):
    """Starting content for a new note."""
    id: str
    name: str
    description: str
    content: str
    default_title: Optional[str] = None
