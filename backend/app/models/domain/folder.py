"""Folder domain model."""

from pydantic import BaseModel, Field
from typing import Optional
from uuid import uuid4


class FolderCreate(BaseModel):
    name: str
    color: Optional[str] = "#78716c"


class FolderUpdate(BaseModel):
    name: str
    color: Optional[str] = None


class FolderReorder(BaseModel):
    from_index: int
    to_index: int


class Folder(BaseModel):
    """A named group of notes. Notes point at folders, not the reverse."""
    id: str = Field(default_factory=lambda: f"f-{uuid4()}")
    name: str
    color: Optional[str] = None
