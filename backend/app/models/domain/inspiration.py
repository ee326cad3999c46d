"""Inspiration board domain model."""

from pydantic import BaseModel, Field
from typing import Optional
from uuid import uuid4

from app.models.domain.note import now_ms
from app.models.enums import InspirationType


class InspirationItem(BaseModel):
    """A text, image, video, link or highlight pinned to the board."""
    id: str = Field(default_factory=lambda: f"i-{uuid4()}")
    type: InspirationType
    content: str
    title: Optional[str] = None
    snippet: Optional[str] = None
    created_at: int = Field(default_factory=now_ms)
    x: Optional[float] = None
    y: Optional[float] = None
