"""
Result models for remote store operations.
"""

from pydantic import BaseModel
from typing import Optional

class RemoteResult(BaseModel):
    """Base result for remote operations."""
    success: bool

class ConnectionTested(RemoteResult):
    """Result of an explicit connection check."""
    error: Optional[str] = None


class ConfigStatus(BaseModel):
    """Whether remote sync is usable with the effective configuration."""
    configured: bool
    url: str = ""
    is_override: bool = False
