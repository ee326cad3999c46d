"""Editor settings and remote configuration models."""

from pydantic import BaseModel

from app.models.enums import FontFamily, FontSize, MaxWidth


class EditorSettings(BaseModel):
    """Per-user editor presentation preferences. Kept locally only."""
    font_family: FontFamily = FontFamily.SERIF
    font_size: FontSize = FontSize.MEDIUM
    max_width: MaxWidth = MaxWidth.MEDIUM


class RemoteConfig(BaseModel):
    """Effective remote endpoint and access key."""
    url: str = ""
    key: str = ""
    is_override: bool = False


class RemoteConfigUpdate(BaseModel):
    url: str
    key: str
