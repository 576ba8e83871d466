"""Named page settings that reference a stored asset."""

from dataclasses import dataclass
from typing import Optional

from .models import MultimediaAsset


@dataclass
class PageOption:
    """
    A bundle of settings for one page, looked up by name.

    The wallpaper is an already-persisted asset; the option only keeps
    a snapshot of its record, not the payload.
    """
    name: str
    terms: str = ""
    wallpaper: Optional[MultimediaAsset] = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Page option name cannot be empty")
