"""
Render Settings - Resolution presets, quality tiers, and the session snapshot.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from config import DEFAULT_RENDER_RESOLUTION, DEFAULT_RENDER_QUALITY
from core.errors import SessionFormatError


class RenderResolution(str, Enum):
    """Timeline render canvas, ``<width>x<height>``."""
    HD_LANDSCAPE = "1280x720"
    FHD_LANDSCAPE = "1920x1080"
    HD_PORTRAIT = "720x1280"
    FHD_PORTRAIT = "1080x1920"

    @property
    def width(self) -> int:
        return int(self.value.split("x")[0])

    @property
    def height(self) -> int:
        return int(self.value.split("x")[1])


class RenderQuality(str, Enum):
    """Named quality tier. Lower numeric constant = higher fidelity."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def quality_constant(self) -> int:
        return QUALITY_CONSTANTS[self]


QUALITY_CONSTANTS = {
    RenderQuality.LOW: 28,
    RenderQuality.MEDIUM: 23,
    RenderQuality.HIGH: 18,
}


def tier_to_quality_constant(quality: RenderQuality | str) -> int:
    """Map a quality tier (or its name) to the x264 CRF value."""
    return QUALITY_CONSTANTS[RenderQuality(quality)]


class ExportResolution(str, Enum):
    """Single-clip export presets (16:9)."""
    P720 = "720p"
    P1080 = "1080p"

    @property
    def height(self) -> int:
        return 720 if self is ExportResolution.P720 else 1080


@dataclass
class RenderSettings:
    """Target canvas and quality tier for a timeline render."""
    resolution: RenderResolution = RenderResolution(DEFAULT_RENDER_RESOLUTION)
    quality: RenderQuality = RenderQuality(DEFAULT_RENDER_QUALITY)

    @property
    def quality_constant(self) -> int:
        return self.quality.quality_constant

    def to_dict(self) -> dict:
        return {
            "renderResolution": self.resolution.value,
            "renderQuality": self.quality.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RenderSettings":
        defaults = cls()
        return cls(
            resolution=RenderResolution(data.get("renderResolution", defaults.resolution.value)),
            quality=RenderQuality(data.get("renderQuality", defaults.quality.value)),
        )


@dataclass
class SessionSnapshot:
    """Persisted editor state: timeline clip ids plus render settings."""
    clip_ids: List[int] = field(default_factory=list)
    settings: RenderSettings = field(default_factory=RenderSettings)

    def to_json(self) -> str:
        data = {"timelineClipIds": list(self.clip_ids)}
        data.update(self.settings.to_dict())
        return json.dumps(data)

    @classmethod
    def from_json(cls, text: str) -> "SessionSnapshot":
        """Parse a stored snapshot.

        Raises:
            SessionFormatError: the text is not JSON or has the wrong shape.
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise SessionFormatError(f"Session is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SessionFormatError("Session must be a JSON object")

        clip_ids = data.get("timelineClipIds", [])
        if not isinstance(clip_ids, list) or not all(
            isinstance(i, int) and not isinstance(i, bool) for i in clip_ids
        ):
            raise SessionFormatError("timelineClipIds must be a list of integers")

        try:
            settings = RenderSettings.from_dict(data)
        except ValueError as e:
            raise SessionFormatError(f"Unknown render setting: {e}") from e
        return cls(clip_ids=clip_ids, settings=settings)
