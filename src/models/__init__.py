"""
ClipCaster Data Models.

Public API:

  Clips:
    Clip, ClipWithDuration, MediaKind, ClipStore, ClipLibrary, make_data_url

  Timeline:
    Timeline, TrimRange

  Render:
    RenderResolution, RenderQuality, RenderSettings, ExportResolution,
    SessionSnapshot, tier_to_quality_constant
"""

from models.clip import (
    Clip,
    ClipWithDuration,
    MediaKind,
    ClipStore,
    ClipLibrary,
    make_data_url,
)
from models.timeline import Timeline, TrimRange
from models.render import (
    RenderResolution,
    RenderQuality,
    RenderSettings,
    ExportResolution,
    SessionSnapshot,
    tier_to_quality_constant,
)

__all__ = [
    # Clips
    "Clip",
    "ClipWithDuration",
    "MediaKind",
    "ClipStore",
    "ClipLibrary",
    "make_data_url",
    # Timeline
    "Timeline",
    "TrimRange",
    # Render
    "RenderResolution",
    "RenderQuality",
    "RenderSettings",
    "ExportResolution",
    "SessionSnapshot",
    "tier_to_quality_constant",
]
