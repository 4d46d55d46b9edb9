"""
Video Filters - Closed set of filter descriptors and their FFmpeg expressions.

Each descriptor is a frozen dataclass; ``VideoFilter`` is the union of all of
them. ``translate_filter`` is pure: the same descriptor always produces the
same expression string.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

SEPIA_MATRIX = ".393:.769:.189:0:.349:.686:.168:0:.272:.534:.131"
UNSHARP_KERNEL = "5:5:1.0:5:5:0.0"


def _format_number(value: float) -> str:
    """Canonical number text: ``1.0 -> '1'``, ``0.25 -> '0.25'``."""
    value = float(value)
    if value == int(value):
        return str(int(value))
    return repr(value)


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} value must be a number, got {value!r}")
    if not (low <= value <= high):
        raise ValueError(f"{name} value {value} outside {low}..{high}")


@dataclass(frozen=True)
class Brightness:
    """Linear brightness shift, -1..1, 0 = unchanged."""
    value: float = 0.0
    name: str = field(default="brightness", init=False)

    def __post_init__(self):
        _check_range(self.name, self.value, -1.0, 1.0)


@dataclass(frozen=True)
class Contrast:
    """Linear contrast, -2..2, 1 = unchanged."""
    value: float = 1.0
    name: str = field(default="contrast", init=False)

    def __post_init__(self):
        _check_range(self.name, self.value, -2.0, 2.0)


@dataclass(frozen=True)
class Sepia:
    name: str = field(default="sepia", init=False)


@dataclass(frozen=True)
class Grayscale:
    name: str = field(default="grayscale", init=False)


@dataclass(frozen=True)
class Blur:
    """Gaussian blur with sigma = value, 0 = no blur."""
    value: int = 0
    name: str = field(default="blur", init=False)

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value < 0:
            raise ValueError(f"blur value must be an integer >= 0, got {self.value!r}")


@dataclass(frozen=True)
class Sharpen:
    name: str = field(default="sharpen", init=False)


VideoFilter = Union[Brightness, Contrast, Sepia, Grayscale, Blur, Sharpen]

FILTER_TYPES: dict[str, type] = {
    "brightness": Brightness,
    "contrast": Contrast,
    "sepia": Sepia,
    "grayscale": Grayscale,
    "blur": Blur,
    "sharpen": Sharpen,
}


def translate_filter(video_filter: VideoFilter) -> str:
    """FFmpeg ``-vf`` expression for *video_filter*.

    Raises:
        TypeError: *video_filter* is not one of the known descriptors.
    """
    if isinstance(video_filter, Brightness):
        return f"eq=brightness={_format_number(video_filter.value)}"
    if isinstance(video_filter, Contrast):
        return f"eq=contrast={_format_number(video_filter.value)}"
    if isinstance(video_filter, Sepia):
        return f"colorchannelmixer={SEPIA_MATRIX}"
    if isinstance(video_filter, Grayscale):
        return "format=gray,format=yuv420p"
    if isinstance(video_filter, Blur):
        return f"gblur=sigma={video_filter.value}"
    if isinstance(video_filter, Sharpen):
        return f"unsharp={UNSHARP_KERNEL}"
    raise TypeError(f"Unknown video filter: {video_filter!r}")


def filter_from_dict(data: dict) -> VideoFilter:
    """Build a descriptor from ``{"name": ..., "value": ...}``.

    Raises:
        ValueError: unknown name, missing value, or value out of range.
    """
    name = data.get("name")
    filter_cls = FILTER_TYPES.get(name)
    if filter_cls is None:
        raise ValueError(f"Unknown filter name: {name!r}")
    if filter_cls in (Sepia, Grayscale, Sharpen):
        return filter_cls()
    if "value" not in data:
        raise ValueError(f"Filter {name!r} requires a value")
    return filter_cls(data["value"])


def filter_to_dict(video_filter: VideoFilter) -> dict:
    d = {"name": video_filter.name}
    if hasattr(video_filter, "value"):
        d["value"] = video_filter.value
    return d
