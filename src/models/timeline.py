"""
Timeline - Ordered clip sequence for the editing session.

Order is meaningful: it is the concatenation order of the final render.
The same clip may appear more than once.
"""
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

from core.errors import InvalidRangeError
from models.clip import Clip


# ---------------------------------------------------------------------------
# Trim Range
# ---------------------------------------------------------------------------

@dataclass
class TrimRange:
    """Start/end pair in seconds for trimming the selected clip."""
    start: float = 0.0
    end: float = 0.0

    @classmethod
    def full(cls, duration: float) -> "TrimRange":
        """The whole clip, ``[0, duration]``."""
        return cls(0.0, max(0.0, float(duration)))

    def validate(self, duration: float) -> None:
        """Require ``0 <= start < end <= duration``.

        Raises:
            InvalidRangeError: bounds are inverted, out of range, or NaN.
        """
        values = (self.start, self.end, duration)
        if any(v is None or math.isnan(v) for v in values):
            raise InvalidRangeError(self.start, self.end, duration)
        if not (0.0 <= self.start < self.end <= duration):
            raise InvalidRangeError(self.start, self.end, duration)

    @property
    def length(self) -> float:
        return self.end - self.start


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------

class Timeline:
    """Ordered sequence of clips with change notification.

    Observers registered through :meth:`add_listener` are called with no
    arguments after every mutation.
    """

    def __init__(self, clips: Optional[Iterable[Clip]] = None):
        self._clips: List[Clip] = list(clips or [])
        self._listeners: List[Callable[[], None]] = []

    # -- Observers ---------------------------------------------------------

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    # -- Mutation ----------------------------------------------------------

    def append(self, clip: Clip) -> None:
        self._clips.append(clip)
        self._notify()

    def extend(self, clips: Iterable[Clip]) -> None:
        self._clips.extend(clips)
        self._notify()

    def move(self, from_index: int, to_index: int) -> None:
        """Move the clip at *from_index* to *to_index*, shifting the others."""
        count = len(self._clips)
        if not (0 <= from_index < count and 0 <= to_index < count):
            raise IndexError(f"Cannot move {from_index} -> {to_index} in timeline of {count}")
        if from_index == to_index:
            return
        clip = self._clips.pop(from_index)
        self._clips.insert(to_index, clip)
        self._notify()

    def remove(self, index: int) -> Clip:
        clip = self._clips.pop(index)
        self._notify()
        return clip

    def replace(self, index: int, clip: Clip) -> None:
        """Swap the clip at *index*, e.g. with a freshly trimmed version."""
        self._clips[index] = clip
        self._notify()

    def set_clips(self, clips: Iterable[Clip]) -> None:
        self._clips = list(clips)
        self._notify()

    def clear(self) -> None:
        self._clips = []
        self._notify()

    # -- Query -------------------------------------------------------------

    @property
    def clips(self) -> list[Clip]:
        """A copy of the clip list in timeline order."""
        return list(self._clips)

    def clip_ids(self) -> list[int]:
        """Ids of saved clips in timeline order (unsaved clips are skipped)."""
        return [c.id for c in self._clips if c.id is not None]

    def __len__(self) -> int:
        return len(self._clips)

    def __iter__(self) -> Iterator[Clip]:
        return iter(list(self._clips))

    def __getitem__(self, index: int) -> Clip:
        return self._clips[index]
