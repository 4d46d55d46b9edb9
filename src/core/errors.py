"""
Editor error types.

All errors inherit from EditorError so the UI layer can catch them in one place.
Errors carry enough context for an actionable message; none of them are
retried automatically.
"""
from typing import Optional


class EditorError(Exception):
    """Base exception for all editing and rendering failures."""
    pass


class EngineLoadError(EditorError):
    """Raised when the encoding engine cannot be initialized."""
    pass


class EngineNotReadyError(EngineLoadError):
    """Raised when an operation is attempted before the engine is ready."""

    def __init__(self, state: str, last_error: Optional[str] = None):
        self.state = state
        self.last_error = last_error
        message = f"Encoding engine is not ready (state: {state})"
        if last_error:
            message += f": {last_error}"
        super().__init__(message)


class EngineBusyError(EditorError):
    """Raised when a second operation is started while one is in flight."""

    def __init__(self):
        super().__init__("Encoding engine is busy with another operation")


class InvalidRangeError(EditorError, ValueError):
    """Raised when trim or split bounds fall outside the clip."""

    def __init__(self, start: float, end: float, duration: float):
        self.start = start
        self.end = end
        self.duration = duration
        super().__init__(
            f"Invalid range {start}..{end} for clip of {duration} seconds"
        )


class EmptyTimelineError(EditorError):
    """Raised when rendering a timeline that has no clips."""

    def __init__(self):
        super().__init__("Timeline is empty")


class UnresolvedClipError(EditorError):
    """Raised when a clip has no binary content that can be staged."""

    def __init__(self, clip_name: str, index: Optional[int] = None, reason: str = ""):
        self.clip_name = clip_name
        self.index = index
        self.reason = reason
        where = f" at position {index}" if index is not None else ""
        message = f"Clip '{clip_name}'{where} has no resolvable content"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class EncodingError(EditorError):
    """Raised when an engine command fails. Carries the engine's output."""

    def __init__(self, message: str, diagnostic: str = ""):
        self.diagnostic = diagnostic
        super().__init__(f"{message}\n{diagnostic}" if diagnostic else message)


class CompositionError(EncodingError):
    """Raised when a timeline render fails at any stage after validation."""
    pass


class SessionFormatError(EditorError):
    """Raised when a stored session snapshot cannot be parsed."""
    pass
