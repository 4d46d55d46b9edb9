"""
Encoding Engine - Lifecycle and command execution for the FFmpeg CLI.

The engine owns a private scratch workspace where operations stage their
inputs and outputs. Only one operation may run at a time; the busy lock turns
a second concurrent call into EngineBusyError instead of undefined behaviour.

State machine::

    UNLOADED -> LOADING -> READY
                LOADING -> FAILED -> LOADING (explicit retry)
"""
from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional
import logging
import re
import shutil
import subprocess
import tempfile
import threading
import uuid

from config import ENGINE_LOG_TAIL_LINES, SCRATCH_PREFIX
from core.errors import EncodingError, EngineBusyError, EngineLoadError, EngineNotReadyError
from core.probe import probe_duration
from runtime_config import get_config

logger = logging.getLogger(__name__)

LogSink = Callable[[str], None]
ProgressCallback = Callable[[int], None]

_OUT_TIME_RE = re.compile(r"out_time_ms=(\d+)")


class EngineState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ScratchWorkspace:
    """Flat directory of staged inputs and outputs, addressed by bare name."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid scratch name: {name!r}")
        return self.root / name

    def write_file(self, name: str, data: bytes) -> None:
        self.path_for(name).write_bytes(data)

    def write_text(self, name: str, text: str) -> None:
        self.path_for(name).write_text(text, encoding="utf-8")

    def read_file(self, name: str) -> bytes:
        return self.path_for(name).read_bytes()

    def delete_file(self, name: str) -> None:
        """Delete *name*; a missing entry is not an error."""
        self.path_for(name).unlink(missing_ok=True)

    def list_files(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(p.name for p in self.root.iterdir())

    def remove(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)


class EncodingEngine:
    """FFmpeg binding: load once, run one command at a time, report progress."""

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        ffprobe_path: Optional[str] = None,
        preset: Optional[str] = None,
        scratch_root: Optional[str | Path] = None,
    ):
        config = get_config()
        self.ffmpeg_path = ffmpeg_path or config.ffmpeg_path
        self.ffprobe_path = ffprobe_path or config.ffprobe_path
        self.preset = preset or config.x264_preset
        self.scratch_root = Path(scratch_root) if scratch_root else None

        self._state = EngineState.UNLOADED
        self._last_error: Optional[str] = None
        self._log_sink: Optional[LogSink] = None
        self._workspace: Optional[ScratchWorkspace] = None
        self._ffmpeg: Optional[str] = None
        self._ffprobe: Optional[str] = None
        self._load_lock = threading.Lock()
        self._busy = threading.Lock()

    # -- Lifecycle ---------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def is_ready(self) -> bool:
        return self._state is EngineState.READY

    def set_log_sink(self, log_sink: Optional[LogSink]) -> None:
        self._log_sink = log_sink

    def ensure_ready(self, log_sink: Optional[LogSink] = None) -> None:
        """Load the engine once. Safe to call repeatedly.

        Raises:
            EngineLoadError: the FFmpeg executable is missing or unusable.
        """
        if log_sink is not None:
            self._log_sink = log_sink

        with self._load_lock:
            if self._state is EngineState.READY:
                self._log("FFmpeg is already loaded.")
                return

            self._state = EngineState.LOADING
            self._log("Loading FFmpeg...")
            try:
                self._load()
            except EngineLoadError as e:
                self._state = EngineState.FAILED
                self._last_error = str(e)
                logger.error("Engine load failed: %s", e)
                raise

            self._state = EngineState.READY
            self._last_error = None
            self._log("FFmpeg loaded successfully.")

    def _load(self) -> None:
        ffmpeg = shutil.which(self.ffmpeg_path)
        if ffmpeg is None:
            raise EngineLoadError(f"FFmpeg executable not found: {self.ffmpeg_path}")

        try:
            result = subprocess.run(
                [ffmpeg, "-hide_banner", "-version"],
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise EngineLoadError(f"Could not start FFmpeg: {e}") from e

        for line in (result.stdout or "").splitlines():
            self._log(line)
        if result.returncode != 0:
            raise EngineLoadError(
                f"FFmpeg self-check failed (code={result.returncode})\n{result.stderr or ''}"
            )

        self._ffprobe = shutil.which(self.ffprobe_path)
        if self._ffprobe is None:
            logger.warning("ffprobe not found (%s); progress will not be reported", self.ffprobe_path)

        if self._workspace is None:
            try:
                root = tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=self.scratch_root)
            except OSError as e:
                raise EngineLoadError(f"Could not create scratch workspace: {e}") from e
            self._workspace = ScratchWorkspace(root)
        self._ffmpeg = ffmpeg

    def require_ready(self) -> None:
        """Refuse to start work unless the engine is loaded."""
        if not self.is_ready():
            raise EngineNotReadyError(self._state.value, self._last_error)

    def shutdown(self) -> None:
        """Remove the scratch workspace. Used at application exit."""
        if self._workspace is not None:
            self._workspace.remove()
            self._workspace = None
        self._state = EngineState.UNLOADED

    # -- Operations --------------------------------------------------------

    @property
    def workspace(self) -> ScratchWorkspace:
        self.require_ready()
        return self._workspace

    @contextmanager
    def operation(self) -> Iterator[ScratchWorkspace]:
        """Hold the engine for one operation.

        Raises:
            EngineNotReadyError: the engine is not loaded.
            EngineBusyError: another operation is in flight.
        """
        self.require_ready()
        if not self._busy.acquire(blocking=False):
            raise EngineBusyError()
        try:
            yield self._workspace
        finally:
            self._busy.release()

    def is_busy(self) -> bool:
        return self._busy.locked()

    @staticmethod
    def unique_name(prefix: str, ext: str) -> str:
        return f"{prefix}_{uuid.uuid4().hex[:12]}.{ext}"

    def probe_duration(self, name: str) -> float:
        """Duration of a staged file, 0.0 when unknown."""
        if self._ffprobe is None:
            return 0.0
        return probe_duration(self.workspace.path_for(name), self._ffprobe)

    def run(
        self,
        args: list[str],
        total_duration: float = 0.0,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Run one FFmpeg command inside the workspace.

        Progress is reported as an integer percent that only ever increases.

        Raises:
            EncodingError: the process could not start or exited non-zero.
        """
        self.require_ready()
        cmd = [self._ffmpeg, "-y", "-hide_banner", "-nostats", "-progress", "pipe:1", *args]
        logger.debug("Running: %s", " ".join(cmd))

        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(self._workspace.root),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise EncodingError(f"Could not start FFmpeg: {e}") from e

        if proc.stdout is None:
            raise EncodingError("FFmpeg produced no output stream")

        total_us = int(total_duration * 1_000_000)
        last_pct = -1
        combined_output: list[str] = []

        try:
            for line in proc.stdout:
                line = line.rstrip("\n")
                combined_output.append(line)
                self._log(line)

                m = _OUT_TIME_RE.match(line.strip())
                if m and total_us > 0:
                    out_us = int(m.group(1))
                    pct = int(min(99, (out_us / total_us) * 100))
                    if pct > last_pct:
                        last_pct = pct
                        if on_progress:
                            on_progress(pct)
        except BaseException:
            proc.kill()
            proc.wait()
            raise

        rc = proc.wait()
        if rc != 0:
            tail = "\n".join(combined_output[-ENGINE_LOG_TAIL_LINES:])
            raise EncodingError(f"FFmpeg failed (code={rc})", tail)

        if on_progress and last_pct < 100:
            on_progress(100)

    # -- Logging -----------------------------------------------------------

    def _log(self, message: str) -> None:
        logger.debug("[ffmpeg] %s", message)
        if self._log_sink:
            self._log_sink(message)
