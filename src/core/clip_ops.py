"""
Clip Operations - Single-clip trim, split, filter and resolution export.

Every operation stages the clip into the engine's scratch workspace, runs one
FFmpeg command (two for split), reads the output back into memory and removes
every scratch entry it created, on success and on failure alike.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional
import logging
import re

from core.engine import EncodingEngine, ScratchWorkspace
from core.errors import EncodingError, InvalidRangeError
from core.filters import VideoFilter, translate_filter
from models.clip import Clip
from models.timeline import TrimRange
from runtime_config import get_config

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

EXPORT_HEIGHTS = (720, 1080)


def safe_extension(clip: Clip) -> str:
    """Extension usable as part of a scratch name."""
    ext = re.sub(r"[^a-z0-9]", "", clip.extension)
    return ext or "mp4"


def fit_and_pad_filter(width: int, height: int) -> str:
    """Shrink to fit inside width x height, pad with black, normalize pixels."""
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:-1:-1:color=black,format=yuv420p"
    )


def export_width(height: int) -> int:
    """16:9 width for a target height."""
    return round(height * 16 / 9)


class ClipOperationExecutor:
    """Run one transformation against one clip and return the output bytes."""

    def __init__(self, engine: EncodingEngine):
        self.engine = engine

    # -- Staging -----------------------------------------------------------

    @contextmanager
    def _staged(self, clip: Clip, output_count: int = 1) -> Iterator[tuple[ScratchWorkspace, str, list[str]]]:
        """Hold the engine, stage *clip*, yield (workspace, input, outputs).

        All names are removed on exit, whatever happened inside.
        """
        content = clip.content_bytes()
        with self.engine.operation() as workspace:
            input_name = self.engine.unique_name("input", safe_extension(clip))
            output_names = [self.engine.unique_name("output", "mp4") for _ in range(output_count)]
            try:
                try:
                    workspace.write_file(input_name, content)
                except OSError as e:
                    raise EncodingError(f"Could not stage '{clip.name}': {e}") from e
                yield workspace, input_name, output_names
            finally:
                for name in [input_name, *output_names]:
                    try:
                        workspace.delete_file(name)
                    except OSError as e:
                        logger.warning("Could not remove scratch file %s: %s", name, e)

    @staticmethod
    def _read_output(workspace: ScratchWorkspace, name: str) -> bytes:
        try:
            return workspace.read_file(name)
        except OSError as e:
            raise EncodingError(f"Could not read output {name}: {e}") from e

    def _encode_args(self) -> list[str]:
        config = get_config()
        return [
            "-c:v", "libx264",
            "-preset", self.engine.preset,
            "-crf", str(config.export_crf),
            "-c:a", "aac",
            "-movflags", "+faststart",
        ]

    # -- Operations --------------------------------------------------------

    def trim(
        self,
        clip: Clip,
        start: float,
        end: float,
        duration: float,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Cut ``[start, end]`` out of *clip* using stream copy.

        Cut points snap to keyframes, so the result is not frame-accurate.

        Raises:
            InvalidRangeError: unless ``0 <= start < end <= duration``.
            EncodingError: the engine command failed.
        """
        TrimRange(start, end).validate(duration)
        self.engine.require_ready()

        with self._staged(clip) as (workspace, input_name, (output_name,)):
            logger.info("Trimming '%s' to %.3f-%.3f", clip.name, start, end)
            self.engine.run(
                [
                    "-i", input_name,
                    "-ss", f"{start:.3f}",
                    "-to", f"{end:.3f}",
                    "-c", "copy",
                    output_name,
                ],
                total_duration=end - start,
                on_progress=on_progress,
            )
            return self._read_output(workspace, output_name)

    def split(
        self,
        clip: Clip,
        at: float,
        duration: float,
        on_progress: Optional[ProgressCallback] = None,
    ) -> tuple[bytes, bytes]:
        """Split *clip* in two at *at* seconds using stream copy.

        Raises:
            InvalidRangeError: unless ``0 < at < duration``.
            EncodingError: either engine command failed.
        """
        if not (0.0 < at < duration):
            raise InvalidRangeError(0.0, at, duration)
        self.engine.require_ready()

        with self._staged(clip, output_count=2) as (workspace, input_name, (first, second)):
            logger.info("Splitting '%s' at %.3f", clip.name, at)
            self.engine.run(["-i", input_name, "-t", f"{at:.3f}", "-c", "copy", first])
            if on_progress:
                on_progress(50)
            self.engine.run(["-i", input_name, "-ss", f"{at:.3f}", "-c", "copy", second])
            if on_progress:
                on_progress(100)
            return self._read_output(workspace, first), self._read_output(workspace, second)

    def apply_filter(
        self,
        clip: Clip,
        video_filter: VideoFilter,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Re-encode *clip* through a single video filter."""
        expression = translate_filter(video_filter)
        self.engine.require_ready()

        with self._staged(clip) as (workspace, input_name, (output_name,)):
            logger.info("Applying %s to '%s'", video_filter.name, clip.name)
            self.engine.run(
                [
                    "-i", input_name,
                    "-vf", expression,
                    "-pix_fmt", "yuv420p",
                    *self._encode_args(),
                    output_name,
                ],
                total_duration=self.engine.probe_duration(input_name),
                on_progress=on_progress,
            )
            return self._read_output(workspace, output_name)

    def export_resolution(
        self,
        clip: Clip,
        target_height: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Re-encode *clip* letterboxed into a 16:9 frame of *target_height*.

        Raises:
            ValueError: *target_height* is not 720 or 1080.
        """
        if target_height not in EXPORT_HEIGHTS:
            raise ValueError(f"Unsupported export height: {target_height}")
        width = export_width(target_height)
        self.engine.require_ready()

        with self._staged(clip) as (workspace, input_name, (output_name,)):
            logger.info("Exporting '%s' at %dx%d", clip.name, width, target_height)
            self.engine.run(
                [
                    "-i", input_name,
                    "-vf", fit_and_pad_filter(width, target_height),
                    *self._encode_args(),
                    output_name,
                ],
                total_duration=self.engine.probe_duration(input_name),
                on_progress=on_progress,
            )
            return self._read_output(workspace, output_name)
