"""\
Timeline Renderer - Concatenate the timeline into one MP4.

All clips are staged into the engine workspace in timeline order, listed in an
explicit concat manifest, and re-encoded in a single FFmpeg pass that fits
every frame into the target canvas (shrink, pad with black, yuv420p). Staged
files are removed whether the render succeeds or not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional
import logging

from core.clip_ops import fit_and_pad_filter, safe_extension
from core.engine import EncodingEngine, ScratchWorkspace
from core.errors import CompositionError, EmptyTimelineError, EncodingError, UnresolvedClipError
from models.clip import Clip
from models.render import RenderQuality, RenderResolution

logger = logging.getLogger(__name__)

MANIFEST_NAME = "concat.txt"
OUTPUT_NAME = "output.mp4"


@dataclass
class ConcatManifest:
    """Ordered list of staged names fed to the concat demuxer.

    Line order is the output order; it never comes from a directory listing.
    """
    entries: list[str] = field(default_factory=list)

    @staticmethod
    def _quote(name: str) -> str:
        return "'" + name.replace("'", "'\\''") + "'"

    def to_text(self) -> str:
        return "\n".join(f"file {self._quote(name)}" for name in self.entries) + "\n"


class TimelineRenderer:
    """Render an ordered clip list into a single MP4 using FFmpeg"""

    def __init__(self, engine: EncodingEngine):
        self.engine = engine

    def _check_clips(self, clips: list[Clip]) -> list[bytes]:
        """Decode every clip up front so nothing is staged for a bad timeline."""
        if not clips:
            raise EmptyTimelineError()
        contents: list[bytes] = []
        for i, clip in enumerate(clips):
            try:
                contents.append(clip.content_bytes())
            except UnresolvedClipError as e:
                raise UnresolvedClipError(clip.name, index=i, reason=e.reason) from e
        return contents

    def render(
        self,
        clips: list[Clip],
        resolution: RenderResolution | str,
        quality: RenderQuality | str,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> bytes:
        """Render *clips* in order at *resolution* and *quality*.

        Raises:
            EmptyTimelineError: *clips* is empty.
            UnresolvedClipError: a clip has no inline content.
            EngineNotReadyError: the engine is not loaded.
            CompositionError: staging, manifest or encoding failed.
        """
        resolution = RenderResolution(resolution)
        quality = RenderQuality(quality)
        contents = self._check_clips(clips)
        self.engine.require_ready()

        width, height = resolution.width, resolution.height
        crf = quality.quality_constant
        logger.info(
            "Rendering %d clips at %dx%d, quality %s (crf %d)",
            len(clips), width, height, quality.value, crf,
        )

        with self.engine.operation() as workspace:
            staged: list[str] = []
            try:
                # Staging order is concatenation order
                for i, (clip, content) in enumerate(zip(clips, contents)):
                    name = f"input{i}.{safe_extension(clip)}"
                    staged.append(name)
                    workspace.write_file(name, content)

                manifest = ConcatManifest(entries=list(staged))
                workspace.write_text(MANIFEST_NAME, manifest.to_text())

                total_duration = sum(self.engine.probe_duration(name) for name in staged)

                self.engine.run(
                    [
                        "-f", "concat",
                        "-safe", "0",
                        "-i", MANIFEST_NAME,
                        "-vf", fit_and_pad_filter(width, height),
                        "-c:v", "libx264",
                        "-preset", self.engine.preset,
                        "-crf", str(crf),
                        "-c:a", "aac",
                        "-movflags", "+faststart",
                        OUTPUT_NAME,
                    ],
                    total_duration=total_duration,
                    on_progress=on_progress,
                )

                data = workspace.read_file(OUTPUT_NAME)
                logger.info("Render finished: %d bytes", len(data))
                return data

            except EncodingError as e:
                raise CompositionError("Timeline render failed", e.diagnostic) from e
            except OSError as e:
                raise CompositionError(f"Timeline render failed: {e}") from e

            finally:
                self._cleanup(workspace, [*staged, MANIFEST_NAME, OUTPUT_NAME])

    @staticmethod
    def _cleanup(workspace: ScratchWorkspace, names: list[str]) -> None:
        for name in names:
            try:
                workspace.delete_file(name)
            except OSError as e:
                logger.warning("Could not remove scratch file %s: %s", name, e)
