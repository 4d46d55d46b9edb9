"""
Library Helpers - Turn operation results into new library clips.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

from core.engine import EncodingEngine
from core.errors import EncodingError
from models.clip import Clip, ClipStore, MediaKind, make_data_url

logger = logging.getLogger(__name__)

MP4_MIME = "video/mp4"


def result_name(base_name: str, suffix: str) -> str:
    """``clip.mov`` + ``trimmed`` -> ``clip-trimmed.mp4``."""
    stem = Path(base_name).stem if Path(base_name).suffix else base_name
    return f"{stem}-{suffix}.mp4"


def result_tags(suffix: str) -> list[str]:
    """``edited`` plus the operation tag (the suffix up to its first ``-``)."""
    return ["edited", suffix.split("-")[0]]


def save_result_clip(
    store: ClipStore,
    content: bytes,
    base_name: str,
    suffix: str,
    user_id: str = "",
) -> Clip:
    """Persist an MP4 result as a brand-new clip and return the stored clip.

    The source clip is never touched.
    """
    clip = Clip(
        name=result_name(base_name, suffix),
        media_type=MediaKind.VIDEO,
        mime_type=MP4_MIME,
        data=make_data_url(content, MP4_MIME),
        created_at=datetime.now(),
        tags=result_tags(suffix),
        user_id=user_id,
    )
    new_id = store.save_new_clip(clip)
    logger.info("Saved '%s' to library as #%s", clip.name, new_id)
    saved = store.get_clip(new_id)
    return saved if saved is not None else clip


def import_generated_video(
    engine: EncodingEngine,
    store: ClipStore,
    content: bytes,
    prompt: str,
    user_id: str = "",
) -> Clip:
    """Save a video returned by the AI service as a library clip.

    The blob is remuxed with a fast-start layout in the scratch workspace
    before it is stored; staged files are always removed.

    Raises:
        EngineNotReadyError: the engine is not loaded.
        EncodingError: the remux failed.
    """
    engine.require_ready()
    with engine.operation() as workspace:
        input_name = engine.unique_name("generated", "mp4")
        output_name = engine.unique_name("output", "mp4")
        try:
            try:
                workspace.write_file(input_name, content)
            except OSError as e:
                raise EncodingError(f"Could not stage generated video: {e}") from e

            duration = engine.probe_duration(input_name)
            if duration <= 0:
                logger.warning("Generated video has no readable duration")
            engine.run(
                ["-i", input_name, "-c", "copy", "-movflags", "+faststart", output_name],
                total_duration=duration,
            )
            try:
                remuxed = workspace.read_file(output_name)
            except OSError as e:
                raise EncodingError(f"Could not read remuxed video: {e}") from e
        finally:
            for name in (input_name, output_name):
                try:
                    workspace.delete_file(name)
                except OSError as e:
                    logger.warning("Could not remove scratch file %s: %s", name, e)

    clip = Clip(
        name=f"gemini-generated-{prompt[:15]}.mp4",
        media_type=MediaKind.VIDEO,
        mime_type=MP4_MIME,
        data=make_data_url(remuxed, MP4_MIME),
        tags=["gemini", "ai-generated"],
        user_id=user_id,
    )
    new_id = store.save_new_clip(clip)
    saved: Optional[Clip] = store.get_clip(new_id)
    return saved if saved is not None else clip
