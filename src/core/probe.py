"""
Media Probe - Read playback durations with ffprobe.
"""
from __future__ import annotations

from pathlib import Path
import contextlib
import logging
import os
import subprocess
import tempfile
import wave

from config import FFPROBE_BINARY, SCRATCH_PREFIX
from core.errors import UnresolvedClipError
from models.clip import Clip, ClipWithDuration

logger = logging.getLogger(__name__)


def probe_duration(path: str | Path, ffprobe: str = FFPROBE_BINARY) -> float:
    """Duration of a media file in seconds, 0.0 if it cannot be determined."""
    path = str(path)

    # Fast path for WAV
    if path.lower().endswith(".wav"):
        try:
            with contextlib.closing(wave.open(path, "rb")) as wf:
                frames = wf.getnframes()
                rate = wf.getframerate() or 1
                return frames / float(rate)
        except (wave.Error, OSError, EOFError):
            pass

    try:
        out = subprocess.check_output(
            [
                ffprobe,
                "-v",
                "error",
                "-show_entries",
                "format=duration",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                path,
            ],
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        ).strip()
        return max(0.0, float(out))
    except (OSError, subprocess.CalledProcessError, ValueError) as e:
        logger.debug("Could not probe %s: %s", path, e)
        return 0.0


def probe_clip_duration(clip: Clip, ffprobe: str = FFPROBE_BINARY) -> float:
    """Probe a clip's duration from its local file or inline payload."""
    if clip.is_deferred():
        return probe_duration(clip.file_path, ffprobe)

    try:
        content = clip.content_bytes()
    except UnresolvedClipError:
        return 0.0

    try:
        fd, path = tempfile.mkstemp(prefix=SCRATCH_PREFIX, suffix=f".{clip.extension}")
        os.close(fd)
    except OSError as e:
        logger.warning("Could not stage '%s' for probing: %s", clip.name, e)
        return 0.0

    try:
        Path(path).write_bytes(content)
        return probe_duration(path, ffprobe)
    except OSError as e:
        logger.warning("Could not stage '%s' for probing: %s", clip.name, e)
        return 0.0
    finally:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning("Could not remove probe file %s: %s", path, e)


def compute_durations(clips: list[Clip], ffprobe: str = FFPROBE_BINARY) -> list[ClipWithDuration]:
    """Pair every clip with its duration, preserving order."""
    return [ClipWithDuration(clip, probe_clip_duration(clip, ffprobe)) for clip in clips]
