"""
Local Media - Scan folders and hydrate locally referenced clips.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional
import base64
import logging

from config import AUDIO_EXTENSIONS, IMAGE_EXTENSIONS, VIDEO_EXTENSIONS
from core.errors import UnresolvedClipError
from models.clip import Clip, MediaKind

logger = logging.getLogger(__name__)

EXTENSIONS = {
    MediaKind.IMAGE: IMAGE_EXTENSIONS,
    MediaKind.VIDEO: VIDEO_EXTENSIONS,
    MediaKind.AUDIO: AUDIO_EXTENSIONS,
}

# Extension-derived MIME types that browsers and players spell differently
MIME_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/svg": "image/svg+xml",
    "audio/mp3": "audio/mpeg",
}


def mime_type_for(path: str | Path) -> str:
    ext = Path(path).suffix.lower()
    for kind, extensions in EXTENSIONS.items():
        if ext in extensions:
            mime = f"{kind.value}/{ext[1:]}"
            return MIME_ALIASES.get(mime, mime)
    return "application/octet-stream"


class LocalMediaBridge:
    """Desktop bridge to media files on disk."""

    def scan_directory(self, dir_path: str | Path, kind: MediaKind | str) -> list[str]:
        """Files in *dir_path* whose extension matches *kind*, sorted by name.

        Unknown kinds and unreadable folders give an empty list.
        """
        try:
            extensions = EXTENSIONS[MediaKind(kind)]
        except ValueError:
            return []
        try:
            entries = sorted(Path(dir_path).iterdir())
        except OSError as e:
            logger.error("Failed to scan directory %s: %s", dir_path, e)
            return []
        return [str(p) for p in entries if p.is_file() and p.suffix.lower() in extensions]

    def read_file_as_data_url(self, file_path: str | Path) -> Optional[str]:
        """Read a file into a ``data:`` URL, ``None`` if it cannot be read."""
        try:
            data = Path(file_path).read_bytes()
        except OSError as e:
            logger.error("Failed to read file %s: %s", file_path, e)
            return None
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{mime_type_for(file_path)};base64,{encoded}"

    def local_clips(self, dir_path: str | Path, kind: MediaKind | str, user_id: str = "local-user") -> list[Clip]:
        """Deferred clips for every matching file; content is loaded on demand."""
        kind = MediaKind(kind)
        return [
            Clip(
                name=Path(path).name,
                media_type=kind,
                mime_type="",
                data="",
                created_at=datetime.now(),
                tags=["local"],
                is_local=True,
                file_path=path,
                user_id=user_id,
            )
            for path in self.scan_directory(dir_path, kind)
        ]

    def hydrate(self, clip: Clip) -> Clip:
        """Return a copy of *clip* with inline content.

        Clips that already carry data are returned unchanged.

        Raises:
            UnresolvedClipError: the clip has no file or the file is unreadable.
        """
        if clip.has_inline_data():
            return clip
        if not clip.file_path:
            raise UnresolvedClipError(clip.name, reason="no file path")
        data_url = self.read_file_as_data_url(clip.file_path)
        if data_url is None:
            raise UnresolvedClipError(clip.name, reason=f"cannot read {clip.file_path}")
        return replace(
            clip,
            data=data_url,
            mime_type=mime_type_for(clip.file_path),
            tags=list(clip.tags),
        )
