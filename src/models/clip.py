"""
Clip Library - Media clips and the store that owns them.

A Clip references binary media content plus metadata. Content is either
inline (a base64 data URL) or deferred to a local file that has to be
hydrated before the clip can be processed.

ClipLibrary is the local implementation of the store contract the editor
relies on: look a clip up by id and save a brand-new clip.
"""
import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, List, Protocol

from core.errors import UnresolvedClipError

logger = logging.getLogger(__name__)


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


@dataclass
class Clip:
    """A unit of media content referenced by the timeline.

    Attributes:
        id: Store identity, ``None`` until the clip has been saved.
        name: Display name, usually the original file name.
        media_type: image / video / audio.
        mime_type: MIME type of the payload (may be empty for deferred clips).
        data: Inline content as ``data:<mime>;base64,<payload>`` or bare base64.
            Empty when the content is deferred to ``file_path``.
        created_at: Creation timestamp.
        tags: Free-form tags.
        is_local: True when the clip came from a scanned local folder.
        file_path: Location of the deferred content on disk.
        user_id: Owner of the clip.
    """
    name: str
    media_type: MediaKind = MediaKind.VIDEO
    mime_type: str = ""
    data: str = ""
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    tags: List[str] = field(default_factory=list)
    is_local: bool = False
    file_path: Optional[str] = None
    user_id: str = ""

    @property
    def extension(self) -> str:
        """File extension taken from the name, ``mp4`` when there is none."""
        suffix = Path(self.name).suffix.lstrip(".")
        return suffix.lower() if suffix else "mp4"

    @property
    def base_name(self) -> str:
        """Name without its extension."""
        return Path(self.name).stem if Path(self.name).suffix else self.name

    def has_inline_data(self) -> bool:
        return bool(self.data)

    def is_deferred(self) -> bool:
        """Content still lives on disk and has not been read in."""
        return not self.data and self.is_local and bool(self.file_path)

    def content_bytes(self) -> bytes:
        """Decode the inline payload.

        Raises:
            UnresolvedClipError: no inline data, or the payload is not base64.
        """
        if not self.data:
            reason = "content not loaded from disk" if self.is_deferred() else "no content"
            raise UnresolvedClipError(self.name, reason=reason)

        payload = self.data
        if payload.startswith("data:"):
            header, sep, payload = payload.partition(",")
            if not sep or not header.endswith(";base64"):
                raise UnresolvedClipError(self.name, reason="unsupported data URL")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise UnresolvedClipError(self.name, reason=f"invalid base64: {e}") from e

    # -- Serialization -----------------------------------------------------

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "type": self.media_type.value,
            "mimeType": self.mime_type,
            "data": self.data,
            "createdAt": self.created_at.isoformat(),
            "tags": list(self.tags),
            "userId": self.user_id,
        }
        if self.is_local:
            d["isLocal"] = True
            d["filePath"] = self.file_path
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "Clip":
        created = data.get("createdAt")
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            media_type=MediaKind(data.get("type", "video")),
            mime_type=data.get("mimeType", ""),
            data=data.get("data", ""),
            created_at=datetime.fromisoformat(created) if created else datetime.now(),
            tags=list(data.get("tags", [])),
            is_local=data.get("isLocal", False),
            file_path=data.get("filePath"),
            user_id=data.get("userId", ""),
        )


def make_data_url(content: bytes, mime_type: str) -> str:
    """Encode *content* as an inline ``data:`` URL."""
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


@dataclass
class ClipWithDuration:
    """A clip paired with its probed playback duration (0.0 if unknown)."""
    clip: Clip
    duration: float = 0.0


class ClipStore(Protocol):
    """Store contract used by the editor."""

    def get_clip(self, clip_id: int) -> Optional[Clip]:
        ...

    def save_new_clip(self, clip: Clip) -> int:
        ...


# ---------------------------------------------------------------------------
# Clip Library
# ---------------------------------------------------------------------------

class ClipLibrary:
    """Local clip store with auto-increment ids.

    When constructed with a *path*, every mutation is written back to that
    JSON file so the library survives restarts.
    """

    def __init__(self, path: Optional[str | Path] = None):
        self._clips: dict[int, Clip] = {}
        self._next_id = 1
        self.path = Path(path) if path else None

    # -- Mutation ----------------------------------------------------------

    def save_new_clip(self, clip: Clip) -> int:
        """Store a copy of *clip* under a fresh id and return the id."""
        new_id = self._next_id
        self._next_id += 1
        self._clips[new_id] = replace(clip, id=new_id, tags=list(clip.tags))
        self._persist()
        return new_id

    def delete_clip(self, clip_id: int) -> Optional[Clip]:
        """Remove and return the clip, or ``None`` if not found."""
        clip = self._clips.pop(clip_id, None)
        if clip is not None:
            self._persist()
        return clip

    # -- Query -------------------------------------------------------------

    def get_clip(self, clip_id: int) -> Optional[Clip]:
        return self._clips.get(clip_id)

    def clips_for_user(self, user_id: str) -> list[Clip]:
        """Clips owned by *user_id*, oldest first."""
        clips = [c for c in self._clips.values() if c.user_id == user_id]
        return sorted(clips, key=lambda c: c.created_at)

    def all(self) -> list[Clip]:
        return list(self._clips.values())

    def __len__(self) -> int:
        return len(self._clips)

    def __contains__(self, clip_id: int) -> bool:
        return clip_id in self._clips

    # -- Serialization -----------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "next_id": self._next_id,
            "clips": [c.to_dict() for c in self._clips.values()],
        }

    @classmethod
    def from_dict(cls, data: dict, path: Optional[str | Path] = None) -> "ClipLibrary":
        library = cls(path)
        for item in data.get("clips", []):
            clip = Clip.from_dict(item)
            if clip.id is None:
                continue
            library._clips[clip.id] = clip
        highest = max(library._clips, default=0)
        library._next_id = max(int(data.get("next_id", 1)), highest + 1)
        return library

    @classmethod
    def load(cls, path: str | Path) -> "ClipLibrary":
        """Load the library from *path*; a missing file gives an empty library."""
        path = Path(path)
        if not path.exists():
            return cls(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.info("Loaded %d clips from %s", len(data.get("clips", [])), path)
        return cls.from_dict(data, path)

    def _persist(self):
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f)
        os.replace(tmp_path, self.path)
