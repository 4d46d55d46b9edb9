"""
Session Persistence - QSettings-backed timeline snapshot with debounced autosave
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional
import logging

from PyQt6.QtCore import QObject, QSettings, QTimer, pyqtSignal

from config import APP_NAME, AUTOSAVE_DEBOUNCE_MS, ORGANIZATION_NAME, SAVE_STATUS_RESET_MS, SESSION_KEY
from core.errors import SessionFormatError
from models.clip import Clip, ClipStore
from models.render import RenderSettings, SessionSnapshot

logger = logging.getLogger(__name__)


class SessionSlot:
    """One durable key-value slot holding the serialized session"""

    def __init__(self, settings: Optional[QSettings] = None, key: str = SESSION_KEY):
        self.settings = settings if settings is not None else QSettings(ORGANIZATION_NAME, APP_NAME)
        self.key = key

    def read(self) -> Optional[object]:
        """Raw stored value, ``None`` when nothing was saved yet"""
        return self.settings.value(self.key, None)

    def write(self, payload: str):
        self.settings.setValue(self.key, payload)
        self.settings.sync()

    def clear(self):
        self.settings.remove(self.key)
        self.settings.sync()


@dataclass
class RestoredSession:
    clips: list[Clip] = field(default_factory=list)
    settings: RenderSettings = field(default_factory=RenderSettings)
    dropped_ids: list[int] = field(default_factory=list)
    discarded: bool = False


def restore_session(slot: SessionSlot, store: ClipStore) -> RestoredSession:
    """Rebuild the timeline and render settings from the slot.

    Ids the store no longer knows are dropped. A snapshot that cannot be
    parsed is discarded: the slot is cleared and defaults are returned.
    Never raises for bad slot contents.
    """
    raw = slot.read()
    if raw is None or raw == "":
        return RestoredSession()

    try:
        snapshot = SessionSnapshot.from_json(raw)
    except SessionFormatError as e:
        logger.warning("Discarding unreadable session snapshot: %s", e)
        slot.clear()
        return RestoredSession(discarded=True)

    clips: list[Clip] = []
    dropped: list[int] = []
    for clip_id in snapshot.clip_ids:
        clip = store.get_clip(clip_id)
        if clip is None:
            dropped.append(clip_id)
        else:
            clips.append(clip)

    if dropped:
        logger.info("Dropped %d missing clip(s) from restored timeline: %s", len(dropped), dropped)

    return RestoredSession(clips=clips, settings=snapshot.settings, dropped_ids=dropped)


class SessionAutosaver(QObject):
    """Coalesce timeline and settings changes into one delayed write.

    Every ``schedule()`` restarts the countdown, so a burst of edits results
    in a single snapshot written ``debounce_ms`` after the last one.
    """

    save_status_changed = pyqtSignal(str)  # "saving", "saved", "idle", "error"

    def __init__(
        self,
        slot: SessionSlot,
        snapshot_provider: Callable[[], SessionSnapshot],
        debounce_ms: int = AUTOSAVE_DEBOUNCE_MS,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.slot = slot
        self.snapshot_provider = snapshot_provider
        self._enabled = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(debounce_ms)
        self._timer.timeout.connect(self._save)

        self._status_timer = QTimer(self)
        self._status_timer.setSingleShot(True)
        self._status_timer.setInterval(SAVE_STATUS_RESET_MS)
        self._status_timer.timeout.connect(lambda: self.save_status_changed.emit("idle"))

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool):
        """Saving stays off until the restore has finished"""
        self._enabled = enabled
        if not enabled:
            self._timer.stop()

    def is_pending(self) -> bool:
        return self._timer.isActive()

    def schedule(self):
        if not self._enabled:
            return
        self._timer.start()

    def flush(self):
        """Write a pending snapshot now"""
        if self._timer.isActive():
            self._timer.stop()
            self._save()

    def _save(self):
        self.save_status_changed.emit("saving")
        try:
            payload = self.snapshot_provider().to_json()
            self.slot.write(payload)
        except Exception:
            # Runs from a timer slot; nothing above us can handle it
            logger.exception("Failed to save session")
            self.save_status_changed.emit("error")
            return
        logger.debug("Session saved")
        self.save_status_changed.emit("saved")
        self._status_timer.start()
