"""
Tests for session persistence: restore against the clip library and the
debounced autosave.
"""
import json
import os
import sys

import pytest
from PyQt6.QtCore import QSettings

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.clip import ClipLibrary
from models.render import RenderQuality, RenderResolution, RenderSettings, SessionSnapshot
from ui.session import SessionAutosaver, SessionSlot, restore_session
from conftest import make_clip


class CountingSlot(SessionSlot):
    def __init__(self, settings):
        super().__init__(settings)
        self.writes = []

    def write(self, payload):
        self.writes.append(payload)
        super().write(payload)


@pytest.fixture
def settings(tmp_path):
    return QSettings(str(tmp_path / "session.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def slot(settings):
    return CountingSlot(settings)


@pytest.fixture
def library():
    lib = ClipLibrary()
    lib.save_new_clip(make_clip("a.mp4", clip_id=None))
    lib.save_new_clip(make_clip("b.mp4", clip_id=None))
    return lib


def test_restore_without_session(slot, library):
    restored = restore_session(slot, library)
    assert restored.clips == []
    assert restored.settings == RenderSettings()
    assert not restored.discarded


def test_restore_skips_missing_clips(slot, library):
    slot.write(json.dumps({
        "timelineClipIds": [2, 99, 1, 2],
        "renderResolution": "1280x720",
        "renderQuality": "High",
    }))

    restored = restore_session(slot, library)

    assert [c.id for c in restored.clips] == [2, 1, 2]
    assert restored.dropped_ids == [99]
    assert restored.settings == RenderSettings(RenderResolution("1280x720"), RenderQuality.HIGH)
    assert not restored.discarded
    assert slot.read() is not None


@pytest.mark.parametrize("payload", ["{not json", '{"timelineClipIds": ["a"]}', '{"renderQuality": "Best"}'])
def test_corrupt_session_is_discarded(slot, library, payload):
    slot.write(payload)

    restored = restore_session(slot, library)

    assert restored.discarded
    assert restored.clips == []
    assert restored.settings == RenderSettings()
    assert slot.read() is None


def test_burst_of_changes_saves_once(qtbot, slot):
    state = {"ids": [1]}
    saver = SessionAutosaver(slot, lambda: SessionSnapshot(clip_ids=list(state["ids"])), debounce_ms=50)
    saver.set_enabled(True)

    for ids in ([1, 2], [1, 2, 3], [3, 2, 1]):
        state["ids"] = ids
        saver.schedule()
    assert saver.is_pending()

    qtbot.waitUntil(lambda: len(slot.writes) == 1, timeout=2000)
    qtbot.wait(150)
    assert len(slot.writes) == 1
    assert json.loads(slot.writes[0])["timelineClipIds"] == [3, 2, 1]


def test_disabled_autosaver_does_not_save(qtbot, slot):
    saver = SessionAutosaver(slot, SessionSnapshot, debounce_ms=10)
    saver.schedule()
    assert not saver.is_pending()
    qtbot.wait(50)
    assert slot.writes == []


def test_flush_writes_pending_snapshot(qtbot, slot):
    saver = SessionAutosaver(slot, lambda: SessionSnapshot(clip_ids=[5]), debounce_ms=60000)
    saver.set_enabled(True)
    saver.schedule()

    statuses = []
    saver.save_status_changed.connect(statuses.append)
    saver.flush()

    assert not saver.is_pending()
    assert json.loads(slot.read())["timelineClipIds"] == [5]
    assert statuses == ["saving", "saved"]
    qtbot.waitUntil(lambda: statuses[-1] == "idle", timeout=5000)


def test_flush_without_changes_is_noop(slot):
    saver = SessionAutosaver(slot, SessionSnapshot)
    saver.set_enabled(True)
    saver.flush()
    assert slot.writes == []


def test_failed_save_reports_error(qtbot, slot):
    def broken():
        raise ValueError("no snapshot")

    saver = SessionAutosaver(slot, broken, debounce_ms=10)
    saver.set_enabled(True)
    with qtbot.waitSignal(saver.save_status_changed, check_params_cb=lambda s: s == "error", timeout=2000):
        saver.schedule()
    assert slot.writes == []
