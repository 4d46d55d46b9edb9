import os
import sys
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.errors import EncodingError
from models.render import RenderSettings
from ui.threads import ClipOperationThread, DurationThread, EngineLoadThread, RenderThread
from conftest import make_clip


def _collect(thread):
    results = []
    thread.finished.connect(lambda success, message, data: results.append((success, message, data)))
    return results


def test_operation_reports_editor_errors(qtbot):
    def task(progress):
        raise EncodingError("FFmpeg failed (code=1)")

    thread = ClipOperationThread(task, "Trim")
    results = _collect(thread)
    thread.run()
    assert results == [(False, "Trim failed: FFmpeg failed (code=1)", None)]


def test_operation_reports_unexpected_errors(qtbot):
    def task(progress):
        raise KeyError("missing")

    thread = ClipOperationThread(task, "Split")
    results = _collect(thread)
    thread.run()
    assert len(results) == 1
    success, message, data = results[0]
    assert not success
    assert message.startswith("Split failed")
    assert data is None


def test_operation_passes_result(qtbot):
    thread = ClipOperationThread(lambda progress: b"out", "Export")
    results = _collect(thread)
    thread.run()
    assert results == [(True, "Export finished", b"out")]


def test_render_reports_unexpected_errors(qtbot, engine):
    thread = RenderThread(engine, [make_clip()], RenderSettings())
    results = _collect(thread)
    with patch("exporters.timeline_renderer.TimelineRenderer.render", side_effect=RuntimeError("boom")):
        thread.run()
    assert results == [(False, "Render failed: boom", None)]


def test_engine_load_reports_unexpected_errors(qtbot, tmp_path):
    from core.engine import EncodingEngine

    eng = EncodingEngine(scratch_root=tmp_path)
    thread = EngineLoadThread(eng)
    results = _collect(thread)
    with patch.object(eng, "ensure_ready", side_effect=RuntimeError("no workspace")):
        thread.run()
    assert results == [(False, "FFmpeg could not be loaded: no workspace", None)]


def test_duration_failure_reports_zero_durations(qtbot):
    clips = [make_clip(clip_id=1), make_clip(clip_id=2)]
    thread = DurationThread(clips, "ffprobe")
    results = _collect(thread)
    with patch("core.probe.compute_durations", side_effect=RuntimeError("probe crashed")):
        thread.run()
    assert len(results) == 1
    success, _message, items = results[0]
    assert not success
    assert [i.clip.id for i in items] == [1, 2]
    assert [i.duration for i in items] == [0.0, 0.0]
