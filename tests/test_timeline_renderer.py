"""
Tests for the timeline renderer: ordering through the concat manifest,
encode settings, precondition checks and scratch cleanup.
"""
import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.errors import CompositionError, EmptyTimelineError, UnresolvedClipError
from core.engine import ScratchWorkspace
from exporters.timeline_renderer import MANIFEST_NAME, ConcatManifest, TimelineRenderer
from models.clip import Clip, MediaKind
from models.render import RenderQuality, RenderResolution
from conftest import FakeFFmpeg, make_clip


def _arg_after(cmd, flag):
    return cmd[cmd.index(flag) + 1]


class ManifestCapture:
    """Reads the manifest and staged inputs while the fake encoder runs"""

    def __init__(self):
        self.manifest = None
        self.staged = {}

    def __call__(self, cmd, workdir):
        self.manifest = (workdir / MANIFEST_NAME).read_text(encoding="utf-8")
        for line in self.manifest.splitlines():
            name = line[len("file '"):-1]
            self.staged[name] = (workdir / name).read_bytes()


def test_render_two_clips(engine):
    clip_a = make_clip("a.mp4", b"clip-A", clip_id=1)
    clip_b = make_clip("b.mp4", b"clip-B", clip_id=2)
    durations = {"input0.mp4": 4.0, "input1.mp4": 6.0}
    capture = ManifestCapture()
    fake = FakeFFmpeg(on_run=capture, progress_lines=["out_time_ms=5000000"])
    seen = []

    with patch("subprocess.Popen", new=fake), \
         patch.object(engine, "probe_duration", side_effect=durations.get):
        data = TimelineRenderer(engine).render(
            [clip_a, clip_b], "1280x720", "Medium", on_progress=seen.append
        )

    assert data == b"encoded:output.mp4"
    assert capture.manifest == "file 'input0.mp4'\nfile 'input1.mp4'\n"
    assert capture.staged == {"input0.mp4": b"clip-A", "input1.mp4": b"clip-B"}

    (cmd,) = fake.calls
    assert _arg_after(cmd, "-f") == "concat"
    assert _arg_after(cmd, "-safe") == "0"
    assert _arg_after(cmd, "-i") == MANIFEST_NAME
    assert _arg_after(cmd, "-crf") == "23"
    vf = _arg_after(cmd, "-vf")
    assert vf.startswith("scale=1280:720:force_original_aspect_ratio=decrease")
    assert "pad=1280:720:-1:-1:color=black" in vf
    assert vf.endswith("format=yuv420p")
    assert seen == [50, 100]
    assert engine.workspace.list_files() == []


def test_manifest_keeps_numeric_order(engine):
    clips = [make_clip(f"c{i}.mp4", f"content-{i}".encode(), clip_id=i) for i in range(12)]
    capture = ManifestCapture()

    with patch("subprocess.Popen", new=FakeFFmpeg(on_run=capture)), \
         patch.object(engine, "probe_duration", return_value=1.0):
        TimelineRenderer(engine).render(clips, RenderResolution("1080x1920"), RenderQuality.LOW)

    names = [line[len("file '"):-1] for line in capture.manifest.splitlines()]
    assert names == [f"input{i}.mp4" for i in range(12)]
    assert names.index("input2.mp4") < names.index("input10.mp4")
    assert [capture.staged[n] for n in names] == [f"content-{i}".encode() for i in range(12)]


def test_duplicate_clips_are_staged_twice(engine):
    clip = make_clip("a.mp4", b"same")
    capture = ManifestCapture()
    with patch("subprocess.Popen", new=FakeFFmpeg(on_run=capture)), \
         patch.object(engine, "probe_duration", return_value=1.0):
        TimelineRenderer(engine).render([clip, clip], "1920x1080", "High")
    assert capture.staged == {"input0.mp4": b"same", "input1.mp4": b"same"}


@pytest.mark.parametrize("quality, crf", [("Low", "28"), ("Medium", "23"), ("High", "18")])
def test_quality_maps_to_crf(engine, fake_ffmpeg, quality, crf):
    with patch.object(engine, "probe_duration", return_value=1.0):
        TimelineRenderer(engine).render([make_clip()], "720x1280", quality)
    assert _arg_after(fake_ffmpeg.last_cmd, "-crf") == crf


def test_empty_timeline_rejected(engine, fake_ffmpeg):
    with pytest.raises(EmptyTimelineError):
        TimelineRenderer(engine).render([], "1280x720", "Medium")
    assert fake_ffmpeg.calls == []
    assert engine.workspace.list_files() == []


def test_unresolved_clip_reports_position(engine, fake_ffmpeg):
    missing = Clip(name="gone.mp4", media_type=MediaKind.VIDEO, mime_type="video/mp4", data="")
    with pytest.raises(UnresolvedClipError) as excinfo:
        TimelineRenderer(engine).render([make_clip(), missing], "1280x720", "Medium")
    assert excinfo.value.index == 1
    assert fake_ffmpeg.calls == []
    assert engine.workspace.list_files() == []


def test_unknown_resolution_rejected(engine, fake_ffmpeg):
    with pytest.raises(ValueError):
        TimelineRenderer(engine).render([make_clip()], "640x480", "Medium")
    assert fake_ffmpeg.calls == []


def test_encode_failure_is_composition_error(engine):
    fake = FakeFFmpeg(returncode=1, progress_lines=["concat: Impossible to open 'input1.mp4'"])
    with patch("subprocess.Popen", new=fake), \
         patch.object(engine, "probe_duration", return_value=1.0):
        with pytest.raises(CompositionError) as excinfo:
            TimelineRenderer(engine).render([make_clip(), make_clip()], "1280x720", "Medium")

    assert "Impossible to open" in excinfo.value.diagnostic
    assert engine.workspace.list_files() == []
    assert not engine.is_busy()


def test_staging_failure_midway_cleans_scratch(engine, fake_ffmpeg):
    original_write = ScratchWorkspace.write_file

    def write_file(workspace, name, data):
        if name.startswith("input1."):
            raise OSError("No space left on device")
        original_write(workspace, name, data)

    with patch.object(ScratchWorkspace, "write_file", new=write_file):
        with pytest.raises(CompositionError):
            TimelineRenderer(engine).render([make_clip(), make_clip(), make_clip()], "1280x720", "Medium")

    assert fake_ffmpeg.calls == []
    assert engine.workspace.list_files() == []
    assert not engine.is_busy()


def test_manifest_write_failure_cleans_scratch(engine, fake_ffmpeg):
    with patch.object(ScratchWorkspace, "write_text", side_effect=OSError("Read-only file system")):
        with pytest.raises(CompositionError) as excinfo:
            TimelineRenderer(engine).render([make_clip(), make_clip()], "1280x720", "Medium")

    assert "Read-only" in str(excinfo.value)
    assert fake_ffmpeg.calls == []
    assert engine.workspace.list_files() == []
    assert not engine.is_busy()


def test_manifest_quotes_names():
    manifest = ConcatManifest(["it's.mp4", "b.mp4"])
    assert manifest.to_text() == "file 'it'\\''s.mp4'\nfile 'b.mp4'\n"
