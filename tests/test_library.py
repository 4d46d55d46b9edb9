"""
Tests for turning operation results into library clips.
"""
import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.errors import EncodingError, EngineNotReadyError
from core.engine import EncodingEngine
from core.library import import_generated_video, result_name, result_tags, save_result_clip
from models.clip import ClipLibrary
from conftest import FakeFFmpeg


@pytest.mark.parametrize("base, suffix, expected", [
    ("holiday.mov", "trimmed", "holiday-trimmed.mp4"),
    ("holiday.mp4", "blur", "holiday-blur.mp4"),
    ("timeline-render", "1280x720-medium", "timeline-render-1280x720-medium.mp4"),
    ("clip.v2.mp4", "export-720p", "clip.v2-export-720p.mp4"),
])
def test_result_name(base, suffix, expected):
    assert result_name(base, suffix) == expected


def test_result_tags():
    assert result_tags("trimmed") == ["edited", "trimmed"]
    assert result_tags("export-1080p") == ["edited", "export"]


def test_save_result_clip():
    library = ClipLibrary()
    saved = save_result_clip(library, b"mp4-data", "holiday.mov", "trimmed", user_id="u1")

    assert saved.id == 1
    assert saved.name == "holiday-trimmed.mp4"
    assert saved.mime_type == "video/mp4"
    assert saved.tags == ["edited", "trimmed"]
    assert saved.content_bytes() == b"mp4-data"
    assert library.clips_for_user("u1") == [saved]


def test_import_generated_video(engine, fake_ffmpeg):
    library = ClipLibrary()
    with patch.object(engine, "probe_duration", return_value=8.0):
        clip = import_generated_video(engine, library, b"veo-output", "a cat surfing a huge wave")

    cmd = fake_ffmpeg.last_cmd
    assert cmd[cmd.index("-c") + 1] == "copy"
    assert cmd[cmd.index("-movflags") + 1] == "+faststart"
    assert clip.name == "gemini-generated-a cat surfing a.mp4"
    assert clip.tags == ["gemini", "ai-generated"]
    assert clip.content_bytes().startswith(b"encoded:")
    assert library.get_clip(clip.id) is not None
    assert engine.workspace.list_files() == []


def test_import_generated_video_failure(engine):
    library = ClipLibrary()
    with patch("subprocess.Popen", new=FakeFFmpeg(returncode=1)), \
         patch.object(engine, "probe_duration", return_value=0.0):
        with pytest.raises(EncodingError):
            import_generated_video(engine, library, b"bad", "prompt")
    assert len(library) == 0
    assert engine.workspace.list_files() == []


def test_import_requires_engine(tmp_path):
    with pytest.raises(EngineNotReadyError):
        import_generated_video(EncodingEngine(scratch_root=tmp_path), ClipLibrary(), b"x", "p")
