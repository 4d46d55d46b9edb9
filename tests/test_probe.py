import os
import subprocess
import sys
import wave
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.probe import compute_durations, probe_clip_duration, probe_duration
from models.clip import Clip, MediaKind
from conftest import make_clip


def test_probe_parses_ffprobe_output(tmp_path):
    with patch("subprocess.check_output", return_value="4.520000\n") as mock_out:
        assert probe_duration(tmp_path / "a.mp4", "ffprobe") == 4.52
    cmd = mock_out.call_args[0][0]
    assert cmd[0] == "ffprobe"
    assert "format=duration" in cmd


def test_probe_failure_is_zero(tmp_path):
    with patch("subprocess.check_output", side_effect=subprocess.CalledProcessError(1, "ffprobe")):
        assert probe_duration(tmp_path / "a.mp4") == 0.0
    with patch("subprocess.check_output", return_value="N/A"):
        assert probe_duration(tmp_path / "a.mp4") == 0.0
    with patch("subprocess.check_output", side_effect=FileNotFoundError("ffprobe")):
        assert probe_duration(tmp_path / "a.mp4") == 0.0


def test_wav_fast_path(tmp_path):
    path = tmp_path / "tone.wav"
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(8000)
        wf.writeframes(b"\x00\x00" * 12000)
    with patch("subprocess.check_output") as mock_out:
        assert probe_duration(path) == 1.5
    mock_out.assert_not_called()


def test_inline_clip_probed_from_temp_file():
    seen = {}

    def fake_probe(cmd, **kwargs):
        path = cmd[-1]
        seen["path"] = path
        with open(path, "rb") as f:
            seen["content"] = f.read()
        return "2.0"

    with patch("subprocess.check_output", side_effect=fake_probe):
        assert probe_clip_duration(make_clip(content=b"inline")) == 2.0
    assert seen["content"] == b"inline"
    assert not os.path.exists(seen["path"])


def test_compute_durations_keeps_order(tmp_path):
    local = Clip(
        name="x.mp4", media_type=MediaKind.VIDEO, mime_type="", data="",
        is_local=True, file_path=str(tmp_path / "x.mp4"),
    )
    empty = Clip(name="y.mp4", media_type=MediaKind.VIDEO, mime_type="", data="")
    with patch("subprocess.check_output", return_value="3.0"):
        items = compute_durations([local, empty, make_clip()])
    assert [i.clip for i in items] == [local, empty, items[2].clip]
    assert [i.duration for i in items] == [3.0, 0.0, 3.0]


def test_temp_file_failure_is_zero():
    with patch("tempfile.mkstemp", side_effect=OSError("No space left on device")):
        items = compute_durations([make_clip()])
    assert len(items) == 1
    assert items[0].duration == 0.0


def test_temp_file_write_failure_is_zero():
    with patch("pathlib.Path.write_bytes", side_effect=OSError("Disk quota exceeded")), \
            patch("subprocess.check_output") as mock_out:
        assert probe_clip_duration(make_clip()) == 0.0
    mock_out.assert_not_called()
