"""
Shared fixtures: a loaded engine backed by a fake FFmpeg process.
"""
import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Run Qt headless when no display is available.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure src/ is on the path so that absolute imports work.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.engine import EncodingEngine
from models.clip import Clip, MediaKind, make_data_url


class FakeFFmpeg:
    """Stands in for subprocess.Popen.

    Records every command, writes the output file named by the last argument
    into the working directory and replays the configured progress lines.
    """

    def __init__(self, returncode=0, progress_lines=None, on_run=None):
        self.returncode = returncode
        self.progress_lines = list(progress_lines or [])
        self.on_run = on_run
        self.calls = []

    def __call__(self, cmd, cwd=None, **kwargs):
        self.calls.append(list(cmd))
        workdir = Path(cwd)
        if self.on_run:
            self.on_run(cmd, workdir)
        if self.returncode == 0:
            (workdir / cmd[-1]).write_bytes(b"encoded:" + cmd[-1].encode())
        proc = MagicMock()
        proc.stdout = self.progress_lines + ["progress=end"]
        proc.wait.return_value = self.returncode
        return proc

    @property
    def last_cmd(self):
        return self.calls[-1]


def make_clip(name="clip.mp4", content=b"video-bytes", clip_id=1, mime="video/mp4"):
    return Clip(
        name=name,
        media_type=MediaKind.VIDEO,
        mime_type=mime,
        data=make_data_url(content, mime),
        id=clip_id,
        user_id="local-user",
    )


@pytest.fixture
def engine(tmp_path):
    """Engine in READY state with its workspace under tmp_path"""
    eng = EncodingEngine(
        ffmpeg_path="ffmpeg",
        ffprobe_path="ffprobe",
        preset="veryfast",
        scratch_root=tmp_path,
    )
    version = MagicMock(returncode=0, stdout="ffmpeg version 6.1\n", stderr="")
    with patch("shutil.which", side_effect=lambda name: f"/usr/bin/{name}"), \
         patch("subprocess.run", return_value=version):
        eng.ensure_ready()
    yield eng
    eng.shutdown()


@pytest.fixture
def fake_ffmpeg():
    fake = FakeFFmpeg()
    with patch("subprocess.Popen", new=fake):
        yield fake
