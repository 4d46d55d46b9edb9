import base64
import os
import sys
import unittest
import tempfile
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.errors import UnresolvedClipError
from core.local_media import LocalMediaBridge, mime_type_for
from models.clip import MediaKind


class TestLocalMediaBridge(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        for name in ["b.MP4", "a.mov", "notes.txt", "song.mp3", "cover.jpg"]:
            (self.root / name).write_bytes(name.encode())
        (self.root / "folder.mp4").mkdir()
        self.bridge = LocalMediaBridge()

    def tearDown(self):
        self._tmp.cleanup()

    def test_scan_filters_by_kind(self):
        videos = self.bridge.scan_directory(self.root, MediaKind.VIDEO)
        self.assertEqual([Path(p).name for p in videos], ["a.mov", "b.MP4"])
        audio = self.bridge.scan_directory(self.root, "audio")
        self.assertEqual([Path(p).name for p in audio], ["song.mp3"])

    def test_scan_unknown_kind_or_missing_dir(self):
        self.assertEqual(self.bridge.scan_directory(self.root, "document"), [])
        self.assertEqual(self.bridge.scan_directory(self.root / "missing", "video"), [])

    def test_read_file_as_data_url(self):
        url = self.bridge.read_file_as_data_url(self.root / "cover.jpg")
        header, payload = url.split(",", 1)
        self.assertEqual(header, "data:image/jpeg;base64")
        self.assertEqual(base64.b64decode(payload), b"cover.jpg")
        self.assertIsNone(self.bridge.read_file_as_data_url(self.root / "missing.jpg"))

    def test_mime_aliases(self):
        self.assertEqual(mime_type_for("x.mp3"), "audio/mpeg")
        self.assertEqual(mime_type_for("x.jpg"), "image/jpeg")
        self.assertEqual(mime_type_for("x.mov"), "video/mov")
        self.assertEqual(mime_type_for("x.xyz"), "application/octet-stream")

    def test_local_clips_are_deferred(self):
        clips = self.bridge.local_clips(self.root, MediaKind.VIDEO, user_id="u1")
        self.assertEqual(len(clips), 2)
        for clip in clips:
            self.assertTrue(clip.is_deferred())
            self.assertEqual(clip.tags, ["local"])
            self.assertEqual(clip.user_id, "u1")

    def test_hydrate_loads_content(self):
        clip = self.bridge.local_clips(self.root, MediaKind.VIDEO)[0]
        hydrated = self.bridge.hydrate(clip)
        self.assertEqual(hydrated.content_bytes(), b"a.mov")
        self.assertEqual(hydrated.mime_type, "video/mov")
        self.assertTrue(clip.is_deferred())
        self.assertIs(self.bridge.hydrate(hydrated), hydrated)

    def test_hydrate_unreadable_file(self):
        clip = self.bridge.local_clips(self.root, MediaKind.VIDEO)[0]
        os.remove(clip.file_path)
        with self.assertRaises(UnresolvedClipError):
            self.bridge.hydrate(clip)


if __name__ == "__main__":
    unittest.main()
