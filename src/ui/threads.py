from PyQt6.QtCore import QThread, pyqtSignal
from typing import Callable, Optional
import logging

from core.engine import EncodingEngine
from core.errors import EditorError
from models.clip import Clip, ClipWithDuration
from models.render import RenderSettings
from runtime_config import get_config

logger = logging.getLogger(__name__)


class EngineLoadThread(QThread):
    """Background thread that loads the FFmpeg engine once at startup"""
    log_line = pyqtSignal(str)
    progress = pyqtSignal(int, str)  # progress %, status message
    finished = pyqtSignal(bool, str, object)  # success, message, engine

    def __init__(self, engine: EncodingEngine):
        super().__init__()
        self.engine = engine

    def run(self):
        try:
            self.progress.emit(0, "Loading FFmpeg...")
            self.engine.ensure_ready(log_sink=self.log_line.emit)
            self.progress.emit(100, "FFmpeg ready")
            self.finished.emit(True, "FFmpeg loaded", self.engine)
        except EditorError as e:
            logger.exception("Engine load failed")
            self.finished.emit(False, f"FFmpeg could not be loaded: {e}", None)
        except Exception as e:
            logger.exception("Unexpected error while loading FFmpeg")
            self.finished.emit(False, f"FFmpeg could not be loaded: {e}", None)


class ClipOperationThread(QThread):
    """Background thread for one single-clip operation (trim, split, filter, export)

    *task* receives a progress callback taking an integer percent and returns
    the operation result, which is handed over in ``finished``.
    """
    progress = pyqtSignal(int, str)
    finished = pyqtSignal(bool, str, object)  # success, message, result data

    def __init__(self, task: Callable[[Callable[[int], None]], object], description: str):
        super().__init__()
        self.task = task
        self.description = description

    def run(self):
        try:
            self.progress.emit(0, f"{self.description}...")
            result = self.task(self._on_progress)
            self.finished.emit(True, f"{self.description} finished", result)
        except (EditorError, ValueError) as e:
            logger.exception("%s failed", self.description)
            self.finished.emit(False, f"{self.description} failed: {e}", None)
        except Exception as e:
            logger.exception("Unexpected error during %s", self.description)
            self.finished.emit(False, f"{self.description} failed: {e}", None)

    def _on_progress(self, percent: int):
        self.progress.emit(percent, f"{self.description}... {percent}%")


class RenderThread(QThread):
    """Background thread for timeline rendering (concat + single FFmpeg pass)"""
    progress = pyqtSignal(int, str)  # progress %, status message
    finished = pyqtSignal(bool, str, object)  # success, message, MP4 bytes

    def __init__(self, engine: EncodingEngine, clips: list[Clip], settings: RenderSettings):
        super().__init__()
        self.engine = engine
        self.clips = list(clips)
        self.settings = settings

    def run(self):
        try:
            from exporters.timeline_renderer import TimelineRenderer

            self.progress.emit(0, "Preparing render...")
            renderer = TimelineRenderer(self.engine)
            data = renderer.render(
                self.clips,
                self.settings.resolution,
                self.settings.quality,
                on_progress=self._on_render_progress,
            )
            self.progress.emit(100, "Done")
            self.finished.emit(True, f"Rendered {len(self.clips)} clip(s)", data)

        except EditorError as e:
            logger.exception("Timeline render failed")
            self.finished.emit(False, f"Render failed: {e}", None)
        except Exception as e:
            logger.exception("Unexpected error during timeline render")
            self.finished.emit(False, f"Render failed: {e}", None)

    def _on_render_progress(self, percent: int):
        self.progress.emit(percent, f"Rendering... {percent}%")


class DurationThread(QThread):
    """Background thread that probes clip durations for the timeline strip"""
    finished = pyqtSignal(bool, str, object)  # success, message, list[ClipWithDuration]

    def __init__(self, clips: list[Clip], ffprobe: Optional[str] = None):
        super().__init__()
        self.clips = list(clips)
        self.ffprobe = ffprobe or get_config().ffprobe_path

    def run(self):
        from core.probe import compute_durations

        try:
            items = compute_durations(self.clips, self.ffprobe)
            self.finished.emit(True, "", items)
        except Exception as e:
            logger.exception("Duration probing failed")
            self.finished.emit(False, str(e), [ClipWithDuration(c, 0.0) for c in self.clips])
