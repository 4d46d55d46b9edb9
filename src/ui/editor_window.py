"""
Editor Window - Library, timeline strip, clip tools and timeline render
"""
from typing import Callable, Optional
import logging

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QSplitter,
    QPushButton, QLabel, QListWidget, QListWidgetItem, QGroupBox, QComboBox,
    QDoubleSpinBox, QSpinBox, QPlainTextEdit, QMessageBox, QFileDialog, QInputDialog
)
from PyQt6.QtCore import Qt

from config import APP_NAME, TIMELINE_RENDER_BASENAME
from core.clip_ops import ClipOperationExecutor
from core.engine import EncodingEngine
from core.errors import EditorError
from core.filters import Blur, Brightness, Contrast, Grayscale, Sepia, Sharpen
from core.library import import_generated_video, save_result_clip
from core.local_media import LocalMediaBridge
from models.clip import Clip, ClipLibrary, ClipWithDuration, MediaKind
from models.render import ExportResolution, RenderQuality, RenderResolution, RenderSettings, SessionSnapshot
from models.timeline import Timeline
from runtime_config import get_config
from ui.clip_strip import ClipStrip
from ui.progress_dialog import ProgressDialog
from ui.session import SessionAutosaver, SessionSlot, restore_session
from ui.theme import EditorTheme
from ui.threads import ClipOperationThread, DurationThread, EngineLoadThread, RenderThread

logger = logging.getLogger(__name__)

ENGINE_LOG_MAX_LINES = 2000


class EditorWindow(QMainWindow):
    """Main application window"""

    def __init__(
        self,
        engine: EncodingEngine,
        library: ClipLibrary,
        slot: Optional[SessionSlot] = None,
        bridge: Optional[LocalMediaBridge] = None,
    ):
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.setMinimumSize(1100, 720)

        self.engine = engine
        self.library = library
        self.slot = slot or SessionSlot()
        self.bridge = bridge or LocalMediaBridge()
        self.executor = ClipOperationExecutor(engine)
        self.user_id = get_config().user_id

        self.timeline = Timeline()
        self.render_settings = RenderSettings()
        self._durations: dict[int, float] = {}  # clip id -> seconds
        self._local_clips: list[Clip] = []

        self._worker = None
        self._worker_running = False
        self._duration_thread: Optional[DurationThread] = None
        self._probing = False
        self._engine_thread: Optional[EngineLoadThread] = None
        self._progress_dialog: Optional[ProgressDialog] = None

        self.autosaver = SessionAutosaver(
            self.slot, self._snapshot, get_config().autosave_debounce_ms, self
        )
        self.autosaver.save_status_changed.connect(self._on_save_status)

        self._setup_ui()
        self._setup_menu_bar()

        self._refresh_library()
        self._restore_session()
        self._set_engine_controls(False)

    # -- Layout ------------------------------------------------------------

    def _setup_menu_bar(self):
        from PyQt6.QtGui import QAction

        file_menu = self.menuBar().addMenu("&File")

        folder_action = QAction("Import &Folder...", self)
        folder_action.triggered.connect(self._import_folder)
        file_menu.addAction(folder_action)

        generated_action = QAction("Import &Generated Video...", self)
        generated_action.triggered.connect(self._import_generated)
        file_menu.addAction(generated_action)

        file_menu.addSeparator()

        clear_action = QAction("&Clear Timeline", self)
        clear_action.triggered.connect(self.timeline.clear)
        file_menu.addAction(clear_action)

    def _setup_ui(self):
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self._create_library_panel())
        splitter.addWidget(self._create_tools_panel())
        splitter.setSizes([320, 780])
        main_layout.addWidget(splitter, 1)

        main_layout.addWidget(self._create_timeline_panel())

        self.engine_log = QPlainTextEdit()
        self.engine_log.setReadOnly(True)
        self.engine_log.setMaximumBlockCount(ENGINE_LOG_MAX_LINES)
        self.engine_log.setFixedHeight(110)
        main_layout.addWidget(self.engine_log)

        self.save_status_label = QLabel("")
        self.statusBar().addPermanentWidget(self.save_status_label)
        self.statusBar().showMessage("Loading FFmpeg...")

    def _create_library_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)

        layout.addWidget(QLabel("Library"))
        self.library_list = QListWidget()
        self.library_list.itemDoubleClicked.connect(lambda _item: self._add_selected_to_timeline())
        layout.addWidget(self.library_list, 1)

        row = QHBoxLayout()
        self.btn_add = QPushButton("Add to Timeline")
        self.btn_add.clicked.connect(self._add_selected_to_timeline)
        row.addWidget(self.btn_add)
        self.btn_folder = QPushButton("Import Folder...")
        self.btn_folder.clicked.connect(self._import_folder)
        row.addWidget(self.btn_folder)
        layout.addLayout(row)

        return panel

    def _create_tools_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)

        self.selection_label = QLabel("No clip selected")
        layout.addWidget(self.selection_label)

        # Trim / split
        cut_group = QGroupBox("Trim && Split")
        cut_layout = QGridLayout(cut_group)
        self.trim_start = QDoubleSpinBox()
        self.trim_end = QDoubleSpinBox()
        self.split_at = QDoubleSpinBox()
        for spin in (self.trim_start, self.trim_end, self.split_at):
            spin.setDecimals(2)
            spin.setSingleStep(0.1)
            spin.setSuffix(" s")
            spin.setRange(0.0, 0.0)
        cut_layout.addWidget(QLabel("Start"), 0, 0)
        cut_layout.addWidget(self.trim_start, 0, 1)
        cut_layout.addWidget(QLabel("End"), 0, 2)
        cut_layout.addWidget(self.trim_end, 0, 3)
        self.btn_trim = QPushButton("Trim")
        self.btn_trim.clicked.connect(self._trim_selected)
        cut_layout.addWidget(self.btn_trim, 0, 4)
        cut_layout.addWidget(QLabel("Split at"), 1, 0)
        cut_layout.addWidget(self.split_at, 1, 1)
        self.btn_split = QPushButton("Split")
        self.btn_split.clicked.connect(self._split_selected)
        cut_layout.addWidget(self.btn_split, 1, 4)
        layout.addWidget(cut_group)

        # Filters
        filter_group = QGroupBox("Filters")
        filter_layout = QGridLayout(filter_group)
        self.brightness_value = QDoubleSpinBox()
        self.brightness_value.setRange(-1.0, 1.0)
        self.brightness_value.setSingleStep(0.05)
        self.brightness_value.setValue(0.1)
        self.contrast_value = QDoubleSpinBox()
        self.contrast_value.setRange(-2.0, 2.0)
        self.contrast_value.setSingleStep(0.1)
        self.contrast_value.setValue(1.2)
        self.blur_value = QSpinBox()
        self.blur_value.setRange(0, 50)
        self.blur_value.setValue(5)

        self.filter_buttons: list[QPushButton] = []
        filters: list[tuple[str, Optional[QWidget], Callable]] = [
            ("Brightness", self.brightness_value, lambda: Brightness(self.brightness_value.value())),
            ("Contrast", self.contrast_value, lambda: Contrast(self.contrast_value.value())),
            ("Blur", self.blur_value, lambda: Blur(self.blur_value.value())),
            ("Sepia", None, Sepia),
            ("Grayscale", None, Grayscale),
            ("Sharpen", None, Sharpen),
        ]
        for i, (label, editor, factory) in enumerate(filters):
            btn = QPushButton(label)
            btn.clicked.connect(lambda _checked=False, f=factory: self._filter_selected(f))
            self.filter_buttons.append(btn)
            if editor is not None:
                filter_layout.addWidget(editor, i, 0)
            filter_layout.addWidget(btn, i, 1)
        layout.addWidget(filter_group)

        # Single clip export
        export_group = QGroupBox("Export Clip")
        export_layout = QHBoxLayout(export_group)
        self.export_combo = QComboBox()
        for res in ExportResolution:
            self.export_combo.addItem(res.value, res)
        self.export_combo.setCurrentText(get_config().export_resolution)
        export_layout.addWidget(self.export_combo)
        self.btn_export = QPushButton("Export")
        self.btn_export.clicked.connect(self._export_selected)
        export_layout.addWidget(self.btn_export)
        layout.addWidget(export_group)

        # Timeline render
        render_group = QGroupBox("Render Timeline")
        render_layout = QHBoxLayout(render_group)
        self.resolution_combo = QComboBox()
        for res in RenderResolution:
            self.resolution_combo.addItem(res.value, res)
        self.quality_combo = QComboBox()
        for quality in RenderQuality:
            self.quality_combo.addItem(quality.value, quality)
        self.resolution_combo.currentIndexChanged.connect(self._on_render_settings_changed)
        self.quality_combo.currentIndexChanged.connect(self._on_render_settings_changed)
        render_layout.addWidget(self.resolution_combo)
        render_layout.addWidget(self.quality_combo)
        self.btn_render = QPushButton("Render")
        self.btn_render.setProperty("class", "primary")
        self.btn_render.clicked.connect(self._render_timeline)
        render_layout.addWidget(self.btn_render)
        layout.addWidget(render_group)

        layout.addStretch()
        return panel

    def _create_timeline_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)

        header = QHBoxLayout()
        self.timeline_label = QLabel("Timeline")
        header.addWidget(self.timeline_label)
        header.addStretch()
        self.btn_remove = QPushButton("Remove")
        self.btn_remove.clicked.connect(self._remove_selected)
        header.addWidget(self.btn_remove)
        layout.addLayout(header)

        self.clip_strip = ClipStrip()
        self.clip_strip.clip_moved.connect(self.timeline.move)
        self.clip_strip.currentRowChanged.connect(self._on_selection_changed)
        layout.addWidget(self.clip_strip)

        return panel

    # -- Engine ------------------------------------------------------------

    def start_engine(self):
        """Load FFmpeg in the background; tools stay disabled until it is ready"""
        self._engine_thread = EngineLoadThread(self.engine)
        self._engine_thread.log_line.connect(self._append_engine_log)
        self._engine_thread.finished.connect(self._on_engine_loaded)
        self._engine_thread.start()

    def _on_engine_loaded(self, success: bool, message: str, _engine):
        self._set_engine_controls(success)
        self.statusBar().showMessage(message)
        if not success:
            QMessageBox.critical(self, "Engine Error", message)

    def _append_engine_log(self, line: str):
        self.engine_log.appendPlainText(line)

    def _set_engine_controls(self, enabled: bool):
        enabled = enabled and self.engine.is_ready() and not self._worker_running
        for btn in (self.btn_trim, self.btn_split, self.btn_export, self.btn_render, *self.filter_buttons):
            btn.setEnabled(enabled)

    # -- Session -----------------------------------------------------------

    def _restore_session(self):
        restored = restore_session(self.slot, self.library)
        self.render_settings = restored.settings
        self.resolution_combo.setCurrentText(restored.settings.resolution.value)
        self.quality_combo.setCurrentText(restored.settings.quality.value)
        self.timeline.set_clips(restored.clips)
        if restored.dropped_ids:
            self.statusBar().showMessage(
                f"{len(restored.dropped_ids)} clip(s) from the last session are no longer in the library"
            )

        self.timeline.add_listener(self._on_timeline_changed)
        self._on_timeline_changed()
        # Saving starts only once the restored state is in place
        self.autosaver.set_enabled(True)

    def _snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(clip_ids=self.timeline.clip_ids(), settings=self.render_settings)

    def _on_save_status(self, status: str):
        text = {"saving": "Saving...", "saved": "Saved", "error": "Save failed"}.get(status, "")
        self.save_status_label.setText(text)
        self.save_status_label.setStyleSheet(f"color: {EditorTheme.status_color(status)};")

    def _on_render_settings_changed(self, _index: int = 0):
        resolution = self.resolution_combo.currentData()
        quality = self.quality_combo.currentData()
        if resolution is None or quality is None:
            return
        self.render_settings = RenderSettings(resolution=resolution, quality=quality)
        self.autosaver.schedule()

    # -- Library -----------------------------------------------------------

    def _refresh_library(self):
        self.library_list.clear()
        for clip in self.library.clips_for_user(self.user_id):
            item = QListWidgetItem(f"{clip.name}  [{', '.join(clip.tags)}]" if clip.tags else clip.name)
            item.setData(Qt.ItemDataRole.UserRole, clip)
            self.library_list.addItem(item)
        for clip in self._local_clips:
            item = QListWidgetItem(f"{clip.name}  [local file]")
            item.setData(Qt.ItemDataRole.UserRole, clip)
            item.setToolTip(clip.file_path or "")
            self.library_list.addItem(item)

    def _import_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Select Video Folder")
        if not folder:
            return
        self._local_clips = self.bridge.local_clips(folder, MediaKind.VIDEO, self.user_id)
        self._refresh_library()
        self.statusBar().showMessage(f"Found {len(self._local_clips)} video(s) in {folder}")

    def _add_selected_to_timeline(self):
        item = self.library_list.currentItem()
        if item is None:
            return
        clip: Clip = item.data(Qt.ItemDataRole.UserRole)

        if clip.is_deferred():
            # Local files enter the library so the session can refer to them by id
            try:
                hydrated = self.bridge.hydrate(clip)
                clip_id = self.library.save_new_clip(hydrated)
            except (EditorError, OSError) as e:
                QMessageBox.warning(self, "Import Error", str(e))
                return
            clip = self.library.get_clip(clip_id) or hydrated
            self._local_clips = [c for c in self._local_clips if c.file_path != hydrated.file_path]
            self._refresh_library()

        self.timeline.append(clip)

    def _import_generated(self):
        path, _ = QFileDialog.getOpenFileName(self, "Generated Video", "", "Video (*.mp4)")
        if not path:
            return
        prompt, ok = QInputDialog.getText(self, "Generated Video", "Prompt used:")
        if not ok:
            return
        try:
            with open(path, "rb") as f:
                content = f.read()
        except OSError as e:
            QMessageBox.critical(self, "Import Error", str(e))
            return

        self._run_operation(
            lambda progress: import_generated_video(self.engine, self.library, content, prompt, self.user_id),
            "Importing generated video",
            lambda _clip: self._refresh_library(),
        )

    # -- Timeline ----------------------------------------------------------

    def _on_timeline_changed(self):
        self._refresh_strip()
        self.autosaver.schedule()

        unknown = [c for c in self.timeline if c.id is not None and c.id not in self._durations]
        if unknown and not self._probing:
            if self._duration_thread is not None:
                self._duration_thread.wait()
            self._probing = True
            self._duration_thread = DurationThread(unknown)
            self._duration_thread.finished.connect(self._on_durations_ready)
            self._duration_thread.start()

    def _on_durations_ready(self, _success: bool, _message: str, items: list[ClipWithDuration]):
        for entry in items:
            if entry.clip.id is not None:
                self._durations[entry.clip.id] = entry.duration
        self._probing = False
        self._refresh_strip()
        self._on_selection_changed(self.clip_strip.currentRow())
        # Clips added while probing
        if any(c.id is not None and c.id not in self._durations for c in self.timeline):
            self._on_timeline_changed()

    def _duration_of(self, clip: Clip) -> float:
        return self._durations.get(clip.id, 0.0) if clip.id is not None else 0.0

    def _refresh_strip(self):
        items = [ClipWithDuration(clip, self._duration_of(clip)) for clip in self.timeline]
        self.clip_strip.set_clips(items)
        total = sum(item.duration for item in items)
        self.timeline_label.setText(f"Timeline: {len(items)} clip(s), {total:.1f}s")

    def _remove_selected(self):
        row = self.clip_strip.currentRow()
        if 0 <= row < len(self.timeline):
            self.timeline.remove(row)

    def _selected_clip(self) -> Optional[tuple[Clip, float]]:
        row = self.clip_strip.currentRow()
        if not (0 <= row < len(self.timeline)):
            QMessageBox.warning(self, "No Clip", "Select a clip on the timeline first.")
            return None
        clip = self.timeline[row]
        return clip, self._duration_of(clip)

    def _on_selection_changed(self, row: int):
        if not (0 <= row < len(self.timeline)):
            self.selection_label.setText("No clip selected")
            for spin in (self.trim_start, self.trim_end, self.split_at):
                spin.setRange(0.0, 0.0)
            return
        clip = self.timeline[row]
        duration = self._duration_of(clip)
        self.selection_label.setText(f"{clip.name} ({duration:.2f}s)")
        for spin in (self.trim_start, self.trim_end, self.split_at):
            spin.setRange(0.0, duration)
        self.trim_start.setValue(0.0)
        self.trim_end.setValue(duration)
        self.split_at.setValue(duration / 2)

    # -- Clip operations ---------------------------------------------------

    def _trim_selected(self):
        selected = self._selected_clip()
        if selected is None:
            return
        clip, duration = selected
        start, end = self.trim_start.value(), self.trim_end.value()
        self._run_operation(
            lambda progress: self.executor.trim(clip, start, end, duration, progress),
            f"Trimming {clip.name}",
            lambda data: self._save_result(data, clip.name, "trimmed"),
        )

    def _split_selected(self):
        selected = self._selected_clip()
        if selected is None:
            return
        clip, duration = selected
        at = self.split_at.value()

        def save_parts(parts):
            first, second = parts
            self._save_result(first, clip.name, "split-1")
            self._save_result(second, clip.name, "split-2")

        self._run_operation(
            lambda progress: self.executor.split(clip, at, duration, progress),
            f"Splitting {clip.name}",
            save_parts,
        )

    def _filter_selected(self, factory: Callable):
        selected = self._selected_clip()
        if selected is None:
            return
        clip, _duration = selected
        try:
            video_filter = factory()
        except ValueError as e:
            QMessageBox.warning(self, "Filter", str(e))
            return
        self._run_operation(
            lambda progress: self.executor.apply_filter(clip, video_filter, progress),
            f"Applying {video_filter.name} to {clip.name}",
            lambda data: self._save_result(data, clip.name, video_filter.name),
        )

    def _export_selected(self):
        selected = self._selected_clip()
        if selected is None:
            return
        clip, _duration = selected
        resolution: ExportResolution = self.export_combo.currentData()
        self._run_operation(
            lambda progress: self.executor.export_resolution(clip, resolution.height, progress),
            f"Exporting {clip.name} at {resolution.value}",
            lambda data: self._save_result(data, clip.name, f"export-{resolution.value}"),
        )

    def _save_result(self, data: bytes, base_name: str, suffix: str):
        saved = save_result_clip(self.library, data, base_name, suffix, self.user_id)
        self._refresh_library()
        self.statusBar().showMessage(f"Saved {saved.name} to the library")

    # -- Timeline render ---------------------------------------------------

    def _render_timeline(self):
        if len(self.timeline) == 0:
            QMessageBox.warning(self, "Render", "Add clips to the timeline first.")
            return
        settings = self.render_settings
        self._start_worker(
            RenderThread(self.engine, self.timeline.clips, settings),
            "Rendering Timeline",
            lambda data: self._save_result(
                data,
                TIMELINE_RENDER_BASENAME,
                f"{settings.resolution.value}-{settings.quality.value.lower()}",
            ),
        )

    # -- Workers -----------------------------------------------------------

    def _run_operation(self, task: Callable, description: str, on_result: Callable):
        self._start_worker(ClipOperationThread(task, description), description, on_result)

    def _start_worker(self, worker, title: str, on_result: Callable):
        if self._worker_running:
            QMessageBox.warning(self, "Busy", "Another operation is still running.")
            return
        if self._worker is not None:
            self._worker.wait()

        self._worker = worker
        self._worker_running = True
        self._set_engine_controls(False)
        self._progress_dialog = ProgressDialog(self, title)
        worker.progress.connect(self._progress_dialog.update_progress)
        worker.progress.connect(lambda percent, message: self.statusBar().showMessage(message))
        worker.finished.connect(
            lambda success, message, result: self._on_worker_finished(success, message, result, on_result)
        )
        worker.start()
        self._progress_dialog.show()

    def _on_worker_finished(self, success: bool, message: str, result, on_result: Callable):
        if self._progress_dialog is not None:
            self._progress_dialog.finish()
            self._progress_dialog = None
        self._worker_running = False
        self._set_engine_controls(True)

        if not success:
            self.statusBar().showMessage("Operation failed")
            QMessageBox.critical(self, "Error", message)
            return

        self.statusBar().showMessage(message)
        try:
            on_result(result)
        except (EditorError, OSError) as e:
            logger.exception("Could not store result")
            QMessageBox.critical(self, "Error", f"Could not save the result: {e}")

    # -- Window ------------------------------------------------------------

    def closeEvent(self, event):
        if self._worker_running:
            QMessageBox.warning(self, "Busy", "Wait for the running operation to finish.")
            event.ignore()
            return
        self.autosaver.flush()
        if self._duration_thread is not None:
            self._duration_thread.wait()
        event.accept()
