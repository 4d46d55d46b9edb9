from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QLabel, QProgressBar
)
from PyQt6.QtCore import Qt


class ProgressDialog(QDialog):
    """Modal progress for engine work.

    Engine commands cannot be interrupted once started, so there is no cancel
    button and the dialog only closes through ``finish()``.
    """

    def __init__(self, parent=None, title="Processing"):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setFixedWidth(400)
        self.setWindowFlags(
            Qt.WindowType.Dialog |
            Qt.WindowType.CustomizeWindowHint |
            Qt.WindowType.WindowTitleHint
        )
        self.setModal(True)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(25, 25, 25, 20)
        layout.setSpacing(15)

        self.status_label = QLabel("Preparing...")
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.status_label.setStyleSheet("font-weight: bold; color: #CCCCCC;")
        layout.addWidget(self.status_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setValue(0)
        self.progress_bar.setTextVisible(True)
        self.progress_bar.setFixedHeight(18)
        layout.addWidget(self.progress_bar)

        self._finished = False

        self.adjustSize()
        self.setFixedSize(self.width(), self.sizeHint().height())

    def update_progress(self, percent: int, message: str):
        """Update progress bar and status message"""
        self.progress_bar.setValue(percent)
        self.status_label.setText(message)

    def finish(self):
        self._finished = True
        self.accept()

    def closeEvent(self, event):
        """Keep the dialog open while the engine is working"""
        if self._finished:
            event.accept()
        else:
            event.ignore()
