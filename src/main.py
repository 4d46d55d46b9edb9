"""
ClipCaster - Entry Point
"""
import logging
import sys
from pathlib import Path

# Add src to path for running as script
sys.path.insert(0, str(Path(__file__).parent))

from PyQt6.QtWidgets import QApplication, QMessageBox

from config import APP_NAME, LOG_FORMAT, LOG_LEVEL, ORGANIZATION_NAME
from core.engine import EncodingEngine
from models.clip import ClipLibrary
from runtime_config import get_config
from ui.editor_window import EditorWindow
from ui.theme import EditorTheme

logger = logging.getLogger(__name__)


def load_library(path: str) -> ClipLibrary:
    """Open the clip library, starting empty if the file is unreadable"""
    try:
        return ClipLibrary.load(path)
    except (OSError, ValueError) as e:
        logger.error("Could not read clip library %s: %s", path, e)
        QMessageBox.warning(None, APP_NAME, f"The clip library could not be read and starts empty:\n{e}")
        return ClipLibrary(path)


def main():
    """Application entry point"""
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(ORGANIZATION_NAME)
    EditorTheme.apply(app)

    config = get_config()
    engine = EncodingEngine()
    library = load_library(config.library_path)

    window = EditorWindow(engine, library)
    window.show()
    window.start_engine()

    exit_code = app.exec()
    engine.shutdown()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
