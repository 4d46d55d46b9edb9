"""
Dark editor theme for ClipCaster
"""
from PyQt6.QtWidgets import QApplication
from PyQt6.QtGui import QColor, QPalette


class EditorTheme:
    """Flat dark theme shared by the editor window and dialogs"""

    BG_DARK = "#17181C"        # Main background
    BG_PANEL = "#1F2127"       # Panels, lists
    BORDER = "#30333B"

    ACCENT = "#E0576B"         # Render / primary actions
    ACCENT_HOVER = "#F06A7E"

    TEXT_MAIN = "#DADCE1"
    TEXT_DIM = "#8A8F99"

    # Save status indicator colors
    STATUS_COLORS = {
        "saving": "#E5C07B",
        "saved": "#98C379",
        "error": "#E06C75",
        "idle": TEXT_DIM,
    }

    STYLESHEET = f"""
        QMainWindow, QDialog, QWidget {{
            background-color: {BG_DARK};
            color: {TEXT_MAIN};
            font-size: 13px;
        }}

        QPushButton {{
            background-color: {BORDER};
            border: 1px solid {BORDER};
            border-radius: 4px;
            padding: 5px 12px;
            min-height: 22px;
        }}
        QPushButton:hover {{
            background-color: #3B3F48;
        }}
        QPushButton:disabled {{
            background-color: {BG_PANEL};
            color: #555963;
        }}
        QPushButton[class="primary"] {{
            background-color: {ACCENT};
            border: 1px solid {ACCENT};
            color: white;
        }}
        QPushButton[class="primary"]:hover {{
            background-color: {ACCENT_HOVER};
        }}

        QLineEdit, QPlainTextEdit, QDoubleSpinBox, QSpinBox, QComboBox {{
            background-color: {BG_PANEL};
            border: 1px solid {BORDER};
            border-radius: 2px;
            padding: 3px 6px;
        }}
        QLineEdit:focus, QDoubleSpinBox:focus, QSpinBox:focus, QComboBox:on {{
            border: 1px solid {ACCENT};
        }}

        QGroupBox {{
            border: 1px solid {BORDER};
            border-radius: 4px;
            margin-top: 10px;
            padding-top: 6px;
            font-weight: bold;
        }}
        QGroupBox::title {{
            subcontrol-origin: margin;
            left: 10px;
            padding: 0 5px;
            color: {TEXT_DIM};
        }}

        QListWidget {{
            background-color: {BG_PANEL};
            border: 1px solid {BORDER};
            outline: none;
        }}
        QListWidget::item {{
            padding: 4px;
            border: 1px solid {BORDER};
            border-radius: 3px;
        }}
        QListWidget::item:selected {{
            background-color: #3A2A30;
            border: 1px solid {ACCENT};
        }}

        QProgressBar {{
            background-color: {BG_PANEL};
            border: 1px solid {BORDER};
            border-radius: 3px;
            text-align: center;
        }}
        QProgressBar::chunk {{
            background-color: {ACCENT};
        }}
    """

    @staticmethod
    def status_color(status: str) -> str:
        return EditorTheme.STATUS_COLORS.get(status, EditorTheme.TEXT_DIM)

    @staticmethod
    def apply(app: QApplication):
        """Apply theme to application"""
        app.setStyle("Fusion")

        palette = QPalette()
        palette.setColor(QPalette.ColorRole.Window, QColor(EditorTheme.BG_DARK))
        palette.setColor(QPalette.ColorRole.WindowText, QColor(EditorTheme.TEXT_MAIN))
        palette.setColor(QPalette.ColorRole.Base, QColor(EditorTheme.BG_PANEL))
        palette.setColor(QPalette.ColorRole.Text, QColor(EditorTheme.TEXT_MAIN))
        palette.setColor(QPalette.ColorRole.Button, QColor(EditorTheme.BORDER))
        palette.setColor(QPalette.ColorRole.ButtonText, QColor(EditorTheme.TEXT_MAIN))
        palette.setColor(QPalette.ColorRole.Highlight, QColor(EditorTheme.ACCENT))
        palette.setColor(QPalette.ColorRole.HighlightedText, QColor("#FFFFFF"))
        app.setPalette(palette)

        app.setStyleSheet(EditorTheme.STYLESHEET)
