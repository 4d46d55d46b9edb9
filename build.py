import PyInstaller.__main__
import os
from pathlib import Path


def build():
    BASE_DIR = Path(__file__).parent.absolute()
    SRC_DIR = BASE_DIR / "src"

    # Platform specific separator
    sep = ";" if os.name == 'nt' else ":"

    # Top-level packages without __init__.py are not found by analysis alone
    hiddenimports = [
        "core.engine",
        "core.clip_ops",
        "core.filters",
        "core.library",
        "core.local_media",
        "core.probe",
        "exporters.timeline_renderer",
        "ui.editor_window",
    ]

    args = [
        str(SRC_DIR / "main.py"),  # Entry point
        "--name=ClipCaster",
        "--noconfirm",
        "--clean",
        "--windowed",  # GUI mode
        f"--paths={SRC_DIR}",
    ]

    # FFmpeg is an external tool; bundle it when a local copy sits next to this script
    for binary in ("ffmpeg", "ffprobe", "ffmpeg.exe", "ffprobe.exe"):
        candidate = BASE_DIR / "bin" / binary
        if candidate.exists():
            args.append(f"--add-binary={candidate}{sep}bin")

    for h in hiddenimports:
        args.append(f"--hidden-import={h}")

    print("Running PyInstaller with args:")
    print(args)

    PyInstaller.__main__.run(args)


if __name__ == "__main__":
    build()
