"""
ClipCaster Configuration
"""
import os
from pathlib import Path

APP_NAME = "ClipCaster"
ORGANIZATION_NAME = "ClipCaster"

# Encoding engine (FFmpeg CLI)
FFMPEG_BINARY = os.environ.get("CLIPCASTER_FFMPEG", "ffmpeg")
FFPROBE_BINARY = os.environ.get("CLIPCASTER_FFPROBE", "ffprobe")
X264_PRESET = "veryfast"  # Good balance for speed/compression on a desktop
DEFAULT_EXPORT_CRF = 23  # Single-clip filter/export passes
SCRATCH_PREFIX = "clipcaster_"
ENGINE_LOG_TAIL_LINES = 40  # Lines of engine output kept for error diagnostics

# Render defaults
DEFAULT_RENDER_RESOLUTION = "1080x1920"
DEFAULT_RENDER_QUALITY = "Medium"
DEFAULT_EXPORT_RESOLUTION = "1080p"
TIMELINE_RENDER_BASENAME = "timeline-render"

# Session auto-save
SESSION_KEY = "video-editor-session"
AUTOSAVE_DEBOUNCE_MS = 3000
SAVE_STATUS_RESET_MS = 2000

# Local media allowlists
IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"]
VIDEO_EXTENSIONS = [".mp4", ".mov", ".avi", ".mkv", ".webm"]
AUDIO_EXTENSIONS = [".mp3", ".wav", ".ogg", ".flac"]

# Logging
LOG_LEVEL = os.environ.get("CLIPCASTER_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Paths
PROJECT_ROOT = Path(__file__).parent.parent
LIBRARY_FILE = Path.home() / ".clipcaster" / "library.json"
