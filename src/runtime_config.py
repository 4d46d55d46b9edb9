"""
Runtime Configuration Module

Manages runtime-configurable settings for the encoding engine and editor.
Loads default values from config.py and allows runtime modifications.
"""
from dataclasses import dataclass, asdict
from typing import Optional

# Import defaults from config.py
from config import (
    FFMPEG_BINARY,
    FFPROBE_BINARY,
    X264_PRESET,
    DEFAULT_EXPORT_CRF,
    DEFAULT_RENDER_RESOLUTION,
    DEFAULT_RENDER_QUALITY,
    DEFAULT_EXPORT_RESOLUTION,
    AUTOSAVE_DEBOUNCE_MS,
    LIBRARY_FILE,
)


@dataclass
class RuntimeConfig:
    """
    Runtime configuration that can be modified while the editor runs.
    """
    # Engine settings
    ffmpeg_path: str = FFMPEG_BINARY
    ffprobe_path: str = FFPROBE_BINARY
    x264_preset: str = X264_PRESET
    export_crf: int = DEFAULT_EXPORT_CRF

    # Editor defaults
    render_resolution: str = DEFAULT_RENDER_RESOLUTION
    render_quality: str = DEFAULT_RENDER_QUALITY
    export_resolution: str = DEFAULT_EXPORT_RESOLUTION
    autosave_debounce_ms: int = AUTOSAVE_DEBOUNCE_MS

    # Library
    library_path: str = str(LIBRARY_FILE)
    user_id: str = "local-user"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RuntimeConfig":
        # Filter only known fields to avoid errors with old/new config versions
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered_data)

    def reset_to_defaults(self):
        """Reset all settings to default values from config.py."""
        defaults = RuntimeConfig()
        for name in self.__dataclass_fields__:
            setattr(self, name, getattr(defaults, name))


# Global singleton instance
_runtime_config: Optional[RuntimeConfig] = None


def get_config() -> RuntimeConfig:
    """Get the global runtime configuration instance."""
    global _runtime_config
    if _runtime_config is None:
        _runtime_config = RuntimeConfig()
    return _runtime_config


def set_config(config: RuntimeConfig):
    """Set the global runtime configuration instance."""
    global _runtime_config
    _runtime_config = config
