"""
settings.py

Persistent settings management for PlanBoard.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/planboard/settings.toml
    - macOS: ~/Library/Application Support/planboard/settings.toml
    - Linux: ~/.config/planboard/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "planboard"

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasZoomSettings:
    """Wheel zoom behavior.

    Defaults:
        speed: 0.001
        min_scale: 0.2
        max_scale: 3.0
    """
    speed: float = 0.001     # Default: 0.001 scale per wheel delta unit
    min_scale: float = 0.2   # Default: 0.2
    max_scale: float = 3.0   # Default: 3.0


@dataclass
class CanvasGridSettings:
    """Background grid settings.

    Defaults:
        size: 30.0
        color: "#E5E7EB"
        background: "#F9FAFB"
    """
    size: float = 30.0             # Default: 30.0 world units between lines
    color: str = "#E5E7EB"         # Default: light gray
    background: str = "#F9FAFB"    # Default: off-white


@dataclass
class CanvasHandleSettings:
    """Item handle settings.

    Defaults:
        size: 14.0
        rotate_offset: 28.0
        color: "#3B82F6"
    """
    size: float = 14.0            # Default: 14.0 pixels
    rotate_offset: float = 28.0   # Default: 28.0 pixels above the item
    color: str = "#3B82F6"        # Default: blue


@dataclass
class CanvasSettings:
    """All canvas-related settings."""
    zoom: CanvasZoomSettings = field(default_factory=CanvasZoomSettings)
    grid: CanvasGridSettings = field(default_factory=CanvasGridSettings)
    handles: CanvasHandleSettings = field(default_factory=CanvasHandleSettings)


# =============================================================================
# Debug Settings
# =============================================================================

@dataclass
class DebugSettings:
    """Debug tracing settings.

    Defaults:
        trace: False
        trace_move: False
        log_file: ""
    """
    trace: bool = False       # Default: False
    trace_move: bool = False  # Default: False (pointer-move tracing is very verbose)
    log_file: str = ""        # Default: "" (stderr only)


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        theme: The UI theme name (must match a key in styles.STYLES).
        data_dir: Directory holding project data (empty = platform data dir).
        canvas: Canvas-related settings.
        debug: Debug tracing settings.
    """
    # UI Settings
    theme: str = "Light"  # Default: "Light"

    # Project storage directory (empty = platformdirs user data dir)
    data_dir: str = ""

    # Nested settings categories
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    debug: DebugSettings = field(default_factory=DebugSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory for settings.toml (tests, portable
            installs). Defaults to the platform config directory.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        self.app_name = app_name
        self.settings_dir = Path(settings_dir) if settings_dir else Path(platformdirs.user_config_dir(app_name))
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)

            return self._parse_toml(data)
        except (OSError, tomllib.TOMLDecodeError, AttributeError, TypeError):
            # If file is corrupted or invalid, return defaults
            return AppSettings()

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        # General section
        general = data.get("general", {})
        settings.theme = general.get("theme", settings.theme)
        settings.data_dir = general.get("data_dir", settings.data_dir)

        # Canvas section
        canvas = data.get("canvas", {})
        if "zoom" in canvas:
            zm = canvas["zoom"]
            settings.canvas.zoom.speed = zm.get("speed", settings.canvas.zoom.speed)
            settings.canvas.zoom.min_scale = zm.get("min_scale", settings.canvas.zoom.min_scale)
            settings.canvas.zoom.max_scale = zm.get("max_scale", settings.canvas.zoom.max_scale)
        if "grid" in canvas:
            g = canvas["grid"]
            settings.canvas.grid.size = g.get("size", settings.canvas.grid.size)
            settings.canvas.grid.color = g.get("color", settings.canvas.grid.color)
            settings.canvas.grid.background = g.get("background", settings.canvas.grid.background)
        if "handles" in canvas:
            h = canvas["handles"]
            settings.canvas.handles.size = h.get("size", settings.canvas.handles.size)
            settings.canvas.handles.rotate_offset = h.get("rotate_offset", settings.canvas.handles.rotate_offset)
            settings.canvas.handles.color = h.get("color", settings.canvas.handles.color)

        # Debug section
        debug = data.get("debug", {})
        settings.debug.trace = debug.get("trace", settings.debug.trace)
        settings.debug.trace_move = debug.get("trace_move", settings.debug.trace_move)
        settings.debug.log_file = debug.get("log_file", settings.debug.log_file)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        # Ensure directory exists
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        # Convert settings to TOML structure
        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "general": {
                "theme": s.theme,
                "data_dir": s.data_dir,
            },
            "canvas": {
                "zoom": {
                    "speed": s.canvas.zoom.speed,
                    "min_scale": s.canvas.zoom.min_scale,
                    "max_scale": s.canvas.zoom.max_scale,
                },
                "grid": {
                    "size": s.canvas.grid.size,
                    "color": s.canvas.grid.color,
                    "background": s.canvas.grid.background,
                },
                "handles": {
                    "size": s.canvas.handles.size,
                    "rotate_offset": s.canvas.handles.rotate_offset,
                    "color": s.canvas.handles.color,
                },
            },
            "debug": {
                "trace": s.debug.trace,
                "trace_move": s.debug.trace_move,
                "log_file": s.debug.log_file,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        data = self._to_toml_dict()
        return tomli_w.dumps(data)

    def get_data_dir(self) -> Path:
        """Get the resolved project data directory.

        Returns:
            Path to the data directory. Falls back to the platformdirs user
            data directory if data_dir setting is empty.
        """
        if self.settings.data_dir:
            return Path(self.settings.data_dir)
        return Path(platformdirs.user_data_dir(self.app_name))

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
