"""Preferences data model for VarSwitch."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Literal, Optional

from utils.constants import default_assistant_settings_path, default_editor_settings_path


@dataclass
class Preferences:
    """User preferences for the application."""

    # Theme
    theme: Literal["light", "dark"] = "light"

    # Window behavior
    minimize_to_tray: bool = True

    # Target location overrides (None = platform default)
    editor_settings_path: Optional[str] = None
    assistant_settings_path: Optional[str] = None

    # Window geometry
    window_geometry: Dict[str, int] = field(default_factory=lambda: {
        "width": 860,
        "height": 680,
        "x": None,
        "y": None
    })

    def resolve_editor_settings_path(self) -> Path:
        """Editor settings file to use, honoring the override."""
        if self.editor_settings_path:
            return Path(self.editor_settings_path).expanduser()
        return default_editor_settings_path()

    def resolve_assistant_settings_path(self) -> Path:
        """Assistant settings file to use, honoring the override."""
        if self.assistant_settings_path:
            return Path(self.assistant_settings_path).expanduser()
        return default_assistant_settings_path()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "theme": self.theme,
            "minimize_to_tray": self.minimize_to_tray,
            "editor_settings_path": self.editor_settings_path,
            "assistant_settings_path": self.assistant_settings_path,
            "window_geometry": self.window_geometry
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Preferences":
        """Create from dictionary loaded from JSON."""
        theme = data.get("theme", "light")
        if theme not in ("light", "dark"):
            theme = "light"
        return cls(
            theme=theme,
            minimize_to_tray=data.get("minimize_to_tray", True),
            editor_settings_path=data.get("editor_settings_path") or None,
            assistant_settings_path=data.get("assistant_settings_path") or None,
            window_geometry=data.get("window_geometry", {
                "width": 860,
                "height": 680,
                "x": None,
                "y": None
            })
        )
