"""Constants for VarSwitch."""

import os
import sys
from pathlib import Path


# Paths
USER_HOME = Path.home()
CONFIG_DIR = USER_HOME / ".varswitch"
CONFIG_FILE = CONFIG_DIR / "varswitch.json"
BACKUP_FILE = CONFIG_DIR / "varswitch.backup"
LOCK_FILE = CONFIG_DIR / "varswitch.lock"
LOG_FILE = CONFIG_DIR / "varswitch.log"

# Application
APP_NAME = "VarSwitch"
APP_VERSION = "1.0.0"
CONFIG_VERSION = "1.0.0"  # Configuration file format version
WINDOW_MIN_WIDTH = 640
WINDOW_MIN_HEIGHT = 560
WINDOW_DEFAULT_WIDTH = 860
WINDOW_DEFAULT_HEIGHT = 680

# Environment variable names shared by every target
AUTH_TOKEN_ENV = "ANTHROPIC_AUTH_TOKEN"
AUTH_KEY_ENV = "ANTHROPIC_AUTH_KEY"
LEGACY_AUTH_ENV = "ANTHROPIC_API_KEY"
BASE_URL_ENV = "ANTHROPIC_BASE_URL"
ENV_VAR_NAMES = (AUTH_TOKEN_ENV, AUTH_KEY_ENV, LEGACY_AUTH_ENV, BASE_URL_ENV)

# Editor / assistant settings keys
EDITOR_ENV_KEY = "claudeCode.environmentVariables"
ASSISTANT_ENV_KEY = "env"

# Switch protocol
SWITCH_TOTAL_STEPS = 6
STEP_LABELS = ("prepare", "system", "vscode", "claude", "finalize", "done")

DEFAULT_IMPORT_NAME = "Imported profile"
PROFILE_NAME_MAX_LENGTH = 50


def default_editor_settings_path() -> Path:
    """Location of the VS Code user settings file for this platform."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA") or str(USER_HOME / "AppData" / "Roaming")
        return Path(appdata) / "Code" / "User" / "settings.json"
    if sys.platform == "darwin":
        return USER_HOME / "Library" / "Application Support" / "Code" / "User" / "settings.json"
    return USER_HOME / ".config" / "Code" / "User" / "settings.json"


def default_assistant_settings_path() -> Path:
    """Location of the Claude user settings file."""
    return USER_HOME / ".claude" / "settings.json"


# Error Messages (User-friendly)
ERROR_MESSAGES = {
    "CONFIG_NOT_FOUND": "Configuration file not found. Creating new configuration...",
    "CONFIG_CORRUPTED": "Configuration file corrupted. Restoring from backup...",
    "CONFIG_LOCKED": "Configuration file is locked. Retrying...",
    "BACKUP_RESTORED": "Configuration restored from backup successfully.",
    "PROFILE_NOT_FOUND": "Profile not found.",
    "PROFILE_FIELDS_REQUIRED": "Name, token and base URL are all required.",
    "PROFILE_EXISTS": "A profile with the same token and base URL already exists.",
    "NOTHING_TO_IMPORT": "No current configuration detected.",
    "SNAPSHOT_FAILED": "Could not read any configuration target. Switch aborted.",
    "SWITCH_IN_PROGRESS": "A profile switch is already in progress.",
    "NO_SNAPSHOT": "No snapshot has been taken for this switch. Call begin_switch first.",
    "NO_BASELINE": "No baseline captured for this target",
}

# UI Theme colors (for ttkbootstrap)
THEMES = {
    "dark": "darkly",
    "light": "cosmo"
}

# Display names for the configuration targets
TARGET_DISPLAY_NAMES = {
    "env": "System Environment",
    "editor": "VS Code",
    "assistant": "Claude",
}
