"""Configuration targets a profile is written to.

Each adapter reads and writes one location independently of the others:
the OS environment, the VS Code user settings and the Claude user settings.
"""

import json
import logging
import os
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.errors import TargetReadError, TargetWriteError
from models.preferences import Preferences
from models.switch import TargetName, TargetSnapshot, TargetValues
from utils.auth_env import (
    AUTH_NAMES,
    apply_auth_to_env_array,
    apply_auth_to_env_object,
    get_env_array_value,
    read_auth_from_env_array,
    read_auth_from_env_object,
)
from utils.constants import (
    ASSISTANT_ENV_KEY,
    AUTH_TOKEN_ENV,
    BASE_URL_ENV,
    EDITOR_ENV_KEY,
    ENV_VAR_NAMES,
)

logger = logging.getLogger(__name__)


class TargetAdapter(ABC):
    """A configuration location that can hold a token and base URL."""

    name: TargetName
    progress_label: str

    @abstractmethod
    def read(self) -> TargetValues:
        """Return the stored values. Raises TargetReadError."""

    @abstractmethod
    def write(self, token: Optional[str], base_url: Optional[str]) -> None:
        """Store the values; ``None`` removes the key. Raises TargetWriteError."""

    def snapshot(self) -> TargetSnapshot:
        """Capture the current state for a later restore."""
        try:
            values = self.read()
        except TargetReadError as e:
            return TargetSnapshot.unreadable(self.name, e.reason)
        return TargetSnapshot(target=self.name, token=values.token, base_url=values.base_url)

    def restore(self, snapshot: TargetSnapshot) -> None:
        """Put back a captured state. Raises TargetWriteError."""
        self.write(snapshot.token, snapshot.base_url)

    @property
    def display_name(self) -> str:
        return self.name.display_name


# ===== Environment variables =====

class ProcessEnvironment:
    """Environment variables of the current process."""

    def get(self, name: str) -> Optional[str]:
        return os.environ.get(name)

    def set(self, name: str, value: str) -> None:
        os.environ[name] = value

    def delete(self, name: str) -> None:
        os.environ.pop(name, None)

    def broadcast_change(self) -> None:
        pass


class RegistryEnvironment:
    """Per-user environment stored under HKCU\\Environment (Windows only)."""

    BROADCAST_TIMEOUT_MS = 400

    def _key(self, access: int):
        import winreg
        return winreg.CreateKeyEx(winreg.HKEY_CURRENT_USER, "Environment", 0, access)

    def get(self, name: str) -> Optional[str]:
        import winreg
        with self._key(winreg.KEY_READ) as key:
            try:
                value, _ = winreg.QueryValueEx(key, name)
            except FileNotFoundError:
                return None
        return str(value)

    def set(self, name: str, value: str) -> None:
        import winreg
        with self._key(winreg.KEY_SET_VALUE) as key:
            winreg.SetValueEx(key, name, 0, winreg.REG_SZ, value)

    def delete(self, name: str) -> None:
        import winreg
        with self._key(winreg.KEY_SET_VALUE) as key:
            try:
                winreg.DeleteValue(key, name)
            except FileNotFoundError:
                pass

    def broadcast_change(self) -> None:
        """Send WM_SETTINGCHANGE so running programs pick up new variables."""
        import ctypes
        from ctypes import wintypes

        HWND_BROADCAST = 0xFFFF
        WM_SETTINGCHANGE = 0x001A
        SMTO_ABORTIFHUNG = 0x0002
        result = wintypes.DWORD()
        ctypes.windll.user32.SendMessageTimeoutW(
            HWND_BROADCAST,
            WM_SETTINGCHANGE,
            0,
            "Environment",
            SMTO_ABORTIFHUNG,
            self.BROADCAST_TIMEOUT_MS,
            ctypes.byref(result)
        )


def system_environment():
    """Environment backend for the current platform."""
    if sys.platform == "win32":
        return RegistryEnvironment()
    return ProcessEnvironment()


class EnvironmentTarget(TargetAdapter):
    """Auth variables in the user's environment."""

    name = TargetName.ENV
    progress_label = "system"

    def __init__(self, environment=None):
        self.environment = environment if environment is not None else system_environment()

    def _read_raw(self) -> Dict[str, Optional[str]]:
        return {var: self.environment.get(var) for var in ENV_VAR_NAMES}

    @staticmethod
    def _values_from_raw(raw: Dict[str, Optional[str]]) -> TargetValues:
        token = next((raw[var] for var in AUTH_NAMES if raw.get(var) is not None), None)
        return TargetValues(token=token, base_url=raw.get(BASE_URL_ENV))

    def read(self) -> TargetValues:
        try:
            return self._values_from_raw(self._read_raw())
        except OSError as e:
            raise TargetReadError(self.name.value, str(e)) from e

    def write(self, token: Optional[str], base_url: Optional[str]) -> None:
        try:
            for var, value in ((AUTH_TOKEN_ENV, token), (BASE_URL_ENV, base_url)):
                if value is None:
                    self.environment.delete(var)
                else:
                    self.environment.set(var, value)
            for var in AUTH_NAMES:
                if var != AUTH_TOKEN_ENV and self.environment.get(var) is not None:
                    self.environment.delete(var)
            self.environment.broadcast_change()
        except OSError as e:
            raise TargetWriteError(self.name.value, str(e)) from e
        logger.debug("Environment variables updated")

    def snapshot(self) -> TargetSnapshot:
        try:
            raw = self._read_raw()
        except OSError as e:
            return TargetSnapshot.unreadable(self.name, str(e))
        values = self._values_from_raw(raw)
        return TargetSnapshot(
            target=self.name,
            token=values.token,
            base_url=values.base_url,
            raw=raw
        )

    def restore(self, snapshot: TargetSnapshot) -> None:
        if not isinstance(snapshot.raw, dict):
            super().restore(snapshot)
            return
        try:
            for var in ENV_VAR_NAMES:
                value = snapshot.raw.get(var)
                if value is None:
                    if self.environment.get(var) is not None:
                        self.environment.delete(var)
                else:
                    self.environment.set(var, value)
            self.environment.broadcast_change()
        except OSError as e:
            raise TargetWriteError(self.name.value, str(e)) from e


# ===== JSON settings files =====

class JsonSettingsTarget(TargetAdapter):
    """A JSON settings file holding the auth variables somewhere inside it."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @abstractmethod
    def _extract(self, settings: Any) -> TargetValues:
        """Pull token and base URL out of parsed settings."""

    @abstractmethod
    def _apply(self, settings: Any, token: Optional[str], base_url: Optional[str]) -> Any:
        """Return settings with the values applied."""

    def _read_text(self, error_cls) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise error_cls(self.name.value, f"Settings file not found: {self.path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise error_cls(self.name.value, str(e)) from e

    def _parse(self, text: str, error_cls) -> Any:
        try:
            return json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            raise error_cls(self.name.value, f"Invalid JSON in {self.path.name}: {e}") from e

    def _write_text(self, text: str) -> None:
        """Write via temp file and atomic rename."""
        temp_file = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(text)
            temp_file.replace(self.path)
        except OSError as e:
            try:
                if temp_file.exists():
                    temp_file.unlink()
            except OSError:
                pass
            raise TargetWriteError(self.name.value, str(e)) from e

    def read(self) -> TargetValues:
        text = self._read_text(TargetReadError)
        return self._extract(self._parse(text, TargetReadError))

    def write(self, token: Optional[str], base_url: Optional[str]) -> None:
        settings = self._parse(self._read_text(TargetWriteError), TargetWriteError)
        settings = self._apply(settings, token, base_url)
        self._write_text(json.dumps(settings, indent=2, ensure_ascii=False))
        logger.debug(f"{self.display_name} settings updated: {self.path}")

    def snapshot(self) -> TargetSnapshot:
        try:
            text = self._read_text(TargetReadError)
            values = self._extract(self._parse(text, TargetReadError))
        except TargetReadError as e:
            return TargetSnapshot.unreadable(self.name, e.reason)
        return TargetSnapshot(
            target=self.name,
            token=values.token,
            base_url=values.base_url,
            raw=text
        )

    def restore(self, snapshot: TargetSnapshot) -> None:
        if isinstance(snapshot.raw, str):
            self._write_text(snapshot.raw)
        else:
            super().restore(snapshot)


class EditorSettingsTarget(JsonSettingsTarget):
    """VS Code user settings, ``claudeCode.environmentVariables`` array."""

    name = TargetName.EDITOR
    progress_label = "vscode"

    def _extract(self, settings: Any) -> TargetValues:
        entries = settings.get(EDITOR_ENV_KEY) if isinstance(settings, dict) else None
        if not isinstance(entries, list):
            return TargetValues()
        return TargetValues(
            token=read_auth_from_env_array(entries),
            base_url=get_env_array_value(entries, BASE_URL_ENV)
        )

    def _apply(self, settings: Any, token: Optional[str], base_url: Optional[str]) -> Any:
        if not isinstance(settings, dict):
            settings = {}
        if not isinstance(settings.get(EDITOR_ENV_KEY), list):
            settings[EDITOR_ENV_KEY] = []
        apply_auth_to_env_array(settings[EDITOR_ENV_KEY], token, base_url)
        return settings


class AssistantSettingsTarget(JsonSettingsTarget):
    """Claude user settings, ``env`` object."""

    name = TargetName.ASSISTANT
    progress_label = "claude"

    def _extract(self, settings: Any) -> TargetValues:
        env = settings.get(ASSISTANT_ENV_KEY) if isinstance(settings, dict) else None
        if not isinstance(env, dict):
            return TargetValues()
        base_url = env.get(BASE_URL_ENV)
        return TargetValues(
            token=read_auth_from_env_object(env),
            base_url=base_url if isinstance(base_url, str) else None
        )

    def _apply(self, settings: Any, token: Optional[str], base_url: Optional[str]) -> Any:
        if not isinstance(settings, dict):
            settings = {}
        if not isinstance(settings.get(ASSISTANT_ENV_KEY), dict):
            settings[ASSISTANT_ENV_KEY] = {}
        apply_auth_to_env_object(settings[ASSISTANT_ENV_KEY], token, base_url)
        return settings


def build_default_targets(preferences: Optional[Preferences] = None) -> List[TargetAdapter]:
    """Create the three targets in switch order: env, editor, assistant."""
    preferences = preferences or Preferences()
    return [
        EnvironmentTarget(),
        EditorSettingsTarget(preferences.resolve_editor_settings_path()),
        AssistantSettingsTarget(preferences.resolve_assistant_settings_path()),
    ]
