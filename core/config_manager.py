"""Configuration Manager for VarSwitch.

Handles loading, saving, and validation of the profile store with:
- Atomic writes with backup
- Transaction-like saves with rollback
- Error handling for corrupted/missing/locked files
- Version migration support
"""

import json
import logging
import os
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from core.errors import ConfigLockedError
from models.preferences import Preferences
from models.profile import Profile
from utils.constants import (
    BACKUP_FILE,
    CONFIG_DIR,
    CONFIG_FILE,
    CONFIG_VERSION,
    ERROR_MESSAGES,
    LOCK_FILE,
)

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages application configuration with robust error handling."""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager with paths.

        Args:
            config_dir: Directory holding the config files (default ~/.varswitch)
        """
        if config_dir is None:
            self.config_dir = CONFIG_DIR
            self.config_file = CONFIG_FILE
            self.backup_file = BACKUP_FILE
            self.lock_file = LOCK_FILE
        else:
            self.config_dir = Path(config_dir)
            self.config_file = self.config_dir / CONFIG_FILE.name
            self.backup_file = self.config_dir / BACKUP_FILE.name
            self.lock_file = self.config_dir / LOCK_FILE.name

        self.config_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"ConfigManager initialized: {self.config_file}")

    def _acquire_lock(self, timeout: float = 5.0) -> bool:
        """
        Acquire file lock for safe concurrent access.

        Args:
            timeout: Maximum time to wait for lock in seconds

        Returns:
            True if lock acquired, False otherwise
        """
        start_time = time.time()
        while time.time() - start_time < timeout:
            try:
                fd = os.open(self.lock_file, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.close(fd)
                logger.debug("Lock acquired")
                return True
            except FileExistsError:
                time.sleep(0.1)
            except OSError as e:
                logger.warning(f"Error acquiring lock: {e}")
                time.sleep(0.1)

        logger.error("Failed to acquire lock within timeout")
        return False

    def _release_lock(self):
        """Release file lock."""
        try:
            if self.lock_file.exists():
                self.lock_file.unlink()
                logger.debug("Lock released")
        except OSError as e:
            logger.warning(f"Error releasing lock: {e}")

    def _create_default_config(self) -> Dict:
        """Empty profile store with default preferences."""
        logger.info("Creating default configuration")
        return {
            "version": CONFIG_VERSION,
            "preferences": Preferences().to_dict(),
            "profiles": {}
        }

    def _read_json(self, path: Path) -> Dict:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise json.JSONDecodeError("Top-level value is not an object", "", 0)
        return data

    def load(self) -> Tuple[Preferences, Dict[str, Profile]]:
        """
        Load configuration from file with comprehensive error handling.

        Handles:
        - Missing file: Creates default config
        - Corrupted JSON: Restores from backup
        - Locked file: Retry logic with timeout

        Returns:
            Tuple of (Preferences, profiles_dict)

        Raises:
            ConfigLockedError: if the lock could not be acquired
        """
        if not self._acquire_lock():
            logger.error(ERROR_MESSAGES["CONFIG_LOCKED"])
            raise ConfigLockedError(ERROR_MESSAGES["CONFIG_LOCKED"])

        try:
            if not self.config_file.exists():
                logger.info(ERROR_MESSAGES["CONFIG_NOT_FOUND"])
                config_data = self._create_default_config()
                self._save_raw(config_data)
                return self._parse_config(config_data)

            try:
                config_data = self._read_json(self.config_file)
                logger.info("Configuration loaded successfully")

            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.error(f"Corrupted config file: {e}")

                if self.backup_file.exists():
                    logger.info(ERROR_MESSAGES["CONFIG_CORRUPTED"])
                    try:
                        config_data = self._read_json(self.backup_file)
                        logger.info(ERROR_MESSAGES["BACKUP_RESTORED"])
                        config_data = self.migrate(config_data)
                        self._save_raw(config_data)

                    except (json.JSONDecodeError, UnicodeDecodeError):
                        logger.error("Backup is also corrupted, creating default")
                        config_data = self._create_default_config()
                        self._save_raw(config_data)
                else:
                    logger.warning("No backup found, creating default")
                    config_data = self._create_default_config()
                    self._save_raw(config_data)

            config_data = self.migrate(config_data)

            return self._parse_config(config_data)

        finally:
            self._release_lock()

    def _parse_config(self, config_data: Dict) -> Tuple[Preferences, Dict[str, Profile]]:
        """
        Parse configuration dictionary into data models.

        Malformed profile entries are logged and skipped.
        """
        raw_prefs = config_data.get("preferences") or {}
        prefs = Preferences.from_dict(raw_prefs if isinstance(raw_prefs, dict) else {})

        profiles: Dict[str, Profile] = {}
        raw_profiles = config_data.get("profiles", {}) or {}
        for profile_id, profile_data in raw_profiles.items():
            try:
                if not isinstance(profile_data, dict):
                    raise ValueError("Profile entry is not a mapping")
                profile_data = dict(profile_data)
                profile_data.setdefault("id", profile_id)
                profiles[profile_id] = Profile.from_dict(profile_data)
            except (KeyError, ValueError, TypeError) as e:
                logger.error(f"Failed to parse profile {profile_id}: {e}")

        active = [p for p in profiles.values() if p.is_active]
        if len(active) > 1:
            logger.warning(f"{len(active)} profiles marked active, keeping the most recently used")
            keep = max(active, key=lambda p: p.last_used or p.modified)
            for profile in active:
                profile.is_active = profile is keep

        return prefs, profiles

    def _save_raw(self, config_data: Dict):
        """Save raw configuration data to file (internal use)."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(config_data, f, indent=2, default=str)

    def save(self, preferences: Preferences, profiles: Dict[str, Profile]):
        """
        Save configuration with atomic write and backup.

        Uses temp file + atomic rename pattern to prevent corruption if interrupted.

        Args:
            preferences: User preferences
            profiles: Dictionary of profiles

        Raises:
            ConfigLockedError: if the lock could not be acquired
        """
        if not self._acquire_lock():
            raise ConfigLockedError(ERROR_MESSAGES["CONFIG_LOCKED"])

        try:
            if self.config_file.exists():
                shutil.copy2(self.config_file, self.backup_file)
                logger.debug("Backup created")

            config_data = {
                "version": CONFIG_VERSION,
                "preferences": preferences.to_dict(),
                "profiles": {
                    profile_id: profile.to_dict()
                    for profile_id, profile in profiles.items()
                }
            }

            temp_file = self.config_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(config_data, f, indent=2, default=str)

            temp_file.replace(self.config_file)
            logger.info("Configuration saved successfully")

        except Exception as e:
            logger.error(f"Failed to save configuration: {e}")
            raise

        finally:
            self._release_lock()

    def save_with_rollback(self, preferences: Preferences, profiles: Dict[str, Profile]) -> bool:
        """
        Save configuration with rollback capability.

        If save fails, automatically restores the previous file contents.

        Returns:
            True if save succeeded, False if rolled back
        """
        snapshot = None
        if self.config_file.exists():
            snapshot = self.config_file.read_bytes()

        try:
            self.save(preferences, profiles)
            return True

        except Exception as e:
            logger.error(f"Save failed, rolling back: {e}")

            if snapshot:
                self.config_file.write_bytes(snapshot)
                logger.info("Configuration rolled back successfully")

            return False

    def migrate(self, config_data: Dict) -> Dict:
        """
        Migrate configuration to current version.

        Pre-1.0 files kept profiles as a list of camelCase records
        (``apiKey``, ``baseUrl``, ``createdAt``); they are converted to the
        id-keyed mapping.

        Args:
            config_data: Configuration data to migrate

        Returns:
            Migrated configuration data
        """
        current_version = config_data.get("version", "0.9.0")

        if "preferences" not in config_data:
            config_data["preferences"] = {}

        if isinstance(config_data.get("profiles"), list):
            config_data["profiles"] = {
                record["id"]: record_to_profile_dict(record)
                for record in config_data["profiles"]
                if isinstance(record, dict) and record.get("id")
            }
        elif "profiles" not in config_data:
            config_data["profiles"] = {}

        if current_version == CONFIG_VERSION:
            return config_data

        logger.info(f"Migrating config from {current_version} to {CONFIG_VERSION}")
        config_data["version"] = CONFIG_VERSION
        return config_data

    def validate_config(self, config_data: Dict) -> Tuple[bool, List[str]]:
        """
        Validate configuration data structure.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        for key in ("version", "preferences", "profiles"):
            if key not in config_data:
                errors.append(f"Missing required key: {key}")

        if "version" in config_data and not isinstance(config_data["version"], str):
            errors.append("Version must be a string")

        if "preferences" in config_data and not isinstance(config_data["preferences"], dict):
            errors.append("Preferences must be a dictionary")

        if "profiles" in config_data:
            if not isinstance(config_data["profiles"], dict):
                errors.append("Profiles must be a dictionary")
            else:
                for profile_id, profile_data in config_data["profiles"].items():
                    if not isinstance(profile_data, dict):
                        errors.append(f"Profile {profile_id} must be a dictionary")
                        continue
                    for field_name in ("name", "token", "base_url"):
                        if not profile_data.get(field_name):
                            errors.append(f"Profile {profile_id} is missing {field_name}")

        return len(errors) == 0, errors


def record_to_profile_dict(record: Dict) -> Dict:
    """
    Convert a camelCase profile record to the stored profile format.

    Records already in the stored format pass through unchanged.
    """
    if "token" in record and "base_url" in record:
        return dict(record)
    created = record.get("createdAt") or record.get("created") or datetime.now().isoformat()
    return {
        "id": record.get("id", ""),
        "name": record.get("name", ""),
        "token": record.get("apiKey", ""),
        "base_url": record.get("baseUrl", ""),
        "is_active": bool(record.get("isActive", False)),
        "created": created,
        "modified": created,
        "last_used": None
    }


def profile_to_record(profile: Profile) -> Dict:
    """camelCase record used by profile export files."""
    return {
        "id": profile.id,
        "name": profile.name,
        "apiKey": profile.token,
        "baseUrl": profile.base_url,
        "isActive": profile.is_active,
        "createdAt": profile.created.isoformat()
    }
