"""
Profile Manager - Business logic for profile operations.

Handles create, update, delete, get, list, activation and import/export of
credential profiles. Integrates with ConfigManager for persistence.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from core.config_manager import ConfigManager, profile_to_record, record_to_profile_dict
from core.errors import ProfileNotFound
from models.profile import Profile
from models.switch import StatusReport, TargetName
from utils.constants import DEFAULT_IMPORT_NAME, ERROR_MESSAGES
from utils.validators import (
    normalize_base_url,
    validate_profile_name,
    validate_token,
    validate_url,
)

logger = logging.getLogger(__name__)

# Where import_current looks first for each value
IMPORT_PRECEDENCE = (TargetName.ASSISTANT, TargetName.EDITOR, TargetName.ENV)


class ProfileManager:
    """Manages profile operations with persistence."""

    def __init__(self, config_manager: ConfigManager):
        self.config_manager = config_manager

    @staticmethod
    def _clean_fields(name: str, token: str, base_url: str) -> Tuple[Optional[str], Tuple[str, str, str]]:
        """Trim and validate profile fields; returns (error, cleaned_values)."""
        name = (name or "").strip()
        token = (token or "").strip()
        base_url = normalize_base_url(base_url or "")

        if not name or not token or not base_url:
            return ERROR_MESSAGES["PROFILE_FIELDS_REQUIRED"], (name, token, base_url)

        for is_valid, error in (
            validate_profile_name(name),
            validate_token(token),
            validate_url(base_url),
        ):
            if not is_valid:
                return error, (name, token, base_url)

        return None, (name, token, base_url)

    @staticmethod
    def _name_taken(profiles: Dict[str, Profile], name: str, exclude_id: Optional[str] = None) -> bool:
        lowered = name.casefold()
        return any(
            p.name.casefold() == lowered for pid, p in profiles.items() if pid != exclude_id
        )

    def create_profile(
        self,
        name: str,
        token: str,
        base_url: str
    ) -> Tuple[bool, Optional[str], Optional[Profile]]:
        """
        Create a new profile.

        Args:
            name: Display name for profile
            token: API token
            base_url: API base URL (trailing slashes are dropped)

        Returns:
            Tuple of (success, error_message, profile)
        """
        error, (name, token, base_url) = self._clean_fields(name, token, base_url)
        if error:
            return False, error, None

        try:
            preferences, profiles = self.config_manager.load()

            if self._name_taken(profiles, name):
                return False, f"Profile '{name}' already exists", None

            now = datetime.now()
            profile = Profile(
                id=str(uuid.uuid4()),
                name=name,
                token=token,
                base_url=base_url,
                created=now,
                modified=now
            )
            profiles[profile.id] = profile

            self.config_manager.save(preferences, profiles)

            logger.info(f"Profile created: {profile.name} ({profile.id})")
            return True, None, profile

        except Exception as e:
            error_msg = f"Failed to create profile: {e}"
            logger.error(error_msg)
            return False, error_msg, None

    def update_profile(
        self,
        profile_id: str,
        name: Optional[str] = None,
        token: Optional[str] = None,
        base_url: Optional[str] = None
    ) -> Tuple[bool, Optional[str], Optional[Profile]]:
        """
        Update an existing profile.

        Empty or missing fields keep their current value.

        Returns:
            Tuple of (success, error_message, profile)
        """
        try:
            preferences, profiles = self.config_manager.load()

            target_profile = profiles.get(profile_id)
            if target_profile is None:
                return False, f"Profile '{profile_id}' not found", None

            error, (new_name, new_token, new_url) = self._clean_fields(
                name if name and name.strip() else target_profile.name,
                token if token and token.strip() else target_profile.token,
                base_url if base_url and base_url.strip() else target_profile.base_url
            )
            if error:
                return False, error, None

            if self._name_taken(profiles, new_name, exclude_id=profile_id):
                return False, f"Profile '{new_name}' already exists", None

            target_profile.name = new_name
            target_profile.token = new_token
            target_profile.base_url = new_url
            target_profile.modified = datetime.now()

            self.config_manager.save(preferences, profiles)
            logger.info(f"Profile updated: {profile_id}")

            return True, None, target_profile

        except Exception as e:
            error_msg = f"Failed to update profile: {e}"
            logger.error(error_msg)
            return False, error_msg, None

    def delete_profile(self, profile_id: str) -> Tuple[bool, Optional[str]]:
        """
        Delete a profile.

        Returns:
            Tuple of (success, error_message)
        """
        try:
            preferences, profiles = self.config_manager.load()

            if profile_id not in profiles:
                return False, f"Profile '{profile_id}' not found"

            del profiles[profile_id]
            self.config_manager.save(preferences, profiles)

            logger.info(f"Profile deleted: {profile_id}")
            return True, None

        except Exception as e:
            error_msg = f"Failed to delete profile: {e}"
            logger.error(error_msg)
            return False, error_msg

    def get_profile(self, profile_id: str) -> Profile:
        """
        Get a profile by ID.

        Raises:
            ProfileNotFound: if no profile has this id
        """
        _, profiles = self.config_manager.load()
        profile = profiles.get(profile_id)
        if profile is None:
            raise ProfileNotFound(profile_id)
        return profile

    def list_profiles(self) -> List[Profile]:
        """All profiles, oldest first."""
        try:
            _, profiles = self.config_manager.load()
        except Exception as e:
            logger.error(f"Failed to list profiles: {e}")
            return []
        return sorted(profiles.values(), key=lambda p: p.created)

    def get_active_profile(self) -> Optional[Profile]:
        for profile in self.list_profiles():
            if profile.is_active:
                return profile
        return None

    def find_by_credentials(self, token: str, base_url: str) -> List[Profile]:
        """Profiles holding exactly this token and base URL (may be several)."""
        return [p for p in self.list_profiles() if p.matches(token, base_url)]

    def set_active(self, profile_id: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Mark one profile active and every other inactive.

        Args:
            profile_id: Profile to activate, or None to clear the active flag

        Returns:
            Tuple of (success, error_message)
        """
        try:
            preferences, profiles = self.config_manager.load()

            if profile_id is not None and profile_id not in profiles:
                return False, f"Profile '{profile_id}' not found"

            for pid, profile in profiles.items():
                profile.is_active = pid == profile_id
            if profile_id is not None:
                profiles[profile_id].last_used = datetime.now()

            self.config_manager.save(preferences, profiles)

            logger.info(f"Active profile set to: {profile_id or 'none'}")
            return True, None

        except Exception as e:
            error_msg = f"Failed to set active profile: {e}"
            logger.error(error_msg)
            return False, error_msg

    def import_current(
        self,
        name: Optional[str],
        status: StatusReport
    ) -> Tuple[bool, Optional[str], Optional[Profile]]:
        """
        Create a profile from the values currently configured on the machine.

        Token and base URL are each taken from the first target that has
        them: assistant settings, then editor settings, then environment.
        The new profile becomes the active one.

        Args:
            name: Profile name; blank uses the default import name
            status: Current status of every target

        Returns:
            Tuple of (success, error_message, profile)
        """
        token = ""
        base_url = ""
        for target in IMPORT_PRECEDENCE:
            location = status.get(target)
            if location is None:
                continue
            token = token or location.token
            base_url = base_url or location.base_url

        if not token or not base_url:
            return False, ERROR_MESSAGES["NOTHING_TO_IMPORT"], None

        base_url = normalize_base_url(base_url)
        if self.find_by_credentials(token.strip(), base_url):
            return False, ERROR_MESSAGES["PROFILE_EXISTS"], None

        name = (name or "").strip() or DEFAULT_IMPORT_NAME
        existing = {p.id: p for p in self.list_profiles()}
        candidate = name
        counter = 2
        while self._name_taken(existing, candidate):
            candidate = f"{name} ({counter})"
            counter += 1

        success, error, profile = self.create_profile(candidate, token, base_url)
        if not success:
            return False, error, None

        success, error = self.set_active(profile.id)
        if not success:
            return False, error, None
        profile.is_active = True

        logger.info(f"Imported current configuration as '{profile.name}'")
        return True, None, profile

    def export_profiles(self, dest: Path) -> Tuple[bool, Optional[str]]:
        """
        Write every profile to a JSON file that import_profiles() accepts.

        Returns:
            Tuple of (success, error_message)
        """
        try:
            records = [profile_to_record(p) for p in self.list_profiles()]
            with open(dest, 'w', encoding='utf-8') as f:
                json.dump({"profiles": records}, f, indent=2, ensure_ascii=False)
            logger.info(f"Exported {len(records)} profiles to {dest}")
            return True, None
        except OSError as e:
            error_msg = f"Failed to export profiles: {e}"
            logger.error(error_msg)
            return False, error_msg

    def import_profiles(self, src: Path) -> Tuple[bool, Optional[str], int]:
        """
        Merge profiles from an export file.

        Profiles whose token and base URL already exist are skipped.
        Imported profiles are never active.

        Returns:
            Tuple of (success, error_message, added_count)
        """
        src = Path(src)
        if not src.exists():
            return False, f"File not found: {src}", 0

        try:
            with open(src, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            return False, f"Invalid profile file: {e}", 0

        records = data.get("profiles") if isinstance(data, dict) else None
        if isinstance(records, dict):
            records = list(records.values())
        if not isinstance(records, list) or not records:
            return False, "No profiles found in file", 0

        try:
            preferences, profiles = self.config_manager.load()

            added = 0
            for record in records:
                if not isinstance(record, dict):
                    continue
                try:
                    profile = Profile.from_dict({
                        **record_to_profile_dict(record),
                        "id": record.get("id") or str(uuid.uuid4())
                    })
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning(f"Skipping malformed profile record: {e}")
                    continue

                profile.base_url = normalize_base_url(profile.base_url)
                if not profile.name or not profile.token or not profile.base_url:
                    continue
                if any(p.matches(profile.token, profile.base_url) for p in profiles.values()):
                    continue
                if profile.id in profiles:
                    profile.id = str(uuid.uuid4())
                profile.is_active = False
                profiles[profile.id] = profile
                added += 1

            if added:
                self.config_manager.save(preferences, profiles)

            logger.info(f"Imported {added} of {len(records)} profiles from {src}")
            return True, None, added

        except Exception as e:
            error_msg = f"Failed to import profiles: {e}"
            logger.error(error_msg)
            return False, error_msg, 0
