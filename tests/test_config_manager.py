"""Unit tests for ConfigManager."""

import json
from datetime import datetime

import pytest

from core.config_manager import ConfigManager, profile_to_record, record_to_profile_dict
from core.errors import ConfigLockedError
from models.preferences import Preferences
from models.profile import Profile
from utils.constants import CONFIG_VERSION


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create temporary config directory."""
    return tmp_path / ".varswitch"


@pytest.fixture
def config_manager(temp_config_dir):
    """Create ConfigManager with temporary directory."""
    return ConfigManager(temp_config_dir)


def make_profile(profile_id="p1", name="Prod", is_active=False, last_used=None):
    now = datetime(2024, 1, 1, 12, 0, 0)
    return Profile(
        id=profile_id,
        name=name,
        token=f"sk-{profile_id}",
        base_url=f"https://{profile_id}.example.com",
        created=now,
        modified=now,
        is_active=is_active,
        last_used=last_used
    )


class TestConfigManagerInit:
    """Tests for ConfigManager initialization."""

    def test_init_creates_directory(self, temp_config_dir):
        """Test that initialization creates config directory."""
        ConfigManager(temp_config_dir)
        assert temp_config_dir.exists()

    def test_init_sets_paths(self, config_manager, temp_config_dir):
        """Test that initialization sets correct paths."""
        assert config_manager.config_file == temp_config_dir / "varswitch.json"
        assert config_manager.backup_file.parent == temp_config_dir
        assert config_manager.lock_file.parent == temp_config_dir


class TestFileLocking:
    """Tests for the lock file."""

    def test_acquire_and_release(self, config_manager):
        """Test acquiring and releasing the lock."""
        assert config_manager._acquire_lock() is True
        assert config_manager.lock_file.exists()

        config_manager._release_lock()
        assert not config_manager.lock_file.exists()

    def test_lock_times_out_when_held(self, config_manager):
        """Test that a held lock is not acquired twice."""
        assert config_manager._acquire_lock() is True
        try:
            assert config_manager._acquire_lock(timeout=0.2) is False
        finally:
            config_manager._release_lock()

    def test_load_raises_when_locked(self, config_manager, monkeypatch):
        """Test that load reports a locked file."""
        monkeypatch.setattr(config_manager, "_acquire_lock", lambda timeout=5.0: False)
        with pytest.raises(ConfigLockedError):
            config_manager.load()

    def test_save_raises_when_locked(self, config_manager, monkeypatch):
        """Test that save reports a locked file."""
        monkeypatch.setattr(config_manager, "_acquire_lock", lambda timeout=5.0: False)
        with pytest.raises(ConfigLockedError):
            config_manager.save(Preferences(), {})


class TestLoad:
    """Tests for loading configuration."""

    def test_missing_file_creates_default(self, config_manager):
        """Test that a missing file produces an empty profile store."""
        prefs, profiles = config_manager.load()

        assert prefs == Preferences()
        assert profiles == {}
        assert config_manager.config_file.exists()
        assert not config_manager.lock_file.exists()

        data = json.loads(config_manager.config_file.read_text(encoding="utf-8"))
        assert data["version"] == CONFIG_VERSION
        assert data["profiles"] == {}

    def test_roundtrip(self, config_manager):
        """Test that saved profiles load back unchanged."""
        profiles = {"p1": make_profile("p1", is_active=True), "p2": make_profile("p2", "Dev")}
        config_manager.save(Preferences(theme="dark"), profiles)

        prefs, loaded = config_manager.load()

        assert prefs.theme == "dark"
        assert loaded == profiles

    def test_corrupted_file_restores_backup(self, config_manager):
        """Test that a corrupted file is replaced by the backup."""
        config_manager.save(Preferences(), {"p1": make_profile("p1")})
        config_manager.save(Preferences(), {"p1": make_profile("p1")})
        config_manager.config_file.write_text("{ broken", encoding="utf-8")

        _, profiles = config_manager.load()

        assert list(profiles) == ["p1"]
        json.loads(config_manager.config_file.read_text(encoding="utf-8"))

    def test_corrupted_without_backup_creates_default(self, config_manager):
        """Test that a corrupted file with no backup becomes the default."""
        config_manager.config_file.write_text("[1, 2, 3]", encoding="utf-8")

        _, profiles = config_manager.load()

        assert profiles == {}

    def test_corrupted_backup_creates_default(self, config_manager):
        """Test that a corrupted backup also falls back to the default."""
        config_manager.config_file.write_text("{ broken", encoding="utf-8")
        config_manager.backup_file.write_text("also broken", encoding="utf-8")

        _, profiles = config_manager.load()

        assert profiles == {}

    def test_malformed_profile_skipped(self, config_manager):
        """Test that a bad profile entry does not block the others."""
        data = {
            "version": CONFIG_VERSION,
            "preferences": {},
            "profiles": {
                "good": make_profile("good").to_dict(),
                "bad": {"name": "No dates"},
                "worse": "not a dict"
            }
        }
        config_manager.config_file.write_text(json.dumps(data), encoding="utf-8")

        _, profiles = config_manager.load()

        assert list(profiles) == ["good"]

    def test_multiple_active_keeps_most_recent(self, config_manager):
        """Test that only one profile stays active."""
        older = make_profile("old", is_active=True, last_used=datetime(2024, 1, 2))
        newer = make_profile("new", is_active=True, last_used=datetime(2024, 3, 1))
        config_manager.save(Preferences(), {"old": older, "new": newer})

        _, profiles = config_manager.load()

        assert profiles["new"].is_active is True
        assert profiles["old"].is_active is False


class TestSave:
    """Tests for saving configuration."""

    def test_save_creates_backup(self, config_manager):
        """Test that the previous file is kept as backup."""
        config_manager.save(Preferences(), {"p1": make_profile("p1")})
        config_manager.save(Preferences(), {})

        backup = json.loads(config_manager.backup_file.read_text(encoding="utf-8"))
        assert "p1" in backup["profiles"]

    def test_save_leaves_no_temp_file(self, config_manager):
        """Test atomic write cleanup."""
        config_manager.save(Preferences(), {})
        assert not config_manager.config_file.with_suffix(".tmp").exists()

    def test_save_with_rollback_success(self, config_manager):
        assert config_manager.save_with_rollback(Preferences(), {"p1": make_profile("p1")}) is True

    def test_save_with_rollback_restores_previous(self, config_manager, monkeypatch):
        """Test that a failed save leaves the previous content."""
        config_manager.save(Preferences(), {"p1": make_profile("p1")})
        before = config_manager.config_file.read_bytes()

        def failing_save(preferences, profiles):
            config_manager.config_file.write_text("partial", encoding="utf-8")
            raise OSError("disk full")

        monkeypatch.setattr(config_manager, "save", failing_save)

        assert config_manager.save_with_rollback(Preferences(), {}) is False
        assert config_manager.config_file.read_bytes() == before


class TestMigration:
    """Tests for config migration."""

    def test_current_version_untouched(self, config_manager):
        data = {"version": CONFIG_VERSION, "preferences": {}, "profiles": {}}
        assert config_manager.migrate(dict(data)) == data

    def test_missing_sections_added(self, config_manager):
        migrated = config_manager.migrate({})
        assert migrated["version"] == CONFIG_VERSION
        assert migrated["preferences"] == {}
        assert migrated["profiles"] == {}

    def test_list_of_records_converted(self, config_manager):
        """Test that camelCase profile lists become the id-keyed mapping."""
        data = {
            "profiles": [
                {
                    "id": "a1",
                    "name": "Prod",
                    "apiKey": "sk-prod",
                    "baseUrl": "https://api.prod",
                    "isActive": True,
                    "createdAt": "2024-01-01T00:00:00"
                },
                {"name": "No id"}
            ]
        }

        migrated = config_manager.migrate(data)

        assert list(migrated["profiles"]) == ["a1"]
        profile = Profile.from_dict(migrated["profiles"]["a1"])
        assert profile.token == "sk-prod"
        assert profile.base_url == "https://api.prod"
        assert profile.is_active is True

    def test_load_migrates_legacy_file(self, config_manager):
        """Test loading a pre-1.0 file end to end."""
        legacy = {"profiles": [{"id": "a1", "name": "Prod", "apiKey": "k", "baseUrl": "https://u"}]}
        config_manager.config_file.write_text(json.dumps(legacy), encoding="utf-8")

        _, profiles = config_manager.load()

        assert profiles["a1"].name == "Prod"


class TestValidation:
    """Tests for config validation."""

    def test_valid(self, config_manager):
        data = {
            "version": CONFIG_VERSION,
            "preferences": {},
            "profiles": {"p1": make_profile("p1").to_dict()}
        }
        assert config_manager.validate_config(data) == (True, [])

    def test_missing_keys(self, config_manager):
        is_valid, errors = config_manager.validate_config({})
        assert is_valid is False
        assert len(errors) == 3

    def test_profile_missing_fields(self, config_manager):
        data = {"version": CONFIG_VERSION, "preferences": {}, "profiles": {"p1": {"name": "x"}}}
        is_valid, errors = config_manager.validate_config(data)
        assert is_valid is False
        assert "Profile p1 is missing token" in errors
        assert "Profile p1 is missing base_url" in errors


class TestRecords:
    """Tests for the camelCase export records."""

    def test_profile_to_record(self):
        record = profile_to_record(make_profile("p1", is_active=True))
        assert record["apiKey"] == "sk-p1"
        assert record["baseUrl"] == "https://p1.example.com"
        assert record["isActive"] is True
        assert record["createdAt"] == "2024-01-01T12:00:00"

    def test_stored_format_passes_through(self):
        stored = make_profile("p1").to_dict()
        assert record_to_profile_dict(stored) == stored

    def test_record_without_date_gets_one(self):
        converted = record_to_profile_dict({"id": "x", "name": "X", "apiKey": "k", "baseUrl": "u"})
        assert Profile.from_dict(converted).created is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
