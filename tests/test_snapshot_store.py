"""Unit tests for SnapshotStore."""

from pathlib import Path

import pytest

from core.errors import SnapshotFailed
from core.snapshot_store import SnapshotStore
from core.targets import AssistantSettingsTarget, EditorSettingsTarget, EnvironmentTarget
from models.switch import SnapshotSet, TargetName, TargetSnapshot, TargetValues
from tests.helpers import OLD_TOKEN, OLD_URL, FakeEnvironment, FakeTarget
from utils.constants import AUTH_TOKEN_ENV


class TestCapture:
    """Tests for capturing target state."""

    def test_capture_reads_every_target(self, targets):
        snapshot = SnapshotStore(targets).capture()

        assert [s.target for s in snapshot] == [TargetName.ENV, TargetName.EDITOR, TargetName.ASSISTANT]
        assert all(s.captured for s in snapshot)
        assert snapshot.get(TargetName.ENV).base_url == OLD_URL

    def test_unreadable_target_recorded_as_absent(self, targets):
        targets[1].read_error = "Settings file not found"

        snapshot = SnapshotStore(targets).capture()

        editor = snapshot.get(TargetName.EDITOR)
        assert editor.captured is False
        assert editor.token is None
        assert editor.error == "Settings file not found"
        assert snapshot.unreadable_targets == [TargetName.EDITOR]

    def test_all_unreadable_raises(self, targets):
        for target in targets:
            target.read_error = "boom"

        with pytest.raises(SnapshotFailed) as exc_info:
            SnapshotStore(targets).capture()

        assert len(exc_info.value.details) == 3
        assert "System Environment: boom" in exc_info.value.details

    def test_capture_does_not_write(self, targets, journal):
        SnapshotStore(targets).capture()
        assert journal == []


class TestRestore:
    """Tests for writing a snapshot back."""

    def test_restore_puts_back_captured_values(self, targets):
        store = SnapshotStore(targets)
        snapshot = store.capture()
        for target in targets:
            target.write("sk-new", "https://api.new")

        report = store.restore(snapshot)

        assert report.success is True
        assert report.restored == ["env", "editor", "assistant"]
        for target in targets:
            assert target.read() == TargetValues(OLD_TOKEN, OLD_URL)

    def test_restore_absent_values_removes_keys(self, journal):
        target = FakeTarget(TargetName.ENV, "system", journal=journal)
        store = SnapshotStore([target])
        snapshot = store.capture()
        target.write("sk-new", "https://api.new")

        store.restore(snapshot)

        assert target.values == TargetValues(None, None)

    def test_restore_continues_after_failure(self, targets):
        store = SnapshotStore(targets)
        snapshot = store.capture()
        for target in targets:
            target.write("sk-new", "https://api.new")
        targets[0].write_error = "access denied"

        report = store.restore(snapshot)

        assert report.results == {"env": False, "editor": True, "assistant": True}
        assert report.failures == {"env": "access denied"}
        assert report.errors == ["System Environment: access denied"]
        assert targets[2].values == TargetValues(OLD_TOKEN, OLD_URL)

    def test_restore_skips_targets_without_baseline(self, targets):
        targets[2].read_error = "invalid JSON"
        store = SnapshotStore(targets)
        snapshot = store.capture()

        report = store.restore(snapshot)

        assert "assistant" not in report.results
        assert "invalid JSON" in report.skipped["assistant"]
        assert report.success is True
        assert "except Claude" in report.summary()

    def test_restore_skips_unknown_target(self, targets):
        store = SnapshotStore(targets[:1])
        snapshot = SnapshotSet(snapshots=[TargetSnapshot(target=TargetName.EDITOR, token="x")])

        report = store.restore(snapshot)

        assert report.results == {}
        assert "editor" in report.skipped


class TestCaptureUnexpectedErrors:
    """Errors an adapter does not translate are still local to that target."""

    def test_os_error_from_adapter_recorded_as_absent(self, targets):
        def locked():
            raise PermissionError(13, "Permission denied")

        targets[2].snapshot = locked

        snapshot = SnapshotStore(targets).capture()

        assert snapshot.unreadable_targets == [TargetName.ASSISTANT]
        assert "Permission denied" in snapshot.get(TargetName.ASSISTANT).error
        assert snapshot.get(TargetName.ENV).captured is True

    def test_unenterable_settings_folder(self, tmp_path, monkeypatch):
        readable = tmp_path / "code.json"
        readable.write_text('{"claudeCode.environmentVariables": []}', encoding="utf-8")
        locked = tmp_path / "locked" / "settings.json"
        original_read_text = Path.read_text

        def read_text(self, *args, **kwargs):
            if self == locked:
                raise PermissionError(13, "Permission denied", str(self))
            return original_read_text(self, *args, **kwargs)

        monkeypatch.setattr(Path, "read_text", read_text)
        store = SnapshotStore([
            EnvironmentTarget(FakeEnvironment({AUTH_TOKEN_ENV: OLD_TOKEN})),
            EditorSettingsTarget(readable),
            AssistantSettingsTarget(locked),
        ])

        snapshot = store.capture()

        assert snapshot.unreadable_targets == [TargetName.ASSISTANT]
        assert "Permission denied" in snapshot.get(TargetName.ASSISTANT).error

    def test_missing_settings_file_reason(self, tmp_path):
        store = SnapshotStore([
            EnvironmentTarget(FakeEnvironment({AUTH_TOKEN_ENV: OLD_TOKEN})),
            AssistantSettingsTarget(tmp_path / "missing.json"),
        ])

        snapshot = store.capture()

        assert "not found" in snapshot.get(TargetName.ASSISTANT).error
