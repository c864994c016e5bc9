"""Tests for the pure helpers behind the status panel and profile dialog."""

import logging

import pytest

from models.switch import LocationStatus
from ui.components.status_panel import format_location, truncate_url
from ui.dialogs.profile_dialog import validate_profile_input
from utils.logger import RedactingFilter, redact


class TestStatusFormatting:
    """Tests for target card text."""

    def test_truncate_url(self):
        assert truncate_url("") == "--"
        assert truncate_url("https://api.example.com") == "https://api.example.com"
        long_url = "https://" + "a" * 60
        assert truncate_url(long_url) == long_url[:37] + "..."
        assert len(truncate_url(long_url)) == 40

    def test_format_location(self):
        assert format_location(None) == ("Unreadable", "Unreadable")
        assert format_location(LocationStatus("", "")) == ("--", "--")
        assert format_location(LocationStatus("sk-ant-secret-1234", "https://api")) == (
            "sk-a****1234",
            "https://api"
        )


class TestValidateProfileInput:
    """Tests for profile dialog validation."""

    def test_valid(self):
        assert validate_profile_input("Prod", "sk-1", "https://api", ["Dev"]) == (True, "")

    def test_duplicate_name(self):
        is_valid, error = validate_profile_input("dev", "sk-1", "https://api", ["Dev"])
        assert is_valid is False
        assert "already exists" in error

    def test_editing_keeps_own_name(self):
        is_valid, _ = validate_profile_input("Dev", "sk-1", "https://api", ["Dev"], original_name="Dev")
        assert is_valid is True

    @pytest.mark.parametrize("name,token,url,fragment", [
        ("", "sk", "https://api", "required"),
        ("Prod", "", "https://api", "empty"),
        ("Prod", "sk", "ftp://api", "http"),
    ])
    def test_field_errors(self, name, token, url, fragment):
        is_valid, error = validate_profile_input(name, token, url, [])
        assert is_valid is False
        assert fragment in error.lower()


class TestRedaction:
    """Tests for keeping tokens out of the logs."""

    def test_api_key_masked(self):
        assert redact("token sk-ant-api03-abcdefgh1234") == "token sk-ant-****1234"

    def test_bearer_masked(self):
        assert redact("Authorization: Bearer abc.def") == "Authorization: Bearer ****"

    def test_plain_text_untouched(self):
        assert redact("Switched to Prod") == "Switched to Prod"

    def test_filter_rewrites_record(self):
        record = logging.LogRecord(
            "test", logging.INFO, __file__, 1, "key=%s", ("sk-live-0123456789abcd",), None
        )

        assert RedactingFilter().filter(record) is True
        assert record.getMessage() == "key=sk-live****abcd"
