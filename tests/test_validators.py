"""Unit tests for validators and auth_env helpers."""

import pytest

from utils.auth_env import (
    apply_auth_to_env_array,
    apply_auth_to_env_object,
    get_env_array_value,
    read_auth_from_env_array,
    read_auth_from_env_object,
    upsert_env_array,
)
from utils.constants import AUTH_KEY_ENV, AUTH_TOKEN_ENV, BASE_URL_ENV, LEGACY_AUTH_ENV
from utils.validators import (
    mask_token,
    normalize_base_url,
    validate_profile_name,
    validate_token,
    validate_url,
)


class TestValidateURL:
    """Tests for URL validation."""

    def test_valid_http_url(self):
        """Test validation of HTTP URL."""
        is_valid, error = validate_url("http://localhost:3000")
        assert is_valid is True
        assert error == ""

    def test_valid_https_url(self):
        """Test validation of HTTPS URL."""
        is_valid, error = validate_url("https://api.anthropic.com")
        assert is_valid is True
        assert error == ""

    def test_empty_url(self):
        """Test validation of empty URL."""
        is_valid, error = validate_url("   ")
        assert is_valid is False
        assert "empty" in error.lower()

    def test_missing_scheme(self):
        """Test validation of URL without scheme."""
        is_valid, error = validate_url("api.example.com")
        assert is_valid is False
        assert "scheme" in error.lower()

    def test_invalid_scheme(self):
        """Test validation of URL with invalid scheme."""
        is_valid, error = validate_url("ftp://example.com")
        assert is_valid is False
        assert "http" in error.lower()

    def test_missing_host(self):
        """Test validation of URL without host."""
        is_valid, error = validate_url("https://")
        assert is_valid is False
        assert "host" in error.lower()


class TestValidateToken:
    """Tests for token validation."""

    def test_valid_token(self):
        """Test validation of a normal token."""
        assert validate_token("sk-ant-123") == (True, "")

    def test_empty_token(self):
        """Test validation of empty token."""
        is_valid, error = validate_token("")
        assert is_valid is False
        assert "empty" in error.lower()

    def test_token_with_whitespace(self):
        """Test that inner whitespace is rejected."""
        is_valid, error = validate_token("sk ant")
        assert is_valid is False
        assert "whitespace" in error.lower()


class TestValidateProfileName:
    """Tests for profile name validation."""

    def test_valid_name(self):
        assert validate_profile_name("Prod") == (True, "")

    def test_blank_name(self):
        is_valid, error = validate_profile_name("  ")
        assert is_valid is False
        assert "required" in error.lower()

    def test_too_long(self):
        is_valid, error = validate_profile_name("x" * 51)
        assert is_valid is False
        assert "too long" in error.lower()


@pytest.mark.parametrize("url,expected", [
    ("https://api.example.com/", "https://api.example.com"),
    ("  https://api.example.com//  ", "https://api.example.com"),
    ("https://api.example.com/v1", "https://api.example.com/v1"),
])
def test_normalize_base_url(url, expected):
    """Test trimming of whitespace and trailing slashes."""
    assert normalize_base_url(url) == expected


class TestMaskToken:
    """Tests for token masking."""

    def test_empty(self):
        assert mask_token(None) == "--"
        assert mask_token("") == "--"

    def test_short_token_fully_masked(self):
        assert mask_token("sk-12") == "*****"

    def test_long_token_keeps_edges(self):
        masked = mask_token("sk-ant-api03-secret-value")
        assert masked == "sk-a****alue"
        assert "secret" not in masked


class TestEnvArray:
    """Tests for the editor's name/value array helpers."""

    def test_precedence(self):
        """Auth token wins over auth key, which wins over the legacy key."""
        entries = [
            {"name": LEGACY_AUTH_ENV, "value": "legacy"},
            {"name": AUTH_KEY_ENV, "value": "key"},
        ]
        assert read_auth_from_env_array(entries) == "key"

        entries.append({"name": AUTH_TOKEN_ENV, "value": "token"})
        assert read_auth_from_env_array(entries) == "token"

    def test_ignores_malformed_entries(self):
        """Non-dict entries and non-string values are skipped."""
        entries = ["junk", {"name": BASE_URL_ENV, "value": 5}]
        assert get_env_array_value(entries, BASE_URL_ENV) is None
        assert read_auth_from_env_array(entries) is None

    def test_upsert_dedupes(self):
        entries = [
            {"name": BASE_URL_ENV, "value": "a"},
            {"name": BASE_URL_ENV, "value": "b"},
        ]
        upsert_env_array(entries, BASE_URL_ENV, "c")
        assert entries == [{"name": BASE_URL_ENV, "value": "c"}]

    def test_apply_with_none_removes_everything(self):
        entries = [
            {"name": AUTH_TOKEN_ENV, "value": "t"},
            {"name": LEGACY_AUTH_ENV, "value": "l"},
            {"name": BASE_URL_ENV, "value": "u"},
            {"name": "KEEP", "value": "1"},
        ]
        apply_auth_to_env_array(entries, None, None)
        assert entries == [{"name": "KEEP", "value": "1"}]


class TestEnvObject:
    """Tests for the assistant's env mapping helpers."""

    def test_precedence(self):
        env = {LEGACY_AUTH_ENV: "legacy", AUTH_KEY_ENV: "key"}
        assert read_auth_from_env_object(env) == "key"

    def test_non_string_values_ignored(self):
        assert read_auth_from_env_object({AUTH_TOKEN_ENV: 42}) is None

    def test_apply_removes_legacy_names(self):
        env = {AUTH_KEY_ENV: "key", LEGACY_AUTH_ENV: "legacy", "KEEP": "1"}
        apply_auth_to_env_object(env, "token", "https://api")
        assert env == {"KEEP": "1", AUTH_TOKEN_ENV: "token", BASE_URL_ENV: "https://api"}
