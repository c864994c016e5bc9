"""Input validation utilities for VarSwitch."""

import re
from typing import Optional, Tuple
from urllib.parse import urlparse

from utils.constants import PROFILE_NAME_MAX_LENGTH


def validate_url(url: str) -> Tuple[bool, str]:
    """
    Validate an HTTP/HTTPS base URL.

    Args:
        url: URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or url.strip() == "":
        return False, "URL cannot be empty"

    try:
        result = urlparse(url.strip())

        if not result.scheme:
            return False, "URL must have a scheme (http:// or https://)"

        if not result.netloc:
            return False, "URL must have a host"

        if result.scheme not in ["http", "https"]:
            return False, f"URL scheme must be http or https, got: {result.scheme}"

        return True, ""

    except ValueError as e:
        return False, f"Invalid URL: {str(e)}"


def validate_token(token: str) -> Tuple[bool, str]:
    """
    Validate an API token.

    Args:
        token: Token to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not token or token.strip() == "":
        return False, "Token cannot be empty"

    if re.search(r"\s", token.strip()):
        return False, "Token cannot contain whitespace"

    return True, ""


def validate_profile_name(name: str) -> Tuple[bool, str]:
    """
    Validate a profile display name.

    Args:
        name: Profile name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not name or name.strip() == "":
        return False, "Profile name is required"

    if len(name.strip()) > PROFILE_NAME_MAX_LENGTH:
        return False, f"Profile name too long (max {PROFILE_NAME_MAX_LENGTH} characters)"

    return True, ""


def normalize_base_url(url: str) -> str:
    """Trim whitespace and trailing slashes from a base URL."""
    return url.strip().rstrip("/")


def mask_token(token: Optional[str]) -> str:
    """
    Mask a token for display and logging.

    Keeps the first and last four characters of long tokens.

    Args:
        token: Token to mask

    Returns:
        Masked token, or "--" when empty
    """
    if not token:
        return "--"
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}****{token[-4:]}"
