"""Helpers for the auth variables stored in editor and assistant settings.

The editor keeps its variables as a list of ``{"name": ..., "value": ...}``
objects, the assistant as a plain ``name -> value`` mapping. Both are read
with the same precedence: the auth token, then the auth key, then the legacy
API key.
"""

from typing import Any, Dict, List, Optional

from utils.constants import AUTH_KEY_ENV, AUTH_TOKEN_ENV, BASE_URL_ENV, LEGACY_AUTH_ENV

AUTH_NAMES = (AUTH_TOKEN_ENV, AUTH_KEY_ENV, LEGACY_AUTH_ENV)


def get_env_array_value(entries: List[Any], name: str) -> Optional[str]:
    for entry in entries:
        if isinstance(entry, dict) and entry.get("name") == name:
            value = entry.get("value")
            return value if isinstance(value, str) else None
    return None


def remove_env_array_key(entries: List[Any], name: str) -> None:
    entries[:] = [
        entry for entry in entries
        if not (isinstance(entry, dict) and entry.get("name") == name)
    ]


def upsert_env_array(entries: List[Any], name: str, value: Optional[str]) -> None:
    """Set ``name`` to ``value``, dropping duplicates; ``None`` removes it."""
    remove_env_array_key(entries, name)
    if value is not None:
        entries.append({"name": name, "value": value})


def read_auth_from_env_array(entries: List[Any]) -> Optional[str]:
    for name in AUTH_NAMES:
        value = get_env_array_value(entries, name)
        if value is not None:
            return value
    return None


def apply_auth_to_env_array(
    entries: List[Any],
    token: Optional[str],
    base_url: Optional[str]
) -> None:
    """Write the token under the auth-token name and remove the other auth names."""
    upsert_env_array(entries, AUTH_TOKEN_ENV, token)
    upsert_env_array(entries, BASE_URL_ENV, base_url)
    remove_env_array_key(entries, AUTH_KEY_ENV)
    remove_env_array_key(entries, LEGACY_AUTH_ENV)


def read_auth_from_env_object(env: Dict[str, Any]) -> Optional[str]:
    for name in AUTH_NAMES:
        value = env.get(name)
        if isinstance(value, str):
            return value
    return None


def apply_auth_to_env_object(
    env: Dict[str, Any],
    token: Optional[str],
    base_url: Optional[str]
) -> None:
    for name, value in ((AUTH_TOKEN_ENV, token), (BASE_URL_ENV, base_url)):
        if value is None:
            env.pop(name, None)
        else:
            env[name] = value
    env.pop(AUTH_KEY_ENV, None)
    env.pop(LEGACY_AUTH_ENV, None)
