"""Configuration loading for spauth.

This module covers the three places configuration comes from:

* **Environment** -- :func:`load_settings` builds a
  :class:`~spauth.models.BrokerSettings` from ``SPAUTH_*`` variables.
  Proxy variables (``HTTP_PROXY``, ``HTTPS_PROXY``, ``NO_PROXY``) are not read
  here; httpx honours them directly because clients are created with
  ``trust_env=True``.
* **Descriptor files** -- :func:`load_descriptor_file` reads the plain JSON
  credential descriptor consumed by
  :class:`~spauth.auth.file_config.FileConfigResolver`.
* **Secret indirection** -- :func:`resolve_credential` and
  :func:`resolve_descriptor_secrets` let a descriptor reference a secret as
  ``env:VAR_NAME`` or ``file:/path`` instead of embedding it.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from spauth.exceptions import ConfigurationError
from spauth.models import BrokerSettings

SECRET_KEYS = (
    "clientSecret",
    "certPassword",
    "certificatePassword",
    "password",
)
"""Descriptor keys whose values may use ``env:`` / ``file:`` indirection."""

_ENV_SETTINGS = {
    "SPAUTH_HTTP_TIMEOUT": "http_timeout",
    "SPAUTH_REDIRECT_PORT": "redirect_port",
    "SPAUTH_INTERACTIVE_TIMEOUT": "interactive_timeout",
    "SPAUTH_VERIFY_SSL": "verify_ssl",
    "SPAUTH_CONFIG_PATH": "config_path",
}


# --- Settings ---


def load_settings(environ: Optional[Mapping[str, str]] = None) -> BrokerSettings:
    """Build broker settings from ``SPAUTH_*`` environment variables.

    ``SPAUTH_NO_BROWSER`` (any non-empty value) turns off automatic browser
    launching for headless hosts.

    Args:
        environ: Mapping to read instead of :data:`os.environ`.

    Returns:
        The validated :class:`~spauth.models.BrokerSettings`.

    Raises:
        ConfigurationError: If a variable holds a value that fails
            validation (e.g. a non-numeric port).
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for var, field in _ENV_SETTINGS.items():
        raw = env.get(var)
        if raw:
            values[field] = raw
    if env.get("SPAUTH_NO_BROWSER"):
        values["open_browser"] = False
    try:
        return BrokerSettings.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid SPAUTH_* environment settings: {exc}") from exc


# --- Descriptor files ---


def load_descriptor_file(path: str | Path) -> dict[str, Any]:
    """Load a JSON credential descriptor from disk.

    Args:
        path: File path; ``~`` is expanded.

    Returns:
        The descriptor mapping, camelCase keys as written.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not valid
            JSON, or does not contain a JSON object.
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise ConfigurationError(f"Credential config not found at {file_path}")
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Invalid credential config at {file_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Credential config at {file_path} must contain a JSON object"
        )
    return data


# --- Credential resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a secret reference to its value.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Any other string is returned unchanged (a literal secret).

    Raises:
        ConfigurationError: If the referenced variable or file is missing.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc

    return source


def resolve_descriptor_secrets(descriptor: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *descriptor* with secret references resolved.

    Only the keys in :data:`SECRET_KEYS` are inspected; the input mapping is
    never mutated.
    """
    resolved = dict(descriptor)
    for key in SECRET_KEYS:
        value = resolved.get(key)
        if isinstance(value, str):
            resolved[key] = resolve_credential(value)
    return resolved
