"""Tests for environment settings, descriptor files, and secret indirection."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from spauth.config import (
    load_descriptor_file,
    load_settings,
    resolve_credential,
    resolve_descriptor_secrets,
)
from spauth.exceptions import ConfigurationError
from spauth.exit_codes import EXIT_INVALID_CONFIG


# ------------------------------------------------------------------ #
# Settings
# ------------------------------------------------------------------ #


class TestLoadSettings:
    def test_defaults(self) -> None:
        settings = load_settings({})
        assert settings.http_timeout == 30
        assert settings.redirect_port == 5000
        assert settings.interactive_timeout == 300
        assert settings.open_browser is True
        assert settings.config_path == "./config/private.json"

    def test_overrides(self) -> None:
        settings = load_settings(
            {
                "SPAUTH_HTTP_TIMEOUT": "5.5",
                "SPAUTH_REDIRECT_PORT": "8080",
                "SPAUTH_INTERACTIVE_TIMEOUT": "60",
                "SPAUTH_VERIFY_SSL": "false",
                "SPAUTH_CONFIG_PATH": "/etc/spauth.json",
                "SPAUTH_NO_BROWSER": "1",
            }
        )
        assert settings.http_timeout == 5.5
        assert settings.redirect_port == 8080
        assert settings.interactive_timeout == 60
        assert settings.verify_ssl is False
        assert settings.config_path == "/etc/spauth.json"
        assert settings.open_browser is False

    def test_empty_values_ignored(self) -> None:
        assert load_settings({"SPAUTH_REDIRECT_PORT": ""}).redirect_port == 5000

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("SPAUTH_REDIRECT_PORT", "6001")
        assert load_settings().redirect_port == 6001

    @pytest.mark.parametrize(
        "environ",
        [
            {"SPAUTH_REDIRECT_PORT": "not-a-port"},
            {"SPAUTH_REDIRECT_PORT": "70000"},
            {"SPAUTH_HTTP_TIMEOUT": "-1"},
        ],
    )
    def test_invalid_values(self, environ) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(environ)
        assert exc_info.value.exit_code == EXIT_INVALID_CONFIG


# ------------------------------------------------------------------ #
# Descriptor files
# ------------------------------------------------------------------ #


class TestLoadDescriptorFile:
    def test_loads_object(self, tmp_path: Path) -> None:
        path = tmp_path / "private.json"
        path.write_text(json.dumps({"clientId": "a", "tenantId": "t"}))
        assert load_descriptor_file(path) == {"clientId": "a", "tenantId": "t"}

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_descriptor_file(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "private.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError, match="Invalid credential config"):
            load_descriptor_file(path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "private.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError, match="JSON object"):
            load_descriptor_file(path)


# ------------------------------------------------------------------ #
# Secret indirection
# ------------------------------------------------------------------ #


class TestResolveCredential:
    def test_literal(self) -> None:
        assert resolve_credential("plain-secret") == "plain-secret"

    def test_env(self, monkeypatch) -> None:
        monkeypatch.setenv("MY_SECRET", "from-env")
        assert resolve_credential("env:MY_SECRET") == "from-env"

    def test_env_missing(self, monkeypatch) -> None:
        monkeypatch.delenv("NOPE_SECRET", raising=False)
        with pytest.raises(ConfigurationError, match="NOPE_SECRET"):
            resolve_credential("env:NOPE_SECRET")

    def test_file(self, tmp_path: Path) -> None:
        path = tmp_path / "secret.txt"
        path.write_text("  from-file\n")
        assert resolve_credential(f"file:{path}") == "from-file"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'absent'}")


class TestResolveDescriptorSecrets:
    def test_only_secret_keys_resolved(self, monkeypatch) -> None:
        monkeypatch.setenv("SP_SECRET", "resolved")
        descriptor = {
            "clientId": "env:NOT_A_SECRET_KEY",
            "clientSecret": "env:SP_SECRET",
            "certificatePassword": "literal",
        }

        resolved = resolve_descriptor_secrets(descriptor)

        assert resolved == {
            "clientId": "env:NOT_A_SECRET_KEY",
            "clientSecret": "resolved",
            "certificatePassword": "literal",
        }
        assert descriptor["clientSecret"] == "env:SP_SECRET"

    def test_non_string_values_untouched(self) -> None:
        assert resolve_descriptor_secrets({"password": None}) == {"password": None}
