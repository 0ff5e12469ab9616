"""Tests for restez.config -- project config, precedence, deferred sources."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from restez.config import load_project_config, read_source, resolve_settings
from restez.exceptions import ConfigError
from restez.models import DEFAULT_PARAMETER_PATTERN


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_missing_file(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_loads_object(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "restez.json", {"base_url": "http://localhost"})
        assert load_project_config() == {"base_url": "http://localhost"}

    def test_explicit_directory(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "proj" / "restez.json", {"parameter_pattern": r":(\w+)"})
        assert load_project_config(tmp_path / "proj") == {"parameter_pattern": r":(\w+)"}

    def test_invalid_json(self, isolated_config: Path) -> None:
        (isolated_config / "restez.json").write_text("{oops")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()

    def test_not_an_object(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "restez.json", ["a"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveSettings:
    def test_defaults(self, isolated_config: Path) -> None:
        settings = resolve_settings()
        assert settings.parameter_pattern == DEFAULT_PARAMETER_PATTERN
        assert settings.base_url is None
        assert settings.request.timeout == 30
        assert settings.request.max_retries == 3

    def test_project_config_over_defaults(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "restez.json",
            {"base_url": "http://project", "request": {"timeout": 5, "max_retries": 0}},
        )
        settings = resolve_settings()
        assert settings.base_url == "http://project"
        assert settings.request.timeout == 5
        assert settings.request.max_retries == 0

    def test_env_over_project_config(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(
            isolated_config / "restez.json",
            {"base_url": "http://project", "request": {"timeout": 5}},
        )
        monkeypatch.setenv("RESTEZ_BASE_URL", "http://env")
        monkeypatch.setenv("RESTEZ_TIMEOUT", "2.5")
        monkeypatch.setenv("RESTEZ_PARAMETER_PATTERN", r"<(\w+)>")

        settings = resolve_settings()
        assert settings.base_url == "http://env"
        assert settings.request.timeout == 2.5
        assert settings.parameter_pattern == r"<(\w+)>"

    def test_cli_over_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESTEZ_BASE_URL", "http://env")
        monkeypatch.setenv("RESTEZ_PARAMETER_PATTERN", r"<(\w+)>")

        settings = resolve_settings(cli_pattern=r":(\w+)", cli_base_url="http://cli")
        assert settings.base_url == "http://cli"
        assert settings.parameter_pattern == r":(\w+)"

    def test_invalid_timeout(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESTEZ_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="Invalid settings"):
            resolve_settings()

    def test_invalid_pattern(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="capture group"):
            resolve_settings(cli_pattern=r"\{\w+\}")


# ---------------------------------------------------------------------------
# Deferred sources
# ---------------------------------------------------------------------------


class TestReadSource:
    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESTEZ_TEST_TOKEN", "abc")
        assert read_source({"kind": "env", "name": "RESTEZ_TEST_TOKEN"}) == "abc"

    def test_env_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RESTEZ_TEST_TOKEN", raising=False)
        source = {"kind": "env", "name": "RESTEZ_TEST_TOKEN", "default": "fallback"}
        assert read_source(source) == "fallback"

    def test_env_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RESTEZ_TEST_TOKEN", raising=False)
        with pytest.raises(ConfigError, match="'RESTEZ_TEST_TOKEN' is not set"):
            read_source({"kind": "env", "name": "RESTEZ_TEST_TOKEN"})

    def test_file(self, tmp_path: Path) -> None:
        path = tmp_path / "token"
        path.write_text("  secret\n")
        assert read_source({"kind": "file", "path": str(path)}) == "secret"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Source file not found"):
            read_source({"kind": "file", "path": str(tmp_path / "nope")})

    def test_unknown_kind(self) -> None:
        with pytest.raises(ConfigError, match="Unknown source kind"):
            read_source({"kind": "vault"})
