"""Settings precedence resolution and deferred-source reading.

This module handles the small amount of configuration restez needs:

* **Project config** -- an optional ``./restez.json`` file holding
  :class:`~restez.models.Settings` fields.  See :func:`load_project_config`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  ``RESTEZ_*`` environment variables, the project config, and defaults into
  the effective :class:`~restez.models.Settings`.
* **Source reading** -- :func:`read_source` reads the ``$env`` / ``$file``
  references that schema documents use for values which must be looked up
  at resolution time rather than at load time.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

import pydantic

from restez.exceptions import ConfigError
from restez.generator.template import compile_pattern
from restez.models import Settings

_PROJECT_CONFIG_FILENAME = "restez.json"

ENV_PARAMETER_PATTERN = "RESTEZ_PARAMETER_PATTERN"
ENV_BASE_URL = "RESTEZ_BASE_URL"
ENV_TIMEOUT = "RESTEZ_TIMEOUT"


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``restez.json``.

    Args:
        directory: Directory to look in. Defaults to the current working
            directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_settings(
    cli_pattern: Optional[str] = None,
    cli_base_url: Optional[str] = None,
) -> Settings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_pattern``, ``cli_base_url``)
        2. Environment variables (``RESTEZ_PARAMETER_PATTERN``,
           ``RESTEZ_BASE_URL``, ``RESTEZ_TIMEOUT``)
        3. Project config (``./restez.json``)
        4. Defaults

    Returns:
        The effective :class:`~restez.models.Settings`.

    Raises:
        ConfigError: If the project config or an environment override holds
            an invalid value.
    """
    # 4 + 3. Defaults overlaid with the project file.
    data: dict[str, Any] = load_project_config() or {}
    request: dict[str, Any] = dict(data.get("request") or {})

    # 2. Environment variables
    env_pattern = os.environ.get(ENV_PARAMETER_PATTERN)
    if env_pattern:
        data["parameter_pattern"] = env_pattern
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        data["base_url"] = env_base_url
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        request["timeout"] = env_timeout

    # 1. CLI flags (highest precedence)
    if cli_pattern is not None:
        data["parameter_pattern"] = cli_pattern
    if cli_base_url is not None:
        data["base_url"] = cli_base_url

    data["request"] = request
    try:
        settings = Settings.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc

    compile_pattern(settings.parameter_pattern)
    return settings


# --- Deferred source reading ---


def read_source(environment: dict[str, Any]) -> Any:
    """Read a value described by a source environment.

    Supported environments (as built by :mod:`restez.schema.loader`):
        - ``{"kind": "env", "name": VAR}`` -- reads ``os.environ[VAR]``;
          an optional ``"default"`` entry is returned when ``VAR`` is unset.
        - ``{"kind": "file", "path": PATH}`` -- reads the file, stripped of
          surrounding whitespace.

    Raises:
        ConfigError: If the variable is unset without a default, the file
            cannot be read, or the kind is unknown.
    """
    kind = environment.get("kind")

    if kind == "env":
        name = environment["name"]
        value = os.environ.get(name)
        if value is not None:
            return value
        if "default" in environment:
            return environment["default"]
        raise ConfigError(f"Environment variable '{name}' is not set")

    if kind == "file":
        path = Path(environment["path"]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Source file not found: {path}")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read source file {path}: {exc}") from exc

    raise ConfigError(f"Unknown source kind: {kind!r}")
