"""Shared test fixtures for restez.

Provides reusable fixtures for building schema trees, recording dispatch
calls, isolating configuration, managing output state, and running CLI
commands.  These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from restez.generator import Dispatcher
from restez.models import SchemaTree
from restez.output import OutputFormat, OutputManager, reset_output, set_output
from restez.result import Ok
from restez.schema import SchemaBuilder


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def svc_tree() -> SchemaTree:
    """Root ``https://svc.com`` with ``api_key="K"``, route ``forum``, endpoint ``view_thread``."""
    builder = SchemaBuilder("https://svc.com", api_key="K")
    with builder.route("forum"):
        builder.endpoint("{thread_id}", "view_thread")
    return builder.build()


@pytest.fixture
def forum_tree() -> SchemaTree:
    """A richer forum API with nested routes, overrides and several methods."""
    builder = SchemaBuilder("https://svc.com", api_key="K", version=1)
    with builder.route("forum", section="community"):
        builder.endpoint("", "list_threads")
        builder.endpoint("{thread_id}", "view_thread")
        with builder.route("{thread_id}/post", version=2):
            builder.endpoint("", "create_post", method="POST")
            builder.endpoint("{post_id}", "delete_post", method="DELETE", version=3)
    with builder.route("users"):
        builder.endpoint("{user_id}", "view_user", section="people")
    return builder.build()


@pytest.fixture
def forum_yaml() -> Path:
    """Path to the YAML document describing the forum API."""
    return FIXTURES_DIR / "forum.yaml"


# ---------------------------------------------------------------------------
# Dispatch fixtures
# ---------------------------------------------------------------------------


class RecordingDispatcher(Dispatcher):
    """Dispatcher that records every call and returns ``Ok(url)``.

    ``rejected`` holds parameter names :meth:`validate_param` refuses.
    """

    def __init__(self, rejected: frozenset[str] = frozenset()) -> None:
        self.calls: list[tuple[str, dict[str, Any], str, dict[str, Any], dict[str, Any]]] = []
        self.validated: list[str] = []
        self.rejected = rejected

    def endpoint(self, id, attributes, url, params, options):  # noqa: ANN001, ANN201
        self.calls.append((id, attributes, url, params, options))
        return Ok(url)

    def validate_param(self, key: str, value: Any) -> bool:
        self.validated.append(key)
        return key not in self.rejected


@pytest.fixture
def recorder() -> RecordingDispatcher:
    return RecordingDispatcher()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Clears all RESTEZ_* environment variables and changes the working
    directory to tmp_path so no ``restez.json`` leaks in.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in [
        "RESTEZ_PARAMETER_PATTERN",
        "RESTEZ_BASE_URL",
        "RESTEZ_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
