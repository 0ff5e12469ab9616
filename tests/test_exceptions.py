"""Tests for restez.exceptions and restez.result -- exit codes and Ok/Err values."""

from __future__ import annotations

import pytest

from restez.exceptions import (
    AuthoringError,
    ConfigError,
    DispatchError,
    InterpolationError,
    ResolutionError,
    RestezError,
    SchemaLoadError,
    ValidationError,
)
from restez.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_RESOLUTION_ERROR,
    EXIT_SCHEMA_ERROR,
    EXIT_SERVER_ERROR,
)
from restez.result import Err, Ok


class TestExitCodes:
    @pytest.mark.parametrize(
        "error, code",
        [
            (RestezError("x"), EXIT_GENERIC_FAILURE),
            (ConfigError("x"), EXIT_GENERIC_FAILURE),
            (AuthoringError("x"), EXIT_SCHEMA_ERROR),
            (SchemaLoadError("x"), EXIT_SCHEMA_ERROR),
            (ResolutionError("ep", "k", KeyError("k")), EXIT_RESOLUTION_ERROR),
            (ValidationError("ep", "k", "is required"), EXIT_INVALID_USAGE),
            (InterpolationError("/{k}", "k"), EXIT_INVALID_USAGE),
        ],
    )
    def test_class_exit_codes(self, error: RestezError, code: int) -> None:
        assert error.exit_code == code

    def test_override(self) -> None:
        assert RestezError("x", exit_code=42).exit_code == 42

    @pytest.mark.parametrize(
        "status, code",
        [
            (None, EXIT_CONNECTION_ERROR),
            (400, EXIT_GENERIC_FAILURE),
            (401, EXIT_AUTH_FAILURE),
            (403, EXIT_AUTH_FAILURE),
            (404, EXIT_NOT_FOUND),
            (409, EXIT_GENERIC_FAILURE),
            (500, EXIT_SERVER_ERROR),
            (504, EXIT_SERVER_ERROR),
        ],
    )
    def test_dispatch_error_by_status(self, status, code: int) -> None:
        assert DispatchError("x", status_code=status).exit_code == code


class TestMessages:
    def test_validation_error(self) -> None:
        err = ValidationError("view_thread", "thread_id", "is required")
        assert str(err) == "view_thread: parameter 'thread_id' is required"

    def test_interpolation_error(self) -> None:
        err = InterpolationError("/forum/{thread_id}", "thread_id")
        assert str(err) == "Missing value for placeholder 'thread_id' in '/forum/{thread_id}'"


class TestResult:
    def test_ok(self) -> None:
        result = Ok(5)
        assert result.is_ok
        assert result.unwrap() == 5

    def test_err(self) -> None:
        error = ConfigError("broken")
        result = Err(error)
        assert not result.is_ok
        with pytest.raises(ConfigError, match="broken"):
            result.unwrap()

    def test_equality(self) -> None:
        assert Ok("a") == Ok("a")
        assert Ok("a") != Ok("b")
