"""Exception hierarchy for restez.

All exceptions inherit from :class:`RestezError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`restez.exit_codes`.

Two propagation styles coexist:

* **Compile-time errors** (:class:`AuthoringError`, :class:`SchemaLoadError`,
  :class:`ResolutionError`, :class:`ConfigError`) are *raised* and abort the
  whole operation -- a broken tree never yields a partial endpoint table.
* **Per-call errors** (:class:`ValidationError`, :class:`InterpolationError`,
  :class:`DispatchError`) are *returned* inside an :class:`~restez.result.Err`
  by generated client callables.  They are still exception instances so that
  :meth:`~restez.result.Err.unwrap` can raise them.

Subclass hierarchy::

    RestezError (exit 1)
    +-- ConfigError          (exit 1)
    +-- AuthoringError       (exit 7)
    +-- SchemaLoadError      (exit 7)
    +-- ResolutionError      (exit 8)
    +-- ValidationError      (exit 2)
    +-- InterpolationError   (exit 2)
    +-- DispatchError        (exit 1/3/4/5/6 depending on the failure)
"""

from __future__ import annotations

from typing import Any, Optional

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


class RestezError(Exception):
    """Base exception for all restez errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`restez.exit_codes`. The CLI entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(RestezError):
    """Raised for configuration problems (invalid project config, bad patterns, unset sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthoringError(RestezError):
    """Raised when a schema tree is malformed.

    Examples are an endpoint with an empty id, two endpoints sharing an id,
    or an attribute using a reserved key. Fatal to the whole compile.
    """

    exit_code = EXIT_SCHEMA_ERROR


class SchemaLoadError(RestezError):
    """Raised when a schema document cannot be fetched, read, or parsed."""

    exit_code = EXIT_SCHEMA_ERROR


class ResolutionError(RestezError):
    """Raised when a deferred attribute fails to evaluate.

    Resolution leaves the tree untouched, so callers may retry the
    materialization later (e.g. after exporting a missing variable).

    Args:
        endpoint_id: Id of the endpoint whose attribute failed.
        key: The failing attribute key.
        cause: The original exception raised by the environment or
            expression callable.
    """

    exit_code = EXIT_RESOLUTION_ERROR

    def __init__(self, endpoint_id: str, key: str, cause: BaseException):
        super().__init__(
            f"Cannot resolve attribute '{key}' of endpoint '{endpoint_id}': {cause}"
        )
        self.endpoint_id = endpoint_id
        self.key = key
        self.cause = cause


class ValidationError(RestezError):
    """A call was rejected before dispatch.

    Either a parameter required by the path template is absent, or the
    configured validator rejected a supplied parameter.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, endpoint_id: str, key: str, reason: str):
        super().__init__(f"{endpoint_id}: parameter '{key}' {reason}")
        self.endpoint_id = endpoint_id
        self.key = key
        self.reason = reason


class InterpolationError(RestezError):
    """A placeholder in a URL template had no value to substitute."""

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, template: str, name: str):
        super().__init__(f"Missing value for placeholder '{name}' in '{template}'")
        self.template = template
        self.name = name


class DispatchError(RestezError):
    """Failure reported by a dispatch capability.

    The core never creates or inspects these; transports such as
    :class:`~restez.transport.http.HttpxDispatcher` return them and generated
    callables pass them through unchanged.  The exit code is derived from
    ``status_code`` when one is present.

    Args:
        message: Description of the failure.
        status_code: HTTP status of the failed response, or ``None`` for
            network-level failures.
        response: The transport's response object, when there is one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Any = None,
    ):
        super().__init__(message, exit_code=_status_exit_code(status_code))
        self.status_code = status_code
        self.response = response


def _status_exit_code(status_code: Optional[int]) -> int:
    if status_code is None:
        return EXIT_CONNECTION_ERROR
    if status_code in (401, 403):
        return EXIT_AUTH_FAILURE
    if status_code == 404:
        return EXIT_NOT_FOUND
    if status_code >= 500:
        return EXIT_SERVER_ERROR
    return EXIT_GENERIC_FAILURE
