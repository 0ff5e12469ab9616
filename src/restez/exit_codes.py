"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~restez.exceptions.RestezError` subclass.
Shell wrappers can inspect the exit code of ``restez call`` to tell a
rejected parameter from a broken schema without parsing stderr.

Example::

    $ restez call forum.yaml view_thread
    $ echo $?
    2   # EXIT_INVALID_USAGE -- thread_id was not supplied
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""A call was rejected by parameter validation or URL interpolation."""

EXIT_AUTH_FAILURE = 3
"""The remote API rejected the credentials (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SCHEMA_ERROR = 7
"""The schema document could not be loaded or describes a malformed tree."""

EXIT_RESOLUTION_ERROR = 8
"""A deferred attribute value failed to evaluate."""
