"""Reference dispatch capability built on :mod:`httpx`.

:class:`HttpxDispatcher` implements :class:`~restez.generator.client.Dispatcher`
for applications that do not bring their own transport.  It wraps an
:class:`httpx.Client` and layers on:

- **Attribute-driven requests** -- the endpoint's ``method`` selects the
  verb; ``headers`` and ``query`` attributes (mappings) are merged into
  every request.
- **Query parameters** -- call parameters not consumed by the path template
  are sent as the query string.
- **Dry-run mode** -- prints the request to stderr and returns a synthetic
  200 response without sending traffic.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).

Results are :class:`~restez.result.Ok` with the :class:`httpx.Response` for
status codes below 400, and :class:`~restez.result.Err` with a
:class:`~restez.exceptions.DispatchError` otherwise.

Recognised per-call options: ``headers``, ``json``, ``content``, ``data``,
``timeout``.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional, Union

import httpx

from restez.exceptions import DispatchError
from restez.generator.client import Dispatcher
from restez.generator.template import PatternLike, required_params
from restez.models import RequestConfig
from restez.output import get_output
from restez.result import Err, Ok

logger = logging.getLogger(__name__)

_BODY_OPTIONS = ("json", "content", "data")


class HttpxDispatcher(Dispatcher):
    """Dispatch generated client calls over HTTP.

    Can be used directly or as a context manager; in the latter case an
    internally created :class:`httpx.Client` is closed on exit.

    Args:
        client: An existing :class:`httpx.Client` to send requests with.
            When ``None``, one is created from *request*.
        request: Timeout, SSL verification and retry settings.
        dry_run: When ``True``, requests are printed to stderr and a
            synthetic 200 response is returned without network I/O.
        parameter_pattern: Placeholder syntax of the path templates, used to
            tell path parameters from query parameters.

    Example::

        with HttpxDispatcher() as dispatcher:
            client = schema.client(dispatcher)
            response = client.view_thread({"thread_id": 7}).unwrap()
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        request: Optional[RequestConfig] = None,
        dry_run: bool = False,
        parameter_pattern: PatternLike = None,
    ) -> None:
        self._config = request or RequestConfig()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
        )
        self._dry_run = dry_run
        self._pattern = parameter_pattern

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpxDispatcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Dispatcher interface
    # ------------------------------------------------------------------ #

    def endpoint(
        self,
        id: str,
        attributes: dict[str, Any],
        url: str,
        params: dict[str, Any],
        options: dict[str, Any],
    ) -> Union[Ok[httpx.Response], Err[DispatchError]]:
        """Send the request for endpoint *id* and map the outcome to a result."""
        method = str(attributes.get("method", "GET")).upper()

        headers: dict[str, str] = {"Accept": "application/json"}
        headers.update(_string_mapping(attributes.get("headers")))
        headers.update(_string_mapping(options.get("headers")))

        path_params = required_params(attributes.get("path_template", ""), self._pattern)
        query: dict[str, Any] = dict(attributes.get("query") or {})
        query.update(
            {k: v for k, v in params.items() if k not in path_params and v is not None}
        )

        body = {k: options[k] for k in _BODY_OPTIONS if options.get(k) is not None}

        if self._dry_run:
            return Ok(self._print_dry_run(method, url, headers, query, body))

        try:
            response = self._execute_with_retry(
                method, url, headers, query, body, options.get("timeout")
            )
        except httpx.TransportError as exc:
            return Err(
                DispatchError(
                    f"{id}: connection failed after "
                    f"{self._config.max_retries + 1} attempt(s): {exc}"
                )
            )

        if response.status_code >= 400:
            return Err(_response_error(id, response))
        return Ok(response)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _execute_with_retry(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        query: dict[str, Any],
        body: dict[str, Any],
        timeout: Optional[float],
    ) -> httpx.Response:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        The last network error is re-raised once retries are exhausted.
        """
        max_retries = self._config.max_retries

        kwargs: dict[str, Any] = {
            "method": method,
            "url": url,
            "headers": headers,
            "params": query,
            **body,
        }
        if timeout is not None:
            kwargs["timeout"] = timeout

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(**kwargs)
            except httpx.TransportError as exc:
                if attempt >= max_retries:
                    raise
                delay = 2 ** attempt
                logger.debug(
                    "Connection error: %s, retrying in %ss (attempt %d/%d)",
                    exc, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                continue

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                continue

            return response

        raise AssertionError("unreachable")  # pragma: no cover

    def _print_dry_run(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        query: dict[str, Any],
        body: dict[str, Any],
    ) -> httpx.Response:
        """Print request details to stderr and return a synthetic 200 response."""
        output = get_output()
        output.info(f"[dry-run] {method} {url}")

        for key, value in headers.items():
            output.info(f"  Header: {key}: {value}")

        for key, value in query.items():
            output.info(f"  Param: {key}={value}")

        for kind, value in body.items():
            rendered = json.dumps(value, indent=2) if kind != "content" else value
            output.info(f"  Body ({kind}): {rendered}")

        return httpx.Response(
            status_code=200,
            headers={"content-type": "application/json"},
            json={"dry_run": True, "message": "Request was not sent"},
            request=httpx.Request(method=method, url=url),
        )


def _string_mapping(value: Any) -> dict[str, str]:
    if not value:
        return {}
    return {str(k): str(v) for k, v in dict(value).items()}


def _response_error(endpoint_id: str, response: httpx.Response) -> DispatchError:
    """Build a :class:`DispatchError` describing an error response."""
    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except ValueError:
        msg = response.text[:200] if response.text else ""

    prefix = f"{endpoint_id}: HTTP {response.status_code}"
    return DispatchError(
        f"{prefix}: {msg}" if msg else prefix,
        status_code=response.status_code,
        response=response,
    )
