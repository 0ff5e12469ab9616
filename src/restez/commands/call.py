"""Call command -- invoke one endpoint of a schema over HTTP.

``restez call SCHEMA ENDPOINT_ID`` compiles the schema, generates a client
on :class:`~restez.transport.http.HttpxDispatcher`, and calls the endpoint.
The HTTP status goes to stderr and the response body to stdout.  Failed
calls exit with the code of the returned error (see :mod:`restez.exit_codes`).
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import typer

from restez.commands.inspect import (
    command_settings,
    exit_on_error,
    load_compiled_schema,
    require_endpoint,
)
from restez.exceptions import RestezError
from restez.exit_codes import EXIT_INVALID_USAGE
from restez.output import format_response, info
from restez.transport import HttpxDispatcher


def call_command(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema file, URL, '-', or module:attribute."),
    endpoint_id: str = typer.Argument(..., help="Endpoint id."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Parameter as key=value (repeatable)."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header as 'Name: Value' (repeatable)."
    ),
    body: Optional[str] = typer.Option(
        None, "--body", "-d", help="Request body; sent as JSON when it parses."
    ),
) -> None:
    """Call an endpoint and print the response.

    Path parameters fill the endpoint's template; any other parameters are
    sent as the query string.

    Example::

        restez call forum.yaml view_thread -p thread_id=7
        restez --dry-run call forum.yaml create_post -p thread_id=7 --body '{"text": "hi"}'
    """
    obj = ctx.obj or {}
    with exit_on_error():
        params = _parse_pairs(param or [], "=", "--param")
        options: dict[str, Any] = {"headers": _parse_pairs(header or [], ":", "--header")}
        if body is not None:
            options.update(_body_option(body))

        settings = command_settings(ctx)
        compiled = load_compiled_schema(schema, settings)
        require_endpoint(compiled, endpoint_id)

        with HttpxDispatcher(
            request=settings.request,
            dry_run=obj.get("dry_run", False),
            parameter_pattern=settings.parameter_pattern,
        ) as dispatcher:
            client = compiled.client(dispatcher, parameter_pattern=settings.parameter_pattern)
            response: httpx.Response = client[endpoint_id](params, options).unwrap()

    info(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())
    data = _response_data(response)
    if data is not None:
        format_response(data)


def _parse_pairs(items: list[str], separator: str, flag: str) -> dict[str, str]:
    """Split ``key<separator>value`` items into a mapping."""
    pairs: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition(separator)
        if not sep or not key.strip():
            raise RestezError(
                f"Invalid {flag} value '{item}': expected key{separator}value",
                exit_code=EXIT_INVALID_USAGE,
            )
        pairs[key.strip()] = value.strip() if separator == ":" else value
    return pairs


def _body_option(body: str) -> dict[str, Any]:
    try:
        return {"json": json.loads(body)}
    except json.JSONDecodeError:
        return {"content": body}


def _response_data(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
