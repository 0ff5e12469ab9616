"""Inspect commands -- examine a schema's endpoint table.

Provides the read-only ``restez endpoints`` and ``restez show`` commands.
Both take a ``SCHEMA`` argument, which is either a schema document (file
path, URL, or ``-`` for stdin) or a ``module:attribute`` reference to a
:class:`~restez.models.SchemaTree`, :class:`~restez.schema.builder.SchemaBuilder`
or :class:`~restez.schema.compiled.CompiledSchema` defined in Python.

The helpers :func:`load_compiled_schema` and :func:`exit_on_error` are
shared with :mod:`restez.commands.call`.
"""

from __future__ import annotations

import importlib
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import typer

from restez.config import resolve_settings
from restez.exceptions import RestezError, SchemaLoadError
from restez.exit_codes import EXIT_INVALID_USAGE
from restez.generator.template import placeholder_names
from restez.models import SchemaTree, Settings
from restez.output import debug, error, format_response, get_output
from restez.schema import CompiledSchema, SchemaBuilder, compile_schema, load_schema

_OBJECT_REFERENCE_RE = re.compile(r"^[A-Za-z_][\w.]*:[A-Za-z_][\w.]*$")


# ------------------------------------------------------------------ #
# Shared helpers
# ------------------------------------------------------------------ #


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Report a :class:`~restez.exceptions.RestezError` and exit with its code."""
    try:
        yield
    except RestezError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def command_settings(ctx: typer.Context) -> Settings:
    """Resolve settings, letting the root ``--pattern``/``--base-url`` flags win."""
    obj = ctx.obj or {}
    return resolve_settings(cli_pattern=obj.get("pattern"), cli_base_url=obj.get("base_url"))


def load_compiled_schema(source: str, settings: Settings) -> CompiledSchema:
    """Load *source* and compile it, applying the ``base_url`` override.

    Args:
        source: A schema document location, or ``module:attribute``.
        settings: Effective settings; ``base_url`` replaces the root URL.

    Returns:
        The compiled schema.

    Raises:
        SchemaLoadError: If the source cannot be loaded.
        AuthoringError: If the tree is malformed.
    """
    tree = _load_tree(source)
    if settings.base_url:
        debug(f"Replacing root URL {tree.root_url} with {settings.base_url}")
        tree = tree.model_copy(update={"root_url": settings.base_url})
    return compile_schema(tree)


def _load_tree(source: str) -> SchemaTree:
    if _OBJECT_REFERENCE_RE.match(source) and not Path(source).exists():
        return _import_tree(source)
    return load_schema(source)


def _import_tree(reference: str) -> SchemaTree:
    """Import ``module:attribute`` and return the tree it refers to."""
    module_name, _, attr_path = reference.partition(":")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise SchemaLoadError(f"Cannot import module '{module_name}': {exc}") from exc

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise SchemaLoadError(
                f"Module '{module_name}' has no attribute '{attr_path}'"
            ) from None

    if isinstance(obj, SchemaTree):
        return obj
    if isinstance(obj, SchemaBuilder):
        return obj.build()
    if isinstance(obj, CompiledSchema):
        return obj.tree
    raise SchemaLoadError(
        f"'{reference}' is a {type(obj).__name__}, "
        "expected a SchemaTree, SchemaBuilder or CompiledSchema"
    )


def require_endpoint(schema: CompiledSchema, endpoint_id: str) -> None:
    if endpoint_id not in schema.ids:
        raise RestezError(
            f"Unknown endpoint '{endpoint_id}'. Run: restez endpoints <schema>",
            exit_code=EXIT_INVALID_USAGE,
        )


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


def endpoints_command(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema file, URL, '-', or module:attribute."),
) -> None:
    """List every endpoint of a schema.

    Shows the id, method, path template, path parameters and attribute keys
    of each endpoint.  Attribute values are not evaluated.

    Example::

        restez endpoints forum.yaml
        restez --json endpoints myapp.api:schema
    """
    with exit_on_error():
        settings = command_settings(ctx)
        compiled = load_compiled_schema(schema, settings)

        rows: list[list[str]] = []
        for definition in compiled.endpoints:
            params = placeholder_names(definition.path_template, settings.parameter_pattern)
            rows.append([
                definition.id,
                definition.method.value,
                definition.path_template,
                ", ".join(params) or "-",
                ", ".join(sorted(definition.attributes)) or "-",
            ])

    get_output().print_table(
        ["Id", "Method", "Path", "Params", "Attributes"],
        rows,
        title=f"{compiled.tree.root_url} -- Endpoints ({len(rows)})",
    )


def show_command(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema file, URL, '-', or module:attribute."),
    endpoint_id: str = typer.Argument(..., help="Endpoint id."),
) -> None:
    """Show one endpoint with its attributes resolved.

    Deferred values (``$env``, ``$file``, runtime attributes) are evaluated
    now, so the output reflects the current environment.

    Example::

        restez show forum.yaml view_thread
    """
    with exit_on_error():
        settings = command_settings(ctx)
        compiled = load_compiled_schema(schema, settings)
        require_endpoint(compiled, endpoint_id)
        resolved = compiled.resolve(endpoint_id)

    format_response({
        "id": resolved.id,
        "method": resolved.method.value,
        "path_template": resolved.path_template,
        "required_params": placeholder_names(
            resolved.path_template, settings.parameter_pattern
        ),
        "attributes": resolved.attributes,
    })
