"""Typer application and CLI entry point for restez.

This module wires together the top-level Typer application and registers
the built-in commands:

* ``endpoints`` -- list the endpoint table of a schema.
* ``show`` -- print one resolved endpoint definition.
* ``call`` -- invoke an endpoint over HTTP.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a SIGINT handler, invokes the Typer app, and
turns any :class:`~restez.exceptions.RestezError` that escapes a command into
an error message plus the error's exit code.

See Also:
    :mod:`restez.config`: Settings precedence resolution.
    :mod:`restez.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from restez import __version__
from restez.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="restez",
    help="Compile REST schema trees into validated clients and call them.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from restez.commands.call import call_command  # noqa: E402
from restez.commands.inspect import endpoints_command, show_command  # noqa: E402

app.command("endpoints")(endpoints_command)
app.command("show")(show_command)
app.command("call")(call_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"restez {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print requests instead of sending them."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Replace the schema's root URL."
    ),
    pattern: Optional[str] = typer.Option(
        None, "--pattern", help="Placeholder regex; group 1 is the parameter name."
    ),
) -> None:
    """Root callback executed before every command.

    Initialises the global :class:`~restez.output.OutputManager` from CLI
    flags, enables debug logging for ``--verbose``, and stores the shared
    options (``dry_run``, ``base_url``, ``pattern``) in ``ctx.obj`` for the
    commands to read.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        dry_run: Print requests without sending them.
        base_url: Root URL override (highest precedence).
        pattern: Placeholder pattern override (highest precedence).
    """
    from restez.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    if verbose:
        _setup_logging(no_color)

    ctx.ensure_object(dict)
    ctx.obj["dry_run"] = dry_run
    ctx.obj["base_url"] = base_url
    ctx.obj["pattern"] = pattern
    ctx.obj["verbose"] = verbose


def _setup_logging(no_color: bool) -> None:
    """Send ``restez.*`` debug records to stderr through Rich."""
    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_path=False,
        show_time=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("restez")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG)
    logger.propagate = False


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``restez`` console script.

    Unhandled :class:`~restez.exceptions.RestezError` instances cause a
    clean exit with the error's ``exit_code``.  Any other exception prints
    its traceback to stderr and exits with a generic failure.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from restez.exceptions import RestezError
        from restez.output import error

        if isinstance(exc, RestezError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            traceback.print_exc(file=sys.stderr)
            error(f"Unexpected error: {exc}")
            sys.exit(EXIT_GENERIC_FAILURE)
