"""Typer application and CLI entry point for retoken.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``config``, ``credentials``, ``request``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a SIGINT handler and invokes the Typer
app; an uncaught :class:`~retoken.exceptions.RetokenError` is printed to
stderr and mapped to its exit code.

See Also:
    :mod:`retoken.config`: settings resolution.
    :mod:`retoken.output`: output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import Any

import typer

from retoken import __version__
from retoken.commands.config import config_app
from retoken.commands.credentials import credentials_app
from retoken.commands.request import request_command
from retoken.exit_codes import EXIT_GENERIC_FAILURE
from retoken.output import OutputFormat, OutputManager, set_output


app = typer.Typer(
    name="retoken",
    help="Bearer-token requests with automatic refresh on 401.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(credentials_app, name="credentials", help="Inspect and seed stored credentials.")
app.add_typer(config_app, name="config", help="View and modify settings.")
app.command("request")(request_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"retoken {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Initialise the global :class:`~retoken.output.OutputManager` from CLI flags."""
    output = OutputManager(
        format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    output.configure_logging()


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``retoken`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except Exception as exc:
        from retoken.exceptions import RetokenError
        from retoken.output import error

        if isinstance(exc, RetokenError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
