"""Typer application and CLI entry point for storehooks.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``events``, ``plugins``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~storehooks.exceptions.StorehooksError`
instances raised by a command exit cleanly with the error's ``code``
(capped to a valid process status); anything else is reported as a
generic failure.

See Also:
    :mod:`storehooks.config`: Configuration resolution.
    :mod:`storehooks.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any

import typer

from storehooks import __version__
from storehooks.error_codes import GENERIC_FAILURE


app = typer.Typer(
    name="storehooks",
    help="Inspect storehooks events, plugins and configuration.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from storehooks.commands.config import config_app  # noqa: E402
from storehooks.commands.events import events_command  # noqa: E402
from storehooks.commands.plugins import plugins_command  # noqa: E402

app.command("events")(events_command)
app.command("plugins")(plugins_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"storehooks {__version__}")
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
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~storehooks.output.OutputManager` from
    CLI flags and, with ``--verbose``, routes ``storehooks`` log records
    at DEBUG level to stderr.
    """
    from storehooks.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        _enable_debug_logging()

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _enable_debug_logging() -> None:
    logger = logging.getLogger("storehooks")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``storehooks`` console script.

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
        from storehooks.exceptions import StorehooksError
        from storehooks.output import error

        if isinstance(exc, StorehooksError):
            error(str(exc))
            sys.exit(exc.code if 0 < exc.code < 256 else GENERIC_FAILURE)
        error(f"Unexpected error: {exc}")
        sys.exit(GENERIC_FAILURE)
