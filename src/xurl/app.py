"""Typer application and CLI entry point for xurl.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``request``, ``auth``, ``media``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~xurl.exceptions.XurlError` failures exit with their own code;
any other exception is written to a crash log under the data directory.

See Also:
    :mod:`xurl.config`: Environment snapshot taken in :func:`main_callback`.
    :mod:`xurl.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from xurl import __version__
from xurl.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="xurl",
    help="Auth enabled curl-like interface for the X API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from xurl.commands.auth import auth_app  # noqa: E402
from xurl.commands.media import media_app  # noqa: E402
from xurl.commands.request import request_command  # noqa: E402

app.command("request")(request_command)
app.add_typer(auth_app, name="auth", help="Authentication management.")
app.add_typer(media_app, name="media", help="Media upload operations.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"xurl {__version__}")
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
    app_name: Optional[str] = typer.Option(
        None, "--app", help="Registered app to use instead of the default."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print responses as plain JSON."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and request tracing."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Takes the one-time environment snapshot, initialises the global
    :class:`~xurl.output.OutputManager` from CLI flags, and stores the
    resulting :class:`~xurl.models.Config` in ``ctx.obj`` for sub-commands.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        app_name: App override (highest precedence).
        json_output: Force JSON output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug messages and the request/response trace.
    """
    from xurl.config import load_config
    from xurl.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(app_name=app_name or "")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from xurl.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``xurl`` console script.

    Unhandled :class:`~xurl.exceptions.XurlError` instances are reported
    (an API error payload first, on stdout) and cause an exit with the
    error's ``exit_code``. All other exceptions produce a crash log and a
    generic failure exit.

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
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from xurl.commands import report_error
        from xurl.exceptions import XurlError
        from xurl.output import error

        if isinstance(exc, XurlError):
            report_error(exc)
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
