"""Built-in CLI sub-commands and the helpers they share.

Each command reads the process :class:`~xurl.models.Config` that the root
callback stored on the Typer context, opens the credential store lazily,
and reports :class:`~xurl.exceptions.XurlError` failures through
:func:`report_error` before exiting with the error's own code.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from xurl.auth.manager import create_default_manager
from xurl.auth.store import TokenStore, create_token_store
from xurl.client.api_client import ApiClient
from xurl.exceptions import APIError, XurlError
from xurl.models import Config
from xurl.output import get_output


def get_config(ctx: typer.Context) -> Config:
    """Return the :class:`Config` built by the root callback."""
    from xurl.config import load_config

    obj = ctx.find_root().obj or {}
    config = obj.get("config")
    if config is None:
        config = load_config()
    return config


def open_store(ctx: typer.Context) -> TokenStore:
    """Open the credential store named by the process config."""
    return create_token_store(get_config(ctx))


def build_client(ctx: typer.Context) -> ApiClient:
    """Build an :class:`ApiClient` wired to the store and the built-in auth plugins.

    The client must still be entered as a context manager.
    """
    config = get_config(ctx)
    store = create_token_store(config)
    return ApiClient(config, create_default_manager(store, config))


def report_error(exc: XurlError) -> None:
    """Print *exc* the way the CLI reports failures.

    An :class:`APIError` payload is the server's answer, so it goes to
    stdout as data before the diagnostic line.
    """
    output = get_output()
    if isinstance(exc, APIError):
        output.format_response(exc.payload)
        status = f" (HTTP {exc.status_code})" if exc.status_code else ""
        output.error(f"Request failed{status}")
    else:
        output.error(str(exc))


def resolve_verbose(flag: bool) -> bool:
    """Merge a sub-command's ``-v`` with the root ``--verbose``.

    Either one enables debug messages and the request/response trace.
    """
    output = get_output()
    if flag:
        output.enable_verbose()
    return output.is_verbose


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn an :class:`XurlError` into a reported error and a typed exit code."""
    try:
        yield
    except XurlError as exc:
        report_error(exc)
        raise typer.Exit(code=exc.exit_code) from None


def parse_headers(values: list[str]) -> dict[str, str]:
    """Parse repeated ``-H 'Name: value'`` options.

    Raises:
        InvalidUsageError: If a value has no ``:`` separator.
    """
    from xurl.exceptions import InvalidUsageError

    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header '{raw}'. Expected 'Name: value'.")
        headers[name.strip()] = value.strip()
    return headers
