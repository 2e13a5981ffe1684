"""The ``xurl request`` command -- a curl-like call against the X API.

Examples::

    xurl request /2/users/me
    xurl request -X POST /2/tweets -d '{"text": "Hello world!"}'
    xurl request --auth app "/2/tweets/search/recent?query=python"
    xurl request /2/tweets/search/stream            # streamed line by line
    xurl request -X POST /2/media/upload/123/append -F clip.mp4
"""

from __future__ import annotations

from typing import Optional

import typer

from xurl.client.execute import handle_request
from xurl.commands import build_client, cli_errors, get_config, parse_headers, resolve_verbose
from xurl.models import RequestOptions


def request_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Endpoint path (joined to the API base URL) or absolute URL."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help="Extra header 'Name: value'."),
    data: str = typer.Option("", "--data", "-d", help="Request body (JSON or form-encoded)."),
    auth: str = typer.Option("", "--auth", help="Auth kind: oauth1, oauth2 or app."),
    username: str = typer.Option("", "--username", "-u", help="OAuth2 user to act as."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print request and response headers."),
    trace: bool = typer.Option(False, "--trace", "-t", help="Add the X-B3-Flags trace header."),
    stream: bool = typer.Option(False, "--stream", "-s", help="Force streaming mode."),
    file: str = typer.Option("", "--file", "-F", help="File to send with a media append request."),
) -> None:
    """Send an authenticated request and print the response.

    Known streaming endpoints are streamed automatically; each line is
    printed as soon as it arrives.
    """
    with cli_errors():
        options = RequestOptions(
            method=method.upper() or "GET",
            endpoint=url,
            headers=parse_headers(header or []),
            data=data,
            auth_type=auth,
            username=username,
            app_name=get_config(ctx).app_name,
            verbose=resolve_verbose(verbose),
            trace=trace,
        )
        with build_client(ctx) as client:
            handle_request(options, client, force_stream=stream, media_file=file)
