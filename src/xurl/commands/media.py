"""Media commands -- chunked upload and processing status.

Provides the ``xurl media`` sub-command group::

    xurl media upload clip.mp4                       # upload, wait for processing
    xurl media upload cat.jpg --media-type image/jpeg --category tweet_image
    xurl media status 1234567890 --wait
"""

from __future__ import annotations

from typing import Optional

import typer

from xurl.client.media import (
    DEFAULT_MEDIA_CATEGORY,
    DEFAULT_MEDIA_TYPE,
    execute_media_status,
    execute_media_upload,
)
from xurl.commands import build_client, cli_errors, get_config, parse_headers, resolve_verbose


media_app = typer.Typer(no_args_is_help=True)


@media_app.command("upload")
def media_upload(
    ctx: typer.Context,
    file: str = typer.Argument(help="File to upload."),
    media_type: str = typer.Option(
        DEFAULT_MEDIA_TYPE, "--media-type", help="Media type, e.g. image/jpeg, video/mp4."
    ),
    category: str = typer.Option(
        DEFAULT_MEDIA_CATEGORY, "--category", help="Media category, e.g. tweet_image, amplify_video."
    ),
    wait: bool = typer.Option(
        True, "--wait/--no-wait", help="Wait for video processing to complete."
    ),
    auth: str = typer.Option("", "--auth", help="Auth kind: oauth1, oauth2 or app."),
    username: str = typer.Option("", "--username", "-u", help="OAuth2 user to act as."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help="Extra header 'Name: value'."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print request and response headers."),
    trace: bool = typer.Option(False, "--trace", "-t", help="Add the X-B3-Flags trace header."),
) -> None:
    """Upload a media file (image, GIF or video) in 4 MiB segments."""
    with cli_errors():
        fields = _request_fields(ctx, auth, username, header, verbose, trace)
        with build_client(ctx) as client:
            execute_media_upload(
                client,
                file,
                media_type=media_type,
                media_category=category,
                wait_for_processing=wait,
                **fields,
            )


@media_app.command("status")
def media_status(
    ctx: typer.Context,
    media_id: str = typer.Argument(help="Media ID returned by the upload."),
    wait: bool = typer.Option(False, "--wait", "-w", help="Poll until processing finishes."),
    auth: str = typer.Option("", "--auth", help="Auth kind: oauth1, oauth2 or app."),
    username: str = typer.Option("", "--username", "-u", help="OAuth2 user to act as."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help="Extra header 'Name: value'."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print request and response headers."),
    trace: bool = typer.Option(False, "--trace", "-t", help="Add the X-B3-Flags trace header."),
) -> None:
    """Show the processing status of an uploaded media item."""
    with cli_errors():
        fields = _request_fields(ctx, auth, username, header, verbose, trace)
        with build_client(ctx) as client:
            execute_media_status(client, media_id, wait=wait, **fields)


def _request_fields(
    ctx: typer.Context,
    auth: str,
    username: str,
    header: Optional[list[str]],
    verbose: bool,
    trace: bool,
) -> dict:
    return {
        "headers": parse_headers(header or []),
        "auth_type": auth,
        "username": username,
        "app_name": get_config(ctx).app_name,
        "verbose": resolve_verbose(verbose),
        "trace": trace,
    }
