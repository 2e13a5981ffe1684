"""Routing of a single ``xurl request`` invocation.

:func:`handle_request` picks one of three execution modes:

- a media append with a file attached goes out as multipart,
- a known streaming endpoint (or ``--stream``) is streamed line by line,
- everything else is a buffered request whose JSON result is printed.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from xurl.client.api_client import ApiClient
from xurl.client.media import handle_media_append_request, is_media_append_request
from xurl.models import RequestOptions
from xurl.output import get_output

STREAMING_ENDPOINTS: frozenset[str] = frozenset(
    {
        "/2/tweets/search/stream",
        "/2/tweets/sample/stream",
        "/2/tweets/sample10/stream",
        "/2/tweets/firehose/stream",
        "/2/tweets/compliance/stream",
        "/2/users/compliance/stream",
        "/2/likes/firehose/stream",
        "/2/likes/sample10/stream",
        "/2/likes/compliance/stream",
    }
)

_LANG_FIREHOSE_PREFIX = "/2/tweets/firehose/stream/lang/"


def is_streaming_endpoint(endpoint: str) -> bool:
    """Return True if *endpoint* (path or absolute URL) is a streaming endpoint.

    The query string and a trailing slash are ignored.
    """
    path = urlsplit(endpoint).path if "://" in endpoint else endpoint.split("?", 1)[0]
    path = "/" + path.strip("/")
    return path in STREAMING_ENDPOINTS or path.startswith(_LANG_FIREHOSE_PREFIX)


def handle_request(
    options: RequestOptions,
    client: ApiClient,
    force_stream: bool = False,
    media_file: str = "",
) -> Any:
    """Execute *options* in the appropriate mode and print the result.

    Args:
        options: The request.
        client: An entered :class:`~xurl.client.api_client.ApiClient`.
        force_stream: Stream even if the endpoint is not a known stream.
        media_file: File to attach to a media append request.

    Returns:
        The decoded response, or None for a streamed request.
    """
    output = get_output()

    if is_media_append_request(options.endpoint, media_file):
        response = handle_media_append_request(options, media_file, client)
        output.format_response(response)
        return response

    if force_stream or is_streaming_endpoint(options.endpoint):
        client.stream_request(options)
        return None

    response = client.send_request(options)
    output.format_response(response)
    return response
