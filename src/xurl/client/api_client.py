"""HTTP request dispatcher with auth injection and response classification.

This module provides :class:`ApiClient`, the blocking client behind every
``xurl`` request. It wraps :class:`httpx.Client` and adds:

- **URL resolution** -- endpoints starting with ``http`` are used as-is,
  anything else is joined to the configured API base URL.
- **Body classification** -- for POST/PUT/PATCH, a body that parses as
  JSON is sent as ``application/json``, anything else as
  ``application/x-www-form-urlencoded``.
- **Auth injection** -- the resolved ``Authorization`` header is added
  only when the caller did not supply one.
- **Fixed headers** -- ``User-Agent: xurl/<version>`` always, and
  ``X-B3-Flags: 1`` when tracing.
- **Three execution modes** -- buffered (:meth:`ApiClient.send_request`),
  line streaming with no timeout (:meth:`ApiClient.stream_request`) and
  multipart upload (:meth:`ApiClient.send_multipart_request`). All three
  report failures with the same exception classes.
"""

from __future__ import annotations

import json
import mimetypes
import os
from typing import Any, Callable, Iterable, Iterator, Optional
from urllib.parse import parse_qsl

import httpx

from xurl import __version__
from xurl.auth.base import AuthContext
from xurl.auth.manager import AuthManager
from xurl.exceptions import APIError, AuthError, AuthErrorKind, HTTPError, IOError_
from xurl.models import Config, MultipartOptions, RequestOptions
from xurl.output import get_output

USER_AGENT = f"xurl/{__version__}"
TRACE_HEADER = "X-B3-Flags"
DEFAULT_TIMEOUT = 30.0
MAX_LINE_BYTES = 1024 * 1024

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class ApiClient:
    """Synchronous API client.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        config: Supplies the API base URL.
        auth_manager: Resolves ``Authorization`` headers. When None, any
            request that needs one fails with ``AUTH_NOT_SET``.
        timeout: Timeout in seconds for buffered and multipart requests.
            Streaming requests never time out.
        transport: Optional httpx transport (tests use
            :class:`httpx.MockTransport`).

    Example::

        with ApiClient(config, auth_manager) as client:
            data = client.send_request(RequestOptions(endpoint="/2/users/me"))
    """

    def __init__(
        self,
        config: Config,
        auth_manager: Optional[AuthManager] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = config.api_base_url
        self._auth_manager = auth_manager
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ApiClient:
        self._client = httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Request building
    # ------------------------------------------------------------------ #

    def resolve_url(self, endpoint: str) -> str:
        """Return *endpoint* as an absolute URL.

        An endpoint starting with ``http`` (any case) is already absolute;
        otherwise it is joined to the base URL with exactly one ``/``.
        """
        if endpoint.lower().startswith("http"):
            return endpoint
        return f"{self._base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def build_request(self, options: RequestOptions) -> httpx.Request:
        """Build a ready-to-send request for *options*.

        Raises:
            AuthError: If no ``Authorization`` header was supplied and none
                can be resolved.
        """
        return self._build(options)

    def build_multipart_request(self, options: MultipartOptions) -> httpx.Request:
        """Build a ``multipart/form-data`` request for *options*.

        The file part is read from ``file_data`` when set, otherwise from
        ``file_path``; the form fields follow it. httpx generates the
        boundary and the ``Content-Type`` header.

        Raises:
            IOError_: If the file cannot be read.
            AuthError: If no ``Authorization`` header can be resolved.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        files: dict[str, Any] = {}
        if options.file_data is not None:
            name = options.file_name or os.path.basename(options.file_path) or "file"
            files[options.file_field] = (name, options.file_data, _guess_type(name))
        elif options.file_path:
            try:
                with open(options.file_path, "rb") as f:
                    content = f.read()
            except OSError as exc:
                raise IOError_(f"Error opening file {options.file_path}: {exc}") from exc
            name = options.file_name or os.path.basename(options.file_path)
            files[options.file_field] = (name, content, _guess_type(name))

        method = options.method.upper() or "POST"
        url = self.resolve_url(options.endpoint)
        headers = self._headers(options, method, url, content_type="", form_params={})
        # httpx only fills in Content-Type when the caller did not set one.
        headers.pop("Content-Type", None)
        return self._client.build_request(
            method, url, headers=headers, files=files, data=dict(options.form_fields)
        )

    # ------------------------------------------------------------------ #
    # Execution modes
    # ------------------------------------------------------------------ #

    def send_request(self, options: RequestOptions) -> Any:
        """Send a buffered request and return the decoded JSON body.

        Returns:
            The decoded body; ``{}`` for an empty or non-JSON success body.

        Raises:
            APIError: Error status with a JSON body.
            HTTPError: Transport failure, or error status with a non-JSON body.
            AuthError: Credential resolution failed.
        """
        request = self.build_request(options)
        response = self._send(request, options.verbose)
        return process_response(response)

    def send_multipart_request(self, options: MultipartOptions) -> Any:
        """Send a multipart request; results are handled like :meth:`send_request`."""
        request = self.build_multipart_request(options)
        response = self._send(request, options.verbose)
        return process_response(response)

    def stream_request(
        self,
        options: RequestOptions,
        on_line: Optional[Callable[[str], None]] = None,
    ) -> None:
        """Send a request and emit each non-empty response line as it arrives.

        There is no client-side timeout; the call returns when the server
        closes the connection and is otherwise stopped by the caller
        (Ctrl-C).

        Args:
            options: The request.
            on_line: Receives each line without its terminator. Defaults
                to printing to stdout.

        Raises:
            APIError: Error status with a JSON body.
            HTTPError: Transport failure (before or during the stream), or
                error status with a non-JSON body.
            IOError_: A line longer than 1 MiB, or undecodable bytes.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"
        output = get_output()
        emit = on_line or output.print_data

        request = self._build(options, timeout=None)
        self._trace_request(request, options.verbose)
        output.info(f"Connecting to streaming endpoint: {request.url}")

        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise HTTPError(f"Request failed: {exc}") from exc

        try:
            self._trace_response(response, options.verbose)
            if response.status_code >= 400:
                response.read()
                process_response(response)
            for line in iter_stream_lines(response.iter_bytes()):
                emit(line)
        except httpx.HTTPError as exc:
            raise HTTPError(f"Stream interrupted: {exc}") from exc
        finally:
            response.close()
        output.info("Stream closed by server")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build(self, options: RequestOptions, **kwargs: Any) -> httpx.Request:
        assert self._client is not None, "Client not initialised -- use as context manager"

        method = options.method.upper() or "GET"
        url = self.resolve_url(options.endpoint)

        content: Optional[bytes] = None
        content_type = ""
        form_params: dict[str, str] = {}
        if options.data and method in _BODY_METHODS:
            content = options.data.encode("utf-8")
            if _is_json(options.data):
                content_type = CONTENT_TYPE_JSON
            else:
                content_type = CONTENT_TYPE_FORM
                form_params = dict(parse_qsl(options.data, keep_blank_values=True))

        headers = self._headers(options, method, url, content_type, form_params)
        return self._client.build_request(method, url, headers=headers, content=content, **kwargs)

    def _headers(
        self,
        options: RequestOptions,
        method: str,
        url: str,
        content_type: str,
        form_params: dict[str, str],
    ) -> httpx.Headers:
        headers = httpx.Headers(options.headers)
        if content_type:
            headers["Content-Type"] = content_type
        if "Authorization" not in headers:
            ctx = AuthContext(
                method=method,
                url=url,
                username=options.username,
                app_name=options.app_name,
                form_params=form_params,
            )
            headers["Authorization"] = self._authorization(ctx, options.auth_type)
        headers["User-Agent"] = USER_AGENT
        if options.trace:
            headers[TRACE_HEADER] = "1"
        return headers

    def _authorization(self, ctx: AuthContext, auth_type: str) -> str:
        if self._auth_manager is None:
            raise AuthError(AuthErrorKind.AUTH_NOT_SET)
        result = self._auth_manager.authenticate(ctx, auth_type)
        return result.authorization

    def _send(self, request: httpx.Request, verbose: bool) -> httpx.Response:
        assert self._client is not None, "Client not initialised -- use as context manager"
        self._trace_request(request, verbose)
        try:
            response = self._client.send(request)
        except httpx.HTTPError as exc:
            raise HTTPError(f"Request failed: {exc}") from exc
        self._trace_response(response, verbose)
        return response

    def _trace_request(self, request: httpx.Request, verbose: bool) -> None:
        if not verbose:
            return
        lines = [f"{request.method} {request.url}"]
        lines.extend(f"{k}: {v}" for k, v in request.headers.items())
        get_output().trace(">", lines)

    def _trace_response(self, response: httpx.Response, verbose: bool) -> None:
        if not verbose:
            return
        lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}"]
        lines.extend(f"{k}: {v}" for k, v in response.headers.items())
        get_output().trace("<", lines)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def process_response(response: httpx.Response) -> Any:
    """Classify a fully-read response.

    * status >= 400 with a JSON body -> :class:`~xurl.exceptions.APIError`
    * status >= 400 otherwise -> :class:`~xurl.exceptions.HTTPError`
    * success with an empty or non-JSON body -> ``{}``
    * success with a JSON body -> the decoded value

    Args:
        response: A response whose body has been read.

    Returns:
        The decoded body.
    """
    body = response.content
    data: Any = None
    parsed = False
    if body.strip():
        try:
            data = json.loads(body)
            parsed = True
        except ValueError:
            pass

    if response.status_code >= 400:
        if parsed:
            raise APIError(data, response.status_code)
        detail = response.text[:200] if body else response.reason_phrase
        raise HTTPError(f"HTTP {response.status_code}: {detail}", response.status_code)

    return data if parsed else {}


def iter_stream_lines(chunks: Iterable[bytes], max_line: int = MAX_LINE_BYTES) -> Iterator[str]:
    """Split a byte stream into decoded, non-empty lines.

    Lines end at ``\\n`` (a trailing ``\\r`` is dropped); a final line
    without a terminator is yielded when the stream ends.

    Raises:
        IOError_: If a line exceeds *max_line* bytes or is not UTF-8.
    """
    buffer = bytearray()
    for chunk in chunks:
        buffer.extend(chunk)
        while True:
            idx = buffer.find(b"\n")
            if idx < 0:
                break
            raw = bytes(buffer[:idx])
            del buffer[: idx + 1]
            line = _decode_line(raw, max_line)
            if line:
                yield line
        if len(buffer) > max_line:
            raise IOError_(f"Stream line exceeds {max_line} bytes")
    if buffer:
        line = _decode_line(bytes(buffer), max_line)
        if line:
            yield line


def _decode_line(raw: bytes, max_line: int) -> str:
    if len(raw) > max_line:
        raise IOError_(f"Stream line exceeds {max_line} bytes")
    try:
        return raw.rstrip(b"\r").decode("utf-8")
    except UnicodeDecodeError as exc:
        raise IOError_(f"Stream line is not valid UTF-8: {exc}") from exc


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def _guess_type(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"
