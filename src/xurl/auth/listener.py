"""Local HTTP receiver for the OAuth2 authorization-code redirect.

:class:`CallbackListener` serves ``/callback`` on ``127.0.0.1:<port>`` from
a background thread. The browser redirect and a timeout timer race to put
the first message on a single-consumer :class:`queue.Queue`; :meth:`wait`
takes that message and turns it into a code or an :class:`AuthError`.
:meth:`close` (also run by the context manager) always shuts the server
down, closes the socket and joins the thread, so no receiver outlives the
flow that started it.

Example::

    with CallbackListener(8080, expected_state=state) as listener:
        open_browser(url)
        code = listener.wait(timeout=300)
"""

from __future__ import annotations

import logging
import queue
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional, Union
from urllib.parse import parse_qs, urlsplit

from xurl.exceptions import AuthError, AuthErrorKind

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/callback"
SUCCESS_MESSAGE = "Authentication successful! You can close this window."

_TIMEOUT = object()


class _CallbackServer(HTTPServer):
    """HTTPServer carrying the flow's expected state and result queue."""

    def __init__(self, port: int, expected_state: str, path: str, results: queue.Queue) -> None:
        self.expected_state = expected_state
        self.callback_path = path
        self.results = results
        super().__init__(("127.0.0.1", port), _CallbackHandler)


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    def do_GET(self) -> None:
        parts = urlsplit(self.path)
        if parts.path != self.server.callback_path:
            self._reply(404, "Not found")
            return

        params = parse_qs(parts.query)
        state = params.get("state", [""])[0]
        code = params.get("code", [""])[0]

        result: Union[str, AuthError]
        if state != self.server.expected_state:
            result = AuthError(AuthErrorKind.INVALID_STATE, "Invalid state parameter")
        elif not code:
            result = AuthError(AuthErrorKind.INVALID_CODE, "Empty authorization code")
        else:
            result = code

        if isinstance(result, AuthError):
            self._reply(400, f"Error: {result}")
        else:
            self._reply(200, SUCCESS_MESSAGE)
        self.server.results.put(result)

    def _reply(self, status: int, body: str) -> None:
        payload = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("callback: " + format, *args)


class CallbackListener:
    """Single-use OAuth2 redirect receiver.

    Args:
        port: TCP port to bind on 127.0.0.1. ``0`` picks a free port
            (see :attr:`port`).
        expected_state: The ``state`` value sent in the authorize URL.
        path: Callback path.
    """

    def __init__(self, port: int, expected_state: str, path: str = CALLBACK_PATH) -> None:
        self._requested_port = port
        self._expected_state = expected_state
        self._path = path
        self._results: queue.Queue = queue.Queue()
        self._server: Optional[_CallbackServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        """The bound port (only meaningful after :meth:`start`)."""
        if self._server is None:
            return self._requested_port
        return self._server.server_address[1]

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Bind the socket and start serving in a background thread.

        Raises:
            AuthError: ``LISTENER_ERROR`` if the port cannot be bound.
        """
        try:
            self._server = _CallbackServer(
                self._requested_port, self._expected_state, self._path, self._results
            )
        except OSError as exc:
            raise AuthError(
                AuthErrorKind.LISTENER_ERROR,
                f"Cannot listen on 127.0.0.1:{self._requested_port}: {exc}",
            ) from exc
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="xurl-oauth2-callback",
            daemon=True,
        )
        self._thread.start()
        logger.debug("OAuth2 callback listener started on port %d", self.port)

    def wait(self, timeout: float) -> str:
        """Block until the redirect arrives or *timeout* seconds elapse.

        Returns:
            The authorization code.

        Raises:
            AuthError: ``INVALID_STATE`` or ``INVALID_CODE`` for a bad
                redirect, ``TIMEOUT`` when the timer wins.
        """
        timer = threading.Timer(timeout, self._results.put, args=(_TIMEOUT,))
        timer.daemon = True
        timer.start()
        try:
            result = self._results.get()
        finally:
            timer.cancel()

        if result is _TIMEOUT:
            raise AuthError(AuthErrorKind.TIMEOUT, "Timed out waiting for the OAuth2 callback")
        if isinstance(result, AuthError):
            raise result
        return result

    def close(self) -> None:
        """Stop serving and release the socket. Safe to call more than once."""
        if self._server is not None:
            if self._thread is not None:
                self._server.shutdown()
                self._thread.join()
            self._server.server_close()
            logger.debug("OAuth2 callback listener stopped")
        self._server = None
        self._thread = None

    def __enter__(self) -> CallbackListener:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
