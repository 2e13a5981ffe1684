"""Exception hierarchy for xurl.

All exceptions inherit from :class:`XurlError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`xurl.exit_codes`.
The top-level handler in :func:`xurl.app.main` catches ``XurlError`` and
exits with the matching code, while unexpected exceptions produce a crash
log and exit with :data:`~xurl.exit_codes.EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    XurlError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)   kind: AuthErrorKind
    +-- TokenStoreError     (exit 4)   kind: StoreErrorKind
    +-- APIError            (exit 5)   payload, status_code
    +-- HTTPError           (exit 6)
    +-- IOError_            (exit 7)
    +-- JSONError           (exit 8)
    +-- MediaError          (exit 9)
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional

from xurl.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_IO_ERROR,
    EXIT_JSON_ERROR,
    EXIT_MEDIA_ERROR,
    EXIT_STORE_ERROR,
)


class AuthErrorKind(str, Enum):
    """Sub-kinds of :class:`AuthError`."""

    AUTH_NOT_SET = "auth_not_set"
    INVALID_AUTH_TYPE = "invalid_auth_type"
    TOKEN_NOT_FOUND = "token_not_found"
    INVALID_STATE = "invalid_state"
    INVALID_CODE = "invalid_code"
    TIMEOUT = "timeout"
    TOKEN_EXCHANGE_ERROR = "token_exchange_error"
    REFRESH_TOKEN_ERROR = "refresh_token_error"
    SIGNATURE_GENERATION_ERROR = "signature_generation_error"
    NO_AUTH_METHOD = "no_auth_method"
    USERNAME_FETCH_ERROR = "username_fetch_error"
    LISTENER_ERROR = "listener_error"


class StoreErrorKind(str, Enum):
    """Sub-kinds of :class:`TokenStoreError`."""

    DUPLICATE_APP = "duplicate_app"
    NOT_FOUND = "not_found"
    PARSE_ERROR = "parse_error"


class XurlError(Exception):
    """Base exception for all xurl errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`xurl.exit_codes`. The entry point catches this
    exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(XurlError):
    """Raised for invalid CLI arguments or option combinations."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(XurlError):
    """Raised when a credential cannot be resolved or an auth flow fails.

    Args:
        kind: The specific failure, e.g. :attr:`AuthErrorKind.NO_AUTH_METHOD`.
        message: Human-readable detail. Defaults to a description of *kind*.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, kind: AuthErrorKind, message: str = ""):
        self.kind = kind
        super().__init__(message or _AUTH_MESSAGES[kind])


_AUTH_MESSAGES: dict[AuthErrorKind, str] = {
    AuthErrorKind.AUTH_NOT_SET: "Authentication is not initialised (no credential store)",
    AuthErrorKind.INVALID_AUTH_TYPE: "Invalid auth type",
    AuthErrorKind.TOKEN_NOT_FOUND: "Token not found",
    AuthErrorKind.INVALID_STATE: "OAuth2 callback returned an invalid state",
    AuthErrorKind.INVALID_CODE: "OAuth2 callback did not include an authorization code",
    AuthErrorKind.TIMEOUT: "Timed out waiting for the OAuth2 callback",
    AuthErrorKind.TOKEN_EXCHANGE_ERROR: "Token exchange failed",
    AuthErrorKind.REFRESH_TOKEN_ERROR: "Token refresh failed",
    AuthErrorKind.SIGNATURE_GENERATION_ERROR: "Could not generate OAuth1 signature",
    AuthErrorKind.NO_AUTH_METHOD: "No authentication method available",
    AuthErrorKind.USERNAME_FETCH_ERROR: "Could not fetch the account username",
    AuthErrorKind.LISTENER_ERROR: "Could not start the OAuth2 callback listener",
}


class TokenStoreError(XurlError):
    """Raised for credential store conflicts, missing entries, and parse failures.

    Args:
        kind: The specific failure.
        message: Human-readable detail.
    """

    exit_code = EXIT_STORE_ERROR

    def __init__(self, kind: StoreErrorKind, message: str):
        self.kind = kind
        super().__init__(message)


class APIError(XurlError):
    """Raised when the API answers an error status with a JSON payload.

    The parsed body is kept verbatim on :attr:`payload` so callers (and the
    CLI, which prints it to stdout) can inspect the server's own error
    structure.

    Args:
        payload: The decoded JSON error body.
        status_code: The HTTP status of the response.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, payload: Any, status_code: Optional[int] = None):
        self.payload = payload
        self.status_code = status_code
        super().__init__(json.dumps(payload, ensure_ascii=False, default=str))


class HTTPError(XurlError):
    """Raised on transport failures and on error statuses with a non-JSON body."""

    exit_code = EXIT_HTTP_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class IOError_(XurlError):
    """Raised when a local file or stream cannot be read or written.

    Named with a trailing underscore to avoid shadowing the built-in
    ``IOError`` alias.
    """

    exit_code = EXIT_IO_ERROR


class JSONError(XurlError):
    """Raised when a payload expected to be JSON is malformed."""

    exit_code = EXIT_JSON_ERROR


class MediaError(XurlError):
    """Raised when a media upload step fails or processing reports ``failed``."""

    exit_code = EXIT_MEDIA_ERROR
