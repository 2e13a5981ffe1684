"""OAuth 1.0a request signing (HMAC-SHA1).

Pure functions with no I/O. :func:`build_oauth1_header` is what the
resolver calls; the smaller helpers are exported so tests can pin the
nonce and timestamp and check exact signatures.

Signature base string::

    METHOD & enc(scheme://host/path) & enc(k1=v1&k2=v2...)

where the parameter list is the union of the URL's query parameters, any
form-encoded body parameters, and the ``oauth_*`` protocol parameters,
each key and value percent-encoded per :rfc:`3986` and sorted by encoded
key. The signing key is ``enc(consumer_secret)&enc(token_secret)``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from typing import Mapping, Optional
from urllib.parse import parse_qsl, quote, urlsplit

from xurl.exceptions import AuthError, AuthErrorKind
from xurl.models import OAuth1Credential

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"


def percent_encode(value: str) -> str:
    """Percent-encode *value* per :rfc:`3986`; only ``A-Za-z0-9-._~`` are kept."""
    return quote(value, safe="~")


def generate_nonce() -> str:
    """Return a random decimal nonce below 10**9."""
    return str(secrets.randbelow(1_000_000_000))


def generate_timestamp() -> str:
    """Return the current Unix time in whole seconds."""
    return str(int(time.time()))


def _base_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise AuthError(AuthErrorKind.SIGNATURE_GENERATION_ERROR, f"Cannot sign relative URL '{url}'")
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}{parts.path}"


def generate_signature(
    method: str,
    url: str,
    params: Mapping[str, str],
    consumer_secret: str,
    token_secret: str,
) -> str:
    """Compute the base64 HMAC-SHA1 signature for a request.

    Args:
        method: HTTP method (case-insensitive).
        url: Target URL. Its query string is ignored here; callers fold
            query parameters into *params* (see :func:`build_oauth1_header`).
        params: Every parameter to sign, including the ``oauth_*`` ones.
        consumer_secret: The app's consumer secret.
        token_secret: The user's access token secret.

    Returns:
        The signature, base64-encoded.

    Raises:
        AuthError: ``SIGNATURE_GENERATION_ERROR`` for a URL without scheme
            or host.
    """
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params.items())
    param_string = "&".join(f"{k}={v}" for k, v in encoded)
    base_string = "&".join(
        [method.upper(), percent_encode(_base_url(url)), percent_encode(param_string)]
    )
    key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def build_oauth1_header(
    method: str,
    url: str,
    credential: OAuth1Credential,
    additional_params: Optional[Mapping[str, str]] = None,
    *,
    nonce: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> str:
    """Build a signed ``Authorization: OAuth ...`` header value.

    Args:
        method: HTTP method.
        url: Absolute request URL; its query parameters are signed.
        credential: The OAuth1 identity to sign with.
        additional_params: Extra parameters to sign, such as the fields of
            a form-encoded body.
        nonce: Fixed nonce (tests); generated when omitted.
        timestamp: Fixed timestamp (tests); current time when omitted.

    Returns:
        ``OAuth oauth_consumer_key="...", oauth_nonce="...", ...``
    """
    oauth_params = {
        "oauth_consumer_key": credential.consumer_key,
        "oauth_nonce": nonce if nonce is not None else generate_nonce(),
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": timestamp if timestamp is not None else generate_timestamp(),
        "oauth_token": credential.access_token,
        "oauth_version": OAUTH_VERSION,
    }

    params: dict[str, str] = {}
    for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        params.setdefault(key, value)
    params.update(additional_params or {})
    params.update(oauth_params)

    oauth_params["oauth_signature"] = generate_signature(
        method, url, params, credential.consumer_secret, credential.token_secret
    )
    pairs = ", ".join(
        f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(oauth_params.items())
    )
    return f"OAuth {pairs}"
