"""OAuth 1.0a authentication plugin.

Signs each request with the app's stored OAuth1 identity using
:func:`xurl.auth.oauth1.build_oauth1_header`. The URL's query parameters
and any form-encoded body fields from the :class:`~xurl.auth.base.AuthContext`
are part of the signature.
"""

from __future__ import annotations

from xurl.auth.base import AuthContext, AuthPlugin, AuthResult
from xurl.auth.oauth1 import build_oauth1_header
from xurl.auth.store import TokenStore
from xurl.exceptions import AuthError, AuthErrorKind


class OAuth1AuthPlugin(AuthPlugin):
    """Authenticate by signing the request with OAuth 1.0a (HMAC-SHA1).

    Args:
        store: Credential store to read the identity from.
    """

    def __init__(self, store: TokenStore) -> None:
        self._store = store

    @property
    def auth_type(self) -> str:
        return "oauth1"

    def is_configured(self, ctx: AuthContext) -> bool:
        return self._store.get_oauth1_tokens_for_app(ctx.app_name) is not None

    def authenticate(self, ctx: AuthContext) -> AuthResult:
        """Return an ``Authorization: OAuth ...`` header for *ctx*.

        Raises:
            AuthError: ``TOKEN_NOT_FOUND`` if the app has no OAuth1
                identity, ``SIGNATURE_GENERATION_ERROR`` if the URL cannot
                be signed.
        """
        credential = self._store.get_oauth1_tokens_for_app(ctx.app_name)
        if credential is None:
            raise AuthError(AuthErrorKind.TOKEN_NOT_FOUND, "OAuth1 token not found")
        header = build_oauth1_header(ctx.method, ctx.url, credential, ctx.form_params)
        return AuthResult(headers={"Authorization": header})
