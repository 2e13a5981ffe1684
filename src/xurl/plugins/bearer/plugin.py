"""Bearer token authentication plugin.

This module provides :class:`BearerAuthPlugin`, which implements the
``bearer`` auth type (``app`` on the command line). The app's stored
bearer token is sent as ``Authorization: Bearer <token>``. There is no
exchange or refresh; the token is used as-is.
"""

from __future__ import annotations

from xurl.auth.base import AuthContext, AuthPlugin, AuthResult
from xurl.auth.store import TokenStore
from xurl.exceptions import AuthError, AuthErrorKind


class BearerAuthPlugin(AuthPlugin):
    """Authenticate with the app's bearer token.

    Args:
        store: Credential store to read the token from.
    """

    def __init__(self, store: TokenStore) -> None:
        self._store = store

    @property
    def auth_type(self) -> str:
        return "bearer"

    def is_configured(self, ctx: AuthContext) -> bool:
        return self._store.get_bearer_token_for_app(ctx.app_name) is not None

    def authenticate(self, ctx: AuthContext) -> AuthResult:
        """Return an ``Authorization: Bearer <token>`` header.

        Raises:
            AuthError: ``TOKEN_NOT_FOUND`` if the app has no bearer token.
        """
        credential = self._store.get_bearer_token_for_app(ctx.app_name)
        if credential is None:
            raise AuthError(AuthErrorKind.TOKEN_NOT_FOUND, "Bearer token not found")
        return AuthResult(headers={"Authorization": f"Bearer {credential.token}"})
