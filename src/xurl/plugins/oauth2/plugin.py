"""OAuth2 authentication plugin.

Delegates to :class:`~xurl.auth.oauth2.OAuth2Flow`: a stored token is
refreshed when expired, and when none is stored the interactive browser
flow runs. For probing, the plugin counts as configured only when a token
exists for the requested user (or, with no user, for any user of the app).
"""

from __future__ import annotations

from xurl.auth.base import AuthContext, AuthPlugin, AuthResult
from xurl.auth.oauth2 import OAuth2Flow
from xurl.auth.store import TokenStore


class OAuth2AuthPlugin(AuthPlugin):
    """Authenticate with a per-user OAuth2 access token.

    Args:
        store: Credential store the flow persists to.
        flow: The flow engine used to refresh or obtain tokens.
    """

    def __init__(self, store: TokenStore, flow: OAuth2Flow) -> None:
        self._store = store
        self._flow = flow

    @property
    def auth_type(self) -> str:
        return "oauth2"

    def is_configured(self, ctx: AuthContext) -> bool:
        if ctx.username:
            return self._store.get_oauth2_token_for_app(ctx.app_name, ctx.username) is not None
        return self._store.get_first_oauth2_token_for_app(ctx.app_name) is not None

    def authenticate(self, ctx: AuthContext) -> AuthResult:
        header = self._flow.get_header(ctx.username, ctx.app_name)
        return AuthResult(headers={"Authorization": header})
