"""Credential storage and resolution for xurl.

The main entry points are:

- :class:`TokenStore` -- the multi-app credential store at ``~/.xurl``.
- :class:`AuthManager` -- picks and runs the credential plugin for a
  request; :func:`create_default_manager` wires the built-in plugins.
- :class:`OAuth2Flow` -- authorization-code + PKCE flow and token refresh.
- :func:`build_oauth1_header` -- OAuth 1.0a request signing.

Typical usage::

    from xurl.auth import create_default_manager, create_token_store

    store = create_token_store(config)
    manager = create_default_manager(store, config)
    result = manager.authenticate(AuthContext(method="GET", url=url))
"""

from xurl.auth.base import AuthContext, AuthPlugin, AuthResult
from xurl.auth.manager import AuthManager, create_default_manager
from xurl.auth.oauth1 import build_oauth1_header
from xurl.auth.oauth2 import OAuth2Flow
from xurl.auth.store import AppResolution, ResolutionOutcome, TokenStore, create_token_store

__all__ = [
    "AppResolution",
    "AuthContext",
    "AuthManager",
    "AuthPlugin",
    "AuthResult",
    "OAuth2Flow",
    "ResolutionOutcome",
    "TokenStore",
    "build_oauth1_header",
    "create_default_manager",
    "create_token_store",
]
