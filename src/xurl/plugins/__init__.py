"""Built-in credential plugins.

Each sub-package implements one :class:`~xurl.auth.base.AuthPlugin`:

* :mod:`~xurl.plugins.bearer` -- app-scoped bearer token.
* :mod:`~xurl.plugins.oauth1` -- OAuth 1.0a request signing.
* :mod:`~xurl.plugins.oauth2` -- per-user OAuth2 tokens (refresh or
  interactive browser flow).

They are registered by :func:`xurl.auth.manager.create_default_manager`.
"""
