"""Auth manager -- decides which credential authorizes a request.

The :class:`AuthManager` maps credential kinds (``"bearer"``,
``"oauth1"``, ``"oauth2"``) to :class:`~xurl.auth.base.AuthPlugin`
instances and exposes :meth:`~AuthManager.authenticate`, which the
:class:`~xurl.client.api_client.ApiClient` calls for every request that
does not carry its own ``Authorization`` header.

With an explicit kind the matching plugin is used directly and its errors
propagate unchanged. Without one, the kinds are probed in
:data:`PROBE_ORDER`; the first plugin that has a credential and
authenticates successfully wins.

For most use cases, call :func:`create_default_manager` to get a manager
pre-loaded with every built-in plugin.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from xurl.auth.base import AuthContext, AuthPlugin, AuthResult
from xurl.auth.oauth2 import OAuth2Flow
from xurl.auth.store import TokenStore
from xurl.exceptions import AuthError, AuthErrorKind
from xurl.models import Config

logger = logging.getLogger(__name__)

PROBE_ORDER: tuple[str, ...] = ("oauth2", "oauth1", "bearer")
"""Kinds tried, in order, when the caller did not choose one."""

AUTH_TYPE_ALIASES: dict[str, str] = {"app": "bearer"}


class AuthManager:
    """Registry and resolver for credential plugins.

    Args:
        store: The credential store, or None when it could not be set up.
            Every :meth:`authenticate` call then fails with
            ``AUTH_NOT_SET``.

    Example::

        manager = create_default_manager(store, config)
        result = manager.authenticate(AuthContext(method="GET", url=url))
    """

    def __init__(self, store: Optional[TokenStore] = None) -> None:
        self.store = store
        self._plugins: dict[str, AuthPlugin] = {}

    def register(self, plugin: AuthPlugin) -> None:
        """Register *plugin* under its :attr:`~AuthPlugin.auth_type`, replacing any previous one."""
        self._plugins[plugin.auth_type] = plugin

    def get_plugin(self, auth_type: str) -> AuthPlugin:
        """Return the plugin for *auth_type* (aliases such as ``app`` accepted).

        Raises:
            AuthError: ``INVALID_AUTH_TYPE`` for an unknown kind.
        """
        key = auth_type.strip().lower()
        key = AUTH_TYPE_ALIASES.get(key, key)
        plugin = self._plugins.get(key)
        if plugin is None:
            available = ", ".join(self.list_types()) or "(none)"
            raise AuthError(
                AuthErrorKind.INVALID_AUTH_TYPE,
                f"Invalid auth type '{auth_type}'. Available types: {available}",
            )
        return plugin

    def list_types(self) -> list[str]:
        """Return the registered kinds, sorted."""
        return sorted(self._plugins)

    def authenticate(self, ctx: AuthContext, auth_type: str = "") -> AuthResult:
        """Resolve the auth headers for a request.

        Args:
            ctx: Request details.
            auth_type: Requested kind, or ``""`` to probe.

        Returns:
            An :class:`~xurl.auth.base.AuthResult` carrying ``Authorization``.

        Raises:
            AuthError: ``AUTH_NOT_SET`` without a store,
                ``INVALID_AUTH_TYPE`` for an unknown kind,
                ``NO_AUTH_METHOD`` when nothing is configured, or the
                failing mechanism's own error.
        """
        if self.store is None:
            raise AuthError(AuthErrorKind.AUTH_NOT_SET)

        if auth_type:
            return self.get_plugin(auth_type).authenticate(ctx)

        first_failure: Optional[AuthError] = None
        for kind in PROBE_ORDER:
            plugin = self._plugins.get(kind)
            if plugin is None or not plugin.is_configured(ctx):
                continue
            try:
                return plugin.authenticate(ctx)
            except AuthError as exc:
                logger.debug("Auth kind '%s' failed: %s", kind, exc)
                if first_failure is None:
                    first_failure = exc

        if first_failure is not None:
            raise first_failure
        raise AuthError(AuthErrorKind.NO_AUTH_METHOD)


def create_default_manager(
    store: Optional[TokenStore],
    config: Config,
    **flow_options: Any,
) -> AuthManager:
    """Create an :class:`AuthManager` with the bearer, OAuth1 and OAuth2 plugins.

    Args:
        store: The credential store (None yields a manager that always
            fails with ``AUTH_NOT_SET``).
        config: Process configuration for the OAuth2 flow.
        **flow_options: Forwarded to :class:`~xurl.auth.oauth2.OAuth2Flow`
            (``open_browser``, ``callback_timeout``, ``clock``).

    Returns:
        A fully initialised :class:`AuthManager`.
    """
    from xurl.plugins.bearer import BearerAuthPlugin
    from xurl.plugins.oauth1 import OAuth1AuthPlugin
    from xurl.plugins.oauth2 import OAuth2AuthPlugin

    manager = AuthManager(store)
    if store is None:
        return manager
    manager.register(BearerAuthPlugin(store))
    manager.register(OAuth1AuthPlugin(store))
    manager.register(OAuth2AuthPlugin(store, OAuth2Flow(store, config, **flow_options)))
    return manager
