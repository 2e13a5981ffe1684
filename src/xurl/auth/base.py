"""Abstract base class for authentication plugins.

This module defines the foundational types of the auth subsystem:

- :class:`AuthContext` -- what a plugin needs to know about the request it
  is authorizing (method, absolute URL, requested user and app, and any
  form-encoded body fields that must be signed).
- :class:`AuthResult` -- the headers a plugin produces.
- :class:`AuthPlugin` -- the abstract base class every credential kind
  extends.

See Also:
    :mod:`xurl.auth.manager` for plugin registration and the probe order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field


class AuthContext(BaseModel):
    """Request details handed to :meth:`AuthPlugin.authenticate`."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    url: str = Field(description="Absolute request URL, query string included")
    username: str = Field(default="", description="Requested OAuth2 user, '' for the default")
    app_name: str = Field(default="", description="Requested app, '' for the active app")
    form_params: dict[str, str] = Field(
        default_factory=dict, description="Form-encoded body fields (signed by OAuth1)"
    )


class AuthResult:
    """Container for the headers an auth plugin wants on the request.

    Args:
        headers: HTTP headers to add (e.g. ``{"Authorization": "Bearer ..."}``).

    Example::

        result = AuthResult(headers={"Authorization": "Bearer tok123"})
        assert result.authorization == "Bearer tok123"
    """

    def __init__(self, headers: dict[str, str] | None = None):
        self.headers = headers or {}

    @property
    def authorization(self) -> str:
        """The ``Authorization`` header value, or ``""``."""
        return self.headers.get("Authorization", "")


class AuthPlugin(ABC):
    """Abstract base class for credential kinds.

    Every concrete kind (bearer, OAuth1, OAuth2) provides:

    1. An :attr:`auth_type` property returning its identifier.
    2. :meth:`is_configured`, telling the resolver whether a credential of
       this kind exists for the request (used when probing).
    3. :meth:`authenticate`, producing the ``Authorization`` header.
    """

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the identifier this plugin handles (``"bearer"``, ...)."""
        ...

    @abstractmethod
    def is_configured(self, ctx: AuthContext) -> bool:
        """Return True if a credential of this kind is stored for *ctx*."""
        ...

    @abstractmethod
    def authenticate(self, ctx: AuthContext) -> AuthResult:
        """Return the auth headers for the request described by *ctx*.

        Raises:
            AuthError: With the kind-specific failure (``TOKEN_NOT_FOUND``,
                ``REFRESH_TOKEN_ERROR``, ...).
        """
        ...
