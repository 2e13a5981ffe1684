"""Canonical Pydantic models shared across all xurl modules.

The models fall into three groups:

**Credentials** -- a discriminated union over the ``type`` field:
    :class:`BearerCredential`, :class:`OAuth2Credential`, and
    :class:`OAuth1Credential`, joined as :data:`Credential`. Each variant
    carries only its own fields, so a bearer credential with an OAuth2
    payload cannot be constructed. Credentials are frozen.

**Store models** -- :class:`App`, the unit of multi-tenancy inside the
    credential store.

**Runtime models** -- :class:`Config` (environment-derived configuration,
    built once at startup), :class:`RequestOptions` and
    :class:`MultipartOptions` (one logical request each).
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Credentials ---


class BearerCredential(BaseModel):
    """App-scoped static token sent as ``Authorization: Bearer <token>``."""

    model_config = ConfigDict(frozen=True)

    type: Literal["bearer"] = "bearer"
    token: str = Field(description="Opaque bearer token")


class OAuth2Credential(BaseModel):
    """User-scoped OAuth 2.0 access/refresh token pair."""

    model_config = ConfigDict(frozen=True)

    type: Literal["oauth2"] = "oauth2"
    access_token: str = Field(description="Access token sent as a bearer header")
    refresh_token: str = Field(default="", description="Refresh token, may be empty")
    expires_at: int = Field(default=0, ge=0, description="Expiry as Unix epoch seconds")


class OAuth1Credential(BaseModel):
    """OAuth 1.0a identity used to sign every request."""

    model_config = ConfigDict(frozen=True)

    type: Literal["oauth1"] = "oauth1"
    access_token: str
    token_secret: str
    consumer_key: str
    consumer_secret: str


Credential = Annotated[
    Union[BearerCredential, OAuth2Credential, OAuth1Credential],
    Field(discriminator="type"),
]
"""Any stored credential, discriminated on ``type``."""


# --- Store ---


class App(BaseModel):
    """A registered client application and the credentials obtained under it.

    ``default_user``, when set, names a key of :attr:`oauth2_tokens`.
    """

    client_id: str = ""
    client_secret: str = ""
    default_user: Optional[str] = None
    oauth2_tokens: dict[str, OAuth2Credential] = Field(default_factory=dict)
    oauth1_token: Optional[OAuth1Credential] = None
    bearer_token: Optional[BearerCredential] = None

    def has_credentials(self) -> bool:
        """Return True if the app holds at least one credential of any kind."""
        return bool(self.oauth2_tokens) or self.oauth1_token is not None or self.bearer_token is not None


# --- Runtime configuration ---


class Config(BaseModel):
    """Process configuration, built once by :func:`xurl.config.load_config`.

    Nothing below the CLI entry point reads the environment; the store,
    the auth plugins, and the dispatcher receive this object instead.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8080/callback"
    auth_url: str = "https://x.com/i/oauth2/authorize"
    token_url: str = "https://api.x.com/2/oauth2/token"
    api_base_url: str = "https://api.x.com"
    info_url: str = "https://api.x.com/2/users/me"
    app_name: str = Field(default="", description="Explicit app override (--app)")
    store_path: Path = Field(default_factory=lambda: Path.home() / ".xurl")
    twurlrc_path: Optional[Path] = Field(default_factory=lambda: Path.home() / ".twurlrc")


# --- Requests ---


class RequestOptions(BaseModel):
    """One logical API request, independent of transport mode.

    ``auth_type`` is kept as a free string so that an unknown value fails
    at resolution time with ``INVALID_AUTH_TYPE`` rather than at parse
    time. Accepted values are ``""`` (probe), ``oauth1``, ``oauth2``,
    ``bearer`` and its alias ``app``.
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    endpoint: str
    headers: dict[str, str] = Field(default_factory=dict)
    data: str = ""
    auth_type: str = ""
    username: str = ""
    app_name: str = ""
    verbose: bool = False
    trace: bool = False


class MultipartOptions(RequestOptions):
    """A request whose body is ``multipart/form-data``.

    The file part comes from :attr:`file_data` when set, otherwise from
    :attr:`file_path`. :attr:`file_name` defaults to the path's basename.
    """

    method: str = "POST"
    form_fields: dict[str, str] = Field(default_factory=dict)
    file_field: str = "media"
    file_path: str = ""
    file_name: str = ""
    file_data: Optional[bytes] = None
