"""OAuth2 Authorization Code flow with PKCE, plus token refresh.

This module provides :class:`OAuth2Flow`, which obtains and refreshes
user-scoped OAuth2 tokens and persists them in the
:class:`~xurl.auth.store.TokenStore`:

1. Builds the authorize URL with a random ``state`` and an S256 PKCE
   challenge (:rfc:`7636`) and requests the fixed scope set
   :data:`OAUTH2_SCOPES`.
2. Starts a :class:`~xurl.auth.listener.CallbackListener` on the redirect
   URI's port and opens the browser. If the browser cannot be opened, the
   URL is printed for manual use.
3. Exchanges the returned code for an access/refresh token pair.
4. Looks up the account's username on the profile endpoint when none was
   requested, and saves the token under it.

Refreshing returns the stored access token untouched while it is still
valid; otherwise exactly one refresh-token exchange is made. A failed
refresh is terminal for that credential and is not retried.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
import time
import webbrowser
from typing import Any, Callable, Optional
from urllib.parse import urlencode, urlsplit

import httpx

from xurl.auth.listener import CALLBACK_PATH, CallbackListener
from xurl.auth.store import TokenStore
from xurl.exceptions import AuthError, AuthErrorKind
from xurl.models import Config, OAuth2Credential
from xurl.output import get_output

logger = logging.getLogger(__name__)

OAUTH2_SCOPES: tuple[str, ...] = (
    "tweet.read",
    "users.read",
    "bookmark.read",
    "follows.read",
    "list.read",
    "block.read",
    "mute.read",
    "like.read",
    "users.email",
    "dm.read",
    "tweet.write",
    "tweet.moderate.write",
    "follows.write",
    "bookmark.write",
    "block.write",
    "mute.write",
    "like.write",
    "list.write",
    "media.write",
    "dm.write",
    "offline.access",
    "space.read",
)

DEFAULT_CALLBACK_PORT = 8080
DEFAULT_CALLBACK_TIMEOUT = 300.0
DEFAULT_TOKEN_LIFETIME = 3600
HTTP_TIMEOUT = 30.0


def generate_pkce_pair() -> tuple[str, str]:
    """Generate a PKCE code_verifier and code_challenge (S256).

    The verifier is 32 random bytes, base64url-encoded without padding.

    Returns:
        A tuple of ``(code_verifier, code_challenge)``.
    """
    code_verifier = base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode("ascii")
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    code_challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return code_verifier, code_challenge


def generate_state() -> str:
    """Return a URL-safe random ``state`` value (32 bytes of entropy)."""
    return secrets.token_urlsafe(32)


class OAuth2Flow:
    """Obtain, refresh and persist OAuth2 user tokens.

    Args:
        store: Where tokens are read from and saved to.
        config: Endpoints, redirect URI and ambient client credentials.
        open_browser: Callable that opens a URL and returns False (or
            raises :class:`webbrowser.Error`) on failure.
        callback_timeout: Seconds to wait for the browser redirect.
        clock: Returns the current Unix time; used for expiry checks.
    """

    def __init__(
        self,
        store: TokenStore,
        config: Config,
        open_browser: Callable[[str], Any] = webbrowser.open,
        callback_timeout: float = DEFAULT_CALLBACK_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._config = config
        self._open_browser = open_browser
        self._callback_timeout = callback_timeout
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def client_credentials(self, app_name: str = "") -> tuple[str, str]:
        """Return ``(client_id, client_secret)``: ambient config first, then the app."""
        app = self._store.resolve_app(app_name).app
        return (
            self._config.client_id or app.client_id,
            self._config.client_secret or app.client_secret,
        )

    def build_authorize_url(self, client_id: str, state: str, code_challenge: str) -> str:
        params = {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": self._config.redirect_uri,
            "scope": " ".join(OAUTH2_SCOPES),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self._config.auth_url}?{urlencode(params)}"

    def get_header(self, username: str = "", app_name: str = "") -> str:
        """Return ``Bearer <token>``, refreshing or authorizing as needed.

        A stored credential is refreshed when expired; without one, the
        interactive browser flow runs.
        """
        credential, _ = self._lookup(username, app_name)
        if credential is None:
            token = self.authorize(username, app_name)
        else:
            token = self.refresh(username, app_name)
        return f"Bearer {token}"

    def authorize(self, username: str = "", app_name: str = "") -> str:
        """Run the interactive authorization-code flow and persist the token.

        Args:
            username: Slot to save the token under. When empty, the
                account's username is fetched from the profile endpoint.
            app_name: App to authorize against (``""`` for the active app).

        Returns:
            The new access token.

        Raises:
            AuthError: ``LISTENER_ERROR``, ``INVALID_STATE``,
                ``INVALID_CODE``, ``TIMEOUT``, ``TOKEN_EXCHANGE_ERROR`` or
                ``USERNAME_FETCH_ERROR``.
        """
        client_id, client_secret = self.client_credentials(app_name)
        state = generate_state()
        code_verifier, code_challenge = generate_pkce_pair()
        auth_url = self.build_authorize_url(client_id, state, code_challenge)
        port, path = self._callback_address()

        with CallbackListener(port, expected_state=state, path=path) as listener:
            self._launch_browser(auth_url)
            code = listener.wait(self._callback_timeout)

        token_data = self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._config.redirect_uri,
                "code_verifier": code_verifier,
            },
            client_id,
            client_secret,
            AuthErrorKind.TOKEN_EXCHANGE_ERROR,
        )
        access_token = token_data["access_token"]
        name = username or self.fetch_username(access_token)
        self._store.save_oauth2_token_for_app(
            app_name,
            name,
            access_token,
            str(token_data.get("refresh_token") or ""),
            self._expires_at(token_data),
        )
        logger.info("Stored OAuth2 token for '%s'", name)
        return access_token

    def refresh(self, username: str = "", app_name: str = "") -> str:
        """Return a valid access token, refreshing the stored one if expired.

        Args:
            username: User whose token to use; empty picks the app's
                default user, then the alphabetically first one.
            app_name: App to look in (``""`` for the active app).

        Returns:
            The (possibly new) access token.

        Raises:
            AuthError: ``TOKEN_NOT_FOUND`` when nothing is stored,
                ``REFRESH_TOKEN_ERROR`` when the exchange fails,
                ``USERNAME_FETCH_ERROR`` when the username cannot be
                re-derived.
        """
        credential, stored_name = self._lookup(username, app_name)
        if credential is None:
            raise AuthError(AuthErrorKind.TOKEN_NOT_FOUND, "OAuth2 token not found")

        if self._clock() < credential.expires_at:
            return credential.access_token

        client_id, client_secret = self.client_credentials(app_name)
        token_data = self._token_request(
            {"grant_type": "refresh_token", "refresh_token": credential.refresh_token},
            client_id,
            client_secret,
            AuthErrorKind.REFRESH_TOKEN_ERROR,
        )
        access_token = token_data["access_token"]
        refresh_token = str(token_data.get("refresh_token") or credential.refresh_token)
        expires_at = self._expires_at(token_data)

        # Persist before the username lookup so a rotated refresh token is never lost.
        self._store.save_oauth2_token_for_app(
            app_name, stored_name, access_token, refresh_token, expires_at
        )
        if not username:
            canonical = self.fetch_username(access_token)
            if canonical != stored_name:
                was_default = self._store.get_default_user(app_name) == stored_name
                self._store.save_oauth2_token_for_app(
                    app_name, canonical, access_token, refresh_token, expires_at
                )
                self._store.clear_oauth2_token_for_app(app_name, stored_name)
                if was_default:
                    self._store.set_default_user(app_name, canonical)
        logger.info("Refreshed OAuth2 token for '%s'", username or stored_name)
        return access_token

    def fetch_username(self, access_token: str) -> str:
        """Return ``data.username`` from the profile endpoint.

        Raises:
            AuthError: ``USERNAME_FETCH_ERROR`` on any failure.
        """
        try:
            response = httpx.get(
                self._config.info_url,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=HTTP_TIMEOUT,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise AuthError(AuthErrorKind.USERNAME_FETCH_ERROR, f"Fetching username failed: {exc}") from exc
        except ValueError as exc:
            raise AuthError(
                AuthErrorKind.USERNAME_FETCH_ERROR, f"Profile response is not JSON: {exc}"
            ) from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        username = data.get("username") if isinstance(data, dict) else None
        if not isinstance(username, str) or not username:
            raise AuthError(AuthErrorKind.USERNAME_FETCH_ERROR, "Profile response has no username")
        return username

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _lookup(self, username: str, app_name: str) -> tuple[Optional[OAuth2Credential], str]:
        name = username or self._store.first_oauth2_username(app_name)
        if not name:
            return None, ""
        return self._store.get_oauth2_token_for_app(app_name, name), name

    def _callback_address(self) -> tuple[int, str]:
        parts = urlsplit(self._config.redirect_uri)
        return parts.port or DEFAULT_CALLBACK_PORT, parts.path or CALLBACK_PATH

    def _launch_browser(self, url: str) -> None:
        try:
            opened = self._open_browser(url)
        except webbrowser.Error as exc:
            logger.debug("Opening browser failed: %s", exc)
            opened = False
        if opened is False:
            get_output().warning(
                f"Failed to open a browser automatically. Visit this URL to authorize:\n{url}"
            )

    def _expires_at(self, token_data: dict[str, Any]) -> int:
        try:
            lifetime = int(token_data.get("expires_in") or DEFAULT_TOKEN_LIFETIME)
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME
        return int(self._clock()) + lifetime

    def _token_request(
        self,
        data: dict[str, str],
        client_id: str,
        client_secret: str,
        kind: AuthErrorKind,
    ) -> dict[str, Any]:
        """POST to the token endpoint and return the decoded token response."""
        form = dict(data)
        if client_id:
            form["client_id"] = client_id
        auth = httpx.BasicAuth(client_id, client_secret) if client_secret else None

        try:
            response = httpx.post(
                self._config.token_url,
                data=form,
                headers={"Accept": "application/json"},
                auth=auth,
                timeout=HTTP_TIMEOUT,
            )
            response.raise_for_status()
            token_data = response.json()
        except httpx.HTTPStatusError as exc:
            raise AuthError(
                kind,
                f"Token endpoint returned {exc.response.status_code}: {exc.response.text}",
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthError(kind, f"Token request failed: {exc}") from exc
        except ValueError as exc:
            raise AuthError(kind, f"Token response is not JSON: {exc}") from exc

        if not isinstance(token_data, dict) or not token_data.get("access_token"):
            raise AuthError(kind, "Token response missing 'access_token' field")
        return token_data
