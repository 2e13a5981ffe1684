"""Multi-app credential store persisted as YAML at ``~/.xurl``.

The store maps app names to :class:`~xurl.models.App` registrations, each
holding at most one bearer credential, at most one OAuth 1.0a identity and
any number of per-user OAuth 2.0 tokens. One app is the *default*; every
operation without an explicit app name works against the default, unless
the process was started with ``--app``.

Every mutating operation rewrites the whole document atomically (temp
file, fsync, rename, ``0o600``) before returning. There is no locking:
concurrent processes follow last-writer-wins.

On construction the store also:

* migrates the legacy flat single-app document into an app named
  ``default`` and rewrites the file in the current layout;
* backfills ambient ``CLIENT_ID``/``CLIENT_SECRET`` into apps that hold
  credentials but have no client credentials of their own;
* imports an OAuth1 identity and bearer token from ``~/.twurlrc`` when the
  active app lacks them.

Document layout::

    apps:
      work:
        client_id: ...
        client_secret: ...
        default_user: alice
        oauth2_tokens:
          alice: {type: oauth2, oauth2: {access_token, refresh_token, expiration_time}}
        oauth1_token: {type: oauth1, oauth1: {access_token, token_secret, consumer_key, consumer_secret}}
        bearer_token: {type: bearer, bearer: AAAA...}
    default_app: work
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict

from xurl.config import atomic_write
from xurl.exceptions import IOError_, StoreErrorKind, TokenStoreError, XurlError
from xurl.models import (
    App,
    BearerCredential,
    Config,
    OAuth1Credential,
    OAuth2Credential,
)

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "default"

_LEGACY_KEYS = ("oauth2_tokens", "oauth1_tokens", "bearer_token")


class ResolutionOutcome(str, Enum):
    """How :meth:`TokenStore.resolve_app` arrived at its answer."""

    FOUND = "found"
    """The explicitly requested app exists."""

    FELL_BACK_TO_DEFAULT = "fell_back_to_default"
    """No name (or an unknown one) was given; the default app was used."""

    CREATED_DEFAULT = "created_default"
    """No usable default existed; an empty ``default`` app was created in memory."""


class AppResolution(BaseModel):
    """Result of :meth:`TokenStore.resolve_app`. ``app`` is a copy."""

    model_config = ConfigDict(frozen=True)

    name: str
    app: App
    outcome: ResolutionOutcome


class TokenStore:
    """Read/write the multi-app credential store.

    Args:
        path: Location of the YAML document.
        client_id: Ambient client id used for backfill.
        client_secret: Ambient client secret used for backfill.
        twurlrc_path: Optional foreign credential file to auto-import.
        app_override: App name that replaces the default for every
            operation that does not name an app explicitly.

    Raises:
        TokenStoreError: ``PARSE_ERROR`` if the document exists but is
            neither the current nor the legacy layout.
        IOError_: If the document cannot be read.
    """

    def __init__(
        self,
        path: Path,
        client_id: str = "",
        client_secret: str = "",
        twurlrc_path: Optional[Path] = None,
        app_override: str = "",
    ) -> None:
        self.path = Path(path)
        self._apps: dict[str, App] = {}
        self._default_app = ""
        self._app_override = app_override

        self._load()
        self._backfill(client_id, client_secret)

        if twurlrc_path is not None and Path(twurlrc_path).exists():
            active = self._apps.get(self.active_app_name)
            if active is None or active.oauth1_token is None or active.bearer_token is None:
                try:
                    self.import_twurlrc(Path(twurlrc_path))
                except XurlError as exc:
                    logger.warning("Could not import %s: %s", twurlrc_path, exc)

    # ------------------------------------------------------------------ #
    # Loading and persistence
    # ------------------------------------------------------------------ #

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IOError_(f"Cannot read credential store {self.path}: {exc}") from exc

        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise TokenStoreError(
                StoreErrorKind.PARSE_ERROR, f"Credential store {self.path} is not valid YAML: {exc}"
            ) from exc

        if doc is None:
            return
        if not isinstance(doc, dict):
            raise TokenStoreError(
                StoreErrorKind.PARSE_ERROR, f"Credential store {self.path} is not a mapping"
            )

        apps_doc = doc.get("apps")
        if apps_doc:
            if not isinstance(apps_doc, dict):
                raise TokenStoreError(StoreErrorKind.PARSE_ERROR, "'apps' must be a mapping")
            self._apps = {
                str(name): _parse_app(str(name), app_doc) for name, app_doc in apps_doc.items()
            }
            self._default_app = str(doc.get("default_app") or "")
            return

        if any(key in doc for key in _LEGACY_KEYS):
            self._migrate_legacy(doc)
            return

        if "apps" in doc or "default_app" in doc:
            return

        raise TokenStoreError(
            StoreErrorKind.PARSE_ERROR,
            f"Credential store {self.path} has an unrecognised layout",
        )

    def _migrate_legacy(self, doc: dict[str, Any]) -> None:
        """Convert the flat single-app layout into an app named ``default``."""
        try:
            oauth2_doc = doc.get("oauth2_tokens") or {}
            if not isinstance(oauth2_doc, dict):
                raise ValueError("'oauth2_tokens' must be a mapping")
            oauth2 = {
                str(user): _parse_credential(tok, OAuth2Credential)
                for user, tok in oauth2_doc.items()
            }
            oauth1 = (
                _parse_credential(doc["oauth1_tokens"], OAuth1Credential)
                if doc.get("oauth1_tokens")
                else None
            )
            bearer = (
                _parse_credential(doc["bearer_token"], BearerCredential)
                if doc.get("bearer_token")
                else None
            )
        except (ValueError, TypeError) as exc:
            raise TokenStoreError(
                StoreErrorKind.PARSE_ERROR, f"Legacy credential store is malformed: {exc}"
            ) from exc

        self._apps = {
            DEFAULT_APP_NAME: App(oauth2_tokens=oauth2, oauth1_token=oauth1, bearer_token=bearer)
        }
        self._default_app = DEFAULT_APP_NAME
        logger.info("Migrated legacy credential store %s", self.path)
        self._save()

    def _backfill(self, client_id: str, client_secret: str) -> None:
        if not client_id and not client_secret:
            return
        dirty = False
        for name, app in self._apps.items():
            if not app.has_credentials():
                continue
            filled = False
            if client_id and not app.client_id:
                app.client_id = client_id
                filled = True
            if client_secret and not app.client_secret:
                app.client_secret = client_secret
                filled = True
            if filled:
                logger.debug("Backfilled client credentials into app '%s'", name)
                dirty = True
        if dirty:
            self._save()

    def _save(self) -> None:
        doc = {
            "apps": {name: _dump_app(app) for name, app in self._apps.items()},
            "default_app": self._default_app,
        }
        data = yaml.safe_dump(doc, default_flow_style=False, sort_keys=True)
        try:
            atomic_write(self.path, data)
        except OSError as exc:
            raise IOError_(f"Cannot write credential store {self.path}: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    @property
    def active_app_name(self) -> str:
        """Name used when no app is given: the ``--app`` override, else the default."""
        return self._app_override or self._default_app

    def _resolve(self, name: str = "") -> tuple[str, App, ResolutionOutcome]:
        wanted = name or self._app_override
        if wanted and wanted in self._apps:
            return wanted, self._apps[wanted], ResolutionOutcome.FOUND
        if self._default_app in self._apps:
            return (
                self._default_app,
                self._apps[self._default_app],
                ResolutionOutcome.FELL_BACK_TO_DEFAULT,
            )

        # The default pointer is empty or dangling.
        self._default_app = DEFAULT_APP_NAME
        if DEFAULT_APP_NAME in self._apps:
            return DEFAULT_APP_NAME, self._apps[DEFAULT_APP_NAME], ResolutionOutcome.FELL_BACK_TO_DEFAULT
        app = App()
        self._apps[DEFAULT_APP_NAME] = app
        logger.debug("Created empty '%s' app during resolution", DEFAULT_APP_NAME)
        return DEFAULT_APP_NAME, app, ResolutionOutcome.CREATED_DEFAULT

    def resolve_app(self, name: str = "") -> AppResolution:
        """Resolve *name* to an app, falling back to the default.

        An empty or unknown *name* resolves to the default app. When no
        default exists, an existing app called ``default`` is adopted, or
        an empty one is created in memory; it is written to disk by the
        next mutating operation.

        Args:
            name: Explicit app name, or ``""``.

        Returns:
            The resolved name, a copy of the app, and the outcome.
        """
        resolved, app, outcome = self._resolve(name)
        return AppResolution(name=resolved, app=app.model_copy(deep=True), outcome=outcome)

    # ------------------------------------------------------------------ #
    # App management
    # ------------------------------------------------------------------ #

    def add_app(self, name: str, client_id: str, client_secret: str) -> None:
        """Register a new app. The first registered app becomes the default.

        Raises:
            TokenStoreError: ``DUPLICATE_APP`` if *name* is taken.
        """
        if name in self._apps:
            raise TokenStoreError(StoreErrorKind.DUPLICATE_APP, f"App '{name}' already exists")
        self._apps[name] = App(client_id=client_id, client_secret=client_secret)
        if len(self._apps) == 1:
            self._default_app = name
        self._save()

    def update_app(self, name: str, client_id: str = "", client_secret: str = "") -> None:
        """Update an app's client credentials. Empty values leave a field unchanged.

        Raises:
            TokenStoreError: ``NOT_FOUND`` if *name* is not registered.
        """
        app = self._require_app(name)
        if client_id:
            app.client_id = client_id
        if client_secret:
            app.client_secret = client_secret
        self._save()

    def remove_app(self, name: str) -> None:
        """Remove an app and all its credentials.

        If it was the default, the alphabetically first remaining app
        becomes the default, or the default is cleared when none remain.

        Raises:
            TokenStoreError: ``NOT_FOUND`` if *name* is not registered.
        """
        self._require_app(name)
        del self._apps[name]
        if self._default_app == name:
            remaining = sorted(self._apps)
            self._default_app = remaining[0] if remaining else ""
        self._save()

    def list_apps(self) -> list[str]:
        """Return registered app names, sorted."""
        return sorted(self._apps)

    def get_app(self, name: str) -> Optional[App]:
        """Return a copy of the app called *name*, or None."""
        app = self._apps.get(name)
        return app.model_copy(deep=True) if app is not None else None

    def set_default_app(self, name: str) -> None:
        """Make *name* the default app.

        Raises:
            TokenStoreError: ``NOT_FOUND`` if *name* is not registered.
        """
        self._require_app(name)
        self._default_app = name
        self._save()

    def get_default_app(self) -> str:
        """Return the default app name (``""`` when unset)."""
        return self._default_app

    def set_default_user(self, app_name: str, username: str) -> None:
        """Make *username* the preferred OAuth2 identity of the resolved app.

        Raises:
            TokenStoreError: ``NOT_FOUND`` if the app holds no OAuth2 token
                for *username*.
        """
        resolved, app, _ = self._resolve(app_name)
        if username not in app.oauth2_tokens:
            raise TokenStoreError(
                StoreErrorKind.NOT_FOUND, f"User '{username}' has no OAuth2 token in app '{resolved}'"
            )
        app.default_user = username
        self._save()

    def get_default_user(self, app_name: str = "") -> str:
        """Return the default OAuth2 user of the resolved app (``""`` when unset)."""
        return self._resolve(app_name)[1].default_user or ""

    def _require_app(self, name: str) -> App:
        app = self._apps.get(name)
        if app is None:
            raise TokenStoreError(StoreErrorKind.NOT_FOUND, f"App '{name}' not found")
        return app

    # ------------------------------------------------------------------ #
    # Bearer
    # ------------------------------------------------------------------ #

    def save_bearer_token(self, token: str) -> None:
        self.save_bearer_token_for_app("", token)

    def save_bearer_token_for_app(self, app_name: str, token: str) -> None:
        app = self._resolve(app_name)[1]
        app.bearer_token = BearerCredential(token=token)
        self._save()

    def get_bearer_token(self) -> Optional[BearerCredential]:
        return self.get_bearer_token_for_app("")

    def get_bearer_token_for_app(self, app_name: str) -> Optional[BearerCredential]:
        return self._resolve(app_name)[1].bearer_token

    def clear_bearer_token(self) -> None:
        self.clear_bearer_token_for_app("")

    def clear_bearer_token_for_app(self, app_name: str) -> None:
        app = self._resolve(app_name)[1]
        app.bearer_token = None
        self._save()

    def has_bearer_token(self) -> bool:
        app = self._apps.get(self.active_app_name)
        return app is not None and app.bearer_token is not None

    # ------------------------------------------------------------------ #
    # OAuth2
    # ------------------------------------------------------------------ #

    def save_oauth2_token(
        self, username: str, access_token: str, refresh_token: str, expires_at: int
    ) -> None:
        self.save_oauth2_token_for_app("", username, access_token, refresh_token, expires_at)

    def save_oauth2_token_for_app(
        self,
        app_name: str,
        username: str,
        access_token: str,
        refresh_token: str,
        expires_at: int,
    ) -> None:
        """Store (or replace) the OAuth2 token of *username* in the resolved app."""
        app = self._resolve(app_name)[1]
        app.oauth2_tokens[username] = OAuth2Credential(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=max(int(expires_at), 0),
        )
        self._save()

    def get_oauth2_token(self, username: str) -> Optional[OAuth2Credential]:
        return self.get_oauth2_token_for_app("", username)

    def get_oauth2_token_for_app(self, app_name: str, username: str) -> Optional[OAuth2Credential]:
        return self._resolve(app_name)[1].oauth2_tokens.get(username)

    def get_first_oauth2_token(self) -> Optional[OAuth2Credential]:
        return self.get_first_oauth2_token_for_app("")

    def get_first_oauth2_token_for_app(self, app_name: str) -> Optional[OAuth2Credential]:
        """Return the default user's token, else the alphabetically first user's."""
        username = self.first_oauth2_username(app_name)
        if not username:
            return None
        return self._resolve(app_name)[1].oauth2_tokens[username]

    def first_oauth2_username(self, app_name: str = "") -> str:
        """Return the username :meth:`get_first_oauth2_token_for_app` would pick."""
        app = self._resolve(app_name)[1]
        if app.default_user and app.default_user in app.oauth2_tokens:
            return app.default_user
        users = sorted(app.oauth2_tokens)
        return users[0] if users else ""

    def clear_oauth2_token(self, username: str) -> None:
        self.clear_oauth2_token_for_app("", username)

    def clear_oauth2_token_for_app(self, app_name: str, username: str) -> None:
        """Remove *username*'s token; clears ``default_user`` if it pointed there."""
        app = self._resolve(app_name)[1]
        app.oauth2_tokens.pop(username, None)
        if app.default_user == username:
            app.default_user = None
        self._save()

    def get_oauth2_usernames(self) -> list[str]:
        return self.get_oauth2_usernames_for_app("")

    def get_oauth2_usernames_for_app(self, app_name: str) -> list[str]:
        return sorted(self._resolve(app_name)[1].oauth2_tokens)

    # ------------------------------------------------------------------ #
    # OAuth1
    # ------------------------------------------------------------------ #

    def save_oauth1_tokens(
        self, access_token: str, token_secret: str, consumer_key: str, consumer_secret: str
    ) -> None:
        self.save_oauth1_tokens_for_app("", access_token, token_secret, consumer_key, consumer_secret)

    def save_oauth1_tokens_for_app(
        self,
        app_name: str,
        access_token: str,
        token_secret: str,
        consumer_key: str,
        consumer_secret: str,
    ) -> None:
        app = self._resolve(app_name)[1]
        app.oauth1_token = OAuth1Credential(
            access_token=access_token,
            token_secret=token_secret,
            consumer_key=consumer_key,
            consumer_secret=consumer_secret,
        )
        self._save()

    def get_oauth1_tokens(self) -> Optional[OAuth1Credential]:
        return self.get_oauth1_tokens_for_app("")

    def get_oauth1_tokens_for_app(self, app_name: str) -> Optional[OAuth1Credential]:
        return self._resolve(app_name)[1].oauth1_token

    def clear_oauth1_tokens(self) -> None:
        self.clear_oauth1_tokens_for_app("")

    def clear_oauth1_tokens_for_app(self, app_name: str) -> None:
        app = self._resolve(app_name)[1]
        app.oauth1_token = None
        self._save()

    def has_oauth1_tokens(self) -> bool:
        app = self._apps.get(self.active_app_name)
        return app is not None and app.oauth1_token is not None

    # ------------------------------------------------------------------ #
    # Bulk
    # ------------------------------------------------------------------ #

    def clear_all(self) -> None:
        self.clear_all_for_app("")

    def clear_all_for_app(self, app_name: str) -> None:
        """Wipe every credential of the resolved app but keep its registration."""
        app = self._resolve(app_name)[1]
        app.oauth2_tokens = {}
        app.default_user = None
        app.oauth1_token = None
        app.bearer_token = None
        self._save()

    # ------------------------------------------------------------------ #
    # Foreign import
    # ------------------------------------------------------------------ #

    def import_twurlrc(self, path: Path) -> bool:
        """Merge credentials from a ``.twurlrc`` file into the active app.

        The first OAuth1 profile (the file's ``default_profile`` when it
        names one) is imported only if the app has no OAuth1 identity; the
        first bearer token only if the app has no bearer credential. The
        file is parsed completely before anything is merged, so a bad file
        leaves the store untouched.

        Args:
            path: The file to import.

        Returns:
            True if anything was merged (and the store saved).

        Raises:
            IOError_: If the file cannot be read.
            TokenStoreError: ``PARSE_ERROR`` if the file is malformed.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise IOError_(f"Cannot read {path}: {exc}") from exc

        oauth1, bearer = _parse_twurlrc(text, path)

        app = self._resolve("")[1]
        changed = False
        if oauth1 is not None and app.oauth1_token is None:
            app.oauth1_token = oauth1
            changed = True
        if bearer is not None and app.bearer_token is None:
            app.bearer_token = bearer
            changed = True
        if changed:
            logger.info("Imported credentials from %s", path)
            self._save()
        return changed


def create_token_store(config: Config) -> TokenStore:
    """Build the process :class:`TokenStore` from a :class:`~xurl.models.Config`."""
    return TokenStore(
        config.store_path,
        client_id=config.client_id,
        client_secret=config.client_secret,
        twurlrc_path=config.twurlrc_path,
        app_override=config.app_name,
    )


# ------------------------------------------------------------------ #
# Document (de)serialisation
# ------------------------------------------------------------------ #


def _parse_credential(doc: Any, expected: type) -> Any:
    """Parse one on-disk token entry, checking it is of the *expected* kind."""
    if not isinstance(doc, dict):
        raise ValueError("token entry must be a mapping")
    kind = doc.get("type")
    if expected is BearerCredential and kind == "bearer":
        return BearerCredential(token=str(doc.get("bearer") or ""))
    if expected is OAuth2Credential and kind == "oauth2":
        body = doc.get("oauth2") or {}
        if not isinstance(body, dict):
            raise ValueError("'oauth2' must be a mapping")
        return OAuth2Credential(
            access_token=str(body.get("access_token") or ""),
            refresh_token=str(body.get("refresh_token") or ""),
            expires_at=int(body.get("expiration_time") or 0),
        )
    if expected is OAuth1Credential and kind == "oauth1":
        body = doc.get("oauth1") or {}
        if not isinstance(body, dict):
            raise ValueError("'oauth1' must be a mapping")
        return OAuth1Credential(
            access_token=str(body.get("access_token") or ""),
            token_secret=str(body.get("token_secret") or ""),
            consumer_key=str(body.get("consumer_key") or ""),
            consumer_secret=str(body.get("consumer_secret") or ""),
        )
    raise ValueError(f"unexpected token type {kind!r}")


def _parse_app(name: str, doc: Any) -> App:
    try:
        if doc is None:
            return App()
        if not isinstance(doc, dict):
            raise ValueError("app entry must be a mapping")
        oauth2_doc = doc.get("oauth2_tokens") or {}
        if not isinstance(oauth2_doc, dict):
            raise ValueError("'oauth2_tokens' must be a mapping")
        app = App(
            client_id=str(doc.get("client_id") or ""),
            client_secret=str(doc.get("client_secret") or ""),
            oauth2_tokens={
                str(user): _parse_credential(tok, OAuth2Credential)
                for user, tok in oauth2_doc.items()
            },
            oauth1_token=(
                _parse_credential(doc["oauth1_token"], OAuth1Credential)
                if doc.get("oauth1_token")
                else None
            ),
            bearer_token=(
                _parse_credential(doc["bearer_token"], BearerCredential)
                if doc.get("bearer_token")
                else None
            ),
        )
    except (ValueError, TypeError) as exc:
        raise TokenStoreError(StoreErrorKind.PARSE_ERROR, f"App '{name}' is malformed: {exc}") from exc

    default_user = doc.get("default_user")
    if default_user and str(default_user) in app.oauth2_tokens:
        app.default_user = str(default_user)
    return app


def _dump_credential(cred: Any) -> dict[str, Any]:
    if isinstance(cred, BearerCredential):
        return {"type": "bearer", "bearer": cred.token}
    if isinstance(cred, OAuth2Credential):
        return {
            "type": "oauth2",
            "oauth2": {
                "access_token": cred.access_token,
                "refresh_token": cred.refresh_token,
                "expiration_time": cred.expires_at,
            },
        }
    return {
        "type": "oauth1",
        "oauth1": {
            "access_token": cred.access_token,
            "token_secret": cred.token_secret,
            "consumer_key": cred.consumer_key,
            "consumer_secret": cred.consumer_secret,
        },
    }


def _dump_app(app: App) -> dict[str, Any]:
    doc: dict[str, Any] = {"client_id": app.client_id, "client_secret": app.client_secret}
    if app.default_user:
        doc["default_user"] = app.default_user
    if app.oauth2_tokens:
        doc["oauth2_tokens"] = {user: _dump_credential(tok) for user, tok in app.oauth2_tokens.items()}
    if app.oauth1_token is not None:
        doc["oauth1_token"] = _dump_credential(app.oauth1_token)
    if app.bearer_token is not None:
        doc["bearer_token"] = _dump_credential(app.bearer_token)
    return doc


def _parse_twurlrc(
    text: str, path: Path
) -> tuple[Optional[OAuth1Credential], Optional[BearerCredential]]:
    """Extract the first OAuth1 profile and first bearer token from ``.twurlrc``.

    Layout::

        profiles:
          <username>:
            <consumer_key>: {username, consumer_key, consumer_secret, token, secret}
        configuration:
          default_profile: [<username>, <consumer_key>]
        bearer_tokens:
          <consumer_key>: <token>
    """
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise TokenStoreError(StoreErrorKind.PARSE_ERROR, f"{path} is not valid YAML: {exc}") from exc
    if not isinstance(doc, dict):
        raise TokenStoreError(StoreErrorKind.PARSE_ERROR, f"{path} is not a twurlrc mapping")

    profiles = doc.get("profiles") or {}
    bearer_tokens = doc.get("bearer_tokens") or {}
    configuration = doc.get("configuration") or {}
    if not isinstance(profiles, dict) or not isinstance(bearer_tokens, dict):
        raise TokenStoreError(
            StoreErrorKind.PARSE_ERROR, f"{path}: 'profiles' and 'bearer_tokens' must be mappings"
        )

    candidates: list[tuple[str, str]] = []
    default_profile = configuration.get("default_profile") if isinstance(configuration, dict) else None
    if isinstance(default_profile, list) and len(default_profile) == 2:
        candidates.append((str(default_profile[0]), str(default_profile[1])))
    for username in sorted(profiles, key=str):
        keys = profiles[username]
        if not isinstance(keys, dict):
            raise TokenStoreError(
                StoreErrorKind.PARSE_ERROR, f"{path}: profile '{username}' must be a mapping"
            )
        candidates.extend((str(username), str(key)) for key in sorted(keys, key=str))

    oauth1: Optional[OAuth1Credential] = None
    for username, consumer_key in candidates:
        entry = (profiles.get(username) or {}).get(consumer_key)
        if entry is None:
            continue
        if not isinstance(entry, dict):
            raise TokenStoreError(
                StoreErrorKind.PARSE_ERROR, f"{path}: profile '{username}/{consumer_key}' is malformed"
            )
        oauth1 = OAuth1Credential(
            access_token=str(entry.get("token") or ""),
            token_secret=str(entry.get("secret") or ""),
            consumer_key=consumer_key,
            consumer_secret=str(entry.get("consumer_secret") or ""),
        )
        break

    bearer: Optional[BearerCredential] = None
    if bearer_tokens:
        first_key = sorted(bearer_tokens, key=str)[0]
        bearer = BearerCredential(token=str(bearer_tokens[first_key]))

    return oauth1, bearer
