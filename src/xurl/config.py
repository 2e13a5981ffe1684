"""Configuration: environment snapshot, on-disk paths, and atomic writes.

This module is the only place that reads the process environment:

* **Environment snapshot** -- :func:`load_config` reads ``CLIENT_ID``,
  ``CLIENT_SECRET``, ``REDIRECT_URI``, ``AUTH_URL``, ``TOKEN_URL``,
  ``API_BASE_URL`` and ``INFO_URL`` once and freezes them into a
  :class:`~xurl.models.Config`. Everything downstream receives that value.
* **Paths** -- the credential store lives at ``~/.xurl`` and the foreign
  import file at ``~/.twurlrc``; both may be overridden with
  ``XURL_STORE_PATH`` / ``XURL_TWURLRC_PATH``. Crash logs go to the XDG
  data directory (:func:`get_data_dir`).
* **Atomic writes** -- :func:`atomic_write` uses a temp-file-then-rename
  strategy with ``0o600`` permissions so secrets are never world-readable
  and a crash never leaves a truncated store behind.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Mapping, Optional

from xurl.models import Config

_APP_NAME = "xurl"
_STORE_FILENAME = ".xurl"
_TWURLRC_FILENAME = ".twurlrc"

DEFAULT_REDIRECT_URI = "http://localhost:8080/callback"
DEFAULT_AUTH_URL = "https://x.com/i/oauth2/authorize"
DEFAULT_TOKEN_URL = "https://api.x.com/2/oauth2/token"
DEFAULT_API_BASE_URL = "https://api.x.com"


# --- Environment ---


def load_config(app_name: str = "", environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build the process :class:`~xurl.models.Config` from the environment.

    Empty or unset variables fall back to the built-in defaults. ``INFO_URL``
    defaults to ``{API_BASE_URL}/2/users/me`` so that pointing the client at
    another API host moves the profile endpoint with it.

    Args:
        app_name: Explicit app override from ``--app``. Beats every other
            source when the store resolves the active app.
        environ: Mapping to read instead of :data:`os.environ` (tests).

    Returns:
        A frozen configuration value.
    """
    env = os.environ if environ is None else environ

    def _get(name: str, default: str = "") -> str:
        return env.get(name, "") or default

    api_base_url = _get("API_BASE_URL", DEFAULT_API_BASE_URL)
    store_override = _get("XURL_STORE_PATH")
    twurlrc_override = _get("XURL_TWURLRC_PATH")

    return Config(
        client_id=_get("CLIENT_ID"),
        client_secret=_get("CLIENT_SECRET"),
        redirect_uri=_get("REDIRECT_URI", DEFAULT_REDIRECT_URI),
        auth_url=_get("AUTH_URL", DEFAULT_AUTH_URL),
        token_url=_get("TOKEN_URL", DEFAULT_TOKEN_URL),
        api_base_url=api_base_url,
        info_url=_get("INFO_URL", f"{api_base_url.rstrip('/')}/2/users/me"),
        app_name=app_name,
        store_path=Path(store_override) if store_override else get_store_path(),
        twurlrc_path=Path(twurlrc_override) if twurlrc_override else get_twurlrc_path(),
    )


# --- Paths ---


def get_store_path() -> Path:
    """Return the default credential store location (``~/.xurl``)."""
    return Path.home() / _STORE_FILENAME


def get_twurlrc_path() -> Path:
    """Return the default foreign credential file location (``~/.twurlrc``)."""
    return Path.home() / _TWURLRC_FILENAME


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/xurl/`` (default ``~/.local/share/xurl/``).
    On macOS/Windows: ``~/.xurl.d/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = os.environ.get("XDG_DATA_HOME", "")
        root = Path(base) if base else Path.home() / ".local" / "share"
        path = root / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}.d"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic writes ---


def atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Permissions are
    set on the temp file before the rename, so the final file is never
    visible with a wider mode. On any failure the temp file is removed
    and the exception propagates.

    Args:
        path: Destination file.
        data: Full new contents.
        mode: Permission bits for the final file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
