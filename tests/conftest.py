"""Shared test fixtures for xurl.

Provides reusable fixtures for isolated credential stores, process
configuration, output state, and running CLI commands. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from xurl.auth.store import TokenStore
from xurl.models import Config
from xurl.output import OutputFormat, OutputManager, reset_output, set_output


_ENV_VARS = (
    "CLIENT_ID",
    "CLIENT_SECRET",
    "REDIRECT_URI",
    "AUTH_URL",
    "TOKEN_URL",
    "API_BASE_URL",
    "INFO_URL",
    "XURL_STORE_PATH",
    "XURL_TWURLRC_PATH",
)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate every on-disk location to a temporary directory.

    Points HOME and XDG_DATA_HOME into tmp_path, routes the credential
    store and the twurlrc file there via XURL_STORE_PATH /
    XURL_TWURLRC_PATH, and clears the client/endpoint variables so that
    tests never touch real user credentials.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XURL_STORE_PATH", str(tmp_path / ".xurl"))
    monkeypatch.setenv("XURL_TWURLRC_PATH", str(tmp_path / ".twurlrc"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Config and store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """A Config whose store and twurlrc live under tmp_path."""
    return Config(
        api_base_url="https://api.x.com",
        info_url="https://api.x.com/2/users/me",
        store_path=tmp_path / ".xurl",
        twurlrc_path=tmp_path / ".twurlrc",
    )


@pytest.fixture
def store(tmp_path: Path) -> TokenStore:
    """An empty TokenStore at tmp_path/.xurl with no twurlrc import."""
    return TokenStore(tmp_path / ".xurl")


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet JSON-format OutputManager for tests that don't care about output."""
    output = OutputManager(format=OutputFormat.JSON, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for tests that check stdout."""
    output = OutputManager(format=OutputFormat.JSON, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
