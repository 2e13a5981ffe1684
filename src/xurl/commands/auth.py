"""Auth commands -- manage apps and the credentials stored for them.

Provides the ``xurl auth`` sub-command group. Every command works on the
active app (``--app`` beats the store's default) unless it takes an app
name itself.

Typical workflow::

    xurl auth apps add my-app --client-id ID --client-secret SECRET
    xurl auth oauth2             # browser login, token saved under your handle
    xurl auth status             # what is stored where
    xurl auth default my-app me  # pick the default app and user
"""

from __future__ import annotations

from typing import Optional

import typer

from xurl.commands import cli_errors, get_config, open_store
from xurl.output import error, get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)
apps_app = typer.Typer(no_args_is_help=True)

auth_app.add_typer(apps_app, name="apps", help="Manage registered X API apps.")


# ------------------------------------------------------------------ #
# Credentials
# ------------------------------------------------------------------ #


@auth_app.command("app")
def auth_bearer(
    ctx: typer.Context,
    bearer_token: str = typer.Option(..., "--bearer-token", help="Bearer token for app authentication."),
) -> None:
    """Configure app-only auth (bearer token)."""
    with cli_errors():
        store = open_store(ctx)
        store.save_bearer_token(bearer_token)
    success("App authentication successful!")


@auth_app.command("oauth2")
def auth_oauth2(
    ctx: typer.Context,
    username: str = typer.Option(
        "", "--username", "-u", help="Save the token under this name instead of the fetched handle."
    ),
) -> None:
    """Log in with OAuth2 (opens a browser) and store the user token."""
    from xurl.auth.oauth2 import OAuth2Flow

    with cli_errors():
        config = get_config(ctx)
        store = open_store(ctx)
        flow = OAuth2Flow(store, config)
        client_id, _ = flow.client_credentials()
        if not client_id:
            error("No client ID configured for this app.")
            suggest("Register one: xurl auth apps add NAME --client-id ID --client-secret SECRET")
            raise typer.Exit(code=2)
        info("Waiting for authorization in the browser...")
        flow.authorize(username)
    success("OAuth2 authentication successful!")


@auth_app.command("oauth1")
def auth_oauth1(
    ctx: typer.Context,
    consumer_key: str = typer.Option(..., "--consumer-key", help="Consumer key."),
    consumer_secret: str = typer.Option(..., "--consumer-secret", help="Consumer secret."),
    access_token: str = typer.Option(..., "--access-token", help="Access token."),
    token_secret: str = typer.Option(..., "--token-secret", help="Access token secret."),
) -> None:
    """Store OAuth 1.0a user-context credentials."""
    with cli_errors():
        store = open_store(ctx)
        store.save_oauth1_tokens(access_token, token_secret, consumer_key, consumer_secret)
    success("OAuth1 credentials saved successfully!")


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Show every app and which credentials it holds.

    The default app and each app's default user are marked with ``*``.
    """
    with cli_errors():
        store = open_store(ctx)
        names = store.list_apps()
        default_app = store.get_default_app()

        if not names:
            info("No apps registered. Use 'xurl auth apps add' to register one.")
            return

        rows: list[list[str]] = []
        for name in names:
            app = store.get_app(name)
            assert app is not None
            users = [
                f"*{u}" if u == app.default_user else u
                for u in store.get_oauth2_usernames_for_app(name)
            ]
            rows.append(
                [
                    f"*{name}" if name == default_app else name,
                    _client_hint(app.client_id),
                    ", ".join(users) or "-",
                    "yes" if app.oauth1_token else "-",
                    "yes" if app.bearer_token else "-",
                ]
            )

    get_output().print_table(
        ["app", "client", "oauth2", "oauth1", "bearer"],
        rows,
        title="Authentication status",
    )


@auth_app.command("clear")
def auth_clear(
    ctx: typer.Context,
    all_: bool = typer.Option(False, "--all", help="Clear every credential of the active app."),
    oauth1: bool = typer.Option(False, "--oauth1", help="Clear OAuth1 credentials."),
    bearer: bool = typer.Option(False, "--bearer", help="Clear the bearer token."),
    oauth2_username: Optional[str] = typer.Option(
        None, "--oauth2-username", help="Clear the OAuth2 token of this user."
    ),
) -> None:
    """Clear stored credentials of the active app."""
    if not (all_ or oauth1 or bearer or oauth2_username):
        error("No authentication cleared! Use --all to clear all authentication.")
        raise typer.Exit(code=2)

    with cli_errors():
        store = open_store(ctx)
        if all_:
            store.clear_all()
            success("All authentication cleared!")
            return
        if oauth1:
            store.clear_oauth1_tokens()
            success("OAuth1 tokens cleared!")
        if oauth2_username:
            store.clear_oauth2_token(oauth2_username)
            success(f"OAuth2 token cleared for {oauth2_username}!")
        if bearer:
            store.clear_bearer_token()
            success("Bearer token cleared!")


@auth_app.command("default")
def auth_default(
    ctx: typer.Context,
    app_name: Optional[str] = typer.Argument(None, help="App to make the default."),
    username: Optional[str] = typer.Argument(None, help="OAuth2 user to make the app's default."),
) -> None:
    """Set the default app (and optionally its default user).

    Without arguments, numbered pickers are shown.

    Example::

        xurl auth default my-app alice
    """
    with cli_errors():
        store = open_store(ctx)
        names = store.list_apps()
        if not names:
            info("No apps registered. Use 'xurl auth apps add' to register one.")
            return

        interactive = app_name is None
        if app_name is None:
            app_name = _pick("Select default app", names)
        store.set_default_app(app_name)
        success(f'Default app set to "{app_name}"')

        users = store.get_oauth2_usernames_for_app(app_name)
        if username is None and users and interactive:
            if len(users) == 1:
                username = users[0]
            else:
                username = _pick("Select default OAuth2 user", users)
        if username:
            store.set_default_user(app_name, username)
            success(f'Default user set to "{username}"')


# ------------------------------------------------------------------ #
# App registry
# ------------------------------------------------------------------ #


@apps_app.command("add")
def apps_add(
    ctx: typer.Context,
    name: str = typer.Argument(help="Name to register the app under."),
    client_id: str = typer.Option(..., "--client-id", help="OAuth2 client ID."),
    client_secret: str = typer.Option(..., "--client-secret", help="OAuth2 client secret."),
) -> None:
    """Register a new X API app.

    Example::

        xurl auth apps add my-app --client-id abc --client-secret xyz
    """
    with cli_errors():
        store = open_store(ctx)
        store.add_app(name, client_id, client_secret)
        success(f'App "{name}" registered!')
        if store.get_default_app() == name:
            info("  (set as default app)")


@apps_app.command("update")
def apps_update(
    ctx: typer.Context,
    name: str = typer.Argument(help="App to update."),
    client_id: str = typer.Option("", "--client-id", help="New OAuth2 client ID."),
    client_secret: str = typer.Option("", "--client-secret", help="New OAuth2 client secret."),
) -> None:
    """Update the client ID and/or secret of a registered app."""
    if not client_id and not client_secret:
        error("Nothing to update. Provide --client-id and/or --client-secret.")
        raise typer.Exit(code=2)
    with cli_errors():
        open_store(ctx).update_app(name, client_id, client_secret)
    success(f'App "{name}" updated.')


@apps_app.command("remove")
def apps_remove(
    ctx: typer.Context,
    name: str = typer.Argument(help="App to remove, together with all its tokens."),
) -> None:
    """Remove a registered app and every credential stored for it."""
    with cli_errors():
        open_store(ctx).remove_app(name)
    success(f'App "{name}" removed.')


@apps_app.command("list")
def apps_list(ctx: typer.Context) -> None:
    """List registered apps. The default app is marked with ``*``."""
    with cli_errors():
        store = open_store(ctx)
        names = store.list_apps()
        default_app = store.get_default_app()
        if not names:
            info("No apps registered. Use 'xurl auth apps add' to register one.")
            return
        rows = []
        for name in names:
            app = store.get_app(name)
            assert app is not None
            rows.append(["*" if name == default_app else "", name, _client_hint(app.client_id)])

    get_output().print_table(["default", "name", "client"], rows, title="Apps")


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _client_hint(client_id: str) -> str:
    if not client_id:
        return "(no credentials)"
    return f"client_id: {client_id[:8]}..."


def _pick(title: str, items: list[str]) -> str:
    """Numbered picker. Raises ``typer.Exit(2)`` on an invalid choice."""
    info(f"{title}:")
    for i, item in enumerate(items, 1):
        info(f"  {i}. {item}")
    try:
        choice = typer.prompt("Select number", default="1")
        idx = int(choice) - 1
    except ValueError:
        error("Invalid selection.")
        raise typer.Exit(code=2) from None
    if idx < 0 or idx >= len(items):
        error(f"Selection must be between 1 and {len(items)}.")
        raise typer.Exit(code=2)
    return items[idx]
