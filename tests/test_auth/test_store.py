"""Tests for the multi-app credential store."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest
import yaml

from xurl.auth.store import DEFAULT_APP_NAME, ResolutionOutcome, TokenStore
from xurl.exceptions import StoreErrorKind, TokenStoreError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _reload(store: TokenStore, **kwargs) -> TokenStore:
    return TokenStore(store.path, **kwargs)


def _write_yaml(path: Path, doc: object) -> None:
    path.write_text(yaml.safe_dump(doc))


TWURLRC = """\
profiles:
  alice:
    ck_alice:
      username: alice
      consumer_key: ck_alice
      consumer_secret: cs_alice
      token: at_alice
      secret: ts_alice
configuration:
  default_profile:
  - alice
  - ck_alice
bearer_tokens:
  ck_alice: bearer_alice
"""


# ---------------------------------------------------------------------------
# Empty store and resolution
# ---------------------------------------------------------------------------


class TestEmptyStore:
    def test_missing_file_is_empty(self, store: TokenStore) -> None:
        assert store.list_apps() == []
        assert store.get_default_app() == ""

    def test_empty_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        path.write_text("")
        assert TokenStore(path).list_apps() == []

    def test_bare_keys_are_empty(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        path.write_text("apps: {}\ndefault_app: ''\n")
        assert TokenStore(path).list_apps() == []

    def test_first_write_creates_default_app(self, store: TokenStore) -> None:
        """Saving into an empty store materialises an app called 'default'."""
        store.save_bearer_token("B")
        assert store.list_apps() == [DEFAULT_APP_NAME]
        assert store.get_default_app() == DEFAULT_APP_NAME
        assert _reload(store).get_bearer_token().token == "B"


class TestResolveApp:
    def test_explicit_name_found(self, store: TokenStore) -> None:
        store.add_app("a", "id", "secret")
        store.add_app("b", "id2", "secret2")
        res = store.resolve_app("b")
        assert res.name == "b"
        assert res.outcome == ResolutionOutcome.FOUND
        assert res.app.client_id == "id2"

    def test_unknown_name_falls_back_to_default(self, store: TokenStore) -> None:
        store.add_app("a", "id", "secret")
        res = store.resolve_app("nope")
        assert res.name == "a"
        assert res.outcome == ResolutionOutcome.FELL_BACK_TO_DEFAULT

    def test_empty_store_creates_default(self, store: TokenStore) -> None:
        res = store.resolve_app("")
        assert res.name == DEFAULT_APP_NAME
        assert res.outcome == ResolutionOutcome.CREATED_DEFAULT
        # Lazily created apps are not written until the next mutation.
        assert not store.path.exists()

    def test_dangling_default_adopts_existing_default_app(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(
            path,
            {"apps": {"default": {"client_id": "x", "client_secret": "y"}}, "default_app": "gone"},
        )
        res = TokenStore(path).resolve_app("")
        assert res.name == DEFAULT_APP_NAME
        assert res.outcome == ResolutionOutcome.FELL_BACK_TO_DEFAULT
        assert res.app.client_id == "x"

    def test_resolved_app_is_a_copy(self, store: TokenStore) -> None:
        store.add_app("a", "id", "secret")
        res = store.resolve_app("a")
        res.app.client_id = "mutated"
        assert store.get_app("a").client_id == "id"

    def test_app_override_beats_default(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        first = TokenStore(path)
        first.add_app("a", "ida", "sa")
        first.add_app("b", "idb", "sb")

        store = TokenStore(path, app_override="b")
        assert store.active_app_name == "b"
        store.save_bearer_token("for-b")
        assert store.get_bearer_token_for_app("b").token == "for-b"
        assert store.get_bearer_token_for_app("a") is None


# ---------------------------------------------------------------------------
# App management
# ---------------------------------------------------------------------------


class TestMultiApp:
    def test_first_app_becomes_default(self, store: TokenStore) -> None:
        store.add_app("first", "id1", "s1")
        store.add_app("second", "id2", "s2")
        assert store.get_default_app() == "first"
        assert store.list_apps() == ["first", "second"]

    def test_duplicate_app_rejected(self, store: TokenStore) -> None:
        store.add_app("a", "id", "s")
        with pytest.raises(TokenStoreError) as exc_info:
            store.add_app("a", "other", "other")
        assert exc_info.value.kind == StoreErrorKind.DUPLICATE_APP

    def test_set_default_app_unknown(self, store: TokenStore) -> None:
        with pytest.raises(TokenStoreError) as exc_info:
            store.set_default_app("ghost")
        assert exc_info.value.kind == StoreErrorKind.NOT_FOUND

    def test_apps_are_isolated(self, store: TokenStore) -> None:
        store.add_app("a", "ida", "sa")
        store.add_app("b", "idb", "sb")
        store.save_oauth2_token_for_app("a", "alice", "at-a", "rt-a", 100)
        store.save_oauth2_token_for_app("b", "bob", "at-b", "rt-b", 100)
        assert store.get_oauth2_usernames_for_app("a") == ["alice"]
        assert store.get_oauth2_usernames_for_app("b") == ["bob"]

    def test_get_app_unknown_returns_none(self, store: TokenStore) -> None:
        assert store.get_app("ghost") is None


class TestUpdateApp:
    def test_partial_update_keeps_other_field(self, store: TokenStore) -> None:
        store.add_app("a", "id", "secret")
        store.update_app("a", client_id="new-id")
        app = _reload(store).get_app("a")
        assert app.client_id == "new-id"
        assert app.client_secret == "secret"

    def test_update_unknown_app(self, store: TokenStore) -> None:
        with pytest.raises(TokenStoreError) as exc_info:
            store.update_app("ghost", client_id="x")
        assert exc_info.value.kind == StoreErrorKind.NOT_FOUND


class TestRemoveDefaultReassigns:
    def test_remove_default_picks_first_remaining(self, store: TokenStore) -> None:
        store.add_app("m", "1", "1")
        store.add_app("z", "2", "2")
        store.add_app("b", "3", "3")
        store.set_default_app("m")
        store.remove_app("m")
        assert store.get_default_app() == "b"

    def test_remove_last_app_clears_default(self, store: TokenStore) -> None:
        store.add_app("only", "1", "1")
        store.remove_app("only")
        assert store.get_default_app() == ""
        assert store.list_apps() == []

    def test_remove_unknown_app(self, store: TokenStore) -> None:
        with pytest.raises(TokenStoreError):
            store.remove_app("ghost")


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestOAuth2Tokens:
    def test_first_token_is_alphabetical(self, store: TokenStore) -> None:
        store.save_oauth2_token("zed", "at-z", "rt-z", 10)
        store.save_oauth2_token("amy", "at-a", "rt-a", 10)
        assert store.get_first_oauth2_token().access_token == "at-a"
        assert store.get_oauth2_usernames() == ["amy", "zed"]

    def test_default_user_beats_alphabetical(self, store: TokenStore) -> None:
        store.save_oauth2_token("zed", "at-z", "rt-z", 10)
        store.save_oauth2_token("amy", "at-a", "rt-a", 10)
        store.set_default_user("", "zed")
        assert store.first_oauth2_username() == "zed"
        assert _reload(store).get_default_user() == "zed"

    def test_set_default_user_without_token(self, store: TokenStore) -> None:
        store.save_oauth2_token("amy", "at", "rt", 10)
        with pytest.raises(TokenStoreError) as exc_info:
            store.set_default_user("", "nobody")
        assert exc_info.value.kind == StoreErrorKind.NOT_FOUND

    def test_clear_token_clears_default_user(self, store: TokenStore) -> None:
        store.save_oauth2_token("amy", "at", "rt", 10)
        store.set_default_user("", "amy")
        store.clear_oauth2_token("amy")
        assert store.get_oauth2_token("amy") is None
        assert store.get_default_user() == ""

    def test_negative_expiry_clamped(self, store: TokenStore) -> None:
        store.save_oauth2_token("amy", "at", "rt", -5)
        assert store.get_oauth2_token("amy").expires_at == 0


class TestForAppVariants:
    def test_bearer_round_trip_per_app(self, store: TokenStore) -> None:
        store.add_app("a", "1", "1")
        store.add_app("b", "2", "2")
        store.save_bearer_token_for_app("b", "tok-b")
        assert store.get_bearer_token_for_app("b").token == "tok-b"
        assert store.get_bearer_token() is None
        store.clear_bearer_token_for_app("b")
        assert store.get_bearer_token_for_app("b") is None

    def test_oauth1_round_trip_per_app(self, store: TokenStore) -> None:
        store.add_app("a", "1", "1")
        store.save_oauth1_tokens_for_app("a", "at", "ts", "ck", "cs")
        cred = _reload(store).get_oauth1_tokens_for_app("a")
        assert (cred.access_token, cred.token_secret, cred.consumer_key, cred.consumer_secret) == (
            "at",
            "ts",
            "ck",
            "cs",
        )
        assert store.has_oauth1_tokens()
        store.clear_oauth1_tokens_for_app("a")
        assert not store.has_oauth1_tokens()

    def test_clear_all_keeps_registration(self, store: TokenStore) -> None:
        store.add_app("a", "id", "secret")
        store.save_bearer_token("b")
        store.save_oauth1_tokens("at", "ts", "ck", "cs")
        store.save_oauth2_token("amy", "at", "rt", 10)
        store.clear_all()
        app = _reload(store).get_app("a")
        assert app.client_id == "id"
        assert not app.has_credentials()


class TestPresenceChecks:
    def test_empty_store_has_nothing(self, store: TokenStore) -> None:
        assert not store.has_bearer_token()
        assert not store.has_oauth1_tokens()

    def test_bearer_save_then_clear(self, store: TokenStore) -> None:
        store.save_bearer_token("B")
        assert store.has_bearer_token()
        assert not store.has_oauth1_tokens()

        store.clear_bearer_token()
        assert not store.has_bearer_token()
        assert not _reload(store).has_bearer_token()

    def test_oauth1_save_then_clear(self, store: TokenStore) -> None:
        store.save_oauth1_tokens("at", "ts", "ck", "cs")
        assert store.has_oauth1_tokens()
        assert not store.has_bearer_token()

        store.clear_oauth1_tokens()
        assert not _reload(store).has_oauth1_tokens()

    def test_checks_follow_active_app(self, store: TokenStore) -> None:
        store.add_app("a", "1", "1")
        store.add_app("b", "2", "2")
        store.save_bearer_token_for_app("b", "tok-b")
        assert not store.has_bearer_token()
        store.set_default_app("b")
        assert store.has_bearer_token()


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestYAMLPersistence:
    def test_round_trip(self, store: TokenStore) -> None:
        store.add_app("work", "cid", "csec")
        store.save_oauth2_token("alice", "at", "rt", 1700000000)
        store.set_default_user("", "alice")
        store.save_oauth1_tokens("oat", "ots", "ock", "ocs")
        store.save_bearer_token("bt")

        reloaded = _reload(store)
        app = reloaded.get_app("work")
        assert app.client_id == "cid"
        assert app.default_user == "alice"
        assert app.oauth2_tokens["alice"].expires_at == 1700000000
        assert app.oauth1_token.consumer_key == "ock"
        assert app.bearer_token.token == "bt"

    def test_document_layout(self, store: TokenStore) -> None:
        store.save_bearer_token("bt")
        store.save_oauth2_token("alice", "at", "rt", 5)
        doc = yaml.safe_load(store.path.read_text())
        assert doc["default_app"] == "default"
        app = doc["apps"]["default"]
        assert app["bearer_token"] == {"type": "bearer", "bearer": "bt"}
        assert app["oauth2_tokens"]["alice"] == {
            "type": "oauth2",
            "oauth2": {"access_token": "at", "refresh_token": "rt", "expiration_time": 5},
        }

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_file_mode_is_owner_only(self, store: TokenStore) -> None:
        store.save_bearer_token("secret")
        mode = stat.S_IMODE(store.path.stat().st_mode)
        assert mode == 0o600

    def test_invalid_yaml_raises_parse_error(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        path.write_text("apps: [unclosed")
        with pytest.raises(TokenStoreError) as exc_info:
            TokenStore(path)
        assert exc_info.value.kind == StoreErrorKind.PARSE_ERROR

    def test_unrecognised_layout_raises_parse_error(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(path, {"something": "else"})
        with pytest.raises(TokenStoreError):
            TokenStore(path)

    def test_wrong_token_type_raises_parse_error(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(
            path,
            {"apps": {"a": {"bearer_token": {"type": "oauth1", "oauth1": {}}}}, "default_app": "a"},
        )
        with pytest.raises(TokenStoreError) as exc_info:
            TokenStore(path)
        assert exc_info.value.kind == StoreErrorKind.PARSE_ERROR

    @pytest.mark.parametrize(
        "app_doc",
        [
            {"oauth2_tokens": {"alice": {"type": "oauth2", "oauth2": "oops"}}},
            {"oauth1_token": {"type": "oauth1", "oauth1": ["not", "a", "mapping"]}},
        ],
    )
    def test_non_mapping_token_body_raises_parse_error(self, tmp_path: Path, app_doc: dict) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(path, {"apps": {"a": app_doc}, "default_app": "a"})
        with pytest.raises(TokenStoreError) as exc_info:
            TokenStore(path)
        assert exc_info.value.kind == StoreErrorKind.PARSE_ERROR

    def test_legacy_non_mapping_token_body_raises_parse_error(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(path, {"oauth2_tokens": {"alice": {"type": "oauth2", "oauth2": "oops"}}})
        with pytest.raises(TokenStoreError) as exc_info:
            TokenStore(path)
        assert exc_info.value.kind == StoreErrorKind.PARSE_ERROR

    def test_stale_default_user_dropped(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(path, {"apps": {"a": {"default_user": "ghost"}}, "default_app": "a"})
        assert TokenStore(path).get_app("a").default_user is None


class TestLegacyMigration:
    LEGACY = {
        "oauth2_tokens": {
            "alice": {
                "type": "oauth2",
                "oauth2": {"access_token": "at", "refresh_token": "rt", "expiration_time": 42},
            }
        },
        "oauth1_tokens": {
            "type": "oauth1",
            "oauth1": {
                "access_token": "oat",
                "token_secret": "ots",
                "consumer_key": "ock",
                "consumer_secret": "ocs",
            },
        },
        "bearer_token": {"type": "bearer", "bearer": "bt"},
    }

    def test_legacy_becomes_default_app(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(path, self.LEGACY)
        store = TokenStore(path)

        assert store.list_apps() == [DEFAULT_APP_NAME]
        assert store.get_default_app() == DEFAULT_APP_NAME
        assert store.get_oauth2_token("alice").expires_at == 42
        assert store.get_oauth1_tokens().consumer_key == "ock"
        assert store.get_bearer_token().token == "bt"

        doc = yaml.safe_load(path.read_text())
        assert "apps" in doc
        assert "oauth1_tokens" not in doc

    def test_migration_is_idempotent(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(path, self.LEGACY)
        TokenStore(path)
        first = path.read_text()
        TokenStore(path)
        assert path.read_text() == first

    def test_malformed_legacy_raises(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(path, {"oauth2_tokens": ["not", "a", "mapping"]})
        with pytest.raises(TokenStoreError) as exc_info:
            TokenStore(path)
        assert exc_info.value.kind == StoreErrorKind.PARSE_ERROR


class TestBackfill:
    def test_backfills_apps_with_credentials(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(
            path,
            {
                "apps": {
                    "with": {"bearer_token": {"type": "bearer", "bearer": "b"}},
                    "without": {},
                },
                "default_app": "with",
            },
        )
        store = TokenStore(path, client_id="env-id", client_secret="env-secret")
        assert store.get_app("with").client_id == "env-id"
        assert store.get_app("with").client_secret == "env-secret"
        assert store.get_app("without").client_id == ""
        # Persisted.
        assert TokenStore(path).get_app("with").client_id == "env-id"

    def test_existing_client_credentials_kept(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        _write_yaml(
            path,
            {
                "apps": {
                    "a": {
                        "client_id": "mine",
                        "client_secret": "mine-secret",
                        "bearer_token": {"type": "bearer", "bearer": "b"},
                    }
                },
                "default_app": "a",
            },
        )
        store = TokenStore(path, client_id="env-id", client_secret="env-secret")
        assert store.get_app("a").client_id == "mine"


class TestTwurlrc:
    def test_auto_import_into_empty_store(self, tmp_path: Path) -> None:
        twurlrc = tmp_path / ".twurlrc"
        twurlrc.write_text(TWURLRC)
        store = TokenStore(tmp_path / ".xurl", twurlrc_path=twurlrc)

        oauth1 = store.get_oauth1_tokens()
        assert oauth1.access_token == "at_alice"
        assert oauth1.token_secret == "ts_alice"
        assert oauth1.consumer_key == "ck_alice"
        assert oauth1.consumer_secret == "cs_alice"
        assert store.get_bearer_token().token == "bearer_alice"
        assert (tmp_path / ".xurl").exists()

    def test_existing_credentials_not_overwritten(self, tmp_path: Path) -> None:
        path = tmp_path / ".xurl"
        TokenStore(path).save_bearer_token("mine")
        twurlrc = tmp_path / ".twurlrc"
        twurlrc.write_text(TWURLRC)

        store = TokenStore(path, twurlrc_path=twurlrc)
        assert store.get_bearer_token().token == "mine"
        assert store.get_oauth1_tokens().consumer_key == "ck_alice"

    def test_malformed_file_leaves_store_untouched(self, tmp_path: Path) -> None:
        twurlrc = tmp_path / ".twurlrc"
        twurlrc.write_text("this is not valid yaml")
        store = TokenStore(tmp_path / ".xurl", twurlrc_path=twurlrc)
        assert store.list_apps() == []
        assert not (tmp_path / ".xurl").exists()

    def test_explicit_import_of_malformed_file_raises(self, store: TokenStore, tmp_path: Path) -> None:
        twurlrc = tmp_path / "bad.twurlrc"
        twurlrc.write_text("this is not valid yaml")
        with pytest.raises(TokenStoreError) as exc_info:
            store.import_twurlrc(twurlrc)
        assert exc_info.value.kind == StoreErrorKind.PARSE_ERROR

    def test_import_returns_false_when_nothing_changes(self, store: TokenStore, tmp_path: Path) -> None:
        twurlrc = tmp_path / "x.twurlrc"
        twurlrc.write_text(TWURLRC)
        assert store.import_twurlrc(twurlrc) is True
        assert store.import_twurlrc(twurlrc) is False


class TestScenarioMultiAppResolution:
    def test_default_app_and_default_user(self, store: TokenStore) -> None:
        """Two apps, default B with default user bob: the first token is bob's in B."""
        store.add_app("A", "ida", "sa")
        store.add_app("B", "idb", "sb")
        store.save_oauth2_token_for_app("A", "amy", "at-amy", "rt", 10)
        store.save_oauth2_token_for_app("B", "alice", "at-alice", "rt", 10)
        store.save_oauth2_token_for_app("B", "bob", "at-bob", "rt", 10)
        store.set_default_app("B")
        store.set_default_user("B", "bob")

        reloaded = _reload(store)
        assert reloaded.resolve_app("").name == "B"
        assert reloaded.get_first_oauth2_token().access_token == "at-bob"
