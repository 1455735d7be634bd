"""Tests for registration, login and session restore."""

import pytest
from werkzeug.security import check_password_hash

from budget_manager.services.auth import (
    AuthenticationError,
    AuthService,
    DuplicateUserError,
    RegistrationError,
)
from budget_manager.services.auth.service import AUTH_FLAG_KEY, LOGGED_IN_USER_KEY, USERS_KEY


@pytest.fixture
def auth(store):
    service = AuthService(store)
    service.register("asha", "asha@example.com", "s3cret")
    return service


class TestRegistration:
    """Tests for account creation."""

    def test_password_not_stored_in_plain(self, auth, store):
        record = store.get(USERS_KEY)[0]
        assert record["username"] == "asha"
        assert "s3cret" not in record.values()
        assert "salt" not in record
        assert check_password_hash(record["password_hash"], "s3cret")

    def test_same_password_hashes_differ(self, auth, store):
        """Test that each account gets its own salt."""
        auth.register("ravi", "ravi@example.com", "s3cret")
        first, second = store.get(USERS_KEY)
        assert first["password_hash"] != second["password_hash"]

    def test_unreadable_hash_refuses_login(self, auth, store):
        users = store.get(USERS_KEY)
        users[0]["password_hash"] = "deadbeef"
        store.set(USERS_KEY, users)
        with pytest.raises(AuthenticationError):
            auth.login("asha", "s3cret")

    def test_duplicate_username(self, auth):
        with pytest.raises(DuplicateUserError):
            auth.register("asha", "other@example.com", "x")

    def test_duplicate_email_ignores_case(self, auth):
        with pytest.raises(DuplicateUserError):
            auth.register("ravi", "ASHA@example.com", "x")

    @pytest.mark.parametrize("username, email, password", [
        ("ravi", "ravi@example.com", ""),
        ("", "ravi@example.com", "x"),
        ("ravi", "not-an-email", "x"),
    ])
    def test_invalid_details(self, auth, username, email, password):
        with pytest.raises(RegistrationError):
            auth.register(username, email, password)

    def test_list_usernames(self, auth):
        auth.register("ravi", "ravi@example.com", "pw")
        assert auth.list_usernames() == ["asha", "ravi"]

    def test_invalid_records_skipped(self, auth, store):
        users = store.get(USERS_KEY)
        store.set(USERS_KEY, users + [{"username": "broken"}])
        assert auth.list_usernames() == ["asha"]


class TestSessions:
    """Tests for login, logout and restore."""

    def test_login(self, auth, store):
        session = auth.login("asha", "s3cret")

        assert session.authenticated is True
        assert session.username == "asha"
        assert store.get(AUTH_FLAG_KEY) == "true"
        assert store.get(LOGGED_IN_USER_KEY) == "asha"

    @pytest.mark.parametrize("username, password", [
        ("asha", "wrong"),
        ("nobody", "s3cret"),
        ("asha", ""),
    ])
    def test_bad_credentials(self, auth, store, username, password):
        with pytest.raises(AuthenticationError):
            auth.login(username, password)
        assert AUTH_FLAG_KEY not in store

    def test_logout(self, auth, store):
        auth.login("asha", "s3cret")

        session = auth.logout()

        assert session.authenticated is False
        assert AUTH_FLAG_KEY not in store
        assert LOGGED_IN_USER_KEY not in store

    def test_current_session_restored(self, auth):
        auth.login("asha", "s3cret")
        assert auth.current_session().username == "asha"

    def test_current_session_anonymous(self, auth):
        assert auth.current_session().authenticated is False

    def test_stale_session_cleared(self, auth, store):
        """Test that markers for a user who no longer exists are removed."""
        store.set_many({AUTH_FLAG_KEY: "true", LOGGED_IN_USER_KEY: "ghost"})

        assert auth.current_session().authenticated is False
        assert AUTH_FLAG_KEY not in store
