"""
Tests for the auth session manager.
"""

import pytest

from matlynx.auth import AuthSessionManager
from matlynx.exceptions import EmailTaken, UserNotFound, WrongPassword
from matlynx.store import CURRENT_USER_KEY, USERS_KEY


class TestRegister:
    """Registration."""

    def test_register_appends_and_starts_session(self, auth, store, dealer):
        auth.register(dealer)

        assert store.read(USERS_KEY)[0]["email"] == dealer.email
        assert auth.is_authenticated
        assert auth.current_session() == dealer
        assert store.read_record(CURRENT_USER_KEY)["email"] == dealer.email

    def test_duplicate_email_case_insensitive(self, auth, store, dealer):
        auth.register(dealer)
        twin = dealer.model_copy(update={"email": dealer.email.upper(), "name": "Someone Else"})

        with pytest.raises(EmailTaken) as exc_info:
            auth.register(twin)

        assert str(exc_info.value) == "Email already registered"
        emails = [u["email"].lower() for u in store.read(USERS_KEY)]
        assert emails.count(dealer.email) == 1

    def test_records_stored_camel_case(self, auth, store, dealer):
        auth.register(dealer)
        record = store.read(USERS_KEY)[0]
        assert record["createdAt"].startswith("2026-01-01T00:00:00")
        assert record["role"] == "dealer"


class TestLogin:
    """Login and logout."""

    @pytest.fixture
    def registered(self, store, dealer, contractor):
        manager = AuthSessionManager(store)
        manager.register(dealer)
        manager.register(contractor)
        manager.logout()
        return manager

    def test_login_case_insensitive(self, registered, dealer):
        user = registered.login("RAVI@Example.com", "secret1")
        assert user.email == dealer.email
        assert registered.current_session() == dealer

    def test_unknown_email(self, registered):
        with pytest.raises(UserNotFound) as exc_info:
            registered.login("nobody@example.com", "secret1")
        assert str(exc_info.value) == "User not found"
        assert registered.current_session() is None

    def test_wrong_password_keeps_session(self, registered, store, contractor):
        registered.login(contractor.email, "secret2")

        with pytest.raises(WrongPassword) as exc_info:
            registered.login("ravi@example.com", "not-it")

        assert str(exc_info.value) == "Incorrect password"
        assert registered.current_session() == contractor
        assert store.read_record(CURRENT_USER_KEY)["email"] == contractor.email

    def test_password_compared_exactly(self, registered):
        with pytest.raises(WrongPassword):
            registered.login("ravi@example.com", "SECRET1")
        with pytest.raises(WrongPassword):
            registered.login("ravi@example.com", "secret1 ")

    def test_logout_clears_memory_and_store(self, registered, store, dealer):
        registered.login(dealer.email, "secret1")
        registered.logout()

        assert registered.current_session() is None
        assert not registered.is_authenticated
        assert store.read_record(CURRENT_USER_KEY) is None

    def test_logout_when_anonymous(self, registered):
        registered.logout()
        assert registered.current_session() is None


class TestSessionPointer:
    """Session persistence."""

    def test_session_survives_reload(self, auth, store, dealer):
        auth.register(dealer)
        reloaded = AuthSessionManager(store)
        assert reloaded.current_session() == dealer

    def test_session_not_revalidated_on_load(self, auth, store, dealer):
        auth.register(dealer)
        store.write(USERS_KEY, [])

        reloaded = AuthSessionManager(store)
        assert reloaded.current_session() == dealer

    def test_session_keys_are_independent(self, store, dealer, contractor):
        first = AuthSessionManager(store, session_key=f"{CURRENT_USER_KEY}:one")
        second = AuthSessionManager(store, session_key=f"{CURRENT_USER_KEY}:two")
        first.register(dealer)
        second.register(contractor)

        first.logout()

        assert AuthSessionManager(store, session_key=f"{CURRENT_USER_KEY}:one").current_session() is None
        assert AuthSessionManager(store, session_key=f"{CURRENT_USER_KEY}:two").current_session() == contractor
