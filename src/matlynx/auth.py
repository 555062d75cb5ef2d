"""
Auth Session Manager

Registers and authenticates users against the Users collection and keeps
one session pointer per session key.

States:
    anonymous --register/login--> authenticated(user) --logout--> anonymous

The pointer is a full copy of the User record. It is loaded once when the
manager is constructed and is not re-validated against the Users
collection. Passwords are compared in clear text.
"""

import logging

from matlynx.contracts.records import User
from matlynx.exceptions import EmailTaken, UserNotFound, WrongPassword
from matlynx.store.collections import CURRENT_USER_KEY, USERS_KEY, Store

logger = logging.getLogger(__name__)


class AuthSessionManager:
    """
    Session state for one client.

    Args:
        store: Collection store
        session_key: Store key holding this client's session pointer
    """

    def __init__(self, store: Store, session_key: str = CURRENT_USER_KEY):
        self.store = store
        self.session_key = session_key
        self._user: User | None = store.read_model(session_key, User)

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def current_session(self) -> User | None:
        """The session user loaded at init (or set since)."""
        return self._user

    def list_users(self) -> list[User]:
        return self.store.read_models(USERS_KEY, User)

    def find_user_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup; first match wins."""
        wanted = email.lower()
        for user in self.list_users():
            if user.email.lower() == wanted:
                return user
        return None

    def register(self, user: User) -> User:
        """
        Append a new user and start a session for them.

        Raises:
            EmailTaken: A user with the same email (any case) exists
        """
        if self.find_user_by_email(user.email) is not None:
            logger.info("Registration rejected, email taken", extra={"email": user.email})
            raise EmailTaken()

        users = self.store.read(USERS_KEY)
        users.append(user.to_record())
        self.store.write(USERS_KEY, users)
        logger.info("User registered", extra={"email": user.email, "role": str(user.role)})

        self._start_session(user)
        return user

    def login(self, email: str, password: str) -> User:
        """
        Authenticate and start a session.

        Raises:
            UserNotFound: No user with this email
            WrongPassword: Password does not match exactly
        """
        user = self.find_user_by_email(email)
        if user is None:
            logger.info("Login failed, unknown email", extra={"email": email})
            raise UserNotFound()
        if user.password != password:
            logger.info("Login failed, wrong password", extra={"email": user.email})
            raise WrongPassword()

        self._start_session(user)
        logger.info("User logged in", extra={"email": user.email})
        return user

    def logout(self) -> None:
        """Clear the session pointer, in memory and in the store."""
        if self._user is not None:
            logger.info("User logged out", extra={"email": self._user.email})
        self.store.remove(self.session_key)
        self._user = None

    def _start_session(self, user: User) -> None:
        self.store.write_record(self.session_key, user.to_record())
        self._user = user
