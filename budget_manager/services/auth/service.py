"""
Authentication Service

Registration, login and logout for the single local user of the app.
Produces the SessionContext that the ledger engine is opened with.

Stored keys:
    users            list of registered accounts (salted password hashes)
    isAuthenticated  "true" while someone is logged in
    loggedInUser     username of that person

IMPORTANT: This guards a personal budget on a personal machine. It keeps
the plain password out of storage (werkzeug's salted hashes); it is
not a substitute for real multi-user access control.
"""

from typing import Optional

from pydantic import ValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from budget_manager.log import get_logger
from budget_manager.models import SessionContext, UserAccount
from budget_manager.services.storage import KeyValueStore

USERS_KEY = "users"
AUTH_FLAG_KEY = "isAuthenticated"
LOGGED_IN_USER_KEY = "loggedInUser"


class AuthError(Exception):
    """Base exception for authentication errors."""
    pass


class DuplicateUserError(AuthError):
    """Username or email is already registered."""
    pass


class AuthenticationError(AuthError):
    """Wrong username or password."""
    pass


class RegistrationError(AuthError):
    """Registration details were rejected."""
    pass


class AuthService:
    """
    Session provider backed by the key-value store.

    Usage:
        auth = AuthService(store)
        auth.register("asha", "asha@example.com", "secret")
        session = auth.login("asha", "secret")
    """

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._logger = get_logger(__name__)

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    def _load_users(self) -> list[UserAccount]:
        raw = self._store.get(USERS_KEY) or []
        users = []
        for item in raw:
            try:
                users.append(UserAccount.model_validate(item))
            except ValidationError as e:
                self._logger.warning("user_record_skipped", error=str(e))
        return users

    def _save_users(self, users: list[UserAccount]) -> None:
        self._store.set(USERS_KEY, [u.model_dump(mode="json") for u in users])

    def get_user(self, username: str) -> Optional[UserAccount]:
        username = username.strip()
        for user in self._load_users():
            if user.username == username:
                return user
        return None

    def list_usernames(self) -> list[str]:
        return [u.username for u in self._load_users()]

    def register(self, username: str, email: str, password: str) -> UserAccount:
        """
        Register a new account.

        Raises:
            RegistrationError: If a field is missing or malformed.
            DuplicateUserError: If the username or email is taken.
        """
        if not password:
            raise RegistrationError("Password cannot be empty")

        try:
            account = UserAccount(
                username=username,
                email=email,
                password_hash=generate_password_hash(password),
            )
        except ValidationError as e:
            raise RegistrationError(f"Invalid registration details: {e}")

        users = self._load_users()
        if any(u.username == account.username for u in users):
            raise DuplicateUserError(f"Username already taken: {account.username}")
        if any(u.email.lower() == account.email.lower() for u in users):
            raise DuplicateUserError(f"Email already registered: {account.email}")

        users.append(account)
        self._save_users(users)
        self._logger.info("user_registered", username=account.username)
        return account

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def login(self, username: str, password: str) -> SessionContext:
        """
        Check credentials and mark the session as logged in.

        Raises:
            AuthenticationError: On unknown user or wrong password.
        """
        user = self.get_user(username or "")
        if user is None or not check_password_hash(user.password_hash, password or ""):
            self._logger.warning("login_failed", username=username)
            raise AuthenticationError("Invalid username or password")

        self._store.set_many({
            AUTH_FLAG_KEY: "true",
            LOGGED_IN_USER_KEY: user.username,
        })
        self._logger.info("user_logged_in", username=user.username)
        return SessionContext.for_user(user.username)

    def logout(self) -> SessionContext:
        """Clear the session markers."""
        username = self._store.get(LOGGED_IN_USER_KEY)
        self._store.remove(AUTH_FLAG_KEY)
        self._store.remove(LOGGED_IN_USER_KEY)
        self._logger.info("user_logged_out", username=username)
        return SessionContext.anonymous()

    def current_session(self) -> SessionContext:
        """
        Restore the session from the stored markers.

        Anonymous if nobody is logged in or the stored user no longer exists.
        """
        if self._store.get(AUTH_FLAG_KEY) != "true":
            return SessionContext.anonymous()

        username = self._store.get(LOGGED_IN_USER_KEY)
        if not isinstance(username, str) or self.get_user(username) is None:
            self._logger.warning("stale_session_cleared", username=username)
            return self.logout()

        return SessionContext.for_user(username)
