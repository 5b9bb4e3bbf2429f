"""
auth/service.py -- Credential verification against the users collection.

login() downloads the whole users collection and scans it in the order the
API returns it. The first record whose username OR email equals the
identifier AND whose password equals the secret wins. There is no lookup
endpoint on the mock API, so this is a linear scan with one full download
per attempt. Passwords are compared in plaintext because the collection
stores them that way; hmac.compare_digest only removes the early exit from
the comparison.

Known weakness: every login transmits every user record (passwords
included) to this process. A real backend would expose an indexed
single-record lookup and store password hashes.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING, Any, Optional

from core.models import User
from core.resources import RequestError, ResourceClient

if TYPE_CHECKING:
    from auth.session import SessionStore

logger = logging.getLogger("condestyle.auth")


class AuthError(Exception):
    """Base class for login failures."""


class InvalidCredentials(AuthError):
    """No user matched the identifier/secret pair."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class ServiceUnavailable(AuthError):
    """The users collection could not be fetched or decoded."""


def _matches(record: dict[str, Any], identifier: str, secret: str) -> bool:
    if record.get("username") != identifier and record.get("email") != identifier:
        return False
    password = record.get("password")
    if not isinstance(password, str):
        return False
    return hmac.compare_digest(password.encode("utf-8"), secret.encode("utf-8"))


class AuthService:
    """Login, logout and current-user lookups on top of the users collection.

    Usage:
        auth = AuthService(users_client())
        user = auth.login("ana", "secret")      # raises InvalidCredentials
        session.set(user)
    """

    def __init__(self, users: ResourceClient) -> None:
        self.users = users

    def login(self, identifier: str, secret: str) -> User:
        """Return the first user matching identifier (username or email) and secret.

        Raises InvalidCredentials when nothing matches and ServiceUnavailable
        when the collection cannot be fetched.
        """
        try:
            records = self.users.get_all()
        except RequestError as e:
            logger.error("Error in login: users collection unavailable: %s", e)
            raise ServiceUnavailable(f"Users collection unavailable: {e}") from e

        if not isinstance(records, list):
            logger.error("Error in login: users collection returned %s, expected a list", type(records).__name__)
            raise ServiceUnavailable("Users collection returned an unexpected payload")

        for record in records:
            if isinstance(record, dict) and _matches(record, identifier, secret):
                user = User.from_record(record)
                logger.info("Login succeeded for user id=%s", user.id)
                return user

        logger.warning("Error in login: invalid credentials for identifier %r", identifier)
        raise InvalidCredentials()

    def login_into(self, session: SessionStore, identifier: str, secret: str) -> User:
        """login() and, on success, write the user into session."""
        user = self.login(identifier, secret)
        session.set(user)
        return user

    @staticmethod
    def logout(session: SessionStore) -> None:
        session.clear()
        logger.info("Session cleared for profile %s", session.profile)

    @staticmethod
    def current_user(session: SessionStore) -> Optional[User]:
        return session.get()
