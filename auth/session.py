"""
auth/session.py -- The "current authenticated user" slot for one client profile.

SessionStore is the object handed to the navigation guard and the login
flow. It is built per client profile (one per request in the web layer,
one per invocation in the CLI) on top of a shared LocalStorage.

Contract:
  set(user)  -- serialize and persist, overwriting any previous user
  get()      -- the stored User, or None. Never raises: storage errors and
                undecodable payloads are logged and treated as absent
  clear()    -- remove the stored user (logout)

There is no expiry. A session lasts until clear() or until the storage DB
is wiped. Two logins for the same profile: last writer wins.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from auth.storage import LocalStorage
from core.config import get_settings
from core.models import User

logger = logging.getLogger("condestyle.session")


class SessionStore:
    def __init__(self, storage: LocalStorage, profile: str, key: Optional[str] = None) -> None:
        self.storage = storage
        self.profile = profile
        self.key = key or get_settings().session_key

    def __repr__(self) -> str:
        return f"SessionStore(profile={self.profile!r}, key={self.key!r})"

    def set(self, user: User) -> None:
        self.storage.set_item(self.profile, self.key, json.dumps(user.to_record()))

    def get(self) -> Optional[User]:
        try:
            raw = self.storage.get_item(self.profile, self.key)
        except SQLAlchemyError as e:
            logger.warning("Session read failed for profile %s: %s", self.profile, e)
            return None
        if not raw:
            return None
        try:
            record = json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable session for profile %s", self.profile)
            return None
        if not isinstance(record, dict):
            logger.warning("Discarding malformed session for profile %s", self.profile)
            return None
        return User.from_record(record)

    def clear(self) -> None:
        self.storage.remove_item(self.profile, self.key)
