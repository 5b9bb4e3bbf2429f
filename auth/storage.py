"""
auth/storage.py -- SQLAlchemy Core key/value storage scoped per client profile.

Pattern: Repository. LocalStorage behaves like a browser's localStorage:
string keys, string values, one namespace per client profile. It knows
nothing about users or sessions -- auth/session.py builds the "current
user" slot on top of it.

A client profile is a browser (identified by its client_id cookie) or the
CLI (fixed profile "cli"). Values persist across process restarts; nothing
is shared between profiles.

Security:
  All queries use bound parameters. No f-strings in SQL.

DB path: auth/condestyle_storage.db unless STORAGE_DB_URL says otherwise.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, MetaData, PrimaryKeyConstraint, String, Table, Text, create_engine, delete, event, select
from sqlalchemy.engine import Engine

from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_items = Table(
    "local_storage",
    _metadata,
    Column("profile", String(128), nullable=False),
    Column("key", String(255), nullable=False),
    Column("value", Text, nullable=False),
    Column("updated_at", String(32), nullable=False),
    PrimaryKeyConstraint("profile", "key"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during a write.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class LocalStorage:
    """Persistent per-profile key/value store.

    Usage:
        storage = LocalStorage()
        storage.set_item("cli", "user", '{"username": "ana"}')
        storage.get_item("cli", "user")
        storage.remove_item("cli", "user")
        storage.close()
    """

    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().storage_db_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def get_item(self, profile: str, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is not set."""
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_items.c.value).where(_items.c.profile == profile, _items.c.key == key)
            ).first()
        return row[0] if row else None

    def set_item(self, profile: str, key: str, value: str) -> None:
        """Store value under key, replacing whatever was there."""
        with self.engine.begin() as conn:
            conn.execute(delete(_items).where(_items.c.profile == profile, _items.c.key == key))
            conn.execute(
                _items.insert().values(profile=profile, key=key, value=value, updated_at=_now_iso())
            )

    def remove_item(self, profile: str, key: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(_items).where(_items.c.profile == profile, _items.c.key == key))

    def keys(self, profile: str) -> list[str]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(_items.c.key).where(_items.c.profile == profile).order_by(_items.c.key)
            ).fetchall()
        return [r[0] for r in rows]

    def clear_profile(self, profile: str) -> int:
        """Remove every key for a profile. Returns number of rows removed."""
        with self.engine.begin() as conn:
            result = conn.execute(delete(_items).where(_items.c.profile == profile))
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()
