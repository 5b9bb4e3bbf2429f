"""
core/models.py -- Domain dataclasses for the two remote collections.

Records travel over the wire as plain JSON objects. The remote API adds
fields of its own (createdAt, avatar, ...) which the storefront never
interprets; they are kept in `extra` so a record can be written back
without losing anything.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger("condestyle.models")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _split(record: dict[str, Any], known: tuple[str, ...]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Partition a wire record into (known fields, everything else)."""
    known_values = {k: record[k] for k in known if k in record}
    extra = {k: v for k, v in record.items() if k not in known}
    return known_values, extra


def _merge(values: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    record = dict(extra)
    record.update({k: v for k, v in values.items() if v is not None})
    return record


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

_USER_FIELDS = ("id", "username", "email", "password")
_PRODUCT_FIELDS = ("id", "name", "price", "image", "description")


@dataclass
class User:
    """A record from the users collection.

    username should be unique but nothing enforces it locally. email is an
    alternate login identifier. password is stored and compared in plaintext
    because that is what the remote collection holds.
    """

    username: str
    id: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "User":
        values, extra = _split(record, _USER_FIELDS)
        user_id = values.get("id")
        return cls(
            username=str(values.get("username", "")),
            id=str(user_id) if user_id is not None else None,
            email=values.get("email"),
            password=values.get("password"),
            extra=extra,
        )

    def to_record(self) -> dict[str, Any]:
        return _merge(
            {"id": self.id, "username": self.username, "email": self.email, "password": self.password},
            self.extra,
        )


@dataclass
class Product:
    """A record from the products collection. No relationships to other entities."""

    name: str
    price: float
    id: Optional[str] = None
    image: Optional[str] = None  # URL
    description: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Product":
        values, extra = _split(record, _PRODUCT_FIELDS)
        product_id = values.get("id")
        raw_price = values.get("price")
        try:
            price = float(raw_price)
        except (TypeError, ValueError):
            logger.warning("Product %s has no usable price (%r); using 0.0", product_id, raw_price)
            price = 0.0
        return cls(
            name=str(values.get("name", "")),
            price=price,
            id=str(product_id) if product_id is not None else None,
            image=values.get("image"),
            description=values.get("description"),
            extra=extra,
        )

    def to_record(self) -> dict[str, Any]:
        return _merge(
            {
                "id": self.id,
                "name": self.name,
                "price": self.price,
                "image": self.image,
                "description": self.description,
            },
            self.extra,
        )
