"""
API request and response models for the storefront REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in core/models.py, which
own the internal domain representation. Route handlers map between the two.

Records from the mock API carry fields the storefront does not know about;
the response models allow extra keys so those pass through untouched.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.models import Product, User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login. identifier is a username or an email.

    Both fields are compared as sent: no whitespace stripping.
    """

    identifier: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class ProductIn(BaseModel):
    """Request body for POST/PUT /api/v1/products."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)
    image: Optional[str] = Field(default=None, max_length=2048)
    description: Optional[str] = Field(default=None, max_length=5000)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class UserIn(BaseModel):
    """Request body for POST/PUT /api/v1/users."""

    model_config = ConfigDict(extra="allow")

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ProductOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str
    price: float
    image: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ProductOut":
        return cls(**Product.from_record(record).to_record())


class UserOut(BaseModel):
    """A user as returned by the API. The password never leaves this process."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    username: str
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        record = user.to_record()
        record.pop("password", None)
        return cls(**record)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "UserOut":
        return cls.from_user(User.from_record(record))


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Uniform error envelope for every non-2xx API response."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=lambda: {"app": "ok"})
