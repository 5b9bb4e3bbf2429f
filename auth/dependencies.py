"""
auth/dependencies.py -- FastAPI helpers that bind a request to its session.

A browser is identified by the client_id cookie. The value is a random
token handed out on first login; it names the profile in LocalStorage that
holds the session. The cookie carries no user data.

client_profile() reads the cookie (None when absent).
get_session() builds the SessionStore for the request's profile.
try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if there is no session.

Layer rule: no imports from api/ or web/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import HTTPException, Request, Response

from auth.session import SessionStore
from core.config import get_settings
from core.models import User

# Profile name used when the request carries no client_id cookie. Nothing is
# ever written under it, so reads always come back empty.
_ANONYMOUS_PROFILE = "anonymous"


def new_client_id() -> str:
    """Return a fresh client profile id (256 bits of entropy)."""
    return secrets.token_urlsafe(32)


def client_profile(request: Request) -> Optional[str]:
    value = request.cookies.get(get_settings().client_cookie_name)
    if value and value != _ANONYMOUS_PROFILE:
        return value
    return None


def get_session(request: Request) -> SessionStore:
    """Return the SessionStore for this request's client profile."""
    profile = client_profile(request) or _ANONYMOUS_PROFILE
    return SessionStore(request.app.state.storage, profile)


def ensure_client_profile(request: Request, response: Response) -> SessionStore:
    """Return a writable SessionStore, issuing a client_id cookie if the request has none."""
    profile = client_profile(request)
    if profile is None:
        profile = new_client_id()
    set_client_cookie(response, profile)
    return SessionStore(request.app.state.storage, profile)


def set_client_cookie(response: Response, profile: str) -> None:
    """Write the client_id cookie.

    httponly=True: JS cannot read the cookie.
    samesite="lax": not sent on cross-site POST.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    """
    settings = get_settings()
    response.set_cookie(
        settings.client_cookie_name,
        value=profile,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.client_cookie_max_age,
    )


def try_get_current_user(request: Request) -> User | None:
    """Return the session user for this request, None if there is none. Never raises."""
    if client_profile(request) is None:
        return None
    return get_session(request).get()


def get_current_user(request: Request) -> User:
    """Require a session. Raises HTTP 401 if the request has none.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user
