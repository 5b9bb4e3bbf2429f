"""
api/routes/v1/auth.py -- Session endpoints for API clients.

Routes:
  POST /api/v1/auth/login   -- verify credentials; write the session; set client_id cookie
  POST /api/v1/auth/logout  -- clear the session; 200
  GET  /api/v1/auth/me      -- current session user (requires session)

The session is the same one the web pages use: a browser that logs in here
can open /users afterwards, and vice versa.

Security:
  POST /login is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  Cache-Control: no-store on login responses.
  The same generic error is returned for unknown identifier and wrong password.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, UserOut
from auth.dependencies import ensure_client_profile, get_current_user, get_session
from auth.service import AuthService, InvalidCredentials, ServiceUnavailable
from core.config import get_settings
from core.models import User

# Auth policy:
# - POST /api/v1/auth/login:  public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/logout: public -- clearing an absent session is a no-op
# - GET  /api/v1/auth/me:     requires session (get_current_user)
router = APIRouter()


@limiter.limit(lambda: get_settings().login_rate_limit)
@router.post("/auth/login", response_model=UserOut)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Verify identifier (username or email) and password against the users collection.

    On success the user is written to the session for this client and the
    client_id cookie is set. InvalidCredentials -> 401, ServiceUnavailable -> 503.
    """
    auth: AuthService = request.app.state.auth
    try:
        user = auth.login(body.identifier, body.password)
    except InvalidCredentials:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "invalid_credentials", "message": "Invalid username or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp
    except ServiceUnavailable as e:
        raise HTTPException(
            status_code=503,
            detail={"code": "service_unavailable", "message": "Login is temporarily unavailable.", "detail": str(e)},
        ) from e

    resp = JSONResponse(status_code=200, content=UserOut.from_user(user).model_dump())
    session = ensure_client_profile(request, resp)
    session.set(user)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout")
def logout(request: Request) -> JSONResponse:
    """Clear the session for this client. The client_id cookie is kept."""
    AuthService.logout(get_session(request))
    return JSONResponse(content={"message": "Logged out."})


@router.get("/auth/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> UserOut:
    """Return the user stored in this client's session."""
    return UserOut.from_user(user)
