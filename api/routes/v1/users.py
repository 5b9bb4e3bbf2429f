"""
api/routes/v1/users.py -- Users collection pass-through (session required).

Routes:
  GET    /users         -- list all users
  POST   /users         -- create a user
  GET    /users/{id}    -- one user
  PUT    /users/{id}    -- replace a user
  DELETE /users/{id}    -- delete a user

Passwords are accepted on create/update but never echoed back.
"""

from fastapi import APIRouter, Depends, Request

from api.limiter import limiter
from api.models import UserIn, UserOut
from auth.dependencies import get_current_user
from core.resources import ResourceClient

# Auth policy: every route requires a session, mirroring the /users page.
# Router-level dependency enforces it; handlers do not repeat it.
router = APIRouter(dependencies=[Depends(get_current_user)])


def _users(request: Request) -> ResourceClient:
    return request.app.state.users


@limiter.limit("60/minute")
@router.get("/users", response_model=list[UserOut])
def list_users(request: Request) -> list[UserOut]:
    return [UserOut.from_record(r) for r in _users(request).get_all()]


@limiter.limit("30/minute")
@router.post("/users", response_model=UserOut, status_code=201)
def create_user(request: Request, body: UserIn) -> UserOut:
    return UserOut.from_record(_users(request).create(body.to_record()))


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(request: Request, user_id: str) -> UserOut:
    return UserOut.from_record(_users(request).get_by_id(user_id))


@limiter.limit("30/minute")
@router.put("/users/{user_id}", response_model=UserOut)
def update_user(request: Request, user_id: str, body: UserIn) -> UserOut:
    return UserOut.from_record(_users(request).update(user_id, body.to_record()))


@limiter.limit("30/minute")
@router.delete("/users/{user_id}", response_model=UserOut)
def delete_user(request: Request, user_id: str) -> UserOut:
    return UserOut.from_record(_users(request).delete(user_id))
