"""
api/routes/v1/users.py -- Login and user account endpoints.

Routes:
  POST   /api/users/login     -- password login; returns a bearer token
  GET    /api/users           -- list accounts (requires auth)
  GET    /api/users/me        -- current account (requires auth)
  POST   /api/users           -- register an account (admin only)
  PUT    /api/users/{id}      -- partial update (requires auth, see below)
  DELETE /api/users/{id}      -- delete an account (admin only)

Security:
  POST /login is rate-limited per IP (Settings.login_rate_limit).
  Cache-Control: no-store on login responses.
  PUT /users/{id}: admins may update any account. Staff may update only their
    own account and may not change role or status. Nobody may demote or
    deactivate the last active admin.
  DELETE /users/{id}: admins cannot delete themselves or the last active admin.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response

from api.limiter import limiter, login_limit
from api.models import LoginRequest, LoginResponse, LoginUser, MessageResponse, RowId, UserResponse
from auth.dependencies import get_current_principal, require_admin
from auth.models import Principal, Role, UserField, UserStatus
from auth.store import UserStore
from auth.tokens import login
from core.config import get_settings
from core.database import users
from core.errors import AuthorizationError, NotFoundError, StoreError, ValidationError
from core.updates import plan_update
from gym.validation import validate_user_create, validate_user_update

logger = logging.getLogger("gymdesk.api")

# Auth policy:
# - POST   /api/users/login:   public -- login endpoint must be unauthenticated
# - GET    /api/users:         requires auth (get_current_principal)
# - GET    /api/users/me:      requires auth (get_current_principal)
# - POST   /api/users:         requires admin (require_admin)
# - PUT    /api/users/{id}:    requires auth; staff limited to own record
# - DELETE /api/users/{id}:    requires admin (require_admin)
router = APIRouter()


@limiter.limit(login_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/users/login", response_model=LoginResponse)
def login_user(request: Request, response: Response, body: LoginRequest) -> LoginResponse:
    """Authenticate with username and password; return a signed bearer token.

    An unknown username is reported as 400 "user not found"; a wrong
    password as 401 "invalid credentials".
    """
    user_store: UserStore = request.app.state.user_store
    response.headers["Cache-Control"] = "no-store"
    try:
        token, user = login(user_store, body.username, body.password)
    except NotFoundError as exc:
        raise ValidationError(exc.message, code=exc.code) from exc
    return LoginResponse(
        token=token,
        expires_in=get_settings().token_expire_seconds,
        user=LoginUser(id=user.id, username=user.username, role=user.role),
    )


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request, principal: Principal = Depends(get_current_principal)) -> list[UserResponse]:
    """List all accounts. Password hashes are never returned."""
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]


@router.get("/users/me", response_model=UserResponse)
def me(request: Request, principal: Principal = Depends(get_current_principal)) -> UserResponse:
    """Return the account behind the current token."""
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(principal.user_id)
    if user is None:
        raise NotFoundError("user not found")
    return UserResponse.from_user(user)


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    request: Request,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(require_admin),
) -> UserResponse:
    """Register a staff or admin account. Admin only."""
    user_store: UserStore = request.app.state.user_store
    new_user = validate_user_create(payload, user_store)
    user_id = user_store.create_user(new_user)
    logger.info("user_id=%s created by admin user_id=%s", user_id, principal.user_id)
    return UserResponse.from_user(_reload(user_store, user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: RowId,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_current_principal),
) -> UserResponse:
    """Apply a whitelisted partial update to an account.

    Accepts any of username, password, full_name, role, status. A password
    is re-hashed; updated_at is always refreshed.
    """
    user_store: UserStore = request.app.state.user_store

    if not principal.is_admin:
        if principal.user_id != user_id:
            raise AuthorizationError("staff may only update their own account")
        if "role" in payload or "status" in payload:
            raise AuthorizationError("only admins can change role or status")

    target = user_store.get_by_id(user_id)
    fields = validate_user_update(payload, target, user_store)

    demoted = fields.get(UserField.role, target.role.value) != Role.admin.value
    deactivated = fields.get(UserField.status, target.status.value) != UserStatus.active.value
    if target.role is Role.admin and target.is_active and (demoted or deactivated):
        if user_store.count_active_admins() <= 1:
            raise ValidationError("cannot demote or deactivate the last active admin", code="last_admin")

    plan = plan_update(users, users.c.id, user_id, fields, touch="updated_at")
    if not user_store.apply(plan):
        raise NotFoundError("user not found")
    logger.info("user_id=%s updated fields=%s by user_id=%s", user_id, plan.columns, principal.user_id)
    return UserResponse.from_user(_reload(user_store, user_id))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    request: Request,
    user_id: RowId,
    principal: Principal = Depends(require_admin),
) -> MessageResponse:
    """Delete an account. Admin only; never the caller or the last active admin."""
    user_store: UserStore = request.app.state.user_store
    if user_id == principal.user_id:
        raise ValidationError("you cannot delete your own account", code="self_delete")
    target = user_store.get_by_id(user_id)
    if target is None:
        raise NotFoundError("user not found")
    if target.role is Role.admin and target.is_active and user_store.count_active_admins() <= 1:
        raise ValidationError("cannot delete the last active admin", code="last_admin")
    if not user_store.delete_user(user_id):
        raise NotFoundError("user not found")
    logger.info("user_id=%s deleted by admin user_id=%s", user_id, principal.user_id)
    return MessageResponse(message="User deleted successfully")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _reload(user_store: UserStore, user_id: int):
    user = user_store.get_by_id(user_id)
    if user is None:
        raise StoreError("user not found after write")
    return user
