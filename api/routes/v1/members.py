"""
api/routes/v1/members.py -- Member routes.

Routes:
  GET    /api/members          -- list members with package name (public)
  GET    /api/members/{id}     -- member detail (public)
  POST   /api/members          -- create (admin only)
  PUT    /api/members/{id}     -- partial update (admin only)
  DELETE /api/members/{id}     -- delete; check-ins and payments cascade (admin only)

Bodies are raw JSON objects checked by gym/validation.py: unknown keys are
rejected, phone_number / photo_url / expiry_date may be cleared with null,
and expiry_date may never precede start_date.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from api.models import MemberResponse, MessageResponse, RowId
from auth.dependencies import require_admin
from auth.models import Principal
from core.database import members
from core.errors import NotFoundError, StoreError
from core.updates import plan_update
from gym.store import GymStore
from gym.validation import validate_member_create, validate_member_update

# Auth policy: reads are public, writes require admin.
router = APIRouter()


@router.get("/members", response_model=list[MemberResponse])
def list_members(request: Request) -> list[MemberResponse]:
    gym: GymStore = request.app.state.gym_store
    return [MemberResponse.from_member(m) for m in gym.list_members()]


@router.get("/members/{member_id}", response_model=MemberResponse)
def get_member(request: Request, member_id: RowId) -> MemberResponse:
    gym: GymStore = request.app.state.gym_store
    member = gym.get_member(member_id)
    if member is None:
        raise NotFoundError("member not found")
    return MemberResponse.from_member(member)


@router.post("/members", response_model=MemberResponse, status_code=201)
def create_member(
    request: Request,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(require_admin),
) -> MemberResponse:
    """Create a member. Requires first_name, last_name, package_id and start_date."""
    gym: GymStore = request.app.state.gym_store
    member = validate_member_create(payload, gym)
    member_id = gym.create_member(member)
    return MemberResponse.from_member(_reload(gym, member_id))


@router.put("/members/{member_id}", response_model=MemberResponse)
def update_member(
    request: Request,
    member_id: RowId,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(require_admin),
) -> MemberResponse:
    """Apply a whitelisted partial update to a member."""
    gym: GymStore = request.app.state.gym_store
    fields = validate_member_update(payload, gym.get_member(member_id), gym)
    plan = plan_update(members, members.c.member_id, member_id, fields)
    if not gym.apply(plan):
        raise NotFoundError("member not found")
    return MemberResponse.from_member(_reload(gym, member_id))


@router.delete("/members/{member_id}", response_model=MessageResponse)
def delete_member(
    request: Request,
    member_id: RowId,
    principal: Principal = Depends(require_admin),
) -> MessageResponse:
    gym: GymStore = request.app.state.gym_store
    if not gym.delete_member(member_id):
        raise NotFoundError("member not found")
    return MessageResponse(message="Member deleted successfully")


def _reload(gym: GymStore, member_id: int):
    member = gym.get_member(member_id)
    if member is None:
        raise StoreError("member not found after write")
    return member
