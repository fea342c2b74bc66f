"""
api/routes/v1/checkins.py -- Member check-in / check-out routes.

Routes:
  GET    /api/checkins                 -- list, most recent first (requires auth)
  GET    /api/checkins/{id}            -- detail (requires auth)
  POST   /api/checkins                 -- record a check-in now (requires auth)
  PUT    /api/checkins/{id}/checkout   -- stamp check-out time once (requires auth)
  DELETE /api/checkins/{id}            -- delete record (admin only)
"""

from fastapi import APIRouter, Depends, Request

from api.models import CheckinCreate, CheckinResponse, MessageResponse, RowId
from auth.dependencies import get_current_principal, require_admin
from auth.models import Principal
from auth.store import UserStore
from core.errors import ConflictError, NotFoundError, StoreError, ValidationError
from gym.store import GymStore

# Any logged-in staff member can record visits; deleting history is admin-only.
router = APIRouter()


@router.get("/checkins", response_model=list[CheckinResponse])
def list_checkins(request: Request, principal: Principal = Depends(get_current_principal)) -> list[CheckinResponse]:
    gym: GymStore = request.app.state.gym_store
    return [CheckinResponse.from_checkin(c) for c in gym.list_checkins()]


@router.get("/checkins/{checkin_id}", response_model=CheckinResponse)
def get_checkin(
    request: Request,
    checkin_id: RowId,
    principal: Principal = Depends(get_current_principal),
) -> CheckinResponse:
    gym: GymStore = request.app.state.gym_store
    checkin = gym.get_checkin(checkin_id)
    if checkin is None:
        raise NotFoundError("check-in not found")
    return CheckinResponse.from_checkin(checkin)


@router.post("/checkins", response_model=CheckinResponse, status_code=201)
def create_checkin(
    request: Request,
    body: CheckinCreate,
    principal: Principal = Depends(get_current_principal),
) -> CheckinResponse:
    """Record that a member has arrived. check_in_time is set by the server."""
    gym: GymStore = request.app.state.gym_store
    user_store: UserStore = request.app.state.user_store
    if not gym.member_exists(body.member_id):
        raise ValidationError("invalid member_id", code="invalid_member_id")
    if not user_store.exists(body.staff_id):
        raise ValidationError("invalid staff_id", code="invalid_staff_id")
    checkin_id = gym.create_checkin(body.member_id, body.staff_id)
    return CheckinResponse.from_checkin(_reload(gym, checkin_id))


@router.put("/checkins/{checkin_id}/checkout", response_model=CheckinResponse)
def check_out(
    request: Request,
    checkin_id: RowId,
    principal: Principal = Depends(get_current_principal),
) -> CheckinResponse:
    """Stamp check_out_time. A check-in can be closed only once."""
    gym: GymStore = request.app.state.gym_store
    if not gym.check_out(checkin_id):
        if gym.get_checkin(checkin_id) is None:
            raise NotFoundError("check-in not found")
        raise ConflictError("member has already checked out", code="already_checked_out")
    return CheckinResponse.from_checkin(_reload(gym, checkin_id))


@router.delete("/checkins/{checkin_id}", response_model=MessageResponse)
def delete_checkin(
    request: Request,
    checkin_id: RowId,
    principal: Principal = Depends(require_admin),
) -> MessageResponse:
    gym: GymStore = request.app.state.gym_store
    if not gym.delete_checkin(checkin_id):
        raise NotFoundError("check-in not found")
    return MessageResponse(message="Check-in deleted successfully")


def _reload(gym: GymStore, checkin_id: int):
    checkin = gym.get_checkin(checkin_id)
    if checkin is None:
        raise StoreError("check-in not found after write")
    return checkin
