"""
api/routes/v1/payments.py -- Payment routes.

Routes:
  GET    /api/payments          -- list, most recent first (requires auth)
  GET    /api/payments/{id}     -- detail (requires auth)
  POST   /api/payments          -- record a payment dated now (requires auth)
  PUT    /api/payments/{id}     -- correct member/package/amount/staff (admin only)
  DELETE /api/payments/{id}     -- delete (admin only)
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from api.models import MessageResponse, PaymentResponse, RowId
from auth.dependencies import get_current_principal, require_admin
from auth.models import Principal
from auth.store import UserStore
from core.database import payments
from core.errors import NotFoundError, StoreError
from core.updates import plan_update
from gym.store import GymStore
from gym.validation import validate_payment_create, validate_payment_update

router = APIRouter()


@router.get("/payments", response_model=list[PaymentResponse])
def list_payments(request: Request, principal: Principal = Depends(get_current_principal)) -> list[PaymentResponse]:
    gym: GymStore = request.app.state.gym_store
    return [PaymentResponse.from_payment(p) for p in gym.list_payments()]


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(
    request: Request,
    payment_id: RowId,
    principal: Principal = Depends(get_current_principal),
) -> PaymentResponse:
    gym: GymStore = request.app.state.gym_store
    payment = gym.get_payment(payment_id)
    if payment is None:
        raise NotFoundError("payment not found")
    return PaymentResponse.from_payment(payment)


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def create_payment(
    request: Request,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_current_principal),
) -> PaymentResponse:
    """Record a payment. Requires member_id, amount and staff_id; package_id is optional."""
    gym: GymStore = request.app.state.gym_store
    user_store: UserStore = request.app.state.user_store
    payment = validate_payment_create(payload, gym, user_store)
    payment_id = gym.create_payment(payment)
    return PaymentResponse.from_payment(_reload(gym, payment_id))


@router.put("/payments/{payment_id}", response_model=PaymentResponse)
def update_payment(
    request: Request,
    payment_id: RowId,
    payload: dict[str, Any] = Body(...),
    principal: Principal = Depends(require_admin),
) -> PaymentResponse:
    """Correct a mistyped payment. payment_date is never changed."""
    gym: GymStore = request.app.state.gym_store
    user_store: UserStore = request.app.state.user_store
    fields = validate_payment_update(payload, gym.get_payment(payment_id), gym, user_store)
    plan = plan_update(payments, payments.c.payment_id, payment_id, fields)
    if not gym.apply(plan):
        raise NotFoundError("payment not found")
    return PaymentResponse.from_payment(_reload(gym, payment_id))


@router.delete("/payments/{payment_id}", response_model=MessageResponse)
def delete_payment(
    request: Request,
    payment_id: RowId,
    principal: Principal = Depends(require_admin),
) -> MessageResponse:
    gym: GymStore = request.app.state.gym_store
    if not gym.delete_payment(payment_id):
        raise NotFoundError("payment not found")
    return MessageResponse(message="Payment deleted successfully")


def _reload(gym: GymStore, payment_id: int):
    payment = gym.get_payment(payment_id)
    if payment is None:
        raise StoreError("payment not found after write")
    return payment
