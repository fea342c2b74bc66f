"""
API request and response models for GymDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
gym/models.py, which own the internal domain representation. Route handlers
map between the two.

Partial-update and creation bodies for users, members, packages and payments
are NOT modelled here: they arrive as raw JSON objects and go through
gym/validation.py, which needs to see unknown keys and explicit nulls.

Separation of concerns: domain models = domain truth; api/ models = API contract.
"""

from typing import Annotated, Optional

from fastapi import Path
from pydantic import BaseModel, ConfigDict, Field

from auth.models import Role, User, UserStatus
from core.database import MAX_INTEGER
from gym.models import Checkin, Member, Package, Payment

# Primary key in a URL path. Out-of-range ids are a 400, not a storage error.
RowId = Annotated[int, Path(gt=0, le=MAX_INTEGER)]

# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    database: str = "ok"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/users/login."""

    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=255)


class LoginUser(BaseModel):
    """Public summary of the logged-in user. Never carries the hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role: Role


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: LoginUser


class UserResponse(BaseModel):
    """One row in GET /api/users."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    full_name: str
    role: Role
    status: UserStatus

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            role=user.role,
            status=user.status,
        )


# ---------------------------------------------------------------------------
# Packages and members
# ---------------------------------------------------------------------------


class PackageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    package_id: int
    package_name: str
    price: float
    duration_days: int
    description: Optional[str] = None

    @classmethod
    def from_package(cls, package: Package) -> "PackageResponse":
        return cls(
            package_id=package.package_id,
            package_name=package.package_name,
            price=package.price,
            duration_days=package.duration_days,
            description=package.description,
        )


class MemberResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    member_id: int
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    package_id: int
    package_name: Optional[str] = None
    start_date: str
    expiry_date: Optional[str] = None
    photo_url: Optional[str] = None
    is_active: int

    @classmethod
    def from_member(cls, member: Member) -> "MemberResponse":
        return cls(
            member_id=member.member_id,
            first_name=member.first_name,
            last_name=member.last_name,
            phone_number=member.phone_number,
            package_id=member.package_id,
            package_name=member.package_name,
            start_date=member.start_date,
            expiry_date=member.expiry_date,
            photo_url=member.photo_url,
            is_active=member.is_active,
        )


# ---------------------------------------------------------------------------
# Check-ins and payments
# ---------------------------------------------------------------------------


class CheckinCreate(BaseModel):
    """Request body for POST /api/checkins."""

    model_config = ConfigDict(extra="forbid")

    member_id: int = Field(gt=0, le=MAX_INTEGER)
    staff_id: int = Field(gt=0, le=MAX_INTEGER)


class CheckinResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    checkin_id: int
    member_id: int
    staff_id: int
    check_in_time: str
    check_out_time: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    staff_name: Optional[str] = None

    @classmethod
    def from_checkin(cls, checkin: Checkin) -> "CheckinResponse":
        return cls(
            checkin_id=checkin.checkin_id,
            member_id=checkin.member_id,
            staff_id=checkin.staff_id,
            check_in_time=checkin.check_in_time,
            check_out_time=checkin.check_out_time,
            first_name=checkin.first_name,
            last_name=checkin.last_name,
            staff_name=checkin.staff_name,
        )


class PaymentResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_id: int
    member_id: int
    package_id: Optional[int] = None
    amount: float
    payment_date: str
    staff_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    package_name: Optional[str] = None
    staff_name: Optional[str] = None

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            payment_id=payment.payment_id,
            member_id=payment.member_id,
            package_id=payment.package_id,
            amount=payment.amount,
            payment_date=payment.payment_date,
            staff_id=payment.staff_id,
            first_name=payment.first_name,
            last_name=payment.last_name,
            package_name=payment.package_name,
            staff_name=payment.staff_name,
        )
