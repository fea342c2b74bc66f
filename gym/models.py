"""
gym/models.py -- Domain dataclasses for members, packages, check-ins and payments.

These are pure data containers with zero logic. Validation lives in
gym/validation.py and persistence in gym/store.py.

Each *Field enum is the closed set of columns a partial update may touch.
The validators accept a client key only if it names a member of the enum,
and core/updates.py only accepts enum members as column names.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MemberField(str, Enum):
    first_name = "first_name"
    last_name = "last_name"
    phone_number = "phone_number"
    package_id = "package_id"
    start_date = "start_date"
    expiry_date = "expiry_date"
    photo_url = "photo_url"
    is_active = "is_active"


class PackageField(str, Enum):
    package_name = "package_name"
    price = "price"
    duration_days = "duration_days"
    description = "description"


class PaymentField(str, Enum):
    member_id = "member_id"
    package_id = "package_id"
    amount = "amount"
    staff_id = "staff_id"


@dataclass
class Package:
    """A subscription package members can buy.

    package_id is None before the record is written to the database.
    """

    package_name: str
    price: float
    duration_days: int
    description: Optional[str] = None
    package_id: Optional[int] = None


@dataclass
class Member:
    """A gym member subscribed to a package.

    Dates are stored as "YYYY-MM-DD HH:MM:SS". expiry_date, when set, is never
    earlier than start_date. is_active is stored as 0/1.
    package_name is filled in by read queries (join on packages) and ignored
    on insert.
    """

    first_name: str
    last_name: str
    package_id: int
    start_date: str
    phone_number: Optional[str] = None
    expiry_date: Optional[str] = None
    photo_url: Optional[str] = None
    is_active: int = 1
    member_id: Optional[int] = None
    package_name: Optional[str] = None


@dataclass
class Checkin:
    """A member visit recorded by a staff user.

    check_out_time is None until the member checks out; it is set once.
    The *_name fields are display values from joins.
    """

    member_id: int
    staff_id: int
    check_in_time: str = ""  # set by store on insert
    check_out_time: Optional[str] = None
    checkin_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    staff_name: Optional[str] = None


@dataclass
class Payment:
    """Money received from a member, optionally for a specific package."""

    member_id: int
    amount: float
    staff_id: int
    package_id: Optional[int] = None
    payment_date: str = ""  # set by store on insert
    payment_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    package_name: Optional[str] = None
    staff_name: Optional[str] = None
