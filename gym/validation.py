"""
gym/validation.py -- Field validation for partial updates and creations.

Every validator takes the raw JSON object a client sent and returns a map of
field-enum member -> normalized value that core/updates.py can plan, or
raises on the first violated rule. Nothing is written until a validator has
returned, so a rejected payload never causes a partial write.

Rule order (first failure wins):
  1. Whitelist    -- unknown key -> ValidationError("invalid field <name>").
                     Strict for every entity, users included.
  2. Emptiness    -- a trimmed-empty string is rejected. null is accepted only
                     where a field can be cleared (phone_number, photo_url,
                     expiry_date, description, payment package_id).
  3. Format       -- per-field regex / range / type rules.
  4. Cross-field  -- expiry_date >= start_date, using the stored value for
                     whichever side was not submitted.
  5. Referential  -- foreign keys must name an existing row.
  6. Uniqueness   -- username / package_name must not collide with any OTHER
                     row -> ConflictError (409).
  7. Normalization happens as each field passes: strings trimmed, dates to
     "YYYY-MM-DD HH:MM:SS" UTC, booleans to 0/1, password to password_hash.

Update validators receive the stored row looked up by primary key (or None).
The body shape and whitelist are checked first; a missing row then raises
NotFoundError before any field rule or store lookup runs.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from auth.models import USER_UPDATE_KEYS, Role, User, UserField, UserStatus
from auth.tokens import hash_password
from core.database import MAX_INTEGER, TIMESTAMP_FORMAT
from core.errors import ConflictError, NotFoundError, ValidationError
from gym.models import Member, MemberField, Package, PackageField, Payment, PaymentField

if TYPE_CHECKING:
    from auth.store import UserStore
    from gym.store import GymStore

F = TypeVar("F", bound=Enum)

# Latin letters, Thai consonants (U+0E01-U+0E2E) and Thai vowels/tone marks
# (U+0E30-U+0E4C), plus spaces.
_MEMBER_NAME_RE = re.compile(r"[A-Za-zก-ฮะ-์ ]+")
_PHONE_RE = re.compile(r"[0-9]{10}")
_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)
_USERNAME_RE = re.compile(r"[A-Za-z0-9._-]+")
# Words of letters separated by single spaces; no leading or trailing space.
_FULL_NAME_RE = re.compile(r"[A-Za-z]+( [A-Za-z]+)*")

_MIN_PASSWORD_LENGTH = 6

_MEMBER_REQUIRED = (MemberField.first_name, MemberField.last_name, MemberField.package_id, MemberField.start_date)
_PACKAGE_REQUIRED = (PackageField.package_name, PackageField.price, PackageField.duration_days)
_USER_REQUIRED = ("username", "password", "full_name")
_PAYMENT_REQUIRED = (PaymentField.member_id, PaymentField.amount, PaymentField.staff_id)


# ---------------------------------------------------------------------------
# Generic rules
# ---------------------------------------------------------------------------


def _check_payload(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError("request body must be a JSON object", code="invalid_body")
    if not payload:
        raise ValidationError("no fields provided", code="no_fields")
    return payload


def _check_whitelist(payload: Mapping[str, Any], allowed: Iterable[str]) -> None:
    allowed = set(allowed)
    for key in payload:
        if key not in allowed:
            raise ValidationError(f"invalid field {key}", code="invalid_field")


def _check_found(current: Any, entity: str) -> None:
    if current is None:
        raise NotFoundError(f"{entity} not found")


def _check_required(payload: Mapping[str, Any], required: Iterable[str]) -> None:
    for name in required:
        value = payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{name} is required", code="missing_field")


def _text(name: str, value: Any) -> str:
    """Return value trimmed. Rejects null, non-strings and blank strings."""
    if value is None:
        raise ValidationError(f"{name} cannot be null", code=f"invalid_{name}")
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string", code=f"invalid_{name}")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{name} cannot be empty", code=f"invalid_{name}")
    return trimmed


def _number(name: str, value: Any) -> float:
    # bool is a subclass of int; true/false are not prices.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", code=f"invalid_{name}")
    # Integers are checked before any float conversion, which overflows past 1e308.
    if isinstance(value, int):
        if abs(value) > MAX_INTEGER:
            raise ValidationError(f"{name} is out of range", code=f"invalid_{name}")
    elif not math.isfinite(value):
        raise ValidationError(f"{name} must be a number", code=f"invalid_{name}")
    return value


def _ref_id(name: str, value: Any) -> int:
    """Parse a foreign-key value: a positive integer or a string of digits."""
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= MAX_INTEGER:
        raise ValidationError(f"invalid {name}", code=f"invalid_{name}")
    return value


def _parse_date(name: str, value: Any) -> datetime:
    """Parse an ISO-8601 date or datetime string. Aware values are converted to naive UTC."""
    text = _text(name, value)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"invalid {name} format", code=f"invalid_{name}") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_stored_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


def _member_name(name: str, value: Any) -> str:
    trimmed = _text(name, value)
    if not _MEMBER_NAME_RE.fullmatch(trimmed):
        raise ValidationError(f"{name} must contain only letters and spaces", code=f"invalid_{name}")
    return trimmed


def _phone_number(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    phone = _text("phone_number", value)
    if not _PHONE_RE.fullmatch(phone):
        raise ValidationError("phone_number must contain exactly 10 digits", code="invalid_phone_number")
    return phone


def _photo_url(value: Any) -> Optional[str]:
    if value is None:
        return None
    url = _text("photo_url", value)
    if not _URL_RE.fullmatch(url):
        raise ValidationError("photo_url must be a valid http/https URL", code="invalid_photo_url")
    return url


def _is_active(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int) and value in (0, 1):
        return value
    if isinstance(value, str) and value in ("0", "1"):
        return int(value)
    raise ValidationError("invalid is_active: must be a boolean or 0/1", code="invalid_is_active")


def _validate_member_fields(
    payload: Mapping[str, Any],
    current: Optional[Member],
    store: GymStore,
) -> dict[MemberField, Any]:
    out: dict[MemberField, Any] = {}
    dates: dict[MemberField, Optional[datetime]] = {}

    for key, value in payload.items():
        field = MemberField(key)
        if field in (MemberField.first_name, MemberField.last_name):
            out[field] = _member_name(key, value)
        elif field is MemberField.phone_number:
            out[field] = _phone_number(value)
        elif field is MemberField.package_id:
            out[field] = _ref_id(key, value)
        elif field is MemberField.start_date:
            dates[field] = _parse_date(key, value)
        elif field is MemberField.expiry_date:
            dates[field] = None if value is None else _parse_date(key, value)
        elif field is MemberField.photo_url:
            out[field] = _photo_url(value)
        elif field is MemberField.is_active:
            out[field] = _is_active(value)

    # Cross-field: compare against the stored side when only one is submitted.
    if MemberField.start_date in dates:
        start = dates[MemberField.start_date]
    else:
        start = _parse_stored_date(current.start_date) if current else None
    if MemberField.expiry_date in dates:
        expiry = dates[MemberField.expiry_date]
    else:
        expiry = _parse_stored_date(current.expiry_date) if current else None
    if start is not None and expiry is not None and expiry < start:
        raise ValidationError("expiry_date cannot be before start_date", code="invalid_date_range")

    if MemberField.package_id in out and not store.package_exists(out[MemberField.package_id]):
        raise ValidationError("invalid package_id", code="invalid_package_id")

    for field, parsed in dates.items():
        out[field] = parsed.strftime(TIMESTAMP_FORMAT) if parsed is not None else None
    # Keep submission order for the planner.
    return {MemberField(key): out[MemberField(key)] for key in payload}


def validate_member_update(payload: Any, current: Optional[Member], store: GymStore) -> dict[MemberField, Any]:
    """Validate a partial update of an existing member.

    current is the stored row (None if the id did not resolve).
    """
    payload = _check_payload(payload)
    _check_whitelist(payload, (f.value for f in MemberField))
    _check_found(current, "member")
    return _validate_member_fields(payload, current, store)


def validate_member_create(payload: Any, store: GymStore) -> Member:
    """Validate a new member and return it ready for insertion."""
    payload = _check_payload(payload)
    _check_whitelist(payload, (f.value for f in MemberField))
    _check_required(payload, (f.value for f in _MEMBER_REQUIRED))
    fields = _validate_member_fields(payload, None, store)
    return Member(
        first_name=fields[MemberField.first_name],
        last_name=fields[MemberField.last_name],
        package_id=fields[MemberField.package_id],
        start_date=fields[MemberField.start_date],
        phone_number=fields.get(MemberField.phone_number),
        expiry_date=fields.get(MemberField.expiry_date),
        photo_url=fields.get(MemberField.photo_url),
        is_active=fields.get(MemberField.is_active, 1),
    )


# ---------------------------------------------------------------------------
# Packages
# ---------------------------------------------------------------------------


def _validate_package_fields(
    payload: Mapping[str, Any],
    package_id: Optional[int],
    store: GymStore,
) -> dict[PackageField, Any]:
    out: dict[PackageField, Any] = {}
    for key, value in payload.items():
        field = PackageField(key)
        if field is PackageField.package_name:
            out[field] = _text(key, value)
        elif field is PackageField.price:
            price = _number(key, value)
            if price < 0:
                raise ValidationError("price cannot be negative", code="invalid_price")
            out[field] = float(price)
        elif field is PackageField.duration_days:
            days = _number(key, value)
            if days != int(days):
                raise ValidationError("duration_days must be a whole number", code="invalid_duration_days")
            if days < 0:
                raise ValidationError("duration_days cannot be negative", code="invalid_duration_days")
            if days > MAX_INTEGER:
                raise ValidationError("duration_days is out of range", code="invalid_duration_days")
            out[field] = int(days)
        elif field is PackageField.description:
            out[field] = None if value is None else _text(key, value)

    name = out.get(PackageField.package_name)
    if name is not None and store.package_name_taken(name, exclude_id=package_id):
        raise ConflictError("package name already exists", code="duplicate_package_name")
    return out


def validate_package_update(payload: Any, current: Optional[Package], store: GymStore) -> dict[PackageField, Any]:
    """Validate a partial update of an existing package."""
    payload = _check_payload(payload)
    _check_whitelist(payload, (f.value for f in PackageField))
    _check_found(current, "package")
    return _validate_package_fields(payload, current.package_id, store)


def validate_package_create(payload: Any, store: GymStore) -> Package:
    """Validate a new package and return it ready for insertion."""
    payload = _check_payload(payload)
    _check_whitelist(payload, (f.value for f in PackageField))
    _check_required(payload, (f.value for f in _PACKAGE_REQUIRED))
    fields = _validate_package_fields(payload, None, store)
    return Package(
        package_name=fields[PackageField.package_name],
        price=fields[PackageField.price],
        duration_days=fields[PackageField.duration_days],
        description=fields.get(PackageField.description),
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _username(value: Any) -> str:
    if not isinstance(value, str) or not _USERNAME_RE.fullmatch(value):
        raise ValidationError(
            "username must contain only letters, numbers, dots, underscores, or hyphens (no spaces)",
            code="invalid_username",
        )
    return value


def _password(value: Any) -> str:
    if not isinstance(value, str) or len(value.strip()) < _MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {_MIN_PASSWORD_LENGTH} characters long and cannot contain only spaces",
            code="invalid_password",
        )
    return value


def _full_name(value: Any) -> str:
    if not isinstance(value, str) or not _FULL_NAME_RE.fullmatch(value):
        raise ValidationError(
            "full_name must contain only English letters separated by single spaces",
            code="invalid_full_name",
        )
    return value


def _enum_value(name: str, value: Any, enum_cls: type[F]) -> str:
    allowed = [member.value for member in enum_cls]
    if not isinstance(value, str) or value not in allowed:
        raise ValidationError(f"{name} must be one of: {', '.join(allowed)}", code=f"invalid_{name}")
    return value


def _validate_user_fields(
    payload: Mapping[str, Any],
    user_id: Optional[int],
    store: UserStore,
) -> dict[UserField, Any]:
    out: dict[UserField, Any] = {}
    for key, value in payload.items():
        if key == "username":
            out[UserField.username] = _username(value)
        elif key == "password":
            # The plaintext stops here.
            out[UserField.password_hash] = hash_password(_password(value))
        elif key == "full_name":
            out[UserField.full_name] = _full_name(value)
        elif key == "role":
            out[UserField.role] = _enum_value(key, value, Role)
        elif key == "status":
            out[UserField.status] = _enum_value(key, value, UserStatus)

    username = out.get(UserField.username)
    if username is not None and store.username_taken(username, exclude_id=user_id):
        raise ConflictError("username already exists", code="duplicate_username")
    return out


def validate_user_update(payload: Any, current: Optional[User], store: UserStore) -> dict[UserField, Any]:
    """Validate a partial update of an existing user.

    The result never contains a plaintext password: a submitted "password"
    comes back as UserField.password_hash.
    """
    payload = _check_payload(payload)
    _check_whitelist(payload, USER_UPDATE_KEYS)
    _check_found(current, "user")
    return _validate_user_fields(payload, current.id, store)


def validate_user_create(payload: Any, store: UserStore) -> User:
    """Validate a registration request and return the User to insert (password already hashed)."""
    payload = _check_payload(payload)
    _check_whitelist(payload, USER_UPDATE_KEYS)
    _check_required(payload, _USER_REQUIRED)
    fields = _validate_user_fields(payload, None, store)
    return User(
        username=fields[UserField.username],
        password_hash=fields[UserField.password_hash],
        full_name=fields[UserField.full_name],
        role=Role(fields.get(UserField.role, Role.staff.value)),
        status=UserStatus(fields.get(UserField.status, UserStatus.active.value)),
    )


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


def _validate_payment_fields(
    payload: Mapping[str, Any],
    gym_store: GymStore,
    user_store: UserStore,
) -> dict[PaymentField, Any]:
    out: dict[PaymentField, Any] = {}
    for key, value in payload.items():
        field = PaymentField(key)
        if field is PaymentField.amount:
            amount = _number(key, value)
            if amount <= 0:
                raise ValidationError("amount must be greater than zero", code="invalid_amount")
            out[field] = float(amount)
        elif field is PaymentField.package_id:
            out[field] = None if value is None else _ref_id(key, value)
        else:
            out[field] = _ref_id(key, value)

    if PaymentField.member_id in out and not gym_store.member_exists(out[PaymentField.member_id]):
        raise ValidationError("invalid member_id", code="invalid_member_id")
    package_id = out.get(PaymentField.package_id)
    if package_id is not None and not gym_store.package_exists(package_id):
        raise ValidationError("invalid package_id", code="invalid_package_id")
    if PaymentField.staff_id in out and not user_store.exists(out[PaymentField.staff_id]):
        raise ValidationError("invalid staff_id", code="invalid_staff_id")
    return out


def validate_payment_update(
    payload: Any,
    current: Optional[Payment],
    gym_store: GymStore,
    user_store: UserStore,
) -> dict[PaymentField, Any]:
    """Validate a correction to an existing payment."""
    payload = _check_payload(payload)
    _check_whitelist(payload, (f.value for f in PaymentField))
    _check_found(current, "payment")
    return _validate_payment_fields(payload, gym_store, user_store)


def validate_payment_create(payload: Any, gym_store: GymStore, user_store: UserStore) -> Payment:
    """Validate a new payment and return it ready for insertion."""
    payload = _check_payload(payload)
    _check_whitelist(payload, (f.value for f in PaymentField))
    _check_required(payload, (f.value for f in _PAYMENT_REQUIRED))
    fields = _validate_payment_fields(payload, gym_store, user_store)
    return Payment(
        member_id=fields[PaymentField.member_id],
        amount=fields[PaymentField.amount],
        staff_id=fields[PaymentField.staff_id],
        package_id=fields.get(PaymentField.package_id),
    )
