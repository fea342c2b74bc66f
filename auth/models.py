"""
auth/models.py -- Domain dataclasses and enums for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in gym/models.py -- dataclasses own domain shape; stores and routes do the work.

Layer rule: no imports from api/ or gym/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    admin = "admin"
    staff = "staff"


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class UserField(str, Enum):
    """Columns a user update may touch. Anything else is rejected."""

    username = "username"
    password_hash = "password_hash"
    full_name = "full_name"
    role = "role"
    status = "status"


# Keys a client may submit on PUT /users/{id}. "password" is accepted from the
# client but never reaches the store -- it is hashed into password_hash.
USER_UPDATE_KEYS: frozenset[str] = frozenset({"username", "password", "full_name", "role", "status"})


@dataclass
class User:
    """A staff or admin account.

    password_hash is a bcrypt hash. The plaintext is never stored and never
    leaves auth/tokens.py.
    """

    username: str
    password_hash: str
    full_name: str
    role: Role = Role.staff
    status: UserStatus = UserStatus.active
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status is UserStatus.active


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request after token verification.

    Built from the token claims alone; the gate does not re-read the user row.
    """

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin
