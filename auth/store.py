"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as gym/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Partial updates arrive as an UpdatePlan (core/updates.py) whose column
  names come from the closed UserField enum.

Concurrency:
  The UNIQUE constraint on users.username is the source of truth for
  uniqueness. Writes run in a single transaction and an IntegrityError is
  reported as ConflictError, so a race past the validator's pre-check still
  fails cleanly.

Layer rule: no imports from api/ or gym/.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Role, User, UserStatus
from core.database import now_timestamp, users
from core.errors import ConflictError
from core.updates import UpdatePlan

logger = logging.getLogger("gymdesk.store")


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(create_db_engine(url))
        store.create_user(User(username="admin", password_hash=hash_password("secret"), full_name="Admin"))
        user = store.get_by_username("admin")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(users)).scalar()
        return (result or 0) > 0

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def exists(self, user_id: int) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(users.c.id).where(users.c.id == user_id)).fetchone()
        return row is not None

    def list_users(self) -> list[User]:
        """Return all users ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(users.select().order_by(users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def username_taken(self, username: str, exclude_id: int | None = None) -> bool:
        """Return True if another user already holds username.

        exclude_id lets an update keep its own current name.
        """
        query = select(users.c.id).where(users.c.username == username)
        if exclude_id is not None:
            query = query.where(users.c.id != exclude_id)
        with self.engine.connect() as conn:
            row = conn.execute(query.limit(1)).fetchone()
        return row is not None

    def count_active_admins(self) -> int:
        """Return the number of active admin users."""
        query = (
            select(func.count())
            .select_from(users)
            .where((users.c.role == Role.admin.value) & (users.c.status == UserStatus.active.value))
        )
        with self.engine.connect() as conn:
            result = conn.execute(query).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises ConflictError if the username already exists.
        """
        now = now_timestamp()
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    users.insert().values(
                        username=user.username,
                        password_hash=user.password_hash,
                        full_name=user.full_name,
                        role=Role(user.role).value,
                        status=UserStatus(user.status).value,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError as exc:
            raise ConflictError("username already exists", code="duplicate_username") from exc
        user_id = result.inserted_primary_key[0]
        logger.info("Created user_id=%s role=%s", user_id, Role(user.role).value)
        return user_id

    def apply(self, plan: UpdatePlan) -> bool:
        """Execute a planned update. Returns True if the row existed.

        Raises ConflictError if the update collides with another username.
        """
        if plan.table is not users:
            raise ValueError(f"UserStore cannot apply a plan for table {plan.table.name}")
        try:
            with self.engine.begin() as conn:
                result = conn.execute(plan.statement())
        except IntegrityError as exc:
            raise ConflictError("username already exists", code="duplicate_username") from exc
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Raises ConflictError if check-ins or payments still reference the user.
        Last-admin and self-deletion guards are the caller's responsibility.
        """
        try:
            with self.engine.begin() as conn:
                result = conn.execute(users.delete().where(users.c.id == user_id))
        except IntegrityError as exc:
            raise ConflictError("user is referenced by check-ins or payments", code="user_in_use") from exc
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        full_name=row.full_name,
        role=Role(row.role),
        status=UserStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
