"""
gym/store.py -- SQLAlchemy-backed persistence layer for GymDesk club data.

Uses SQLAlchemy Core (not ORM) so the domain dataclasses in gym/models.py
remain the authoritative domain representation. Swapping SQLite for another
database is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. GymStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers (they translate
raw DB rows into domain dataclasses). Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL. Partial
updates arrive as an UpdatePlan built from closed field enums.

Concurrency: every write is one transaction. UNIQUE(package_name) and the
foreign keys are enforced by the database; IntegrityError becomes
ConflictError. The validator's existence/uniqueness checks are a fast path
that produces friendlier messages, not the guard itself.

Usage:
    store = GymStore(create_db_engine(url))
    package_id = store.create_package(Package(package_name="Gold", price=1500, duration_days=30))
    member_id = store.create_member(Member(first_name="Somchai", last_name="Dee", package_id=package_id,
                                           start_date="2025-01-01 00:00:00"))
    store.list_members()
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from core.database import checkins, members, now_timestamp, packages, payments, users
from core.errors import ConflictError
from core.updates import UpdatePlan
from gym.models import Checkin, Member, Package, Payment

logger = logging.getLogger("gymdesk.store")

# Message used when a write trips a constraint, per target table.
_CONFLICT_MESSAGES: dict[str, tuple[str, str]] = {
    "packages": ("duplicate_package_name", "package name already exists"),
    "members": ("reference_conflict", "referenced package no longer exists"),
    "payments": ("reference_conflict", "referenced member, package or staff no longer exists"),
}


class GymStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def apply(self, plan: UpdatePlan) -> bool:
        """Execute a planned single-row update. Returns True if the row existed."""
        if plan.table.name not in _CONFLICT_MESSAGES:
            raise ValueError(f"GymStore cannot apply a plan for table {plan.table.name}")
        try:
            with self.engine.begin() as conn:
                result = conn.execute(plan.statement())
        except IntegrityError as exc:
            logger.info("Update on %s key=%s rejected by constraint: %s", plan.table.name, plan.key, exc.orig)
            code, message = _CONFLICT_MESSAGES[plan.table.name]
            raise ConflictError(message, code=code) from exc
        return result.rowcount > 0

    def _exists(self, key_column, key: int) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(key_column).where(key_column == key)).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Packages
    # ------------------------------------------------------------------

    def create_package(self, package: Package) -> int:
        """Insert a package and return its ID. Raises ConflictError on a duplicate name."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    packages.insert().values(
                        package_name=package.package_name,
                        price=package.price,
                        duration_days=package.duration_days,
                        description=package.description,
                    )
                )
        except IntegrityError as exc:
            raise ConflictError("package name already exists", code="duplicate_package_name") from exc
        return result.inserted_primary_key[0]

    def get_package(self, package_id: int) -> Optional[Package]:
        with self.engine.connect() as conn:
            row = conn.execute(packages.select().where(packages.c.package_id == package_id)).fetchone()
        return _row_to_package(row) if row is not None else None

    def list_packages(self) -> list[Package]:
        with self.engine.connect() as conn:
            rows = conn.execute(packages.select().order_by(packages.c.package_id)).fetchall()
        return [_row_to_package(r) for r in rows]

    def package_exists(self, package_id: int) -> bool:
        return self._exists(packages.c.package_id, package_id)

    def package_name_taken(self, package_name: str, exclude_id: Optional[int] = None) -> bool:
        """Return True if a package other than exclude_id already uses package_name."""
        query = select(packages.c.package_id).where(packages.c.package_name == package_name)
        if exclude_id is not None:
            query = query.where(packages.c.package_id != exclude_id)
        with self.engine.connect() as conn:
            row = conn.execute(query.limit(1)).fetchone()
        return row is not None

    def delete_package(self, package_id: int) -> bool:
        """Delete a package. Raises ConflictError while members still subscribe to it."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(packages.delete().where(packages.c.package_id == package_id))
        except IntegrityError as exc:
            logger.info("Delete of package_id=%s blocked by members", package_id)
            raise ConflictError("package is assigned to one or more members", code="package_in_use") from exc
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def create_member(self, member: Member) -> int:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    members.insert().values(
                        first_name=member.first_name,
                        last_name=member.last_name,
                        phone_number=member.phone_number,
                        package_id=member.package_id,
                        start_date=member.start_date,
                        expiry_date=member.expiry_date,
                        photo_url=member.photo_url,
                        is_active=member.is_active,
                    )
                )
        except IntegrityError as exc:
            raise ConflictError("referenced package no longer exists", code="reference_conflict") from exc
        return result.inserted_primary_key[0]

    def get_member(self, member_id: int) -> Optional[Member]:
        with self.engine.connect() as conn:
            row = conn.execute(_member_query().where(members.c.member_id == member_id)).fetchone()
        return _row_to_member(row) if row is not None else None

    def list_members(self) -> list[Member]:
        with self.engine.connect() as conn:
            rows = conn.execute(_member_query().order_by(members.c.member_id)).fetchall()
        return [_row_to_member(r) for r in rows]

    def member_exists(self, member_id: int) -> bool:
        return self._exists(members.c.member_id, member_id)

    def delete_member(self, member_id: int) -> bool:
        """Delete a member. Their check-ins and payments cascade."""
        with self.engine.begin() as conn:
            result = conn.execute(members.delete().where(members.c.member_id == member_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Check-ins
    # ------------------------------------------------------------------

    def create_checkin(self, member_id: int, staff_id: int) -> int:
        """Record a check-in stamped with the current time."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    checkins.insert().values(member_id=member_id, staff_id=staff_id, check_in_time=now_timestamp())
                )
        except IntegrityError as exc:
            raise ConflictError("referenced member or staff no longer exists", code="reference_conflict") from exc
        return result.inserted_primary_key[0]

    def get_checkin(self, checkin_id: int) -> Optional[Checkin]:
        with self.engine.connect() as conn:
            row = conn.execute(_checkin_query().where(checkins.c.checkin_id == checkin_id)).fetchone()
        return _row_to_checkin(row) if row is not None else None

    def list_checkins(self) -> list[Checkin]:
        """Return all check-ins, most recent first."""
        query = _checkin_query().order_by(checkins.c.check_in_time.desc(), checkins.c.checkin_id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_checkin(r) for r in rows]

    def check_out(self, checkin_id: int) -> bool:
        """Stamp check_out_time on an open check-in.

        The IS NULL predicate makes this set-once: returns False if the
        check-in does not exist or was already closed.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                checkins.update()
                .where((checkins.c.checkin_id == checkin_id) & (checkins.c.check_out_time.is_(None)))
                .values(check_out_time=now_timestamp())
            )
        return result.rowcount > 0

    def delete_checkin(self, checkin_id: int) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(checkins.delete().where(checkins.c.checkin_id == checkin_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def create_payment(self, payment: Payment) -> int:
        """Record a payment dated now."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    payments.insert().values(
                        member_id=payment.member_id,
                        package_id=payment.package_id,
                        amount=payment.amount,
                        staff_id=payment.staff_id,
                        payment_date=now_timestamp(),
                    )
                )
        except IntegrityError as exc:
            code, message = _CONFLICT_MESSAGES["payments"]
            raise ConflictError(message, code=code) from exc
        payment_id = result.inserted_primary_key[0]
        logger.info("Recorded payment_id=%s member_id=%s amount=%.2f", payment_id, payment.member_id, payment.amount)
        return payment_id

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        with self.engine.connect() as conn:
            row = conn.execute(_payment_query().where(payments.c.payment_id == payment_id)).fetchone()
        return _row_to_payment(row) if row is not None else None

    def list_payments(self) -> list[Payment]:
        """Return all payments, most recent first."""
        query = _payment_query().order_by(payments.c.payment_date.desc(), payments.c.payment_id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_payment(r) for r in rows]

    def delete_payment(self, payment_id: int) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(payments.delete().where(payments.c.payment_id == payment_id))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Read queries with display joins
# ---------------------------------------------------------------------------


def _member_query():
    return select(members, packages.c.package_name).select_from(
        members.outerjoin(packages, members.c.package_id == packages.c.package_id)
    )


def _checkin_query():
    return select(
        checkins,
        members.c.first_name,
        members.c.last_name,
        users.c.full_name.label("staff_name"),
    ).select_from(
        checkins.outerjoin(members, checkins.c.member_id == members.c.member_id).outerjoin(
            users, checkins.c.staff_id == users.c.id
        )
    )


def _payment_query():
    return select(
        payments,
        members.c.first_name,
        members.c.last_name,
        packages.c.package_name,
        users.c.full_name.label("staff_name"),
    ).select_from(
        payments.outerjoin(members, payments.c.member_id == members.c.member_id)
        .outerjoin(packages, payments.c.package_id == packages.c.package_id)
        .outerjoin(users, payments.c.staff_id == users.c.id)
    )


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_package(row) -> Package:
    return Package(
        package_id=row.package_id,
        package_name=row.package_name,
        price=row.price,
        duration_days=row.duration_days,
        description=row.description,
    )


def _row_to_member(row) -> Member:
    return Member(
        member_id=row.member_id,
        first_name=row.first_name,
        last_name=row.last_name,
        phone_number=row.phone_number,
        package_id=row.package_id,
        start_date=row.start_date,
        expiry_date=row.expiry_date,
        photo_url=row.photo_url,
        is_active=row.is_active,
        package_name=row.package_name,
    )


def _row_to_checkin(row) -> Checkin:
    return Checkin(
        checkin_id=row.checkin_id,
        member_id=row.member_id,
        staff_id=row.staff_id,
        check_in_time=row.check_in_time,
        check_out_time=row.check_out_time,
        first_name=row.first_name,
        last_name=row.last_name,
        staff_name=row.staff_name,
    )


def _row_to_payment(row) -> Payment:
    return Payment(
        payment_id=row.payment_id,
        member_id=row.member_id,
        package_id=row.package_id,
        amount=row.amount,
        payment_date=row.payment_date,
        staff_id=row.staff_id,
        first_name=row.first_name,
        last_name=row.last_name,
        package_name=row.package_name,
        staff_name=row.staff_name,
    )
