"""
core/database.py -- Shared SQLAlchemy Core schema and engine factory.

All five GymDesk tables live on one MetaData so foreign keys between users,
members, packages, check-ins and payments resolve inside a single database.
auth/store.py and gym/store.py are the only modules that execute statements
against these tables; everything else goes through them.

Constraints are the authoritative guard against duplicates and dangling
references. Application-level pre-checks in gym/validation.py exist to give a
friendly message; a concurrent writer that slips past them still hits the
UNIQUE / FOREIGN KEY constraint and the store converts that into a conflict.

Layer rule: no imports from api/, auth/, or gym/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine

# Storage format for every timestamp column (UTC, second precision).
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Largest value an SQLite INTEGER column can hold.
MAX_INTEGER = 2**63 - 1

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("full_name", String(255), nullable=False),
    Column("role", String(20), nullable=False, server_default="staff"),
    Column("status", String(20), nullable=False, server_default="active"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

packages = Table(
    "packages",
    metadata,
    Column("package_id", Integer, primary_key=True, autoincrement=True),
    Column("package_name", String(255), nullable=False, unique=True),
    Column("price", Float, nullable=False),
    Column("duration_days", Integer, nullable=False),
    Column("description", Text),
)

members = Table(
    "members",
    metadata,
    Column("member_id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("phone_number", String(10)),
    Column("package_id", Integer, ForeignKey("packages.package_id"), nullable=False),
    Column("start_date", String(32), nullable=False),
    Column("expiry_date", String(32)),
    Column("photo_url", Text),
    Column("is_active", Integer, nullable=False, server_default="1"),  # boolean stored as 0/1
)

checkins = Table(
    "checkins",
    metadata,
    Column("checkin_id", Integer, primary_key=True, autoincrement=True),
    Column("member_id", Integer, ForeignKey("members.member_id", ondelete="CASCADE"), nullable=False),
    Column("check_in_time", String(32), nullable=False),
    Column("check_out_time", String(32)),
    Column("staff_id", Integer, ForeignKey("users.id"), nullable=False),
)

payments = Table(
    "payments",
    metadata,
    Column("payment_id", Integer, primary_key=True, autoincrement=True),
    Column("member_id", Integer, ForeignKey("members.member_id", ondelete="CASCADE"), nullable=False),
    Column("package_id", Integer, ForeignKey("packages.package_id", ondelete="SET NULL")),
    Column("amount", Float, nullable=False),
    Column("payment_date", String(32), nullable=False),
    Column("staff_id", Integer, ForeignKey("users.id"), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def now_timestamp() -> str:
    """Return the current UTC time in the stored timestamp format."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. SQLite ignores FOREIGN KEY clauses unless
    foreign_keys is switched on.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Create an engine for db_url and make sure every table exists.

    Usage:
        engine = create_db_engine("sqlite:///gymdesk.db")
        users = UserStore(engine)
        gym = GymStore(engine)
        ...
        engine.dispose()
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # Request handlers run in a thread pool; the same pooled connection
        # may be used from more than one thread.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    metadata.create_all(engine)
    return engine
