"""
tests/conftest.py -- Shared test fixtures for GymDesk integration tests.

This module provides:
  - engine:          a fresh SQLite database per test (store / validation tests)
  - user_store, gym_store: stores bound to that engine
  - api:             module-scoped TestClient with an admin and a staff account
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup

Design: each database is a file under pytest's tmp_path. TestClient runs sync
route handlers in a thread pool, and a file database gives every worker
thread the same schema and data through an ordinary connection pool.

SECRET_KEY must be set before any auth/core import so get_settings() does not
raise ValueError. LOGIN_RATE_LIMIT is raised so repeated logins across the
suite never trip the limiter.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import NamedTuple

# CRITICAL: Set before any auth/core import; get_settings() is cached on first call.
os.environ["SECRET_KEY"] = "test-secret-key-0123456789-abcdefghijklmnop"
os.environ["LOGIN_RATE_LIMIT"] = "1000/minute"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from core.database import create_db_engine
from gym.models import Member, Package
from gym.store import GymStore

ADMIN_PASSWORD = "adminpass123"
STAFF_PASSWORD = "staffpass123"

# Hashing once at import keeps per-test fixtures cheap.
_FAST_HASH = hash_password(STAFF_PASSWORD)


# ---------------------------------------------------------------------------
# Store fixtures -- one fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    eng = create_db_engine(f"sqlite:///{tmp_path / 'gymdesk_test.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def gym_store(engine: Engine) -> GymStore:
    return GymStore(engine)


@pytest.fixture
def staff_user(user_store: UserStore) -> User:
    """A staff account, already inserted. Uses a pre-hashed password to keep tests fast."""
    user = User(username="desk", password_hash=_FAST_HASH, full_name="Front Desk")
    user.id = user_store.create_user(user)
    return user


@pytest.fixture
def package(gym_store: GymStore) -> Package:
    pkg = Package(package_name="Monthly", price=1200.0, duration_days=30, description="One month")
    pkg.package_id = gym_store.create_package(pkg)
    return pkg


@pytest.fixture
def member(gym_store: GymStore, package: Package) -> Member:
    m = Member(
        first_name="Somchai",
        last_name="Jaidee",
        package_id=package.package_id,
        start_date="2024-01-01 00:00:00",
        expiry_date="2024-01-31 00:00:00",
        phone_number="0812345678",
    )
    m.member_id = gym_store.create_member(m)
    return gym_store.get_member(m.member_id)


# ---------------------------------------------------------------------------
# API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


class ApiContext(NamedTuple):
    client: TestClient
    user_store: UserStore
    gym_store: GymStore
    admin_id: int
    admin_token: str
    staff_id: int
    staff_token: str

    @property
    def admin(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.admin_token}"}

    @property
    def staff(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.staff_token}"}


def _patch_lifespan(engine: Engine, user_store: UserStore, gym_store: GymStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    the isolated test database rather than the configured one.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.user_store = user_store
        app.state.gym_store = gym_store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api(tmp_path_factory) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use an isolated database. An admin
    ("testadmin" / ADMIN_PASSWORD) and a staff account ("teststaff" /
    STAFF_PASSWORD) exist before the client starts.
    """
    db_path = tmp_path_factory.mktemp("api") / "gymdesk_api.db"
    eng = create_db_engine(f"sqlite:///{db_path}")
    user_store = UserStore(eng)
    gym_store = GymStore(eng)

    admin_id = user_store.create_user(
        User(
            username="testadmin",
            password_hash=hash_password(ADMIN_PASSWORD),
            full_name="Test Admin",
            role=Role.admin,
        )
    )
    staff_id = user_store.create_user(
        User(username="teststaff", password_hash=_FAST_HASH, full_name="Test Staff", role=Role.staff)
    )

    app.router.lifespan_context = _patch_lifespan(eng, user_store, gym_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            user_store=user_store,
            gym_store=gym_store,
            admin_id=admin_id,
            admin_token=create_access_token(admin_id, Role.admin),
            staff_id=staff_id,
            staff_token=create_access_token(staff_id, Role.staff),
        )

    eng.dispose()
