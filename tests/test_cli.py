"""
tests/test_cli.py -- The operator commands in main.py.

Each test points DATABASE_URL at a fresh file and clears the get_settings()
cache so the command picks it up.
"""

from __future__ import annotations

import pytest

from auth.models import Role
from auth.store import UserStore
from core.config import get_settings
from core.database import create_db_engine
from main import main


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


def test_init_db(db_url, capsys):
    assert main(["init-db"]) == 0
    out = capsys.readouterr().out
    assert "Database ready" in out
    assert "create-admin" in out


def test_create_admin(db_url, capsys):
    argv = ["create-admin", "--username", "owner", "--password", "s3cret!!", "--full-name", "Gym Owner"]
    assert main(argv) == 0
    assert "Admin 'owner' created" in capsys.readouterr().out

    engine = create_db_engine(db_url)
    try:
        user = UserStore(engine).get_by_username("owner")
    finally:
        engine.dispose()
    assert user is not None
    assert user.role is Role.admin
    assert user.password_hash != "s3cret!!"


def test_create_admin_rejects_bad_input(db_url, capsys):
    argv = ["create-admin", "--username", "has space", "--password", "s3cret!!", "--full-name", "Gym Owner"]
    assert main(argv) == 1
    assert "Could not create admin" in capsys.readouterr().out


def test_create_admin_twice_conflicts(db_url, capsys):
    argv = ["create-admin", "--username", "owner", "--password", "s3cret!!", "--full-name", "Gym Owner"]
    assert main(argv) == 0
    assert main(argv) == 1
    assert "username already exists" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "create-admin" in capsys.readouterr().out
