"""Tests for the main.py administration CLI against a throwaway SQLite file."""

import pytest

import main
from auth.store import UserStore
from auth.tokens import verify_password
from core.database import Database


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'cli.db'}"


def _create(db_url, *extra):
    return main.main(
        [
            "--database-url", db_url,
            "create-user",
            "--email", "pl@luct.ac.ls",
            "--first-name", "Thabo",
            "--last-name", "Mokoena",
            "--password", "leader123",
            *extra,
        ]
    )


def test_init_db_then_check_db(db_url, capsys):
    assert main.main(["--database-url", db_url, "init-db"]) == 0
    assert main.main(["--database-url", db_url, "check-db"]) == 0
    assert "0 user(s)" in capsys.readouterr().out


def test_create_user_hashes_password(db_url):
    assert _create(db_url) == 0
    db = Database(db_url)
    try:
        user = UserStore(db).get_by_email("pl@luct.ac.ls")
        assert user.role == "program_leader"
        assert user.faculty == "ICT"
        assert verify_password("leader123", user.hashed_password)
    finally:
        db.close()


def test_create_user_duplicate_email(db_url, capsys):
    assert _create(db_url) == 0
    assert _create(db_url, "--role", "lecturer") == 1
    assert "already" in capsys.readouterr().out.lower()


def test_create_user_short_password(db_url, capsys):
    rc = main.main(
        [
            "--database-url", db_url,
            "create-user",
            "--email", "x@luct.ac.ls",
            "--first-name", "X",
            "--last-name", "Y",
            "--password", "123",
        ]
    )
    assert rc == 1
    assert "at least 6" in capsys.readouterr().out


def test_unknown_role_rejected(db_url):
    with pytest.raises(SystemExit):
        _create(db_url, "--role", "dean")
