"""Unit tests for auth/store.py and core/database.py.

Covers:
- create/get round trip keeps role, faculty and the bcrypt hash
- duplicate email raises DuplicateEmail and leaves one row
- list_users() ordering and RowFilter compilation (OR of ANDs, IN)
- update_user() rejects unknown fields
- delete_user() refuses while the user is referenced
- Database.ping() and StoreUnavailable on an unreachable database
- pool class: in-memory URLs pin SingletonThreadPool, files keep the default
"""

import warnings

import pytest
from sqlalchemy.exc import SADeprecationWarning
from sqlalchemy.pool import SingletonThreadPool

from academics.models import Class
from auth.models import User
from core.database import Database
from core.errors import DuplicateEmail, ReferencedEntityError, StoreUnavailable
from core.policy import RowFilter


def _user(email, role="student", faculty="ICT", first_name="Neo"):
    return User(
        email=email,
        first_name=first_name,
        last_name="Test",
        role=role,
        faculty=faculty,
        hashed_password="$2b$10$notarealhashbutlongenoughforthecolumn",
    )


def test_create_and_get_round_trip(stores):
    uid = stores.users.create_user(_user("a@luct.ac.ls", role="lecturer", faculty="Business"))
    user = stores.users.get_by_id(uid)
    assert user.email == "a@luct.ac.ls"
    assert user.role == "lecturer"
    assert user.faculty == "Business"
    assert user.active is True
    assert user.created_at
    assert stores.users.get_by_email("a@luct.ac.ls").id == uid


def test_duplicate_email_raises_and_keeps_one_row(stores):
    stores.users.create_user(_user("dup@luct.ac.ls"))
    with pytest.raises(DuplicateEmail):
        stores.users.create_user(_user("dup@luct.ac.ls", role="lecturer"))
    assert stores.users.count_users() == 1


def test_list_users_orders_by_role_then_first_name(stores):
    stores.users.create_user(_user("s2@luct.ac.ls", first_name="Zanele"))
    stores.users.create_user(_user("l1@luct.ac.ls", role="lecturer", first_name="Mpho"))
    stores.users.create_user(_user("s1@luct.ac.ls", first_name="Ayanda"))
    names = [(u.role, u.first_name) for u in stores.users.list_users()]
    assert names == [("lecturer", "Mpho"), ("student", "Ayanda"), ("student", "Zanele")]


def test_row_filter_or_of_ands(stores):
    stores.users.create_user(_user("s-ict@luct.ac.ls"))
    stores.users.create_user(_user("s-biz@luct.ac.ls", faculty="Business"))
    stores.users.create_user(_user("l-ict@luct.ac.ls", role="lecturer"))
    stores.users.create_user(_user("l-biz@luct.ac.ls", role="lecturer", faculty="Business"))
    stores.users.create_user(_user("pl@luct.ac.ls", role="program_leader"))

    rf = RowFilter(any_of=({"role": "student"}, {"role": "lecturer", "faculty": "ICT"}))
    emails = {u.email for u in stores.users.list_users(rf)}
    assert emails == {"s-ict@luct.ac.ls", "s-biz@luct.ac.ls", "l-ict@luct.ac.ls"}


def test_row_filter_tuple_means_in(stores):
    stores.users.create_user(_user("s@luct.ac.ls"))
    stores.users.create_user(_user("l@luct.ac.ls", role="lecturer"))
    stores.users.create_user(_user("pl@luct.ac.ls", role="program_leader"))
    rf = RowFilter(any_of=({"role": ("student", "lecturer")},))
    assert {u.role for u in stores.users.list_users(rf)} == {"student", "lecturer"}


def test_empty_row_filter_matches_nothing(stores):
    stores.users.create_user(_user("s@luct.ac.ls"))
    assert stores.users.list_users(RowFilter(any_of=())) == []


def test_get_user_outside_filter_returns_none(stores):
    uid = stores.users.create_user(_user("biz@luct.ac.ls", faculty="Business"))
    rf = RowFilter(any_of=({"faculty": "ICT"},))
    assert stores.users.get_user(uid, rf) is None
    assert stores.users.get_user(uid) is not None


def test_update_user_partial(stores):
    uid = stores.users.create_user(_user("u@luct.ac.ls"))
    assert stores.users.update_user(uid, role="lecturer", active=False) is True
    user = stores.users.get_by_id(uid)
    assert user.role == "lecturer"
    assert user.active is False
    assert user.first_name == "Neo"


def test_update_user_rejects_unknown_fields(stores):
    uid = stores.users.create_user(_user("u@luct.ac.ls"))
    with pytest.raises(ValueError):
        stores.users.update_user(uid, email="other@luct.ac.ls")


def test_update_missing_user_returns_false(stores):
    assert stores.users.update_user(404, first_name="Ghost") is False


def test_delete_referenced_user_raises(stores):
    uid = stores.users.create_user(_user("lect@luct.ac.ls", role="lecturer"))
    class_id = stores.academics.create_class(Class(class_name="BSCSM Y1", faculty="ICT", total_registered_students=30))
    stores.academics.set_class_lecturer(class_id, uid)
    with pytest.raises(ReferencedEntityError):
        stores.users.delete_user(uid)
    assert stores.users.get_by_id(uid) is not None


def test_delete_user(stores):
    uid = stores.users.create_user(_user("gone@luct.ac.ls"))
    assert stores.users.delete_user(uid) is True
    assert stores.users.delete_user(uid) is False


def test_ping_ok(stores):
    assert stores.db.ping() is True


def test_unreachable_database_raises_store_unavailable(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'missing' / 'nested' / 'x.db'}")
    assert db.ping() is False
    with pytest.raises(StoreUnavailable):
        with db.connect():
            pass
    db.close()


def test_memory_database_pins_singleton_thread_pool():
    with warnings.catch_warnings():
        warnings.simplefilter("error", SADeprecationWarning)
        db = Database("sqlite:///file:pool_check?mode=memory&cache=shared&uri=true")
    try:
        assert isinstance(db.engine.pool, SingletonThreadPool)
        assert db.ping() is True
    finally:
        db.close()


def test_file_database_keeps_default_pool(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'pool.db'}")
    try:
        assert not isinstance(db.engine.pool, SingletonThreadPool)
    finally:
        db.close()
