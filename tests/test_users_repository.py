import asyncio

import asyncpg
import pytest

from core import db
from core.errors import UniquenessViolation
from users import repository


def unique_violation(constraint_name: str) -> asyncpg.UniqueViolationError:
    exc = asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
    exc.constraint_name = constraint_name
    return exc


@pytest.fixture
def failing_insert(monkeypatch):
    def _install(constraint_name: str) -> None:
        async def fetch_one(sql, *args):
            raise unique_violation(constraint_name)

        monkeypatch.setattr(db, "fetch_one", fetch_one)
    return _install


def test_create_user_maps_email_index_to_field(failing_insert):
    failing_insert("users_email_key")
    with pytest.raises(UniquenessViolation) as excinfo:
        asyncio.run(
            repository.create_user(
                user_id="1", username="alice", email=" Alice@Example.com ", password_hash="h"
            )
        )
    assert excinfo.value.status_code == 406
    assert excinfo.value.field == "email"
    assert excinfo.value.value == "alice@example.com"


def test_create_user_maps_username_index_to_field(failing_insert):
    failing_insert("users_username_key")
    with pytest.raises(UniquenessViolation) as excinfo:
        asyncio.run(
            repository.create_user(user_id="1", username="alice", email="a@example.com", password_hash="h")
        )
    assert excinfo.value.field == "username"
    assert excinfo.value.message == 'Username "alice" is already taken!'


def test_update_user_maps_email_index_to_field(failing_insert):
    failing_insert("users_email_key")
    with pytest.raises(UniquenessViolation) as excinfo:
        asyncio.run(repository.update_user("1", {"email": "bob@example.com"}))
    assert excinfo.value.field == "email"
    assert excinfo.value.message == 'Email "bob@example.com" is already taken!'


def test_update_user_refuses_unknown_columns():
    with pytest.raises(ValueError):
        asyncio.run(repository.update_user("1", {"id": "2"}))
