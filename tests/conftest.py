"""Shared fixtures: an in-memory SQLite database stands in for PostgreSQL."""
import pytest
from sqlalchemy.pool import StaticPool

import config
import db
import sessions


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(config, "PASSWORD_HASH_METHOD", "pbkdf2:sha256:1000")


@pytest.fixture(autouse=True)
def engine():
    engine = db.init_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.metadata.create_all(engine)
    yield engine
    db.metadata.drop_all(engine)


def _register(email, password="pw1"):
    sessions.sign_up(email, password, password)
    user, board = sessions.sign_in(email, password)
    columns = {column["title"]: column["id"] for column in board["columns"]}
    return {"user": user, "board": board, "columns": columns, "id": user["id"], "token": user["token"]}


@pytest.fixture
def alice():
    return _register("alice@x.com")


@pytest.fixture
def bob():
    return _register("bob@x.com", "pw2")


@pytest.fixture
def client():
    from app import app

    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client
