import os

# settings are read on first import; make sure the suite runs without a .env
os.environ.setdefault("secret_key", "test_secret")
os.environ.setdefault("access_token_expire_minutes", "120")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine, select

from labinventory import db
from labinventory.db import get_session
from labinventory.deps import get_object_store
from labinventory.error import StorageError
from labinventory.main import app
from labinventory.models import User
from labinventory.security import hash_password

PASSWORDS = {"teacher": "teach-pass", "student": "study-pass"}


class FakeStore:
    """Records calls instead of talking to the object store."""

    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail_upload = False
        self.fail_delete = False

    def upload(self, data: bytes, folder: str) -> str:
        if self.fail_upload:
            raise StorageError("upload refused")
        self.uploads.append((data, folder))
        return f"https://res.cloudinary.com/demo/image/upload/{folder}/img{len(self.uploads)}.png"

    def delete(self, public_id: str) -> None:
        if self.fail_delete:
            raise StorageError("delete refused")
        self.deleted.append(public_id)


@pytest.fixture
def engine(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    # the lifespan hook creates tables and seeds through the module-level engine
    monkeypatch.setattr(db, "engine", engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(engine, store):
    with Session(engine) as s:
        s.add(User(display_name="Ms. Teacher", login="teacher",
                   password_hash=hash_password(PASSWORDS["teacher"]), role="teacher"))
        s.add(User(display_name="Sam Student", login="student",
                   password_hash=hash_password(PASSWORDS["student"]), role="student"))
        s.commit()

    def override_get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_object_store] = lambda: store

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def login(client, who: str):
    r = client.post(
        "/login",
        data={"login": who, "password": PASSWORDS[who]},
        follow_redirects=False,
    )
    assert r.status_code == 303
    return r


def count(engine, model) -> int:
    with Session(engine) as s:
        return s.exec(select(func.count()).select_from(model)).one()


def fetch(engine, model, pk):
    with Session(engine) as s:
        return s.get(model, pk)
