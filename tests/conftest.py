import os

# before config.py is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-with-enough-bytes-for-hs256")
os.environ.setdefault("BACKEND_PROVIDER", "sql")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend import BackendClient, BackendError
from backend.local_storage import LocalBucketStorage
from backend.sql import SqlBackend
from db import make_engine
from main import create_app

PASSWORD = "secret123"


class FlakyBackend(SqlBackend):
    """SqlBackend that fails chosen calls, e.g. `fail("insert", "activities")`."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._failures = {}

    def fail(self, op, target, times=None):
        # times=None fails every call until cleared
        self._failures[(op, target)] = times

    def clear(self):
        self._failures.clear()

    def _check(self, op, target):
        key = (op, target)
        if key not in self._failures:
            return
        left = self._failures[key]
        if left is not None:
            if left <= 1:
                del self._failures[key]
            else:
                self._failures[key] = left - 1
        raise BackendError(f"injected {op} failure on {target}", code="XX000")

    def select(self, token, table, columns="*", filters=None, **kw):
        self._check("select", table)
        return super().select(token, table, columns, filters, **kw)

    def insert(self, token, table, rows):
        self._check("insert", table)
        return super().insert(token, table, rows)

    def update(self, token, table, values, filters):
        self._check("update", table)
        return super().update(token, table, values, filters)

    def delete(self, token, table, filters):
        self._check("delete", table)
        return super().delete(token, table, filters)

    def upload(self, token, bucket, path, data, content_type):
        self._check("upload", bucket)
        return super().upload(token, bucket, path, data, content_type)

    def get_public_url(self, bucket, path):
        self._check("get_public_url", bucket)
        return super().get_public_url(bucket, path)

    def remove(self, token, bucket, paths):
        self._check("remove", bucket)
        return super().remove(token, bucket, paths)

    def delete_user(self, user_id):
        self._check("delete_user", "auth")
        return super().delete_user(user_id)


def make_user(backend, email, name="User", role="employee", approved=True):
    session = backend.sign_up(email, PASSWORD, {"name": name})
    backend.insert(
        session.access_token,
        "users",
        [{"id": session.user.id, "name": name, "email": email, "role": role, "approved": approved}],
    )
    return {
        "id": session.user.id,
        "email": email,
        "token": session.access_token,
        "headers": {"Authorization": f"Bearer {session.access_token}"},
    }


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    yield eng
    eng.dispose()


@pytest.fixture
def backend(engine, tmp_path):
    storage = LocalBucketStorage(str(tmp_path / "storage"), "http://testserver")
    b = FlakyBackend(sessionmaker(bind=engine, autoflush=False, future=True), storage, engine=engine)
    b.init()
    return b


@pytest.fixture
def app(backend):
    return create_app(backend=backend)


@pytest.fixture
def client(app):
    with TestClient(app, follow_redirects=False) as c:
        yield c


@pytest.fixture
def user(backend):
    return make_user(backend, "alice@example.com", "Alice")


@pytest.fixture
def other_user(backend):
    return make_user(backend, "bob@example.com", "Bob")


@pytest.fixture
def admin(backend):
    return make_user(backend, "admin@example.com", "Admin", role="admin")


@pytest.fixture
def bc(backend, user):
    """Backend client bound to `user`."""
    return BackendClient(backend, user["token"])


def project_payload(name="Road works", activities=None, **extra):
    body = {
        "name": name,
        "description": "Resurfacing",
        "start_date": "2026-01-01",
        "end_date": "2026-06-30",
        "vendor": "Acme",
        "activities": activities if activities is not None else [
            {"name": "Excavation", "quantity": 10, "unit": "m3", "rate": 5},
            {"name": "Paving", "quantity": "2", "unit": "m2", "rate": "7.5"},
        ],
    }
    body.update(extra)
    return body
