from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rocal.core.config import settings
from rocal.core.errors import AuthProviderError, StoreError
from rocal.core.security import hash_password
from rocal.db.base import Base
from rocal.models import User
from rocal.repositories import users as users_repo
from rocal.schemas.auth import AuthSession, Identity
from rocal.schemas.records import RecordBase
from rocal.services.auth_providers import SIGNED_IN, SIGNED_OUT, LocalAuthProvider, SessionProvider
from rocal.services.notifications import Notifier
from rocal.services.record_kinds import RecordKind, get_kind_config
from rocal.services.session import SessionManager
from rocal.services.store import SqlRecordStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"


def make_session(user_id: str = "user-1", email: str | None = "ana@example.com") -> AuthSession:
    return AuthSession(access_token=f"token-{user_id}", user=Identity(id=user_id, email=email))


class StubProvider(SessionProvider):
    def __init__(self, session: AuthSession | None = None) -> None:
        super().__init__()
        self.session = session
        self.sign_out_calls = 0

    def get_current_session(self, session: AuthSession | None) -> AuthSession | None:
        return session or self.session

    def sign_in(self, identifier: str, secret: str) -> AuthSession:
        if secret != "secret":
            raise AuthProviderError("Invalid login credentials")
        self.session = make_session(email=identifier)
        self._emit(SIGNED_IN, self.session)
        return self.session

    def sign_out(self, session: AuthSession | None) -> None:
        self.sign_out_calls += 1
        self.session = None
        self._emit(SIGNED_OUT, None)


class FakeStore:
    def __init__(self, records: dict[RecordKind, list[dict[str, Any]]] | None = None) -> None:
        self.rows: dict[RecordKind, list[dict[str, Any]]] = {kind: [] for kind in RecordKind}
        self.calls: list[tuple[str, RecordKind]] = []
        self.fail: dict[tuple[str, RecordKind], str] = {}
        self._next_id = 1
        for kind, rows in (records or {}).items():
            for row in rows:
                self.add(kind, **row)

    def add(self, kind: RecordKind, **values: Any) -> dict[str, Any]:
        row = {"id": self._next_id, "created_by": "seed", **values}
        self._next_id += 1
        self.rows[kind].insert(0, row)
        return row

    def _check(self, operation: str, kind: RecordKind) -> None:
        self.calls.append((operation, kind))
        message = self.fail.get((operation, kind))
        if message:
            raise StoreError(message)

    def _find(self, kind: RecordKind, record_id: int | str) -> dict[str, Any]:
        for row in self.rows[kind]:
            if str(row["id"]) == str(record_id):
                return row
        raise StoreError("Record not found.", status_code=404)

    def _schema(self, kind: RecordKind, row: dict[str, Any]) -> RecordBase:
        return get_kind_config(kind).schema.model_validate(row)

    def select(self, kind: RecordKind) -> list[RecordBase]:
        self._check("select", kind)
        return [self._schema(kind, row) for row in self.rows[kind]]

    def insert(self, kind: RecordKind, values: dict[str, Any]) -> RecordBase:
        self._check("insert", kind)
        return self._schema(kind, self.add(kind, **{k: v for k, v in values.items() if k != "id"}))

    def update(self, kind: RecordKind, record_id: int | str, values: dict[str, Any]) -> RecordBase:
        self._check("update", kind)
        row = self._find(kind, record_id)
        row.update({k: v for k, v in values.items() if k not in {"id", "created_at", "created_by"}})
        return self._schema(kind, row)

    def delete(self, kind: RecordKind, record_id: int | str) -> None:
        self._check("delete", kind)
        row = self._find(kind, record_id)
        self.rows[kind].remove(row)


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'rocal-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def admin_user(db_session) -> User:
    return users_repo.create_user(
        db_session,
        User(
            username="admin",
            email=ADMIN_EMAIL,
            password_hash=hash_password(ADMIN_PASSWORD),
            is_active=True,
        ),
    )


@pytest.fixture()
def sql_store(session_factory) -> SqlRecordStore:
    return SqlRecordStore(session_factory)


@pytest.fixture()
def local_provider(session_factory) -> LocalAuthProvider:
    return LocalAuthProvider(session_factory, settings.session_ttl_seconds)


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture()
def stub_provider() -> StubProvider:
    return StubProvider(make_session())


@pytest.fixture()
def session_manager(stub_provider):
    manager = SessionManager(stub_provider)
    manager.start()
    yield manager
    manager.stop()


@pytest.fixture()
def app(session_factory):
    from rocal.main import create_app

    app = create_app()
    app.state.session_provider_factory = lambda: LocalAuthProvider(session_factory, settings.session_ttl_seconds)
    app.state.record_store_factory = lambda access_token=None: SqlRecordStore(session_factory)
    return app


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def auth_client(client, admin_user) -> TestClient:
    response = client.post(
        "/login",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client
