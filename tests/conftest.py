# tests/conftest.py
import os
import tempfile
from datetime import timedelta

# precisa valer antes de importar a aplicação
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "0")
os.environ.setdefault("DATA_DIR", tempfile.gettempdir())

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from starlette.testclient import TestClient

from caresignup.core.clock import utcnow
from caresignup.core.tokens import create_access_token
from caresignup.db.base import Base
from caresignup.db.session import get_db
from caresignup.main import app
from caresignup.models import CaregiverLink, Event, User, UserRole


@pytest.fixture(scope="function")
def engine(tmp_path):
    # arquivo (não :memory:) para que sessões em threads diferentes vejam o mesmo banco
    url = f"sqlite:///{tmp_path / 'test.db'}"
    eng = create_engine(url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.STUDENT, name: str | None = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(name=name or f"{role.value.title()} {n}", email=f"user{n}@example.org", role=role)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def link(db):
    def _link(caregiver: User, student: User) -> CaregiverLink:
        row = CaregiverLink(caregiver_id=caregiver.id, student_id=student.id)
        db.add(row)
        db.commit()
        return row

    return _link


@pytest.fixture
def make_event(db):
    def _make(
        owner: User,
        *,
        capacity: int | None = None,
        requires_approval: bool = False,
        allow_waitlist: bool = True,
        ended: bool = False,
    ) -> Event:
        now = utcnow()
        if ended:
            start_at, end_at = now - timedelta(days=2), now - timedelta(days=1)
        else:
            start_at, end_at = now + timedelta(days=7), now + timedelta(days=7, hours=3)
        event = Event(
            owner_id=owner.id,
            title="Museum visit",
            location="City museum",
            start_at=start_at,
            end_at=end_at,
            capacity=capacity,
            requires_approval=requires_approval,
            allow_waitlist=allow_waitlist,
        )
        db.add(event)
        db.commit()
        return event

    return _make


@pytest.fixture
def clock():
    """Relógio que avança 1s a cada chamada (ordem determinística da fila)."""
    state = {"t": utcnow()}

    def _tick():
        state["t"] = state["t"] + timedelta(seconds=1)
        return state["t"]

    return _tick


@pytest.fixture
def auth():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(sub=user.id)}"}

    return _headers


@pytest.fixture(scope="function")
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
