import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.auth.tokens import now_utc
from app.config import settings
from app.db import Base, get_db
from app.main import create_app
from app.models.project import Project
from app.models.user import User
from app.rbac.membership import MemberEntry

@pytest.fixture()
def db_session() -> Session:
    database_url = os.environ.get("TEST_DATABASE_URL", "sqlite+pysqlite://")

    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url, pool_pre_ping=True)

    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session: Session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture(autouse=True)
def _no_rate_limit(monkeypatch) -> None:
    monkeypatch.setattr(settings, "rate_limit_enabled", False)

@pytest.fixture()
def client(db_session: Session) -> TestClient:
    app = create_app()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    return TestClient(app)

@pytest.fixture()
def make_user(db_session: Session):
    def _make(uid: str, email: str | None = None, display_name: str = "") -> User:
        u = User(id=uid, email=email or f"{uid}@example.com", display_name=display_name or uid)
        db_session.add(u)
        db_session.commit()
        return u

    return _make

@pytest.fixture()
def make_project(db_session: Session):
    """Insert a project row directly; ``members=None`` writes the legacy shape."""

    def _make(
        owner_id: str,
        members: list[tuple[str, str]] | None = None,
        member_ids: list[str] | None = None,
        key: str = "PROJ",
    ) -> Project:
        docs = None
        if members is not None:
            docs = [MemberEntry(user_id=uid, role=role, joined_at=now_utc()).to_doc() for uid, role in members]
            if member_ids is None:
                member_ids = [uid for uid, _ in members]

        p = Project(
            name=f"project {key.lower()}",
            description="test project",
            key=key,
            owner_id=owner_id,
            members=docs,
            member_ids=member_ids or [owner_id],
        )
        db_session.add(p)
        db_session.commit()
        db_session.refresh(p)
        return p

    return _make
