# This project was developed with assistance from AI tools.
"""Shared fixtures.

Unit tests build their own mocks. Functional tests use the fixtures below:
an in-memory SQLite database (aiosqlite) with the real schema, a temporary
upload/public directory tree, and an httpx client bound to the real app
with ``get_db`` and the auth dependencies overridden.
"""

import fitz  # pymupdf
import httpx
import pytest
from db import Advisor, Base, Client, get_db
from db.enums import UserRole
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gervis.core.auth import build_data_scope
from gervis.core.config import settings
from gervis.main import app as real_app
from gervis.middleware.auth import get_current_user, get_optional_user
from gervis.schemas.auth import UserContext
from gervis.services.storage import init_storage_service

ADVISOR_ID = "advisor-rossi"
OTHER_ADVISOR_ID = "advisor-bianchi"


def make_user(role: UserRole = UserRole.ADVISOR, user_id: str = ADVISOR_ID) -> UserContext:
    """Build a UserContext for the given role."""
    return UserContext(
        user_id=user_id,
        role=role,
        email=f"{user_id}@gervis.test",
        name=user_id.replace("-", " ").title(),
        data_scope=build_data_scope(role, user_id),
    )


def _write_pdf(path, text="Mandate agreement", pages=1):
    """Write a small real PDF to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    pdf = fitz.open()
    for i in range(pages):
        page = pdf.new_page()
        page.insert_text((72, 72), f"{text} - page {i + 1}")
    pdf.save(str(path))
    pdf.close()
    return path


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture
def storage(tmp_path, monkeypatch):
    """Point the storage singleton at a temporary directory tree."""
    monkeypatch.setattr(settings, "UPLOAD_ROOT", tmp_path / "uploads")
    monkeypatch.setattr(settings, "PUBLIC_ROOT", tmp_path / "public")
    (tmp_path / "public").mkdir()
    return init_storage_service(settings)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded(session_factory):
    """Two advisors; client 42 belongs to the first, client 7 to the second."""
    async with session_factory() as session:
        session.add_all([
            Advisor(id=ADVISOR_ID, email="rossi@gervis.test", first_name="Marco", last_name="Rossi"),
            Advisor(id=OTHER_ADVISOR_ID, email="bianchi@gervis.test", first_name="Sara", last_name="Bianchi"),
        ])
        await session.flush()
        session.add_all([
            Client(id=42, advisor_id=ADVISOR_ID, first_name="Giulia", last_name="Verdi",
                   email="giulia.verdi@example.com"),
            Client(id=43, advisor_id=ADVISOR_ID, first_name="Luca", last_name="Neri", email=None),
            Client(id=7, advisor_id=OTHER_ADVISOR_ID, first_name="Anna", last_name="Gialli",
                   email="anna.gialli@example.com"),
        ])
        await session.commit()


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


class _Identity:
    """Mutable holder so a test can switch the caller mid-scenario."""

    def __init__(self):
        self.user: UserContext | None = make_user()

    def advisor(self, user_id: str = ADVISOR_ID) -> None:
        self.user = make_user(UserRole.ADVISOR, user_id)

    def admin(self) -> None:
        self.user = make_user(UserRole.ADMIN, "admin-1")

    def anonymous(self) -> None:
        self.user = None


@pytest.fixture
def identity():
    return _Identity()


@pytest.fixture
async def api(session_factory, storage, seeded, identity):
    """httpx client against the real app, backed by the SQLite database."""

    async def fake_db():
        async with session_factory() as session:
            yield session

    async def fake_user():
        if identity.user is None:
            raise HTTPException(status_code=401, detail="Missing authentication token")
        return identity.user

    async def fake_optional_user():
        return identity.user

    real_app.dependency_overrides[get_db] = fake_db
    real_app.dependency_overrides[get_current_user] = fake_user
    real_app.dependency_overrides[get_optional_user] = fake_optional_user
    transport = httpx.ASGITransport(app=real_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    real_app.dependency_overrides.clear()


@pytest.fixture
def make_pdf():
    """Factory writing a small real PDF: ``make_pdf(path, text=..., pages=...)``."""
    return _write_pdf


# ---------------------------------------------------------------------------
# Callers for service-level tests
# ---------------------------------------------------------------------------


@pytest.fixture
def advisor():
    return make_user()


@pytest.fixture
def other_advisor():
    return make_user(UserRole.ADVISOR, OTHER_ADVISOR_ID)


@pytest.fixture
def admin():
    return make_user(UserRole.ADMIN, "admin-1")
