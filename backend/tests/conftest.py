"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- HTTP client for API testing, authenticated as one of two doctors
- Test database engine and sessions
- Common patient / consultation payloads
"""

import os
import uuid
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from similia.auth import bearer_scheme, verify_bearer_token
from similia.database import Base, get_db
from similia.main import app
from similia.models.patient import Patient

DOCTOR_A = "doctor-a"
DOCTOR_B = "doctor-b"


async def stub_verify_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Stub auth dependency: the bearer token is the doctor id itself."""
    return credentials.credentials if credentials else DOCTOR_A


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create test database engine with automatic schema management.

    Creates all tables before tests, drops them after. Uses
    DATABASE_TEST_URL if set (e.g. a PostgreSQL database in CI), otherwise a
    throwaway SQLite file.
    """
    db_url = os.environ.get("DATABASE_TEST_URL") or f"sqlite+aiosqlite:///{tmp_path / 'similia_test.db'}"

    engine = create_async_engine(db_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    """Test database session, rolled back on completion."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(session_maker):
    """Async test client for the FastAPI app with test database.

    Overrides the app's get_db dependency to use the test database and the
    auth dependency so the bearer token names the calling doctor.
    """

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # Override dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[verify_bearer_token] = stub_verify_bearer_token

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(verify_bearer_token, None)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authentication headers for doctor A."""
    return {"Authorization": f"Bearer {DOCTOR_A}"}


@pytest.fixture
def other_doctor_headers() -> dict[str, str]:
    """Authentication headers for doctor B."""
    return {"Authorization": f"Bearer {DOCTOR_B}"}


# =============================================================================
# Payloads
# =============================================================================


@pytest.fixture
def belladonna_consultation() -> dict:
    """Consultation payload prescribing Belladonna."""
    return {
        "chief_complaint": "Recurring headache for two weeks",
        "prescribed_remedy": {
            "remedy_name": "Belladonna",
            "potency": "30C",
            "dosage": "2 pills",
            "frequency": "Single dose",
            "duration": "1 week",
        },
    }


@pytest.fixture
def bryonia_prescription() -> dict:
    """Replacement prescription used for 'change' follow-ups."""
    return {
        "remedy_name": "Bryonia Alba",
        "potency": "200C",
        "dosage": "2 pills",
        "frequency": "Once daily",
        "duration": "2 weeks",
    }


@pytest_asyncio.fixture
async def patient_in_db(session_maker) -> uuid.UUID:
    """Create patient 'Asha' with no consultations, owned by doctor A."""
    patient_uuid = uuid.uuid4()
    async with session_maker() as session:
        session.add(
            Patient(
                id=patient_uuid,
                doctor_id=DOCTOR_A,
                name="Asha",
                age=34,
                medical_history="",
                file_urls=[],
                consultations=[],
                total_consultations=0,
                created_at=datetime.now(timezone.utc),
            )
        )
        await session.commit()
    return patient_uuid
