import json
import os
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

# Settings are read on import; point them at an in-memory database first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("EVOLUTION_API_KEY", "")
os.environ.setdefault("LOG_FORMAT", "console")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import WhatsAppConfig
from app.core.security import create_access_token, get_password_hash
from app.database import get_db
from app.main import app
from app.models import metadata
from app.models.professionals import professionals, specialties
from app.models.users import users
from app.services.notification_service import NotificationService
from app.services.whatsapp_service import WhatsAppClient, get_whatsapp_client

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(TEST_PASSWORD)
ALL_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class FakeGateway:
    """Records WhatsApp gateway calls and answers with a configurable response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 201
        self.payload: dict = {"key": {"id": "MSG-1"}}
        self.error: str | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise httpx.ConnectError(self.error, request=request)
        return httpx.Response(self.status_code, json=self.payload)

    def fail_with(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.payload = {"status": status_code, "message": message}

    @property
    def sent_texts(self) -> list[str]:
        return [json.loads(request.content)["text"] for request in self.requests]


def future_slot(days: int = 3, hour: int = 14) -> datetime:
    """A UTC datetime on a whole hour, ``days`` from now."""
    moment = datetime.now(UTC) + timedelta(days=days)
    return moment.replace(hour=hour, minute=0, second=0, microsecond=0)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database and session for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def gateway() -> FakeGateway:
    """Fake WhatsApp gateway."""
    return FakeGateway()


@pytest.fixture
def whatsapp(gateway: FakeGateway) -> WhatsAppClient:
    """Gateway client wired to the fake gateway."""
    config = WhatsAppConfig(
        base_url="http://gateway.test",
        api_key="test-api-key",
        instance_name="clinic",
    )
    return WhatsAppClient(config, transport=httpx.MockTransport(gateway.handler))


@pytest.fixture
def notifier(db_session: AsyncSession, whatsapp: WhatsAppClient) -> NotificationService:
    """Notification service over the test session and fake gateway."""
    return NotificationService(db_session, whatsapp)


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    whatsapp: WhatsAppClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_whatsapp_client] = lambda: whatsapp

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory inserting users with the shared test password."""
    counter = {"n": 0}

    async def _make_user(
        name: str = "Test User",
        role: str = "patient",
        phone: str | None = "11999990000",
        email: str | None = None,
    ) -> dict:
        counter["n"] += 1
        values = {
            "name": name,
            "email": email or f"user{counter['n']}@example.com",
            "password_hash": PASSWORD_HASH,
            "role": role,
            "phone": phone,
        }
        result = await db_session.execute(insert(users).values(**values))
        await db_session.commit()
        values["id"] = result.inserted_primary_key[0]
        return values

    return _make_user


@pytest_asyncio.fixture
async def specialty(db_session: AsyncSession) -> dict:
    """A specialty row."""
    result = await db_session.execute(insert(specialties).values(name="Cardiology"))
    await db_session.commit()
    return {"id": result.inserted_primary_key[0], "name": "Cardiology"}


@pytest.fixture
def make_professional(db_session: AsyncSession, make_user: Callable, specialty: dict) -> Callable:
    """Factory inserting a professional user and profile."""

    async def _make_professional(
        name: str = "Dr. Ana Souza",
        phone: str | None = "11988887777",
        working_days: list[str] | None = None,
        start_time: str = "08:00",
        end_time: str = "18:00",
    ) -> dict:
        user = await make_user(name=name, role="professional", phone=phone)
        result = await db_session.execute(
            insert(professionals).values(
                user_id=user["id"],
                specialty_id=specialty["id"],
                working_days=ALL_WEEKDAYS if working_days is None else working_days,
                start_time=start_time,
                end_time=end_time,
            )
        )
        await db_session.commit()
        return {"id": result.inserted_primary_key[0], "user": user}

    return _make_professional


@pytest_asyncio.fixture
async def patient(make_user: Callable) -> dict:
    """A patient with a phone number."""
    return await make_user(name="Maria Silva", role="patient", phone="(11) 91234-5678")


@pytest_asyncio.fixture
async def receptionist(make_user: Callable) -> dict:
    """A receptionist."""
    return await make_user(name="Front Desk", role="receptionist", phone=None)


@pytest_asyncio.fixture
async def professional(make_professional: Callable) -> dict:
    """A professional working every day from 08:00 to 18:00."""
    return await make_professional()


def auth_headers_for(user: dict) -> dict:
    """Create authentication headers for a user."""
    token = create_access_token(user["id"], user["role"], expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_headers(patient: dict) -> dict:
    return auth_headers_for(patient)


@pytest.fixture
def receptionist_headers(receptionist: dict) -> dict:
    return auth_headers_for(receptionist)


@pytest.fixture
def professional_headers(professional: dict) -> dict:
    return auth_headers_for(professional["user"])
