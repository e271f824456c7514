'''
Pytest configuration for the FastAPI application.

This file sets up fixtures for:
1. Forcing the application into TEST_MODE and pointing it at a throw-away
   sqlite database per test.
2. Providing a seeded, isolated database session for each test.
3. Providing a FastAPI TestClient for endpoint testing.
4. Providing instances of all service classes, pre-injected with the test
   session and mocked external collaborators.
'''

import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

# --- FastAPI & Testing Imports ---
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# --- Constant Imports ----
from tests.constants import (
    TEST_ADMIN_ID,
    TEST_STUDENT_ID,
    TEST_OTHER_STUDENT_ID,
    TEST_TUTOR_ID,
    TEST_OTHER_TUTOR_ID,
    TEST_SERVICE_ID,
    TEST_IN_PROGRESS_ORDER_ID,
    TEST_COMPLETED_ORDER_ID,
    TEST_PENDING_ORDER_ID,
)

# --- Application Imports ---
from src.academia_pro_backend.main import app
from src.academia_pro_backend.common.config import settings
from src.academia_pro_backend.common.i18n import Translator
from src.academia_pro_backend.database import models as db_models
from src.academia_pro_backend.services.user_service import UserService
from src.academia_pro_backend.services.auth_service import LoginService, PasswordResetService
from src.academia_pro_backend.services.mail_service import MailService
from src.academia_pro_backend.services.payment_gateway import SimulatedPaymentGateway
from src.academia_pro_backend.services.listing_service import ListingService
from src.academia_pro_backend.services.order_service import OrderService
from src.academia_pro_backend.services.review_service import ReviewService
from src.academia_pro_backend.services.message_service import MessageService
from src.academia_pro_backend.services.dashboard_service import DashboardService
from src.academia_pro_backend.services.realtime import RealtimeBroker
from tests.database.seed_test_db import seed_data


@pytest.fixture(scope="session")
def anyio_backend():
    """
    Override the default 'anyio_backend' fixture.
    1. Forces the backend to 'asyncio'.
    2. Promotes the scope to 'session' (solves 'ScopeMismatch').
    """
    return "asyncio"


@pytest.fixture(scope="function")
def database_url(tmp_path, monkeypatch) -> str:
    """
    A fresh sqlite file per test, wired into the app settings.
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'academia_pro_test.db'}"
    monkeypatch.setattr(settings, "TEST_MODE", True)
    monkeypatch.setattr(settings, "DATABASE_URL_TEST", url)
    monkeypatch.setattr(settings, "AUTO_CREATE_TABLES", True)

    assert settings.database_url == url, "The app is not pointed at the test database!"
    return url


# --- 1. External collaborators ---

@pytest.fixture(scope="function")
def mock_payment_gateway() -> SimulatedPaymentGateway:
    """A payment gateway that accepts every charge with a fixed reference."""
    mock_gateway = MagicMock(spec=SimulatedPaymentGateway)
    mock_gateway.charge = AsyncMock(return_value="test_ref_0001")
    return mock_gateway

@pytest.fixture(scope="function")
def mock_mail_service() -> MailService:
    mock_service = MagicMock(spec=MailService)
    mock_service.send_password_reset = AsyncMock(return_value=None)
    return mock_service


# --- 2. Client Fixture (For API Tests) ---

@pytest.fixture(scope="function")
def client(db_session: AsyncSession, mock_payment_gateway, mock_mail_service) -> TestClient:
    """
    Runs the app's lifespan against the seeded per-test database and swaps
    the payment gateway and mail service for mocks.
    """
    app.dependency_overrides[SimulatedPaymentGateway] = lambda: mock_payment_gateway
    app.dependency_overrides[MailService] = lambda: mock_mail_service

    # This 'with' block runs the app's startup lifespan,
    # which creates the engine, session factory and tables.
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# --- 3. Function-Scoped Session Fixture ---

@pytest.fixture(scope="function")
async def db_session(database_url: str) -> AsyncGenerator[AsyncSession, None]:
    """
    Provides a session on a freshly created and seeded database.
    """
    engine = create_async_engine(database_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(db_models.Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    session = session_factory()
    await seed_data(session)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


# --- 4. SERVICE FIXTURES ---

@pytest.fixture(scope="function")
def translator() -> Translator:
    return Translator("en")

@pytest.fixture(scope="function")
def realtime_broker() -> RealtimeBroker:
    """A private broker so tests never see each other's events."""
    return RealtimeBroker(max_queue_size=5)

@pytest.fixture(scope="function")
def user_service(db_session: AsyncSession, translator: Translator) -> UserService:
    return UserService(db=db_session, translator=translator)

@pytest.fixture(scope="function")
def login_service(user_service: UserService, translator: Translator) -> LoginService:
    return LoginService(user_service=user_service, translator=translator)

@pytest.fixture(scope="function")
def password_reset_service(user_service: UserService, mock_mail_service, translator: Translator) -> PasswordResetService:
    return PasswordResetService(user_service=user_service, mail_service=mock_mail_service, translator=translator)

@pytest.fixture(scope="function")
def listing_service(db_session: AsyncSession, translator: Translator) -> ListingService:
    return ListingService(db=db_session, translator=translator)

@pytest.fixture(scope="function")
def order_service(db_session: AsyncSession, mock_payment_gateway, translator: Translator) -> OrderService:
    return OrderService(db=db_session, payment_gateway=mock_payment_gateway, translator=translator)

@pytest.fixture(scope="function")
def review_service(db_session: AsyncSession, translator: Translator) -> ReviewService:
    return ReviewService(db=db_session, translator=translator)

@pytest.fixture(scope="function")
def message_service(db_session: AsyncSession, realtime_broker: RealtimeBroker, translator: Translator) -> MessageService:
    return MessageService(db=db_session, broker=realtime_broker, translator=translator)

@pytest.fixture(scope="function")
def dashboard_service(
    order_service: OrderService,
    listing_service: ListingService,
    user_service: UserService,
    translator: Translator
) -> DashboardService:
    return DashboardService(
        order_service=order_service,
        listing_service=listing_service,
        user_service=user_service,
        translator=translator
    )


# --- 5. DATA FIXTURES ---

@pytest.fixture(scope="function")
async def test_admin_orm(db_session: AsyncSession) -> db_models.Users:
    admin = await db_session.get(db_models.Users, TEST_ADMIN_ID)
    assert admin is not None, f"Test admin with ID {TEST_ADMIN_ID} not found in DB."
    return admin

@pytest.fixture(scope="function")
async def test_student_orm(db_session: AsyncSession) -> db_models.Users:
    student = await db_session.get(db_models.Users, TEST_STUDENT_ID)
    assert student is not None, f"Test student with ID {TEST_STUDENT_ID} not found in DB."
    return student

@pytest.fixture(scope="function")
async def test_other_student_orm(db_session: AsyncSession) -> db_models.Users:
    student = await db_session.get(db_models.Users, TEST_OTHER_STUDENT_ID)
    assert student is not None, f"Test student with ID {TEST_OTHER_STUDENT_ID} not found in DB."
    return student

@pytest.fixture(scope="function")
async def test_tutor_orm(db_session: AsyncSession) -> db_models.Users:
    tutor = await db_session.get(db_models.Users, TEST_TUTOR_ID)
    assert tutor is not None, f"Test tutor with ID {TEST_TUTOR_ID} not found in DB."
    return tutor

@pytest.fixture(scope="function")
async def test_other_tutor_orm(db_session: AsyncSession) -> db_models.Users:
    tutor = await db_session.get(db_models.Users, TEST_OTHER_TUTOR_ID)
    assert tutor is not None, f"Test tutor with ID {TEST_OTHER_TUTOR_ID} not found in DB."
    return tutor

@pytest.fixture(scope="function")
async def test_service_orm(db_session: AsyncSession) -> db_models.Services:
    service = await db_session.get(db_models.Services, TEST_SERVICE_ID)
    assert service is not None, f"Test service {TEST_SERVICE_ID} not found in DB."
    assert service.tutor_id == TEST_TUTOR_ID
    return service

@pytest.fixture(scope="function")
async def test_in_progress_order_orm(db_session: AsyncSession) -> db_models.Orders:
    order = await db_session.get(db_models.Orders, TEST_IN_PROGRESS_ORDER_ID)
    assert order is not None and order.status == "in_progress"
    return order

@pytest.fixture(scope="function")
async def test_completed_order_orm(db_session: AsyncSession) -> db_models.Orders:
    order = await db_session.get(db_models.Orders, TEST_COMPLETED_ORDER_ID)
    assert order is not None and order.status == "completed"
    return order

@pytest.fixture(scope="function")
async def test_pending_order_orm(db_session: AsyncSession) -> db_models.Orders:
    order = await db_session.get(db_models.Orders, TEST_PENDING_ORDER_ID)
    assert order is not None and order.status == "pending"
    return order
