from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock

from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / ".env.test"
load_dotenv(env_file)

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core import redis as redis_module  # noqa: E402
from app.core.datetime_utils import utcnow  # noqa: E402
from app.db import base as _models  # noqa: E402, F401
from app.db.session import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from tests.utils.factories import create_user_factory  # noqa: E402
from tests.utils.helpers import create_token_for  # noqa: E402

# Mid-month, mid-year, so every period has a non-trivial previous window
FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def memory_engine():
    """In-memory SQLite shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(memory_engine):
    session_factory = sessionmaker(bind=memory_engine, autocommit=False, autoflush=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def mock_redis():
    redis = AsyncMock()
    redis.ping.return_value = True
    redis.publish.return_value = 1
    return redis


@pytest.fixture
async def test_app(db_session, mock_redis, now):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[utcnow] = lambda: now

    redis_module.redis_client = mock_redis

    yield app

    app.dependency_overrides.clear()
    redis_module.redis_client = None


@pytest.fixture
async def test_client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        yield client


@pytest.fixture
def test_admin(db_session):
    return create_user_factory(db_session, email="admin@example.com", roles=["ADMIN"])


@pytest.fixture
def test_manager(db_session):
    return create_user_factory(db_session, email="manager@example.com", roles=["MANAGER"])


@pytest.fixture
def test_support(db_session):
    return create_user_factory(db_session, email="support@example.com", roles=["SUPPORT"])


@pytest.fixture
def test_customer(db_session):
    return create_user_factory(db_session, email="customer@example.com", roles=["CUSTOMER"])


@pytest.fixture
def test_admin_token(test_admin):
    return create_token_for(test_admin)


@pytest.fixture
def test_manager_token(test_manager):
    return create_token_for(test_manager)


@pytest.fixture
def test_support_token(test_support):
    return create_token_for(test_support)


@pytest.fixture
def test_customer_token(test_customer):
    return create_token_for(test_customer)
