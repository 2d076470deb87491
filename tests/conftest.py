"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import Generator
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
_test_dir = tempfile.mkdtemp(prefix="batch_engine_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_test_dir, 'test.db')}"
os.environ["LOG_LEVEL"] = "WARNING"

from batch_engine.db.models import Base  # noqa: E402
from batch_engine.db.session import SessionLocal, engine  # noqa: E402
from batch_engine.domain.enums import VideoStatus  # noqa: E402
from batch_engine.domain.models import BatchVideo  # noqa: E402
from batch_engine.domain.pricing import PricingConfig  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def database_schema() -> Generator[None, None, None]:
    """Create the schema once for the test session."""
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def clean_tables() -> Generator[None, None, None]:
    """Empty every table after each test."""
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session():
    """Get a database session."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from batch_engine.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def pricing_config() -> PricingConfig:
    """Platform pricing terms used throughout the tests."""
    return PricingConfig(
        discount_tiers={"4": 5, "7": 8, "10": 10},
        platform_fee_percent=Decimal("15"),
        simultaneous_multiplier=Decimal("1.2"),
    )


@pytest.fixture
def make_videos():
    """Build a batch from a list of statuses, numbered from 1."""

    def _make(*statuses: VideoStatus | str) -> list[BatchVideo]:
        return [
            BatchVideo(sequence_order=order, title=f"Video {order}", status=status)
            for order, status in enumerate(statuses, start=1)
        ]

    return _make
