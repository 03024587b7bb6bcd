"""Pytest configuration and fixtures for service layer tests."""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from fridge_tracker.models.base import Base
from fridge_tracker.services.owner_scope import Owner


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import fridge_tracker.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)

    db_module.get_session_factory = original_get_session


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Keep environment overrides from leaking between tests."""
    from fridge_tracker.utils.config import reset_config

    monkeypatch.delenv("FRIDGE_TRACKER_COOKED_EXPIRY_DAYS", raising=False)
    monkeypatch.delenv("FRIDGE_TRACKER_DATABASE_URL", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def owner():
    """Personal owner scope."""
    return Owner.for_user(1)


@pytest.fixture
def group_owner():
    """Household owner scope."""
    return Owner.for_group(10)


@pytest.fixture
def grams(test_db):
    from fridge_tracker.services import catalog_service

    return catalog_service.create_unit("gram", "g")


@pytest.fixture
def pieces(test_db):
    from fridge_tracker.services import catalog_service

    return catalog_service.create_unit("piece", "pc")


@pytest.fixture
def flour(test_db):
    from fridge_tracker.services import catalog_service

    return catalog_service.create_ingredient("Flour", default_expire_days=180)


@pytest.fixture
def eggs(test_db):
    from fridge_tracker.services import catalog_service

    return catalog_service.create_ingredient("Eggs", default_expire_days=21)


@pytest.fixture
def basil(test_db):
    from fridge_tracker.services import catalog_service

    return catalog_service.create_ingredient("Basil", default_expire_days=5)


def day(n: int) -> datetime:
    """Fixed dates used to control FIFO order."""
    return datetime(2030, 1, n)
