# tests/conftest.py
"""
Shared fixtures for the pytest test suite.

- mock_session: MagicMock spec'd on Session for interaction tests
- engine / db_session: SQLite in-memory database with the test models
"""
import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from repositories.events import EventManager
from tests.fixtures.models import Base, Customer


@pytest.fixture
def mock_session():
    """Create mock database session"""
    session = MagicMock(spec=Session)
    session.query.return_value = MagicMock()
    return session


@pytest.fixture
def engine():
    """In-memory SQLite engine with all test tables created"""
    engine = create_engine('sqlite:///:memory:')
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """A session per test, rolled back afterwards"""
    session = Session(engine)
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def customer_event_manager():
    """
    EventManager on the Customer mapper.

    Mapper listeners are global, so whatever is still registered at the end
    of the test is removed.
    """
    manager = EventManager(Customer)
    yield manager
    for subscriber in manager.subscribers:
        manager.remove_subscriber(subscriber)
    for identifier, listeners in manager.get_listeners().items():
        for listener in listeners:
            manager.remove_listener(identifier, listener.fn)
