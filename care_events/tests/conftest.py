"""
Pytest configuration and fixtures for care events tests.

Provides shared fixtures for:
- Test database sessions
- Settings and service instances
- Sample data factories
- FastAPI test client
"""

import os
import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['CARE_EVENTS_DB_URL'] = 'sqlite:///:memory:'
os.environ['CARE_EVENTS_ENV'] = 'development'

from care_events.src.config.settings import AppSettings
from care_events.src.models import Base, Event, Institution
from care_events.src.services.event_service import EventLifecycleService


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    from sqlalchemy import event

    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # Enable foreign key constraints for SQLite
    # This must be set for each connection
    def _fk_pragma_on_connect(dbapi_con, con_record):
        dbapi_con.execute('pragma foreign_keys=ON')

    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def test_settings():
    """Settings with default recurrence and pagination bounds."""
    return AppSettings(database_url='sqlite:///:memory:')


@pytest.fixture
def event_service(test_db_session, test_settings):
    """Create an EventLifecycleService bound to the test session."""
    return EventLifecycleService(test_db_session, settings=test_settings)


# ============================================================================
# Sample Data Factories
# ============================================================================

@pytest.fixture
def sample_institution(test_db_session):
    """Factory for creating sample Institution models in the database."""
    def _create(name='Sunrise Care Home'):
        institution = Institution(name=name)
        test_db_session.add(institution)
        test_db_session.commit()
        test_db_session.refresh(institution)
        return institution
    return _create


@pytest.fixture
def sample_event_data():
    """Factory for creating sample event request data."""
    def _create(
        name='Afternoon Bingo',
        event_type='Entertainment',
        start_time=None,
        end_time=None,
        location=None,
        room_ids=None,
        care_configuration=None,
    ):
        start_time = start_time or datetime(2026, 11, 2, 14, 0)
        end_time = end_time or start_time + timedelta(hours=1)
        data = {
            'name': name,
            'type': event_type,
            'start_time': start_time,
            'end_time': end_time,
            'room_ids': room_ids or [],
        }
        if location is not None:
            data['location'] = location
        if care_configuration is not None:
            data['care_configuration'] = care_configuration
        return data
    return _create


@pytest.fixture
def sample_event(test_db_session):
    """
    Factory for inserting Event rows directly, bypassing the service.

    Useful for seeding stale statuses that the service would never write.
    """
    def _create(
        institution,
        name='Afternoon Bingo',
        event_type='Entertainment',
        status='Upcoming',
        start_time=None,
        end_time=None,
        location='Lounge',
        room_ids=None,
        care_configuration=None,
    ):
        start_time = start_time or datetime(2026, 11, 2, 14, 0)
        end_time = end_time or start_time + timedelta(hours=1)
        event = Event(
            institution_id=institution.id,
            name=name,
            type=event_type,
            status=status,
            start_time=start_time,
            end_time=end_time,
            location=location,
            room_ids=room_ids or [],
            care_configuration=care_configuration,
        )
        test_db_session.add(event)
        test_db_session.commit()
        test_db_session.refresh(event)
        return event
    return _create


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def test_client(test_db_session):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from care_events.src.main import app
    from care_events.src.db.database import get_db

    # Override dependencies
    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = get_test_db

    with TestClient(app) as client:
        yield client

    # Clear overrides
    app.dependency_overrides.clear()
