"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import Mock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORAGE_MODE", "memory")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from tes_property.models.calendar_event import CalendarEvent
from tes_property.models.inquiry import Inquiry
from tes_property.services.storage import MemoryStorage
from tests.utils.factories import create_calendar_event_data, create_inquiry_data


@pytest.fixture
def memory_storage():
    """Empty in-memory storage adapter."""
    return MemoryStorage()


@pytest.fixture
def make_inquiry():
    """Build an Inquiry model from factory data."""
    def _make(**kwargs) -> Inquiry:
        return Inquiry.model_validate(create_inquiry_data(**kwargs))
    return _make


@pytest.fixture
def make_event():
    """Build a CalendarEvent model from factory data."""
    def _make(**kwargs) -> CalendarEvent:
        return CalendarEvent.model_validate(create_calendar_event_data(**kwargs))
    return _make


@pytest.fixture
def assigned_inquiry_record():
    """Inquiry A: assigned, property 5, a@x.com / 0917-111-2222."""
    return create_inquiry_data(
        inquiry_id=1,
        property_id=5,
        status="Assigned",
        agent_id=1,
        customerEmail="a@x.com",
        customerPhone="0917-111-2222",
        assignedAgentName="Maria Santos",
    )


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for testing."""
    client = Mock()
    client.table = Mock(return_value=Mock())
    return client


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2025-12-09 12:00:00") as frozen_time:
        yield frozen_time
