"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import MagicMock
from freezegun import freeze_time

# Set test environment variables before any clawban module reads them
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CLAWBAN_STORE", "memory")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("TASK_REQUIRE_DESCRIPTION", "true")
os.environ.setdefault("LOG_FORMAT", "text")

from clawban.services.store import MemoryStore, set_store  # noqa: E402
from clawban.services.tag_registry import TagRegistry  # noqa: E402
from clawban.services.task_repository import TaskRepository  # noqa: E402
from clawban.services.task_service import TaskService  # noqa: E402


@pytest.fixture
def memory_store():
    """Fresh in-process store, installed as the process-wide store."""
    store = MemoryStore()
    set_store(store)
    yield store
    set_store(None)


@pytest.fixture
def tag_registry(memory_store):
    return TagRegistry(memory_store)


@pytest.fixture
def task_repository(memory_store, tag_registry):
    return TaskRepository(memory_store, tag_registry)


@pytest.fixture
def task_service(memory_store):
    return TaskService(memory_store)


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builder methods chain back to one query mock."""
    client = MagicMock()
    table = MagicMock()
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "is_", "contains", "order"):
        getattr(table, method).return_value = query
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    client.table.return_value = table
    client.query = query
    return client


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time


@pytest.fixture
def sample_task_payload():
    """Minimal valid create request."""
    return {
        "title": "Wire up the move endpoint",
        "description": "Board drag-and-drop should call POST /tasks/{id}/move",
        "model_strategy": "sonnet-coding",
    }
