"""Tests for the Supabase-backed store."""

import pytest
from unittest.mock import MagicMock, patch

from clawban.services import supabase_client
from clawban.services.supabase_client import SupabaseStore, get_supabase_client, is_unique_violation
from clawban.utils.errors import ConflictError, StorageError
from clawban.utils.settings import Settings


class FakeAPIError(Exception):
    """Stand-in for postgrest's APIError (carries the SQLSTATE in ``code``)."""

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


@pytest.fixture
def patched_client(mock_supabase_client):
    with patch("clawban.services.supabase_client.get_supabase_client", return_value=mock_supabase_client):
        yield mock_supabase_client


@pytest.mark.unit
def test_is_unique_violation():
    assert is_unique_violation(FakeAPIError("boom", "23505"))
    assert is_unique_violation(Exception('duplicate key value violates unique constraint "tags_name_key"'))
    assert not is_unique_violation(FakeAPIError("permission denied", "42501"))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_insert_returns_row(patched_client):
    row = {"id": "t1", "name": "bug", "color": "#3b82f6"}
    patched_client.query.execute.return_value = MagicMock(data=[row])

    result = await SupabaseStore().insert("tags", row)

    assert result == row
    patched_client.table.assert_called_with("tags")
    patched_client.table.return_value.insert.assert_called_once_with(row)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_insert_unique_violation_is_conflict(patched_client):
    patched_client.query.execute.side_effect = FakeAPIError("duplicate", "23505")

    with pytest.raises(ConflictError):
        await SupabaseStore().insert("tags", {"id": "t1", "name": "bug"})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_insert_other_error_is_storage_error(patched_client):
    patched_client.query.execute.side_effect = FakeAPIError("timeout", "57014")

    with pytest.raises(StorageError) as exc_info:
        await SupabaseStore().insert("tasks", {"id": "a"})
    assert not isinstance(exc_info.value, ConflictError)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_insert_without_data_is_storage_error(patched_client):
    patched_client.query.execute.return_value = MagicMock(data=[])

    with pytest.raises(StorageError):
        await SupabaseStore().insert("tasks", {"id": "a"})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_select_builds_filters(patched_client):
    rows = [{"id": "a"}]
    patched_client.query.execute.return_value = MagicMock(data=rows)

    result = await SupabaseStore().select(
        "tasks",
        eq={"assignee": None, "board": "work"},
        contains={"tags": ["bug"]},
        order_by="created_at",
        descending=True,
    )

    query = patched_client.query
    assert result == rows
    patched_client.table.return_value.select.assert_called_once_with("*")
    query.is_.assert_called_once_with("assignee", "null")
    query.eq.assert_called_once_with("board", "work")
    query.contains.assert_called_once_with("tags", ["bug"])
    query.order.assert_called_once_with("created_at", desc=True)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_select_empty_result(patched_client):
    patched_client.query.execute.return_value = MagicMock(data=None)

    assert await SupabaseStore().select("tasks") == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_select_error_is_storage_error(patched_client):
    patched_client.query.execute.side_effect = Exception("connection refused")

    with pytest.raises(StorageError, match="connection refused"):
        await SupabaseStore().select("tasks")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_by_id(patched_client):
    patched_client.query.execute.return_value = MagicMock(data=[{"id": "a", "title": "C"}])

    row = await SupabaseStore().update("tasks", "a", {"title": "C"})

    assert row == {"id": "a", "title": "C"}
    patched_client.table.return_value.update.assert_called_once_with({"title": "C"})
    patched_client.query.eq.assert_called_once_with("id", "a")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_missing_row_returns_none(patched_client):
    patched_client.query.execute.return_value = MagicMock(data=[])

    assert await SupabaseStore().update("tasks", "missing", {"title": "C"}) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_reports_removed_rows(patched_client):
    patched_client.query.execute.return_value = MagicMock(data=[{"id": "a"}])
    assert await SupabaseStore().delete("tasks", "a") is True

    patched_client.query.execute.return_value = MagicMock(data=[])
    assert await SupabaseStore().delete("tasks", "a") is False


@pytest.mark.unit
def test_get_supabase_client_requires_credentials(monkeypatch):
    monkeypatch.setattr(supabase_client, "_client", None)
    monkeypatch.setattr(Settings, "SUPABASE_URL", None)

    with pytest.raises(StorageError):
        get_supabase_client()


@pytest.mark.unit
def test_get_supabase_client_is_singleton(monkeypatch):
    monkeypatch.setattr(supabase_client, "_client", None)
    with patch("clawban.services.supabase_client.create_client", return_value=MagicMock()) as create:
        first = get_supabase_client()
        second = get_supabase_client()

    assert first is second
    create.assert_called_once()
