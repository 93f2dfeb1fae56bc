"""Supabase client wrapper and the Supabase-backed durable store."""

from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions

from clawban.utils.errors import ConflictError, StorageError
from clawban.utils.logging import get_structured_logger
from clawban.utils.settings import Settings

logger = get_structured_logger(__name__)

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION_CODE = "23505"

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client
    
    if _client is None:
        url = Settings.SUPABASE_URL
        key = Settings.SUPABASE_SERVICE_ROLE_KEY
        
        if not url or not key:
            raise StorageError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        
        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )
        
        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", url=url)
    
    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""
    
    def __init__(self):
        self.client: Optional[Client] = None
    
    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                type=exc_type.__name__
            )
        return False


def is_unique_violation(error: Exception) -> bool:
    """True if a PostgREST error reports a unique constraint violation."""
    if getattr(error, "code", None) == UNIQUE_VIOLATION_CODE:
        return True
    return "duplicate key" in str(error).lower()


class SupabaseStore:
    """Durable store backed by Supabase tables keyed by a text ``id`` column."""
    
    async def insert(self, table: str, row: dict) -> dict:
        """Insert a row; raises ConflictError on a unique constraint violation."""
        async with SupabaseClient() as client:
            try:
                result = client.table(table).insert(row).execute()
            except Exception as e:
                if is_unique_violation(e):
                    raise ConflictError(f"Duplicate row in {table}: {e}") from e
                raise StorageError(f"Failed to insert into {table}: {e}") from e
            
            if result.data and len(result.data) > 0:
                return result.data[0]
            raise StorageError(f"Failed to insert into {table}: no data returned")
    
    async def select(
        self,
        table: str,
        *,
        eq: Optional[dict[str, Any]] = None,
        contains: Optional[dict[str, list]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict]:
        """Select rows matching every filter. An ``eq`` value of None means IS NULL."""
        async with SupabaseClient() as client:
            try:
                query = client.table(table).select("*")
                for column, value in (eq or {}).items():
                    if value is None:
                        query = query.is_(column, "null")
                    else:
                        query = query.eq(column, value)
                for column, values in (contains or {}).items():
                    query = query.contains(column, values)
                if order_by:
                    query = query.order(order_by, desc=descending)
                result = query.execute()
            except Exception as e:
                raise StorageError(f"Failed to read {table}: {e}") from e
            return result.data if result.data else []
    
    async def update(self, table: str, key: str, changes: dict) -> Optional[dict]:
        """Atomically update one row by id. Returns None when the row does not exist."""
        async with SupabaseClient() as client:
            try:
                result = client.table(table).update(changes).eq("id", key).execute()
            except Exception as e:
                if is_unique_violation(e):
                    raise ConflictError(f"Duplicate row in {table}: {e}") from e
                raise StorageError(f"Failed to update {table} row {key}: {e}") from e
            return result.data[0] if result.data and len(result.data) > 0 else None
    
    async def delete(self, table: str, key: str) -> bool:
        """Delete one row by id. Returns True if a row was removed."""
        async with SupabaseClient() as client:
            try:
                result = client.table(table).delete().eq("id", key).execute()
            except Exception as e:
                raise StorageError(f"Failed to delete {table} row {key}: {e}") from e
            return bool(result.data)
