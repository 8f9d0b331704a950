# transfer_seeder/storage/supabase_client.py
import asyncio
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger
from postgrest import APIResponse
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import AsyncClient, create_async_client

from transfer_seeder.config.settings import AppSettings
from transfer_seeder.errors import ConfigurationError, StorageError
from transfer_seeder.models.entities import EntityRef

Row = Dict[str, Any]


async def initialize_supabase(settings: AppSettings) -> AsyncClient:
    """Creates the async Supabase client used for the whole run."""
    if not settings.supabase_url or not settings.supabase_service_role_key:
        logger.critical("Supabase URL or service role key not configured.")
        raise ConfigurationError("Supabase configuration missing.")

    logger.debug(
        f"Attempting to initialize Async Supabase client with URL: {settings.supabase_url}"
    )
    try:
        client: AsyncClient = await create_async_client(
            str(settings.supabase_url), settings.supabase_service_role_key
        )
    except Exception as e:
        logger.critical(f"Failed to initialize Async Supabase client: {e}")
        raise ConfigurationError("Could not create Supabase client.") from e

    logger.success("Async Supabase client initialized successfully.")
    return client


class SupabaseStore:
    """Thin gateway over the PostgREST tables the seeder writes to.

    Every call is bounded by ``timeout`` seconds and any failure surfaces as
    ``StorageError`` so callers decide whether it is fatal or row-local.
    """

    def __init__(self, client: AsyncClient, timeout: float = 30.0):
        self.client = client
        self.timeout = timeout

    async def _execute(self, table: str, query: Any, action: str) -> APIResponse:
        try:
            return await asyncio.wait_for(query.execute(), timeout=self.timeout)
        except APIError as e:
            logger.debug(f"Full APIError details: {e}")
            raise StorageError(f"{action} on {table} failed: {e.message}", table) from e
        except asyncio.TimeoutError as e:
            raise StorageError(
                f"{action} on {table} timed out after {self.timeout}s", table
            ) from e
        except Exception as e:
            raise StorageError(f"{action} on {table} failed: {e}", table) from e

    def _to_ref(self, table: str, row: Row) -> EntityRef:
        try:
            return EntityRef(id=row.get("id"), name=row.get("name"))
        except ValidationError as e:
            raise StorageError(f"Malformed row returned from {table}: {row}", table) from e

    async def upsert(
        self, table: str, rows: Union[Row, Sequence[Row]], on_conflict: str
    ) -> int:
        """Inserts rows or updates them in place on `on_conflict`; returns row count."""
        data = [rows] if isinstance(rows, dict) else list(rows)
        if not data:
            logger.debug(f"No data provided for upsert to table {table}. Skipping.")
            return 0

        await self._execute(
            table,
            self.client.table(table).upsert(data, on_conflict=on_conflict),
            "upsert",
        )
        logger.debug(f"Upserted {len(data)} record(s) to {table} on {on_conflict}.")
        return len(data)

    async def find_by_name(self, table: str, name: str) -> Optional[EntityRef]:
        response = await self._execute(
            table,
            self.client.table(table).select("id, name").eq("name", name).limit(1),
            "select",
        )
        if not response.data:
            return None
        return self._to_ref(table, response.data[0])

    async def insert_returning(self, table: str, payload: Row) -> EntityRef:
        response = await self._execute(
            table, self.client.table(table).insert(payload), "insert"
        )
        if not response.data:
            raise StorageError(f"insert on {table} returned no row", table)
        row = response.data[0]
        return self._to_ref(
            table, {**row, "name": row.get("name") or payload.get("name")}
        )

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        query = self.client.table(table).select(columns)
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if limit is not None:
            query = query.limit(limit)
        response = await self._execute(table, query, "select")
        return list(response.data or [])

    async def ping(self) -> None:
        """Fails with StorageError when the datastore cannot be reached."""
        await self.select("leagues", "id", limit=1)
