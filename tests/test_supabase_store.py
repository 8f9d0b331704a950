import asyncio
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from transfer_seeder.errors import StorageError
from transfer_seeder.storage.supabase_client import SupabaseStore


class FakeQuery:
    def __init__(self, log, data=None, error=None, delay=0.0):
        self.log = log
        self.data = data if data is not None else []
        self.error = error
        self.delay = delay

    def __getattr__(self, method):
        def chain(*args, **kwargs):
            self.log.append((method, args, kwargs))
            return self

        return chain

    async def execute(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SimpleNamespace(data=self.data)


class FakeClient:
    def __init__(self, query):
        self.query = query
        self.tables = []

    def table(self, name):
        self.tables.append(name)
        return self.query


async def test_upsert_passes_conflict_key():
    log = []
    store = SupabaseStore(FakeClient(FakeQuery(log)))

    count = await store.upsert("transfers", {"api_transfer_id": 7}, on_conflict="api_transfer_id")

    assert count == 1
    assert log == [("upsert", ([{"api_transfer_id": 7}],), {"on_conflict": "api_transfer_id"})]


async def test_empty_upsert_is_a_no_op():
    client = FakeClient(FakeQuery([]))

    assert await SupabaseStore(client).upsert("clubs", [], on_conflict="api_club_id") == 0
    assert client.tables == []


async def test_find_by_name_returns_ref():
    log = []
    store = SupabaseStore(FakeClient(FakeQuery(log, data=[{"id": 12, "name": "Arsenal"}])))

    ref = await store.find_by_name("clubs", "Arsenal")

    assert ref.id == "12"
    assert ("eq", ("name", "Arsenal"), {}) in log


async def test_find_by_name_missing_returns_none():
    store = SupabaseStore(FakeClient(FakeQuery([])))

    assert await store.find_by_name("clubs", "Nobody") is None


async def test_insert_without_returned_row_raises():
    store = SupabaseStore(FakeClient(FakeQuery([])))

    with pytest.raises(StorageError):
        await store.insert_returning("clubs", {"name": "X"})


async def test_api_error_becomes_storage_error():
    error = APIError({"message": "duplicate key", "code": "23505"})
    store = SupabaseStore(FakeClient(FakeQuery([], error=error)))

    with pytest.raises(StorageError) as excinfo:
        await store.select("leagues")
    assert "duplicate key" in str(excinfo.value)
    assert excinfo.value.table == "leagues"


async def test_slow_call_times_out():
    store = SupabaseStore(FakeClient(FakeQuery([], delay=1)), timeout=0.01)

    with pytest.raises(StorageError, match="timed out"):
        await store.ping()


async def test_row_with_null_name_is_a_storage_error():
    store = SupabaseStore(FakeClient(FakeQuery([], data=[{"id": 3, "name": None}])))

    with pytest.raises(StorageError, match="Malformed row"):
        await store.find_by_name("clubs", "Arsenal")


async def test_inserted_row_without_name_uses_payload_name():
    store = SupabaseStore(FakeClient(FakeQuery([], data=[{"id": 8}])))

    ref = await store.insert_returning("clubs", {"name": "Girona FC"})

    assert ref.id == "8"
    assert ref.name == "Girona FC"
