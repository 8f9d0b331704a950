import asyncio

import pytest

from conftest import FakeApiClient, league_payload, team_payload
from transfer_seeder.errors import (
    ConfigurationError,
    SeedError,
    SeedPhaseError,
    StorageError,
)
from transfer_seeder.pipeline.orchestrator import SeedPipeline
from transfer_seeder.seeding.league_seeder import LeagueClubSeeder, TargetLeague

ARRIVAL_AT_ARSENAL = (
    "1,Declan Rice,Defensive Midfield,24,England,West Ham United,England,"
    "Premier League,Arsenal,England,Premier League,15/07/2023,€90m,€116.6m"
)
BROKEN_DATE = (
    "1,Kai Havertz,Attacking Midfield,24,Germany,Chelsea,England,"
    "Premier League,Arsenal,England,Premier League,soon,€65m,€75m"
)


def _pipeline(settings, store, api=None):
    api = api or FakeApiClient(
        {39: league_payload(39, "Premier League")},
        {39: [team_payload(42, "Arsenal")]},
    )
    seeder = LeagueClubSeeder(
        store, api, target_leagues=[TargetLeague(39, "Premier League")]
    )
    return SeedPipeline(settings, store, api, seeder=seeder), api


async def test_seed_all_runs_phases_in_order(settings, store, write_csv):
    write_csv(ARRIVAL_AT_ARSENAL, BROKEN_DATE)
    pipeline, api = _pipeline(settings, store)

    report = await pipeline.seed_all()

    assert api.requests == [("league", 39), ("teams", 39, 2025)]
    assert report.leagues_seeded == 1
    assert report.clubs_seeded == 1
    assert report.ingestion.upserted == 1
    assert report.ingestion.skipped_count == 1
    assert report.api_stats["total_requests"] == 2


async def test_csv_rows_reuse_seeded_entities(settings, store, write_csv):
    write_csv(ARRIVAL_AT_ARSENAL)
    pipeline, _ = _pipeline(settings, store)

    await pipeline.seed_all()

    arsenal = next(c for c in store.rows("clubs") if c["name"] == "Arsenal")
    premier_league = store.rows("leagues")[0]
    transfer = store.rows("transfers")[0]
    assert transfer["to_club_id"] == arsenal["id"]
    assert transfer["league_id"] == premier_league["id"]
    assert len(store.rows("leagues")) == 1


async def test_missing_csv_fails_before_any_write(settings, store):
    pipeline, api = _pipeline(settings, store)

    with pytest.raises(ConfigurationError):
        await pipeline.seed_all()

    assert api.requests == []
    assert sum(store.calls.values()) == 0


async def test_unreachable_datastore_fails_preflight(settings, store, write_csv):
    write_csv(ARRIVAL_AT_ARSENAL)
    store.unreachable = True
    pipeline, api = _pipeline(settings, store)

    with pytest.raises(ConfigurationError):
        await pipeline.seed_all()
    assert api.requests == []


async def test_league_failure_aborts_before_transfers(settings, store, write_csv):
    write_csv(ARRIVAL_AT_ARSENAL)
    pipeline, _ = _pipeline(settings, store, FakeApiClient({}, {}))

    with pytest.raises(SeedPhaseError):
        await pipeline.seed_all()
    assert store.rows("transfers") == []


async def test_explicit_csv_path_overrides_settings(settings, store, write_csv):
    path = write_csv(ARRIVAL_AT_ARSENAL, name="other.csv")
    pipeline, _ = _pipeline(settings, store)

    report = await pipeline.seed_all(path)

    assert report.ingestion.csv_path == str(path)


async def test_seed_validation_seeds_one_league(settings, store, write_csv):
    write_csv(ARRIVAL_AT_ARSENAL)
    pipeline, api = _pipeline(settings, store)

    report = await pipeline.seed_validation(39)

    assert api.requests == [("league", 39), ("teams", 39, 2025)]
    assert report.leagues_seeded == 1
    assert report.ingestion.upserted == 1


async def test_validate_data_requires_league(settings, store):
    pipeline, _ = _pipeline(settings, store)

    with pytest.raises(SeedError):
        await pipeline.validate_data(39)


async def test_validate_data_tolerates_relation_query_failure(settings, store):
    store.rows("leagues").append({"id": "leagues-1", "api_league_id": 39, "name": "PL"})

    pipeline, _ = _pipeline(settings, store)
    original_select = store.select
    calls = []

    async def select(table, columns="*", filters=None, limit=None):
        calls.append(columns)
        if "from_club:" in columns:
            raise StorageError("relation not found", table)
        return await original_select(table, columns, filters, limit)

    store.select = select

    await pipeline.validate_data(39)

    assert any("from_club:" in c for c in calls)


def test_each_run_gets_fresh_caches(settings, store):
    pipeline, _ = _pipeline(settings, store)

    first = pipeline.new_ingestor()
    second = pipeline.new_ingestor()

    assert first.league_cache is not second.league_cache
    assert first.club_cache is not second.club_cache
    assert second.id_algorithm == settings.transfer_id_algorithm


async def test_run_budget_is_enforced(settings, store, write_csv):
    write_csv(ARRIVAL_AT_ARSENAL)

    class SlowApi(FakeApiClient):
        async def get_league(self, league_id):
            await asyncio.sleep(1)
            return await super().get_league(league_id)

    pipeline, _ = _pipeline(
        settings, store, SlowApi({39: league_payload(39, "Premier League")}, {})
    )
    settings.run_budget_seconds = 0.01

    with pytest.raises(SeedError):
        await pipeline.seed_all()
