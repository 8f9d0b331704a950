"""Top-level seeding runs.

Phases run strictly in order: preflight, leagues, clubs, transfers. Preflight
and the league/club phase abort the run; the transfer phase only ever skips
individual rows.
"""

import asyncio
import time
from pathlib import Path
from typing import Optional

from loguru import logger

from transfer_seeder.clients.api_football import APIFootballClient
from transfer_seeder.config.settings import AppSettings
from transfer_seeder.errors import ConfigurationError, SeedError, StorageError
from transfer_seeder.ingestion.csv_ingestor import TransferCsvIngestor
from transfer_seeder.models.report import SeedReport
from transfer_seeder.resolution.cache import EntityCache
from transfer_seeder.seeding.league_seeder import LeagueClubSeeder, TargetLeague
from transfer_seeder.storage.supabase_client import SupabaseStore


class SeedPipeline:
    def __init__(
        self,
        settings: AppSettings,
        store: SupabaseStore,
        api_client: APIFootballClient,
        seeder: Optional[LeagueClubSeeder] = None,
    ):
        self.settings = settings
        self.store = store
        self.api_client = api_client
        self.seeder = seeder or LeagueClubSeeder(
            store, api_client, default_season=settings.default_season
        )

    def new_ingestor(self) -> TransferCsvIngestor:
        """Ingestor with empty caches, so no entity ids leak between runs."""
        return TransferCsvIngestor(
            self.store,
            league_cache=EntityCache(),
            club_cache=EntityCache(),
            id_algorithm=self.settings.transfer_id_algorithm,
        )

    async def preflight(self, csv_path: Path) -> None:
        """Fails before any write if the CSV or the datastore is unavailable."""
        if not csv_path.is_file():
            raise ConfigurationError(f"Transfer CSV not found at {csv_path}")
        try:
            await self.store.ping()
        except StorageError as e:
            raise ConfigurationError(f"Datastore unreachable: {e}") from e
        logger.info("Preflight checks passed.")

    async def _run_with_budget(self, coro) -> SeedReport:
        budget = self.settings.run_budget_seconds
        try:
            return await asyncio.wait_for(coro, timeout=budget)
        except asyncio.TimeoutError as e:
            raise SeedError(f"Seeding exceeded its run budget of {budget:.0f}s") from e

    async def seed_all(self, csv_path: Optional[Path] = None) -> SeedReport:
        return await self._run_with_budget(
            self._seed_all(csv_path or self.settings.resolved_csv_path())
        )

    async def _seed_all(self, csv_path: Path) -> SeedReport:
        started = time.monotonic()
        report = SeedReport()
        logger.info("Starting database seeding...")

        await self.preflight(csv_path)

        logger.info("Phase 1: Seeding leagues...")
        seeded_leagues = await self.seeder.seed_leagues()
        report.leagues_seeded = len(seeded_leagues)
        logger.success(f"Seeded {report.leagues_seeded} leagues")

        logger.info("Phase 2: Seeding clubs...")
        for league in seeded_leagues:
            clubs = await self.seeder.seed_clubs(
                league.api_league_id, league.name, league.season
            )
            report.clubs_seeded += clubs
            logger.success(f"Seeded {clubs} clubs for {league.name}")

        logger.info("Phase 3: Seeding transfers from Transfermarkt CSV...")
        report.ingestion = await self.new_ingestor().ingest(csv_path)
        logger.success(
            f"Seeded {report.ingestion.upserted} transfers from scraped dataset"
        )

        report.api_stats = self.api_client.get_rate_limit_stats()
        report.elapsed_seconds = time.monotonic() - started
        logger.info(
            f"Rate limit utilization: {report.api_stats['hourly_utilization']:.1f}%, "
            f"requests made: {report.api_stats['total_requests']}"
        )
        logger.success("Database seeding completed successfully!")
        return report

    async def seed_validation(
        self, league_id: int = 39, csv_path: Optional[Path] = None
    ) -> SeedReport:
        """Seeds a single league end to end and checks the written rows."""
        return await self._run_with_budget(
            self._seed_validation(
                league_id, csv_path or self.settings.resolved_csv_path()
            )
        )

    async def _seed_validation(self, league_id: int, csv_path: Path) -> SeedReport:
        started = time.monotonic()
        report = SeedReport()
        logger.info(f"Running validation seed with league {league_id} only...")

        await self.preflight(csv_path)

        league = await self.seeder.seed_league(TargetLeague(league_id, str(league_id)))
        report.leagues_seeded = 1
        report.clubs_seeded = await self.seeder.seed_clubs(
            league.api_league_id, league.name, league.season
        )
        report.ingestion = await self.new_ingestor().ingest(csv_path)

        await self.validate_data(league_id)

        report.api_stats = self.api_client.get_rate_limit_stats()
        report.elapsed_seconds = time.monotonic() - started
        logger.success("Validation seed completed successfully!")
        return report

    async def validate_data(self, league_id: int) -> None:
        """Spot-checks leagues, clubs, transfers and the club foreign keys."""
        leagues = await self.store.select(
            "leagues", filters={"api_league_id": league_id}
        )
        if not leagues:
            raise SeedError(f"League {league_id} missing after seeding")
        logger.info(f"Found {len(leagues)} record(s) for league {league_id}")

        clubs = await self.store.select("clubs", "name", limit=5)
        logger.info(f"Sample clubs data: {', '.join(c['name'] for c in clubs)}")

        transfers = await self.store.select(
            "transfers", "player_full_name, transfer_type", limit=5
        )
        logger.info(
            "Sample transfers: "
            + ", ".join(
                f"{t['player_full_name']} ({t['transfer_type']})" for t in transfers
            )
        )

        try:
            relations = await self.store.select(
                "transfers",
                "player_full_name, from_club:clubs!from_club_id(name), "
                "to_club:clubs!to_club_id(name)",
                limit=3,
            )
        except StorageError as e:
            logger.warning(f"Foreign key validation warning: {e}")
            return

        logger.info("Foreign key relationships working")
        for relation in relations:
            from_club = (relation.get("from_club") or {}).get("name", "Unknown")
            to_club = (relation.get("to_club") or {}).get("name", "Unknown")
            logger.info(f"  - {relation['player_full_name']}: {from_club} -> {to_club}")
