import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from rich import print
from rich.panel import Panel

from transfer_seeder.clients.api_football import APIFootballClient
from transfer_seeder.config.settings import AppSettings, load_settings
from transfer_seeder.logging.setup import setup_logging
from transfer_seeder.models.report import SeedReport
from transfer_seeder.pipeline.orchestrator import SeedPipeline
from transfer_seeder.storage.supabase_client import SupabaseStore, initialize_supabase


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Seed leagues, clubs and Transfermarkt transfers into Supabase"
    )
    parser.add_argument(
        "--csv",
        type=Path,
        default=None,
        help="Transfer CSV to ingest (overrides TRANSFER_CSV_PATH)",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Seed a single league and spot-check the written rows",
    )
    parser.add_argument(
        "--league-id",
        type=int,
        default=39,
        help="API-Football league id used with --validate",
    )
    return parser.parse_args(argv)


def render_summary(report: SeedReport) -> Panel:
    lines = [
        f"Leagues seeded: {report.leagues_seeded}",
        f"Clubs seeded: {report.clubs_seeded}",
    ]
    if report.ingestion:
        ingestion = report.ingestion
        lines += [
            f"Transfer rows parsed: {ingestion.rows_parsed}"
            f" ({ingestion.rows_dropped_blank_player} without a player)",
            f"Transfers upserted: {ingestion.upserted}",
            f"Transfers skipped: {ingestion.skipped_count}",
        ]
    if report.api_stats:
        lines.append(f"API requests: {report.api_stats.get('total_requests', 0)}")
    lines.append(f"Elapsed: {report.elapsed_seconds:.1f}s")
    return Panel("\n".join(lines), title="Seeding summary", expand=False)


async def main(args: argparse.Namespace, settings: AppSettings) -> SeedReport:
    """Runs one seeding pass; any exception escaping here is a failed run."""
    client = await initialize_supabase(settings)
    store = SupabaseStore(client, timeout=settings.request_timeout_seconds)
    api_client = APIFootballClient.from_settings(settings)
    pipeline = SeedPipeline(settings, store, api_client)
    try:
        if args.validate:
            return await pipeline.seed_validation(args.league_id, args.csv)
        return await pipeline.seed_all(args.csv)
    finally:
        await api_client.close()


def run(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    settings = load_settings()
    setup_logging(settings)

    try:
        report = asyncio.run(main(args, settings))
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        return 1
    except Exception as e:
        logger.exception(f"Seeding script failed: {e}")
        return 1

    print(render_summary(report))
    return 0


if __name__ == "__main__":
    sys.exit(run())
