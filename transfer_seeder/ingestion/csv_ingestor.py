import csv
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from transfer_seeder.errors import CsvFormatError, RowRejectedError
from transfer_seeder.models.report import IngestionReport
from transfer_seeder.models.transfer import (
    WITHOUT_CLUB,
    CsvTransferRow,
    TransferRecord,
)
from transfer_seeder.normalization.countries import (
    COUNTRY_FALLBACK,
    country_or_fallback,
    get_primary_nationality,
)
from transfer_seeder.normalization.fields import (
    determine_transfer_type,
    determine_window_label,
    parse_age,
    parse_monetary_value,
    parse_transfer_date,
    sanitize_league_name,
    sanitize_text,
    split_player_name,
)
from transfer_seeder.resolution.cache import EntityCache
from transfer_seeder.resolution.resolver import ClubResolver, LeagueResolver
from transfer_seeder.storage.supabase_client import SupabaseStore
from transfer_seeder.utils.identity import generate_stable_transfer_id


def load_csv_rows(csv_path: Path) -> Tuple[List[CsvTransferRow], int]:
    """Reads the scraped CSV, returning rows with a player and the dropped count.

    Header names are matched case-insensitively after trimming.
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"Transfer CSV not found at {csv_path}")

    rows: List[CsvTransferRow] = []
    dropped = 0
    try:
        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames:
                raise CsvFormatError(f"{csv_path} has no header row")
            reader.fieldnames = [h.strip().lower() for h in reader.fieldnames]
            if "player" not in reader.fieldnames:
                raise CsvFormatError(f"{csv_path} has no 'player' column")

            for raw in reader:
                row = CsvTransferRow.from_mapping(raw)
                if not row.player.strip():
                    dropped += 1
                    continue
                rows.append(row)
    except csv.Error as e:
        raise CsvFormatError(f"Failed to parse CSV {csv_path}: {e}") from e

    return rows, dropped


def resolve_club_country(raw_country: str, nationality_iso: Optional[str]) -> str:
    """Country for a club: its own column, else the player's nationality, else UN.

    Using the nationality as a stand-in for a blank club country was carried
    over from the first seeder as-is; it is wrong for any player abroad.
    """
    if raw_country.strip():
        return country_or_fallback(raw_country)
    return nationality_iso or COUNTRY_FALLBACK


class TransferCsvIngestor:
    """Maps scraped CSV rows to canonical transfers and upserts them one by one.

    The caches are per-run state; pass fresh ones (or none) for every run.
    """

    def __init__(
        self,
        store: SupabaseStore,
        league_cache: Optional[EntityCache] = None,
        club_cache: Optional[EntityCache] = None,
        id_algorithm: str = "fnv1a64",
    ):
        self.store = store
        self.league_cache = league_cache if league_cache is not None else EntityCache()
        self.club_cache = club_cache if club_cache is not None else EntityCache()
        self.league_resolver = LeagueResolver(store, self.league_cache)
        self.club_resolver = ClubResolver(store, self.club_cache)
        self.id_algorithm = id_algorithm

    async def map_row(self, row: CsvTransferRow) -> TransferRecord:
        transfer_date = parse_transfer_date(row.transfer_date)
        if transfer_date is None:
            raise RowRejectedError(f"invalid date: {row.transfer_date!r}")

        first, last = split_player_name(row.player)
        nationality_iso = get_primary_nationality(row.nationality)
        from_country = resolve_club_country(row.club_departed_country, nationality_iso)
        to_country = resolve_club_country(row.club_joined_country, nationality_iso)

        league_name = sanitize_text(row.club_joined_competition, "") or sanitize_league_name(
            row.club_departed_competition
        )
        league = await self.league_resolver.resolve(league_name, to_country)
        league_id = league.id if league else None

        from_club_name = sanitize_text(row.club_departed, WITHOUT_CLUB)
        to_club_name = sanitize_text(row.club_joined, WITHOUT_CLUB)
        from_club = await self.club_resolver.resolve(from_club_name, from_country, league_id)
        to_club = await self.club_resolver.resolve(to_club_name, to_country, league_id)

        money = parse_monetary_value(row.fee, row.market_value)

        return TransferRecord(
            player_first_name=first,
            player_last_name=last,
            player_full_name=row.player.strip() or f"{first} {last}",
            age=parse_age(row.age),
            position=sanitize_text(row.position, "Unknown"),
            nationality=nationality_iso,
            from_club_id=from_club.id if from_club else None,
            to_club_id=to_club.id if to_club else None,
            from_club_name=from_club_name,
            to_club_name=to_club_name,
            league_id=league_id,
            league_name=league.name if league else league_name,
            transfer_type=determine_transfer_type(row.fee),
            transfer_value_usd=money.cents,
            transfer_value_display=money.display,
            transfer_date=transfer_date,
            window=determine_window_label(transfer_date),
            api_transfer_id=generate_stable_transfer_id(row, self.id_algorithm),
        )

    async def ingest(self, csv_path: Path) -> IngestionReport:
        logger.info(f"Loading transfer data from {csv_path}")
        rows, dropped = load_csv_rows(csv_path)
        report = IngestionReport(
            csv_path=str(csv_path),
            rows_parsed=len(rows),
            rows_dropped_blank_player=dropped,
        )
        logger.info(f"Parsed {len(rows)} rows from CSV ({dropped} without a player)")

        for row in rows:
            try:
                record = await self.map_row(row)
                await self.store.upsert(
                    "transfers", record.to_row(), on_conflict="api_transfer_id"
                )
            except Exception as e:
                logger.warning(
                    f"Skipping transfer {row.player} ({row.transfer_date}): {e}"
                )
                report.record_skip(row.player, row.transfer_date, str(e))
                continue
            report.upserted += 1

        report.league_cache = self.league_cache.stats()
        report.club_cache = self.club_cache.stats()
        logger.info(
            f"Upserted {report.upserted} transfers, skipped {report.skipped_count}"
        )
        return report
