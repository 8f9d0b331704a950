from typing import Any, Dict, List, NamedTuple, Sequence

import httpx
from loguru import logger

from transfer_seeder.clients.api_football import APIFootballClient
from transfer_seeder.clients.base_client import ApiClientError
from transfer_seeder.errors import SeedPhaseError, StorageError
from transfer_seeder.models.entities import ClubRecord, LeagueRecord
from transfer_seeder.normalization.countries import get_country_iso_code
from transfer_seeder.storage.supabase_client import SupabaseStore


class TargetLeague(NamedTuple):
    api_league_id: int
    name: str


class SeededLeague(NamedTuple):
    api_league_id: int
    name: str
    season: int


TOP_5_LEAGUES: List[TargetLeague] = [
    TargetLeague(39, "Premier League"),
    TargetLeague(140, "La Liga"),
    TargetLeague(135, "Serie A"),
    TargetLeague(78, "Bundesliga"),
    TargetLeague(61, "Ligue 1"),
]


def league_record_from_api(data: Dict[str, Any], default_season: int) -> LeagueRecord:
    league = data.get("league") or {}
    country = data.get("country") or {}
    current_season = next(
        (s.get("year") for s in data.get("seasons") or [] if s.get("current")),
        None,
    )
    return LeagueRecord(
        api_league_id=league["id"],
        name=league["name"],
        type=league.get("type"),
        country=country.get("name"),
        country_code=country.get("code"),
        country_iso2=get_country_iso_code(country.get("code") or country.get("name")),
        logo_url=league.get("logo"),
        current_season=current_season or default_season,
    )


def club_record_from_api(data: Dict[str, Any]) -> ClubRecord:
    team = data.get("team") or {}
    venue = data.get("venue") or {}
    return ClubRecord(
        api_club_id=team["id"],
        name=team["name"],
        code=team.get("code") or None,
        country=team.get("country"),
        country_iso2=get_country_iso_code(team.get("country")),
        founded=team.get("founded") or None,
        national_team=bool(team.get("national")),
        logo_url=team.get("logo"),
        venue_name=venue.get("name") or None,
        venue_address=venue.get("address") or None,
        venue_city=venue.get("city") or None,
        venue_capacity=venue.get("capacity") or None,
        venue_surface=venue.get("surface") or None,
        venue_image=venue.get("image") or None,
    )


class LeagueClubSeeder:
    """Seeds leagues and their clubs from API-Football under their API ids.

    Unlike the CSV phase, any failure here is fatal: the transfer phase
    relies on these rows existing under their trusted identifiers.
    """

    def __init__(
        self,
        store: SupabaseStore,
        api_client: APIFootballClient,
        default_season: int = 2024,
        target_leagues: Sequence[TargetLeague] = tuple(TOP_5_LEAGUES),
    ):
        self.store = store
        self.api_client = api_client
        self.default_season = default_season
        self.target_leagues = list(target_leagues)

    async def seed_league(self, target: TargetLeague) -> SeededLeague:
        logger.info(f"Fetching {target.name} data...")
        try:
            data = await self.api_client.get_league(target.api_league_id)
            record = league_record_from_api(data, self.default_season)
            await self.store.upsert(
                "leagues", record.model_dump(mode="json"), on_conflict="api_league_id"
            )
        except (
            ApiClientError,
            httpx.HTTPError,
            StorageError,
            KeyError,
            ValueError,
        ) as e:
            logger.error(f"Failed to seed league {target.name}: {e}")
            raise SeedPhaseError(f"Failed to seed league {target.name}") from e

        logger.success(f"Seeded {record.name} (season {record.current_season})")
        return SeededLeague(record.api_league_id, record.name, record.current_season)

    async def seed_leagues(self) -> List[SeededLeague]:
        logger.info(
            f"Target leagues: {', '.join(t.name for t in self.target_leagues)}"
        )
        return [await self.seed_league(target) for target in self.target_leagues]

    async def seed_clubs(self, league_id: int, league_name: str, season: int) -> int:
        logger.info(f"Fetching clubs for {league_name} ({season})...")
        try:
            teams = await self.api_client.get_teams(league_id, season)
            for team in teams:
                record = club_record_from_api(team)
                await self.store.upsert(
                    "clubs", record.model_dump(mode="json"), on_conflict="api_club_id"
                )
        except (
            ApiClientError,
            httpx.HTTPError,
            StorageError,
            KeyError,
            ValueError,
        ) as e:
            logger.error(f"Failed to seed clubs for {league_name}: {e}")
            raise SeedPhaseError(f"Failed to seed clubs for {league_name}") from e

        return len(teams)
