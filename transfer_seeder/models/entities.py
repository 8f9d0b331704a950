from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .enums import LeagueTier, LeagueType


class EntityRef(BaseModel):
    """Reference to a persisted league or club row."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        # Supabase returns UUIDs as strings, but bigint keys come back as ints
        return value if value is None else str(value)


class LeagueRecord(BaseModel):
    """League seeded from API-Football, upserted on `api_league_id`."""

    api_league_id: int
    name: str
    type: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    country_iso2: Optional[str] = None
    logo_url: Optional[str] = None
    current_season: int


class ClubRecord(BaseModel):
    """Club seeded from API-Football, upserted on `api_club_id`."""

    api_club_id: int
    name: str
    code: Optional[str] = None
    country: Optional[str] = None
    country_iso2: Optional[str] = None
    founded: Optional[int] = None
    national_team: bool = False
    logo_url: Optional[str] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    venue_city: Optional[str] = None
    venue_capacity: Optional[int] = None
    venue_surface: Optional[str] = None
    venue_image: Optional[str] = None


class NewLeague(BaseModel):
    """Insert payload for a league first seen in the scraped CSV."""

    name: str
    tier: LeagueTier = LeagueTier.TIER_1
    type: LeagueType = LeagueType.DOMESTIC
    country_iso2: str

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class NewClub(BaseModel):
    """Insert payload for a club first seen in the scraped CSV."""

    name: str
    short_name: Optional[str] = None
    country_iso2: str
    league_id: Optional[str] = None
    api_reference: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
