from datetime import date
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .enums import TransferStatus, TransferType

WITHOUT_CLUB = "Without Club"
UNKNOWN_LEAGUE = "Unknown League"
UNDISCLOSED = "Undisclosed"

CSV_COLUMNS = (
    "page",
    "player",
    "position",
    "age",
    "nationality",
    "club_departed",
    "club_departed_country",
    "club_departed_competition",
    "club_joined",
    "club_joined_country",
    "club_joined_competition",
    "transfer_date",
    "market_value",
    "fee",
)


class CsvTransferRow(BaseModel):
    """One raw row of the scraped Transfermarkt export, values untouched."""

    model_config = ConfigDict(frozen=True)

    page: str = ""
    player: str = ""
    position: str = ""
    age: str = ""
    nationality: str = ""
    club_departed: str = ""
    club_departed_country: str = ""
    club_departed_competition: str = ""
    club_joined: str = ""
    club_joined_country: str = ""
    club_joined_competition: str = ""
    transfer_date: str = ""
    market_value: str = ""
    fee: str = ""

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Optional[str]]) -> "CsvTransferRow":
        """Builds a row from a header-keyed mapping, ignoring unknown columns."""
        values = {
            column: mapping.get(column) or ""
            for column in CSV_COLUMNS
            if column in mapping
        }
        return cls(**values)


class TransferRecord(BaseModel):
    """Canonical transfer as written to the `transfers` table."""

    player_id: Optional[int] = None
    player_first_name: str
    player_last_name: str
    player_full_name: str
    age: Optional[int] = None
    position: str = "Unknown"
    nationality: Optional[str] = Field(None, min_length=2, max_length=2)

    from_club_id: Optional[str] = None
    to_club_id: Optional[str] = None
    # Denormalized names are kept even when the foreign key could not be resolved
    from_club_name: str = Field(WITHOUT_CLUB, min_length=1)
    to_club_name: str = Field(WITHOUT_CLUB, min_length=1)

    league_id: Optional[str] = None
    league_name: str = Field(UNKNOWN_LEAGUE, min_length=1)

    transfer_type: TransferType = TransferType.PERMANENT
    transfer_value_usd: Optional[int] = None  # minor units
    transfer_value_display: str = UNDISCLOSED
    status: TransferStatus = TransferStatus.DONE
    transfer_date: date
    window: str
    api_transfer_id: int = Field(..., gt=0)

    @field_serializer("transfer_date")
    def _serialize_date(self, value: date) -> str:
        return value.isoformat()

    def to_row(self) -> Dict[str, Any]:
        """Returns the JSON-ready payload for a PostgREST upsert."""
        return self.model_dump(mode="json")
