from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field


class RowSkip(BaseModel):
    """A CSV row that was rejected on its own without stopping the batch."""

    player: str
    transfer_date: str
    reason: str


class CacheStats(BaseModel):
    hits: int = 0
    misses: int = 0
    size: int = 0


class IngestionReport(BaseModel):
    """Outcome of one pass over the transfer CSV."""

    csv_path: str
    rows_parsed: int = 0
    rows_dropped_blank_player: int = 0
    upserted: int = 0
    skipped: List[RowSkip] = Field(default_factory=list)
    league_cache: CacheStats = Field(default_factory=CacheStats)
    club_cache: CacheStats = Field(default_factory=CacheStats)

    @computed_field  # type: ignore[misc]
    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def record_skip(self, player: str, transfer_date: str, reason: str) -> None:
        self.skipped.append(
            RowSkip(player=player, transfer_date=transfer_date, reason=reason)
        )


class SeedReport(BaseModel):
    """Summary of a full seed_all run."""

    leagues_seeded: int = 0
    clubs_seeded: int = 0
    ingestion: Optional[IngestionReport] = None
    api_stats: Dict[str, Any] = Field(default_factory=dict)
    elapsed_seconds: float = 0.0
