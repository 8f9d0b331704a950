import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TRANSFER_CSV_PATH = Path("Temp_Ref/latest-transfers-top10-pages-1-to-10.csv")


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Supabase Configuration
    supabase_url: HttpUrl = Field(..., description="URL for the Supabase project.")
    supabase_service_role_key: str = Field(
        ..., description="Service role key for Supabase (bypasses RLS for seeding)."
    )

    # API-Football Configuration
    api_football_key: str = Field(..., description="API key for API-Football.")
    api_football_base_url: HttpUrl = Field(
        "https://v3.football.api-sports.io",
        description="Base URL for the API-Football v3 API.",
    )
    api_requests_per_second: float = Field(
        5.0, gt=0, description="Minimum spacing between API requests, as a rate."
    )
    api_max_requests_per_hour: int = Field(
        1000, gt=0, description="Hard cap of API requests in a rolling hour."
    )

    # Ingestion Configuration
    transfer_csv_path: Path = Field(
        DEFAULT_TRANSFER_CSV_PATH,
        description="Scraped Transfermarkt CSV to ingest.",
    )
    default_season: int = Field(
        2024, description="Season used when the API reports no current season."
    )
    transfer_id_algorithm: Literal["fnv1a64", "legacy32"] = Field(
        "fnv1a64", description="Hash used to derive stable transfer ids."
    )

    # Deadlines
    request_timeout_seconds: float = Field(
        30.0, gt=0, description="Deadline for a single datastore or HTTP call."
    )
    run_budget_seconds: float = Field(
        1800.0, gt=0, description="Deadline for a full seed_all run."
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    def resolved_csv_path(self) -> Path:
        return self.transfer_csv_path.expanduser().resolve()


def load_settings(**overrides) -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings(**overrides)
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")

    log_level_upper = settings.log_level.upper()
    # Validate log_level even if loaded from .env
    if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        logging.warning(
            f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
        )
        settings.log_level = "INFO"
    else:
        settings.log_level = log_level_upper
    return settings
