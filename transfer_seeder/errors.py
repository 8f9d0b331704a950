from typing import Optional


class SeedError(Exception):
    """Base exception for the seeding pipeline."""

    pass


class ConfigurationError(SeedError):
    """Raised when required configuration or inputs are missing at startup."""

    pass


class StorageError(SeedError):
    """Raised when a datastore read or write fails."""

    def __init__(self, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.table = table


class SeedPhaseError(SeedError):
    """Raised when the league/club phase cannot complete."""

    pass


class CsvFormatError(SeedError):
    """Raised when the transfer CSV cannot be parsed at all."""

    pass


class RowRejectedError(SeedError):
    """Raised when a single CSV row cannot be turned into a transfer record."""

    pass
