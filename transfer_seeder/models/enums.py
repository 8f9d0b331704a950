from enum import Enum


class TransferType(str, Enum):
    PERMANENT = "Permanent"
    LOAN = "Loan"
    FREE_TRANSFER = "Free Transfer"


class TransferStatus(str, Enum):
    DONE = "done"
    # Rumoured/pending states are written by the live sync, not this seeder


class EntityKind(str, Enum):
    LEAGUE = "league"
    CLUB = "club"


class LeagueTier(str, Enum):
    TIER_1 = "1"


class LeagueType(str, Enum):
    DOMESTIC = "domestic"
