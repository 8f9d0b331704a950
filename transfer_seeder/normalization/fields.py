import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import NamedTuple, Optional, Tuple

from loguru import logger

from transfer_seeder.models.enums import TransferType
from transfer_seeder.models.transfer import UNDISCLOSED, UNKNOWN_LEAGUE

# Formats seen in hand-edited exports besides the day-first default
_TEXTUAL_DATE_FORMATS = (
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%d.%m.%Y",
)

_EURO_AMOUNT = re.compile(r"€\s*([0-9]+(?:\.[0-9]+)?)([mk])?", re.IGNORECASE)
_AMOUNT_MULTIPLIERS = {"m": Decimal(1_000_000), "k": Decimal(1_000)}
_MISSING_MARKERS = {"", "-", "?"}
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class MonetaryValue(NamedTuple):
    display: str
    cents: Optional[int]


def sanitize_text(value: Optional[str], fallback: str = "Unknown") -> str:
    trimmed = (value or "").strip()
    if not trimmed or trimmed == "-":
        return fallback
    return trimmed


def sanitize_league_name(value: Optional[str]) -> str:
    return sanitize_text(value, UNKNOWN_LEAGUE)


def split_player_name(full_name: Optional[str]) -> Tuple[str, str]:
    """Splits "First Middle Last" into ("First", "Middle Last")."""
    parts = (full_name or "").split()
    if not parts:
        return "Unknown", "Unknown"
    if len(parts) == 1:
        return parts[0], parts[0]
    return parts[0], " ".join(parts[1:])


def parse_age(raw: Optional[str]) -> Optional[int]:
    match = _LEADING_INT.match(raw or "")
    return int(match.group(1)) if match else None


def parse_transfer_date(raw: Optional[str]) -> Optional[date]:
    """Parses a scraped transfer date into a calendar date.

    ``dd/mm/yyyy`` is the Transfermarkt convention and is tried first. Anything
    else goes through ISO-8601 parsing and a handful of textual formats. A
    timestamp keeps the calendar date it was written with; no timezone
    conversion is applied.
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        return None

    parts = [p.strip() for p in trimmed.split("/")]
    if len(parts) == 3 and all(p.isdecimal() for p in parts):
        day, month, year = (int(p) for p in parts)
        try:
            return date(year, month, day)
        except ValueError:
            logger.debug(f"Impossible day-first date '{trimmed}'")
            return None

    try:
        return datetime.fromisoformat(trimmed).date()
    except ValueError:
        pass

    for fmt in _TEXTUAL_DATE_FORMATS:
        try:
            return datetime.strptime(trimmed, fmt).date()
        except ValueError:
            continue

    return None


def normalize_display_value(value: Optional[str]) -> Optional[str]:
    trimmed = (value or "").strip()
    if trimmed in _MISSING_MARKERS:
        return None
    return " ".join(trimmed.split())


def extract_euro_amount(value: Optional[str]) -> Optional[Decimal]:
    """Finds the first "€<amount>[m|k]" in the text, scaled to whole euros."""
    if not value:
        return None
    match = _EURO_AMOUNT.search(value.replace(",", "").lower())
    if not match:
        return None
    try:
        amount = Decimal(match.group(1))
    except InvalidOperation:
        return None
    suffix = (match.group(2) or "").lower()
    return amount * _AMOUNT_MULTIPLIERS.get(suffix, Decimal(1))


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def parse_monetary_value(
    primary: Optional[str], fallback: Optional[str] = None
) -> MonetaryValue:
    """Parses the fee, falling back to the market value when the fee is not a price."""
    for source in (primary, fallback):
        amount = extract_euro_amount(source)
        if amount is not None:
            return MonetaryValue(
                display=normalize_display_value(source) or UNDISCLOSED,
                cents=to_minor_units(amount),
            )
    return MonetaryValue(display=UNDISCLOSED, cents=None)


def determine_transfer_type(raw_fee: Optional[str]) -> TransferType:
    text = (raw_fee or "").lower()
    if "loan" in text:
        return TransferType.LOAN
    if "free" in text:
        return TransferType.FREE_TRANSFER
    return TransferType.PERMANENT


def determine_window_label(transfer_date: date) -> str:
    """Buckets a date into a coarse window label.

    This is not the league-specific window calendar; January in a league whose
    winter window opens late still gets "-winter" here.
    """
    year, month = transfer_date.year, transfer_date.month
    if month <= 2:
        return f"{year}-winter"
    if 6 <= month <= 9:
        return f"{year}-summer"
    return f"{year}-mid-season"
