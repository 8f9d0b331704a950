"""Country name → ISO-3166 alpha-2 resolution for scraped Transfermarkt text.

Transfermarkt mixes football-association names (England, Wales), colloquial
names (Turkey, Iran) and accented spellings (Côte d'Ivoire) that a plain
ISO-3166 name lookup misses. Those go through ``COUNTRY_OVERRIDES`` first;
everything else is matched against the pycountry database.
"""

import re
import unicodedata
from functools import lru_cache
from typing import Dict, Optional

import pycountry

COUNTRY_FALLBACK = "UN"

# Keys are normalized: lower-case, no diacritics, straight apostrophes
COUNTRY_OVERRIDES: Dict[str, str] = {
    "england": "GB",
    "scotland": "GB",
    "wales": "GB",
    "northern ireland": "GB",
    "great britain": "GB",
    "cote d'ivoire": "CI",
    "ivory coast": "CI",
    "turkiye": "TR",
    "turkey": "TR",
    "korea, south": "KR",
    "south korea": "KR",
    "korea, north": "KP",
    "north korea": "KP",
    "dr congo": "CD",
    "democratic republic of the congo": "CD",
    "republic of the congo": "CG",
    "congo": "CG",
    "iran": "IR",
    "russia": "RU",
    "bosnia-herzegovina": "BA",
    "czech republic": "CZ",
    "netherlands": "NL",
    "holland": "NL",
    "kosovo": "XK",
    "cape verde": "CV",
    "curacao": "CW",
    "united states": "US",
    "usa": "US",
    "uae": "AE",
    "united arab emirates": "AE",
    "palestine": "PS",
    "the gambia": "GM",
    "chinese taipei": "TW",
    "taiwan": "TW",
    "brunei": "BN",
    "hongkong": "HK",
    "macedonia": "MK",
    "swaziland": "SZ",
    "southern sudan": "SS",
    "st. kitts & nevis": "KN",
    "st. lucia": "LC",
    "st. vincent & grenadines": "VC",
    "faroe island": "FO",
    "tahiti": "PF",
}

_SUBDIVISION_CODE = re.compile(r"^[A-Z]{2}-[A-Z]{2,3}$", re.IGNORECASE)
_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'", "`": "'"})


def remove_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def normalize_country_name(value: str) -> str:
    return remove_diacritics(value.strip().lower()).translate(_APOSTROPHES)


def to_title_case(value: str) -> str:
    return " ".join(
        word[0].upper() + word[1:] for word in value.lower().split(" ") if word
    )


@lru_cache(maxsize=1)
def _country_name_index() -> Dict[str, str]:
    """Maps every ISO name variant (as-is and normalized) to its alpha-2 code."""
    index: Dict[str, str] = {}
    for country in pycountry.countries:
        for attr in ("name", "common_name", "official_name"):
            name = getattr(country, attr, None)
            if not name:
                continue
            index.setdefault(name, country.alpha_2)
            index.setdefault(normalize_country_name(name), country.alpha_2)
    return index


def get_country_iso_code(value: Optional[str]) -> Optional[str]:
    """Resolves a country name or subdivision code to ISO alpha-2, or None."""
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    # API-Football reports home nations as e.g. "GB-ENG"
    if _SUBDIVISION_CODE.match(trimmed):
        return trimmed[:2].upper()

    normalized = normalize_country_name(trimmed)
    override = COUNTRY_OVERRIDES.get(normalized)
    if override:
        return override

    index = _country_name_index()
    return index.get(to_title_case(normalized)) or index.get(normalized)


def get_primary_nationality(raw: Optional[str]) -> Optional[str]:
    """Resolves the first listed nationality of a possibly dual-national player."""
    if not raw or not raw.strip():
        return None
    # "Korea, South" is a single country that happens to contain a comma
    whole = get_country_iso_code(raw)
    if whole:
        return whole
    first = raw.split(",")[0].strip()
    if not first:
        return None
    return get_country_iso_code(first)


def country_or_fallback(value: Optional[str]) -> str:
    return get_country_iso_code(value) or COUNTRY_FALLBACK
