"""Deterministic upsert keys for scraped transfer rows.

The key is derived from the raw (pre-normalization) player, date, clubs and
fee text, so changing a normalization rule never re-keys existing rows.

Known limitation: two genuinely different transfers that agree on all five
raw fields map to the same key, and the second upsert overwrites the first.
``legacy32`` additionally has a real birthday-collision rate once a table
grows past tens of thousands of rows; ``fnv1a64`` makes that negligible.
"""

from typing import Callable, Dict, Iterable, Optional

from transfer_seeder.models.transfer import CsvTransferRow

KEY_DELIMITER = "|"

_FNV64_OFFSET_BASIS = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK_64 = (1 << 64) - 1
# Postgres BIGINT is signed; keep the top bit clear
_MASK_63 = (1 << 63) - 1


def identity_key(parts: Iterable[Optional[str]]) -> str:
    return KEY_DELIMITER.join(part or "" for part in parts)


def row_identity_key(row: CsvTransferRow) -> str:
    return identity_key(
        [row.player, row.transfer_date, row.club_departed, row.club_joined, row.fee]
    )


def fnv1a64_id(key: str) -> int:
    """64-bit FNV-1a over UTF-8 bytes, folded to a positive BIGINT."""
    value = _FNV64_OFFSET_BASIS
    for byte in key.encode("utf-8"):
        value ^= byte
        value = (value * _FNV64_PRIME) & _MASK_64
    value &= _MASK_63
    return value or 1


def legacy32_id(key: str) -> int:
    """Reproduces the 32-bit ids written by the first version of the seeder.

    ``h = (h << 5) - h + c`` over UTF-16 code units, wrapped to a signed 32-bit
    integer after every step, then made positive.
    """
    value = 0
    encoded = key.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = ((value << 5) - value + code_unit) & 0xFFFFFFFF
        if value >= 0x80000000:
            value -= 0x100000000
    return abs(value) or 1


ID_ALGORITHMS: Dict[str, Callable[[str], int]] = {
    "fnv1a64": fnv1a64_id,
    "legacy32": legacy32_id,
}


def generate_stable_transfer_id(
    row: CsvTransferRow, algorithm: str = "fnv1a64"
) -> int:
    try:
        hash_fn = ID_ALGORITHMS[algorithm]
    except KeyError:
        raise ValueError(f"Unknown transfer id algorithm: {algorithm}") from None
    return hash_fn(row_identity_key(row))
