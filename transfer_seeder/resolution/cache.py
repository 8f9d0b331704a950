from typing import Dict, Optional

from transfer_seeder.models.entities import EntityRef
from transfer_seeder.models.report import CacheStats


def cache_key(name: str, country_iso: str) -> str:
    return f"{name.lower()}|{country_iso}"


class EntityCache:
    """Per-run name+country → EntityRef map.

    No TTL and no persistence: create one per ingestion run and drop it
    afterwards so a long-lived process never reuses ids from an earlier run.
    """

    def __init__(self):
        self._entries: Dict[str, EntityRef] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[EntityRef]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def put(self, key: str, ref: EntityRef) -> None:
        self._entries[key] = ref

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def stats(self) -> CacheStats:
        return CacheStats(hits=self.hits, misses=self.misses, size=len(self))
