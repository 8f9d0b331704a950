from typing import Any, Dict, Optional

from loguru import logger

from transfer_seeder.errors import StorageError
from transfer_seeder.models.entities import EntityRef, NewClub, NewLeague
from transfer_seeder.models.enums import EntityKind
from transfer_seeder.models.transfer import UNKNOWN_LEAGUE, WITHOUT_CLUB
from transfer_seeder.normalization.countries import COUNTRY_FALLBACK
from transfer_seeder.normalization.fields import sanitize_text
from transfer_seeder.storage.supabase_client import SupabaseStore

from .cache import EntityCache, cache_key


class EntityResolver:
    """Get-or-create lookup of a denormalized name against a datastore table.

    Resolution must run one call at a time: a cache miss followed by an insert
    is not atomic, so two overlapping calls for the same name could create
    the entity twice.
    """

    kind: EntityKind
    table: str
    sentinel: str

    def __init__(self, store: SupabaseStore, cache: Optional[EntityCache] = None):
        self.store = store
        self.cache = cache if cache is not None else EntityCache()

    def _build_insert_payload(
        self, name: str, country_iso: str, league_id: Optional[str]
    ) -> Dict[str, Any]:
        raise NotImplementedError

    async def resolve(
        self,
        name: Optional[str],
        country_iso: Optional[str],
        league_id: Optional[str] = None,
    ) -> Optional[EntityRef]:
        normalized = sanitize_text(name, self.sentinel)
        if normalized.lower() == self.sentinel.lower():
            return None

        iso = country_iso or COUNTRY_FALLBACK
        key = cache_key(normalized, iso)
        cached = self.cache.get(key)
        if cached:
            return cached

        try:
            existing = await self.store.find_by_name(self.table, normalized)
            if existing:
                self.cache.put(key, existing)
                return existing

            payload = self._build_insert_payload(normalized, iso, league_id)
            inserted = await self.store.insert_returning(self.table, payload)
        except StorageError as e:
            logger.warning(f"Failed to resolve {self.kind.value} {normalized}: {e}")
            return None

        logger.info(f"Created {self.kind.value} '{normalized}' ({iso})")
        self.cache.put(key, inserted)
        return inserted


class LeagueResolver(EntityResolver):
    kind = EntityKind.LEAGUE
    table = "leagues"
    sentinel = UNKNOWN_LEAGUE

    def _build_insert_payload(
        self, name: str, country_iso: str, league_id: Optional[str]
    ) -> Dict[str, Any]:
        return NewLeague(name=name, country_iso2=country_iso).to_row()


class ClubResolver(EntityResolver):
    kind = EntityKind.CLUB
    table = "clubs"
    sentinel = WITHOUT_CLUB

    def _build_insert_payload(
        self, name: str, country_iso: str, league_id: Optional[str]
    ) -> Dict[str, Any]:
        return NewClub(name=name, country_iso2=country_iso, league_id=league_id).to_row()
