from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from transfer_seeder.config.settings import AppSettings
from transfer_seeder.errors import StorageError
from transfer_seeder.models.entities import EntityRef


class FakeStore:
    """In-memory stand-in for SupabaseStore with upsert-by-key semantics."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "leagues": [],
            "clubs": [],
            "transfers": [],
        }
        self.calls: Counter = Counter()
        self.fail_on: Dict[str, set] = {}
        self.unreachable = False
        self._next_id = 0

    def fail(self, method: str, table: str) -> None:
        self.fail_on.setdefault(method, set()).add(table)

    def _check(self, method: str, table: str) -> None:
        self.calls[method] += 1
        if self.unreachable or table in self.fail_on.get(method, set()):
            raise StorageError(f"{method} on {table} failed: simulated", table)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    async def upsert(self, table, rows, on_conflict):
        self._check("upsert", table)
        data = [rows] if isinstance(rows, dict) else list(rows)
        existing = self.rows(table)
        for row in data:
            for i, current in enumerate(existing):
                if current.get(on_conflict) == row[on_conflict]:
                    existing[i] = {**current, **row}
                    break
            else:
                self._next_id += 1
                existing.append({"id": f"{table}-{self._next_id}", **row})
        return len(data)

    async def find_by_name(self, table, name) -> Optional[EntityRef]:
        self._check("find_by_name", table)
        for row in self.rows(table):
            if row.get("name") == name:
                return EntityRef(id=row["id"], name=row["name"])
        return None

    async def insert_returning(self, table, payload) -> EntityRef:
        self._check("insert_returning", table)
        self._next_id += 1
        row = {"id": f"{table}-{self._next_id}", **payload}
        self.rows(table).append(row)
        return EntityRef(id=row["id"], name=row["name"])

    async def select(self, table, columns="*", filters=None, limit=None):
        self._check("select", table)
        result = [
            row
            for row in self.rows(table)
            if all(row.get(k) == v for k, v in (filters or {}).items())
        ]
        return result[:limit] if limit is not None else result

    async def ping(self):
        await self.select("leagues", "id", limit=1)


class FakeApiClient:
    """Serves canned API-Football payloads keyed by league id."""

    def __init__(self, leagues: Dict[int, Dict[str, Any]], teams: Dict[int, list]):
        self.leagues = leagues
        self.teams = teams
        self.requests: List[tuple] = []

    async def get_league(self, league_id: int) -> Dict[str, Any]:
        self.requests.append(("league", league_id))
        return self.leagues[league_id]

    async def get_teams(self, league_id: int, season: int = 2024) -> list:
        self.requests.append(("teams", league_id, season))
        return self.teams.get(league_id, [])

    def get_rate_limit_stats(self) -> Dict[str, float]:
        return {"total_requests": len(self.requests), "hourly_utilization": 0.5}

    async def close(self) -> None:
        pass


def league_payload(league_id: int, name: str, country: str = "England", code="GB-ENG"):
    return {
        "league": {"id": league_id, "name": name, "type": "League", "logo": "logo.png"},
        "country": {"name": country, "code": code, "flag": "flag.svg"},
        "seasons": [
            {"year": 2023, "current": False},
            {"year": 2025, "current": True},
        ],
    }


def team_payload(team_id: int, name: str, country: str = "England"):
    return {
        "team": {
            "id": team_id,
            "name": name,
            "code": name[:3].upper(),
            "country": country,
            "founded": 1880,
            "national": False,
            "logo": f"{team_id}.png",
        },
        "venue": {
            "id": team_id * 10,
            "name": f"{name} Stadium",
            "address": "1 High Street",
            "city": "London",
            "capacity": 40000,
            "surface": "grass",
            "image": "venue.png",
        },
    }


CSV_HEADER = (
    "page,player,position,age,nationality,club_departed,club_departed_country,"
    "club_departed_competition,club_joined,club_joined_country,"
    "club_joined_competition,transfer_date,market_value,fee\n"
)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        supabase_url="https://example.supabase.co",
        supabase_service_role_key="service-role-key-123456",
        api_football_key="api-football-key-abcdef",
        transfer_csv_path=tmp_path / "transfers.csv",
        _env_file=None,
    )


@pytest.fixture
def write_csv(tmp_path: Path):
    def _write(*lines: str, name: str = "transfers.csv", header: str = CSV_HEADER) -> Path:
        path = tmp_path / name
        path.write_text(header + "".join(line + "\n" for line in lines), encoding="utf-8")
        return path

    return _write
