"""Branch and daily-goal registry backed by a spreadsheet export or env config."""
from __future__ import annotations

import io
import json
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import httpx
import pandas as pd

from retail_briefing.config import DEFAULT_DAILY_GOAL
from retail_briefing.domain.models.briefing import Branch
from retail_briefing.errors import RegistryUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Mexico_City"

# Used only when neither a sheet URL nor inline JSON is configured.
DEFAULT_BRANCHES: Mapping[str, Mapping[str, Any]] = {
    "SUC01": {"name": "San Ángel", "daily_goal": 80000},
    "SUC02": {"name": "Coyoacán", "daily_goal": 70000},
    "SUC03": {"name": "Condesa", "daily_goal": 90000},
    "SUC04": {"name": "Polanco", "daily_goal": 100000},
    "SUC05": {"name": "Roma", "daily_goal": 60000},
    "SUC06": {"name": "Juárez", "daily_goal": 50000},
}


class BranchRegistry:
    """Resolve known branches and their daily goals, with a short-lived cache.

    Source precedence: spreadsheet CSV export, inline JSON, built-in defaults.
    A configured source that cannot be read raises
    :class:`RegistryUnavailableError`; it never degrades to the defaults.
    """

    def __init__(
        self,
        *,
        sheet_url: Optional[str] = None,
        branches_json: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        cache_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sheet_url = sheet_url
        self._branches_json = branches_json
        self._http_client = http_client
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._cached: Optional[List[Branch]] = None
        self._fetched_at: Optional[float] = None

    # ------------------
    # Public API helpers
    # ------------------
    async def get_branch_list(self) -> List[Branch]:
        """Return every known branch in registry order."""
        if self._cached is not None and not self._is_stale():
            return list(self._cached)
        branches = await self._load()
        self._cached = branches
        self._fetched_at = self._clock()
        return list(branches)

    async def get_all_daily_goals(self) -> Dict[str, float]:
        branches = await self.get_branch_list()
        return {branch.id: branch.daily_goal for branch in branches if branch.daily_goal is not None}

    async def get_daily_goal(self, branch_id: str) -> float:
        goals = await self.get_all_daily_goals()
        return goals.get(branch_id) or DEFAULT_DAILY_GOAL

    async def get_branch_name(self, branch_id: str) -> str:
        for branch in await self.get_branch_list():
            if branch.id == branch_id:
                return branch.name or branch_id
        return branch_id

    def invalidate_cache(self) -> None:
        self._cached = None
        self._fetched_at = None
        logger.info("Branch registry cache invalidated")

    # -----------------
    # Internal helpers
    # -----------------
    def _is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        return (self._clock() - self._fetched_at) > self._cache_ttl

    async def _load(self) -> List[Branch]:
        if self._sheet_url:
            return await self._load_from_sheet(self._sheet_url)
        if self._branches_json:
            return self._load_from_json(self._branches_json)
        return branches_from_mapping(DEFAULT_BRANCHES)

    async def _load_from_sheet(self, url: str) -> List[Branch]:
        client = self._http_client
        owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(timeout=10.0, follow_redirects=True)
        try:
            response = await client.get(url)
            response.raise_for_status()
            frame = pd.read_csv(io.StringIO(response.text), dtype=str, keep_default_na=False)
        except (httpx.HTTPError, ValueError) as exc:
            raise RegistryUnavailableError(f"Branch sheet could not be loaded: {exc}") from exc
        finally:
            if owns_client:
                await client.aclose()

        branches = parse_branches_from_sheet(frame.to_dict(orient="records"))
        logger.debug("Loaded %d branches from sheet", len(branches))
        return branches

    @staticmethod
    def _load_from_json(raw: str) -> List[Branch]:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise RegistryUnavailableError(f"Branch config is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise RegistryUnavailableError("Branch config must be a JSON object keyed by branch id.")
        return branches_from_mapping(payload)


def parse_branches_from_sheet(rows: Iterable[Mapping[str, Any]]) -> List[Branch]:
    """Convert sheet rows ``{branch_id, name, daily_goal, timezone}`` into branches."""
    branches: List[Branch] = []
    seen = set()
    for row in rows:
        branch_id = str(row.get("branch_id") or "").strip()
        if not branch_id or branch_id in seen:
            continue
        seen.add(branch_id)
        branches.append(
            Branch(
                id=branch_id,
                name=str(row.get("name") or "").strip() or branch_id,
                daily_goal=_parse_goal(row.get("daily_goal")),
                timezone=str(row.get("timezone") or "").strip() or DEFAULT_TIMEZONE,
            )
        )
    return branches


def branches_from_mapping(payload: Mapping[str, Any]) -> List[Branch]:
    branches: List[Branch] = []
    for branch_id, raw in payload.items():
        settings = raw if isinstance(raw, Mapping) else {}
        branches.append(
            Branch(
                id=str(branch_id),
                name=settings.get("name") or str(branch_id),
                daily_goal=_parse_goal(settings.get("daily_goal")),
                timezone=settings.get("timezone") or DEFAULT_TIMEZONE,
            )
        )
    return branches


def _parse_goal(value: Any) -> float:
    """Parse a goal cell like '80,000' or '80000.5'; non-positive means default."""
    if value is None:
        return DEFAULT_DAILY_GOAL
    try:
        parsed = float(str(value).replace(",", "").replace("$", "").strip())
    except ValueError:
        return DEFAULT_DAILY_GOAL
    return parsed if parsed > 0 else DEFAULT_DAILY_GOAL
