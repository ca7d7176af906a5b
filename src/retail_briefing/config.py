"""Application-wide configuration defaults and helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Base directory for resolving relative paths.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

DEFAULT_DAILY_GOAL = 70000.0


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    # Normalize non-string inputs (e.g., int defaults) before parsing.
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str]) -> Optional[int]:
    """Safely parse an integer env var, returning None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _to_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass
class Config:
    """Runtime configuration loaded from environment variables."""

    debug: bool = False
    database_url: str = f"sqlite:///{BASE_DIR / 'data' / 'transactions.db'}"
    sql_echo: bool = False
    branches_config: Optional[str] = None
    branches_sheet_url: Optional[str] = None
    registry_cache_ttl: float = 300.0
    default_daily_goal: float = DEFAULT_DAILY_GOAL
    openweather_api_key: Optional[str] = None
    weather_city: str = "Mexico City"
    http_timeout: float = 10.0
    proxy_url: Optional[str] = None
    output_dir: Path = BASE_DIR / "briefings"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration instance using environment overrides."""
        ttl = _to_int(os.getenv("BRIEFING_REGISTRY_TTL"))
        return cls(
            debug=_to_bool(os.getenv("APP_DEBUG")),
            database_url=os.getenv("BRIEFING_DATABASE_URL", cls.database_url),
            sql_echo=_to_bool(os.getenv("SQL_ECHO")),
            branches_config=os.getenv("BRIEFING_BRANCHES_CONFIG") or None,
            branches_sheet_url=os.getenv("BRIEFING_BRANCHES_SHEET_URL") or None,
            registry_cache_ttl=float(ttl) if ttl is not None and ttl >= 0 else 300.0,
            openweather_api_key=os.getenv("OPENWEATHER_API_KEY") or None,
            weather_city=os.getenv("BRIEFING_WEATHER_CITY", "Mexico City"),
            http_timeout=_to_float(os.getenv("BRIEFING_HTTP_TIMEOUT"), 10.0),
            proxy_url=os.getenv("PROXY_URL") or None,
            output_dir=Path(os.getenv("OUTPUT_DIR", BASE_DIR / "briefings")),
        )

    def ensure_directories(self) -> None:
        """Create directories needed for runtime artifacts."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        if self.database_url.startswith("sqlite:///"):
            Path(self.database_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
