"""Workflow dependency container."""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from retail_briefing.config import Config
from retail_briefing.domain.services.calendar_rules import CalendarRuleEngine
from retail_briefing.domain.services.sales_aggregation import RandomSource, SalesAggregator
from retail_briefing.infrastructure.db.transactions import SqlTransactionSource, TransactionRepository
from retail_briefing.infrastructure.registry.branches import BranchRegistry
from retail_briefing.infrastructure.weather.providers import MonthlyClimateTable, OpenWeatherClient


@dataclass
class BriefingContext:
    """Holds the collaborators shared by section providers."""

    config: Config
    registry: BranchRegistry
    repository: Optional[TransactionRepository]
    query_source: Optional[SqlTransactionSource]
    weather: Optional[OpenWeatherClient]
    calendar: CalendarRuleEngine = field(default_factory=CalendarRuleEngine)
    climate_table: MonthlyClimateTable = field(default_factory=MonthlyClimateTable)
    aggregator: SalesAggregator = field(default_factory=SalesAggregator)
    rng: RandomSource = field(default_factory=random.Random)

    async def aclose(self) -> None:
        """Release any dependencies that need explicit cleanup."""
        if self.weather is not None:
            await self.weather.aclose()
        if self.repository is not None:
            self.repository.dispose()


def build_context(config: Config) -> BriefingContext:
    """Wire collaborators from configuration; optional ones may be missing."""
    repository: Optional[TransactionRepository]
    try:
        repository = TransactionRepository(config.database_url, echo=config.sql_echo)
    except SQLAlchemyError:
        # The sales section falls back to synthetic data without a store.
        repository = None

    weather: Optional[OpenWeatherClient]
    try:
        weather = OpenWeatherClient(
            api_key=config.openweather_api_key or "",
            city=config.weather_city,
            timeout=config.http_timeout,
            proxy_url=config.proxy_url,
        )
    except ValueError:
        weather = None

    registry = BranchRegistry(
        sheet_url=config.branches_sheet_url,
        branches_json=config.branches_config,
        cache_ttl=config.registry_cache_ttl,
    )
    return BriefingContext(
        config=config,
        registry=registry,
        repository=repository,
        query_source=SqlTransactionSource(repository) if repository is not None else None,
        weather=weather,
        aggregator=SalesAggregator(default_goal=config.default_daily_goal),
    )
