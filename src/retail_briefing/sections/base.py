"""Contracts shared by briefing sections and the collaborators they consume."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Mapping, Protocol, Sequence, Union, runtime_checkable

from retail_briefing.domain.models.briefing import Branch, DailyAggregate

DateLike = Union[date, datetime]
SectionResult = Dict[str, Any]


@runtime_checkable
class SectionProvider(Protocol):
    """A self-contained block of the briefing computed for one date.

    ``get_data`` may perform I/O but must not touch state shared with other
    sections, and it resolves for every valid date (empty collections rather
    than errors when there is nothing to report).
    """

    name: str

    async def get_data(self, day: DateLike) -> SectionResult:
        ...


class GoalRegistry(Protocol):
    async def get_all_daily_goals(self) -> Mapping[str, float]:
        ...

    async def get_branch_list(self) -> Sequence[Branch]:
        ...


class TransactionQuerySource(Protocol):
    async def query_daily_aggregates(self, day: date) -> Sequence[Union[DailyAggregate, Mapping[str, Any]]]:
        ...


class WeatherProvider(Protocol):
    async def get_current_weather_summary(self) -> str:
        ...
