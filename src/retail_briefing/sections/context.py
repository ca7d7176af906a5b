"""Context section: weather, calendar events, holiday and operating notes."""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from retail_briefing.domain.models.briefing import ContextReport
from retail_briefing.domain.services.calendar_rules import CalendarRuleEngine, as_calendar_date
from retail_briefing.infrastructure.weather.providers import MonthlyClimateTable
from retail_briefing.sections.base import DateLike, SectionResult, WeatherProvider

logger = logging.getLogger(__name__)


class ContextSection:
    """Everything about the day itself that shapes expected traffic."""

    name = "context"

    def __init__(
        self,
        calendar: Optional[CalendarRuleEngine] = None,
        *,
        weather_provider: Optional[WeatherProvider] = None,
        climate_table: Optional[MonthlyClimateTable] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._calendar = calendar or CalendarRuleEngine()
        self._weather_provider = weather_provider
        self._climate_table = climate_table or MonthlyClimateTable()
        self._today = today

    async def get_data(self, day: DateLike) -> SectionResult:
        report_date = as_calendar_date(day)
        snapshot = self._calendar.evaluate(report_date)
        report = ContextReport(
            weather=await self.get_weather(report_date),
            events=snapshot.events,
            holiday=snapshot.holiday,
            notes=snapshot.notes,
        )
        return report.to_dict()

    async def get_weather(self, day: DateLike) -> Optional[str]:
        """Best-effort weather summary for ``day``; never raises."""
        report_date = as_calendar_date(day)
        try:
            if self._weather_provider is not None and report_date == self._today():
                return await self._weather_provider.get_current_weather_summary()
            return self._climate_table.summary_for(report_date)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Failed to get weather for %s: %s", report_date, exc)
            return None
