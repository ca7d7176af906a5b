"""Sales section: live daily aggregates with a synthetic fallback."""
from __future__ import annotations

import logging
import random
from typing import Optional

from retail_briefing.domain.models.briefing import SalesReport
from retail_briefing.domain.services.calendar_rules import as_calendar_date
from retail_briefing.domain.services.sales_aggregation import (
    RandomSource,
    SalesAggregator,
    normalize_aggregates,
)
from retail_briefing.sections.base import DateLike, GoalRegistry, SectionResult, TransactionQuerySource

logger = logging.getLogger(__name__)


class SalesSection:
    """Rank branches by goal attainment for one calendar day."""

    name = "sales"

    def __init__(
        self,
        registry: GoalRegistry,
        query_source: Optional[TransactionQuerySource] = None,
        *,
        aggregator: Optional[SalesAggregator] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self._registry = registry
        self._query_source = query_source
        self._aggregator = aggregator or SalesAggregator()
        self._rng = rng or random.Random()

    async def get_data(self, day: DateLike) -> SectionResult:
        report = await self.compute_sales_report(day)
        return report.to_dict()

    async def compute_sales_report(self, day: DateLike) -> SalesReport:
        """Build the report from live rows, or synthesize one when none exist.

        Registry failures propagate; query source failures only trigger the
        synthetic path.
        """
        report_date = as_calendar_date(day)
        goals = await self._registry.get_all_daily_goals()

        rows = []
        if self._query_source is not None:
            try:
                rows = normalize_aggregates(await self._query_source.query_daily_aggregates(report_date))
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Failed to get sales for %s, using synthetic data: %s", report_date, exc)

        # Rows without a usable branch id are dropped; nothing left means no live data.
        if rows:
            return self._aggregator.from_aggregates(report_date, rows, goals)

        logger.debug("No live sales rows for %s; synthesizing from goals", report_date)
        branches = await self._registry.get_branch_list()
        return self._aggregator.synthesize(report_date, branches, goals, self._rng)
