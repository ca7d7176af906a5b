"""Workflow blueprint describing briefing sections and their providers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List

from retail_briefing.sections.context import ContextSection
from retail_briefing.sections.sales import SalesSection

if TYPE_CHECKING:
    from retail_briefing.sections.base import SectionProvider
    from retail_briefing.workflows.context import BriefingContext


@dataclass
class SectionSpec:
    """Single briefing section definition."""

    key: str
    description: str
    provider: "SectionProvider"


def build_default_sections(context: "BriefingContext") -> List[SectionSpec]:
    """Return the ordered sections of the daily briefing."""
    return [
        SectionSpec(
            key="sales",
            description="Per-branch sales vs. daily goal; synthetic figures when the store has no rows.",
            provider=SalesSection(
                context.registry,
                context.query_source,
                aggregator=context.aggregator,
                rng=context.rng,
            ),
        ),
        SectionSpec(
            key="context",
            description="Weather, seasonal and weekday events, holiday and operating notes.",
            provider=ContextSection(
                context.calendar,
                weather_provider=context.weather,
                climate_table=context.climate_table,
            ),
        ),
    ]
