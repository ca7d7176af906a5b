"""Convenience re-exports for briefing sections."""
from __future__ import annotations

from retail_briefing.sections.base import SectionProvider
from retail_briefing.sections.context import ContextSection
from retail_briefing.sections.sales import SalesSection

__all__ = [
    "ContextSection",
    "SalesSection",
    "SectionProvider",
]
