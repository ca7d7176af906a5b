"""Assemble the daily briefing from independently computed sections."""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence

from retail_briefing.config import Config
from retail_briefing.domain.models.briefing import Briefing
from retail_briefing.domain.services.calendar_rules import as_calendar_date
from retail_briefing.sections.base import DateLike
from retail_briefing.workflows.blueprint import SectionSpec, build_default_sections
from retail_briefing.workflows.context import BriefingContext, build_context

logger = logging.getLogger(__name__)


def default_briefing_date(today: Optional[date] = None) -> date:
    """Briefings cover the last closed business day."""
    return (today or date.today()) - timedelta(days=1)


class BriefingWorkflow:
    """Run every registered section for one date and merge the results."""

    def __init__(
        self,
        config: Config,
        *,
        context: Optional[BriefingContext] = None,
        sections: Optional[Sequence[SectionSpec]] = None,
    ) -> None:
        self._config = config
        self._context = context or build_context(config)
        self._sections: List[SectionSpec] = (
            list(sections) if sections is not None else build_default_sections(self._context)
        )
        if not self._sections:
            raise RuntimeError("Briefing blueprint is empty; nothing to run.")

    @property
    def context(self) -> BriefingContext:
        return self._context

    async def run(self, day: Optional[DateLike] = None) -> Briefing:
        """Gather all sections concurrently; a failing section leaves ``None``.

        The failing exception is kept in ``Briefing.failures`` so callers can
        tell a missing registry apart from other errors.
        """
        report_date = as_calendar_date(day) if day is not None else default_briefing_date()
        logger.info("Generating briefing for %s", report_date.isoformat())

        results = await asyncio.gather(
            *(spec.provider.get_data(report_date) for spec in self._sections),
            return_exceptions=True,
        )

        briefing = Briefing(
            date=report_date.isoformat(),
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
        for spec, result in zip(self._sections, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning("Failed to get %s data: %s", spec.key, result)
                briefing.sections[spec.key] = None
                briefing.errors.append(f"{spec.key}: {type(result).__name__}: {result}")
                briefing.failures[spec.key] = result
            else:
                briefing.sections[spec.key] = result

        logger.info(
            "Briefing generated for %s (%d sections, %d errors)",
            briefing.date,
            len(self._sections),
            len(briefing.errors),
        )
        return briefing

    def persist(self, briefing: Briefing, path: Path) -> None:
        """Serialize the briefing to disk for debugging or auditing."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(briefing.to_dict(), default=_json_serializer, indent=2, ensure_ascii=False)
        path.write_text(payload, encoding="utf-8")

    def describe_sections(self) -> List[str]:
        """Return human-readable section descriptions."""
        return [f"{spec.key}: {spec.description}" for spec in self._sections]

    async def aclose(self) -> None:
        await self._context.aclose()


def _json_serializer(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)
