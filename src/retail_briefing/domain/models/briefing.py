"""Domain models describing the data exchanged between briefing sections."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Branch:
    """A known branch and its configured daily revenue goal."""

    id: str
    daily_goal: Optional[float] = None
    name: Optional[str] = None
    timezone: str = "America/Mexico_City"


@dataclass(frozen=True)
class DailyAggregate:
    """Raw per-branch totals for one day as returned by the transaction store."""

    branch_id: str
    total: float
    order_count: int
    avg_ticket: Optional[float] = None


@dataclass(frozen=True)
class BranchSalesRecord:
    """Normalized sales performance of a single branch against its goal."""

    branch_id: str
    total: float
    order_count: int
    avg_ticket: Optional[float]  # None when order_count == 0
    goal: float
    vs_goal: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch_id": self.branch_id,
            "total": self.total,
            "order_count": self.order_count,
            "avg_ticket": self.avg_ticket,
            "goal": self.goal,
            "vs_goal": self.vs_goal,
        }


@dataclass(frozen=True)
class SalesTotals:
    """Aggregate record across all branches, summed from the branch records."""

    total: float
    goal: float
    vs_goal: Optional[float]
    order_count: int
    avg_ticket: Optional[float]
    vs_last_week: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "total": self.total,
            "goal": self.goal,
            "vs_goal": self.vs_goal,
            "order_count": self.order_count,
            "avg_ticket": self.avg_ticket,
        }
        if self.vs_last_week is not None:
            payload["vs_last_week"] = self.vs_last_week
        return payload


@dataclass(frozen=True)
class SalesReport:
    """Sales section output: branch records ranked by goal attainment."""

    date: str
    total: SalesTotals
    by_branch: Tuple[BranchSalesRecord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "total": self.total.to_dict(),
            "byBranch": [record.to_dict() for record in self.by_branch],
        }


@dataclass(frozen=True)
class CalendarSnapshot:
    """Deterministic calendar facts for one date."""

    date: date
    events: Tuple[str, ...] = ()
    holiday: Optional[str] = None
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ContextReport:
    """Context section output: weather, events, holiday and operational notes."""

    weather: Optional[str]
    events: Tuple[str, ...] = ()
    holiday: Optional[str] = None
    notes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weather": self.weather,
            "events": list(self.events),
            "holiday": self.holiday,
            "notes": list(self.notes),
        }


@dataclass
class Briefing:
    """All section payloads gathered for a single date."""

    date: str
    generated_at: str
    sections: Dict[str, Optional[Dict[str, Any]]] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    failures: Dict[str, BaseException] = field(default_factory=dict, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "generated_at": self.generated_at,
            "sections": self.sections,
            "errors": list(self.errors),
        }
