"""Domain service turning branch aggregates into a ranked sales report.

This module implements:
- Normalization of raw per-branch aggregates (pandas-based coercion)
- Goal comparison per branch and summation into an aggregate record
- A synthetic, goal-consistent generator used when no live data exists

Values that cannot be computed (average ticket without orders, attainment
against a zero goal) are ``None`` rather than ``float('nan')``.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

import pandas as pd

from retail_briefing.config import DEFAULT_DAILY_GOAL
from retail_briefing.domain.models.briefing import (
    Branch,
    BranchSalesRecord,
    DailyAggregate,
    SalesReport,
    SalesTotals,
)

# Synthetic generator ranges.
VARIATION_RANGE = (-0.20, 0.30)
AVG_TICKET_RANGE = (150.0, 200.0)
VS_LAST_WEEK_RANGE = (-5.0, 10.0)


class RandomSource(Protocol):
    """Anything exposing ``uniform``; ``random.Random`` qualifies."""

    def uniform(self, a: float, b: float) -> float:
        ...


RawAggregate = Union[DailyAggregate, Mapping[str, Any]]


def vs_goal(total: float, goal: float) -> Optional[float]:
    """Percentage deviation of ``total`` from ``goal``."""
    if not goal:
        return None
    return (total - goal) / goal * 100


def avg_ticket(total: float, order_count: int) -> Optional[float]:
    if order_count <= 0:
        return None
    return total / order_count


def resolve_goal(goals: Mapping[str, float], branch_id: str, *fallbacks: Optional[float]) -> float:
    """Return the first positive goal among the registry entry and fallbacks."""
    for candidate in (goals.get(branch_id), *fallbacks):
        if candidate is not None and candidate > 0:
            return float(candidate)
    return DEFAULT_DAILY_GOAL


def normalize_aggregates(rows: Iterable[RawAggregate]) -> List[DailyAggregate]:
    """Coerce driver rows (strings, Decimals, None) into typed aggregates."""
    records = [
        {
            "branch_id": row.branch_id,
            "total": row.total,
            "order_count": row.order_count,
        }
        if isinstance(row, DailyAggregate)
        else {
            "branch_id": row.get("branch_id"),
            "total": row.get("total"),
            "order_count": row.get("order_count"),
        }
        for row in rows
    ]
    if not records:
        return []

    frame = pd.DataFrame.from_records(records, columns=["branch_id", "total", "order_count"])
    frame = frame.dropna(subset=["branch_id"])
    frame["branch_id"] = frame["branch_id"].astype(str)
    frame["total"] = pd.to_numeric(frame["total"], errors="coerce").fillna(0.0).clip(lower=0.0)
    frame["order_count"] = (
        pd.to_numeric(frame["order_count"], errors="coerce").fillna(0).clip(lower=0).round().astype(int)
    )

    aggregates: List[DailyAggregate] = []
    for item in frame.to_dict(orient="records"):
        total = float(item["total"])
        count = int(item["order_count"])
        aggregates.append(
            DailyAggregate(
                branch_id=item["branch_id"],
                total=total,
                order_count=count,
                avg_ticket=avg_ticket(total, count),
            )
        )
    return aggregates


def summarize(records: Sequence[BranchSalesRecord], *, vs_last_week: Optional[float] = None) -> SalesTotals:
    """Sum branch records into the aggregate total record."""
    total = sum(record.total for record in records)
    goal = sum(record.goal for record in records)
    orders = sum(record.order_count for record in records)
    return SalesTotals(
        total=total,
        goal=goal,
        vs_goal=vs_goal(total, goal),
        order_count=orders,
        avg_ticket=avg_ticket(total, orders),
        vs_last_week=vs_last_week,
    )


def rank_by_goal(records: Iterable[BranchSalesRecord]) -> Tuple[BranchSalesRecord, ...]:
    """Best performer first; ties keep their incoming order."""
    return tuple(sorted(records, key=lambda record: record.vs_goal, reverse=True))


class SalesAggregator:
    """Build :class:`SalesReport` instances from live rows or synthetic data."""

    def __init__(self, default_goal: float = DEFAULT_DAILY_GOAL) -> None:
        self._default_goal = default_goal

    def from_aggregates(
        self,
        report_date: date,
        rows: Iterable[RawAggregate],
        goals: Mapping[str, float],
    ) -> SalesReport:
        records = []
        for aggregate in normalize_aggregates(rows):
            goal = resolve_goal(goals, aggregate.branch_id, self._default_goal)
            records.append(
                BranchSalesRecord(
                    branch_id=aggregate.branch_id,
                    total=aggregate.total,
                    order_count=aggregate.order_count,
                    avg_ticket=aggregate.avg_ticket,
                    goal=goal,
                    vs_goal=vs_goal(aggregate.total, goal),
                )
            )
        return SalesReport(
            date=report_date.isoformat(),
            total=summarize(records),
            by_branch=rank_by_goal(records),
        )

    def synthesize(
        self,
        report_date: date,
        branches: Iterable[Branch],
        goals: Mapping[str, float],
        rng: RandomSource,
    ) -> SalesReport:
        """Generate plausible figures around each branch goal.

        ``vs_goal`` is the drawn variation itself, so it stays exact even
        though ``total`` is rounded to whole currency units.
        """
        low, high = VARIATION_RANGE
        records = []
        for branch in branches:
            goal = resolve_goal(goals, branch.id, branch.daily_goal, self._default_goal)
            variation = rng.uniform(low, high)
            total = float(round(goal * (1 + variation)))
            # Rounding must not push the amount outside the band; clamp to whole units inside it.
            total = float(min(max(total, math.ceil(goal * (1 + low))), math.floor(goal * (1 + high))))
            order_count = int(round(total / rng.uniform(*AVG_TICKET_RANGE)))
            records.append(
                BranchSalesRecord(
                    branch_id=branch.id,
                    total=total,
                    order_count=order_count,
                    avg_ticket=avg_ticket(total, order_count),
                    goal=goal,
                    vs_goal=variation * 100,
                )
            )
        return SalesReport(
            date=report_date.isoformat(),
            total=summarize(records, vs_last_week=rng.uniform(*VS_LAST_WEEK_RANGE)),
            by_branch=rank_by_goal(records),
        )
