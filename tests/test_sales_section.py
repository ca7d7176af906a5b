"""Tests for the sales section fallback and failure semantics."""
from __future__ import annotations

import random
from datetime import date, datetime

import pytest

from retail_briefing.domain.models.briefing import Branch, DailyAggregate
from retail_briefing.errors import QuerySourceError, RegistryUnavailableError
from retail_briefing.sections import SalesSection, SectionProvider


class FakeRegistry:
    def __init__(self, branches, *, fail=False):
        self._branches = branches
        self._fail = fail
        self.branch_list_calls = 0

    async def get_all_daily_goals(self):
        if self._fail:
            raise RegistryUnavailableError("sheet down")
        return {b.id: b.daily_goal for b in self._branches if b.daily_goal is not None}

    async def get_branch_list(self):
        self.branch_list_calls += 1
        return list(self._branches)


class FakeQuerySource:
    def __init__(self, rows=None, *, error=None):
        self._rows = rows or []
        self._error = error
        self.requested = []

    async def query_daily_aggregates(self, day):
        self.requested.append(day)
        if self._error is not None:
            raise self._error
        return list(self._rows)


BRANCHES = [
    Branch(id="SUC01", daily_goal=80000),
    Branch(id="SUC02", daily_goal=70000),
    Branch(id="SUC03", daily_goal=90000),
]


def test_sales_section_satisfies_provider_protocol():
    assert isinstance(SalesSection(FakeRegistry(BRANCHES)), SectionProvider)


@pytest.mark.asyncio
async def test_live_rows_are_used_when_available():
    source = FakeQuerySource(
        [
            DailyAggregate(branch_id="SUC01", total=72000.0, order_count=400),
            DailyAggregate(branch_id="SUC02", total=77000.0, order_count=385),
        ]
    )
    registry = FakeRegistry(BRANCHES)
    section = SalesSection(registry, source)

    data = await section.get_data(datetime(2024, 5, 10, 23, 45))

    assert source.requested == [date(2024, 5, 10)]
    assert registry.branch_list_calls == 0
    assert data["date"] == "2024-05-10"
    assert [b["branch_id"] for b in data["byBranch"]] == ["SUC02", "SUC01"]
    assert data["total"]["total"] == pytest.approx(149000.0)
    assert data["total"]["goal"] == 150000.0
    assert "vs_last_week" not in data["total"]


@pytest.mark.asyncio
async def test_empty_rows_trigger_synthetic_report():
    section = SalesSection(FakeRegistry(BRANCHES), FakeQuerySource([]), rng=random.Random(3))

    report = await section.compute_sales_report(date(2024, 5, 10))

    assert {r.branch_id for r in report.by_branch} == {"SUC01", "SUC02", "SUC03"}
    assert report.total.vs_last_week is not None
    assert report.total.total == pytest.approx(sum(r.total for r in report.by_branch))


@pytest.mark.asyncio
async def test_query_failure_is_recovered_with_synthetic_report():
    section = SalesSection(
        FakeRegistry(BRANCHES),
        FakeQuerySource(error=QuerySourceError("connection refused")),
        rng=random.Random(11),
    )

    data = await section.get_data(date(2024, 5, 10))

    assert len(data["byBranch"]) == 3
    assert "vs_last_week" in data["total"]


@pytest.mark.asyncio
async def test_missing_query_source_goes_straight_to_synthetic():
    section = SalesSection(FakeRegistry(BRANCHES), None, rng=random.Random(5))

    data = await section.get_data(date(2024, 5, 10))

    assert len(data["byBranch"]) == 3


@pytest.mark.asyncio
async def test_registry_failure_propagates():
    source = FakeQuerySource([DailyAggregate(branch_id="SUC01", total=1.0, order_count=1)])
    section = SalesSection(FakeRegistry(BRANCHES, fail=True), source)

    with pytest.raises(RegistryUnavailableError):
        await section.get_data(date(2024, 5, 10))
    assert source.requested == []


@pytest.mark.asyncio
async def test_live_and_synthetic_share_the_same_shape():
    live = await SalesSection(
        FakeRegistry(BRANCHES),
        FakeQuerySource([DailyAggregate(branch_id="SUC01", total=1000.0, order_count=5)]),
    ).get_data(date(2024, 5, 10))
    synthetic = await SalesSection(FakeRegistry(BRANCHES), None, rng=random.Random(1)).get_data(
        date(2024, 5, 10)
    )

    assert live.keys() == synthetic.keys()
    assert set(synthetic["total"]) - set(live["total"]) == {"vs_last_week"}
    assert live["byBranch"][0].keys() == synthetic["byBranch"][0].keys()


@pytest.mark.asyncio
async def test_empty_registry_fallback_yields_empty_ranking():
    data = await SalesSection(FakeRegistry([]), FakeQuerySource([])).get_data(date(2024, 5, 10))

    assert data["byBranch"] == []
    assert data["total"]["order_count"] == 0
    assert data["total"]["avg_ticket"] is None


@pytest.mark.asyncio
async def test_rows_without_branch_ids_trigger_synthetic_report():
    registry = FakeRegistry([Branch(id="SUC01", daily_goal=80000)])
    source = FakeQuerySource([{"branch_id": None, "total": 5, "order_count": 1}])

    data = await SalesSection(registry, source, rng=random.Random(3)).get_data(date(2024, 5, 10))

    assert [record["branch_id"] for record in data["byBranch"]] == ["SUC01"]
    assert "vs_last_week" in data["total"]
    assert registry.branch_list_calls == 1
