"""Tests for the SQL transaction store and its async query source."""
from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from retail_briefing.errors import QuerySourceError
from retail_briefing.infrastructure.db.transactions import SqlTransactionSource, TransactionRepository


@pytest.fixture
def repository(tmp_path):
    repo = TransactionRepository(f"sqlite:///{tmp_path / 'transactions.db'}")
    yield repo
    repo.dispose()


def test_daily_aggregates_group_by_branch(repository):
    inserted = repository.insert_transactions(
        [
            {"branch_id": "SUC01", "total": 100.0, "created_at": datetime(2024, 5, 10, 8, 30)},
            {"branch_id": "SUC01", "total": 300.0, "created_at": datetime(2024, 5, 10, 21, 15)},
            {"branch_id": "SUC02", "total": 250.0, "created_at": datetime(2024, 5, 10, 12, 0)},
            {"branch_id": "SUC02", "total": 999.0, "created_at": datetime(2024, 5, 11, 0, 5)},
            {"branch_id": None, "total": 10.0, "created_at": datetime(2024, 5, 10, 9, 0)},
        ]
    )

    aggregates = {a.branch_id: a for a in repository.fetch_daily_aggregates(date(2024, 5, 10))}

    assert inserted == 4
    assert set(aggregates) == {"SUC01", "SUC02"}
    assert aggregates["SUC01"].total == pytest.approx(400.0)
    assert aggregates["SUC01"].order_count == 2
    assert aggregates["SUC01"].avg_ticket == pytest.approx(200.0)
    assert aggregates["SUC02"].order_count == 1


def test_day_without_transactions_is_empty(repository):
    assert repository.fetch_daily_aggregates(date(2024, 1, 1)) == []
    assert repository.insert_transactions([]) == 0


@pytest.mark.asyncio
async def test_async_source_reads_repository(repository):
    repository.insert_transactions([{"branch_id": "SUC03", "total": 80.0, "created_at": date(2024, 5, 10)}])

    rows = await SqlTransactionSource(repository).query_daily_aggregates(date(2024, 5, 10))

    assert [(r.branch_id, r.order_count) for r in rows] == [("SUC03", 1)]


class _BrokenRepository:
    def fetch_daily_aggregates(self, day):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))


@pytest.mark.asyncio
async def test_driver_errors_become_query_source_errors():
    with pytest.raises(QuerySourceError):
        await SqlTransactionSource(_BrokenRepository()).query_daily_aggregates(date(2024, 5, 10))
