"""SQL persistence layer for point-of-sale transactions."""
from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any, Dict, Iterable, List

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from retail_briefing.domain.models.briefing import DailyAggregate
from retail_briefing.errors import QuerySourceError


class TransactionRepository:
    """Lightweight gateway for reading and writing transaction rows."""

    def __init__(self, database_uri: str, *, echo: bool = False, create_schema: bool = True) -> None:
        self._engine: Engine = create_engine(database_uri, echo=echo, future=True)
        if create_schema:
            self._ensure_schema()

    @property
    def engine(self) -> Engine:
        return self._engine

    # -----------------
    # Schema management
    # -----------------
    def _ensure_schema(self) -> None:
        """Create the transactions table if it does not already exist."""
        ddl = [
            """
            CREATE TABLE IF NOT EXISTS transactions (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              branch_id TEXT NOT NULL,
              total REAL NOT NULL,
              created_at DATETIME NOT NULL
            );
            """,
            """CREATE INDEX IF NOT EXISTS idx_transactions_created ON transactions(created_at);""",
        ]
        with self._engine.begin() as conn:
            for statement in ddl:
                conn.execute(text(statement))

    # ----------
    # Aggregates
    # ----------
    def fetch_daily_aggregates(self, day: date) -> List[DailyAggregate]:
        """Sum, count and average ticket per branch for one calendar day."""
        query = text(
            """
            SELECT
              branch_id,
              SUM(total) AS total,
              COUNT(*) AS order_count,
              AVG(total) AS avg_ticket
            FROM transactions
            WHERE DATE(created_at) = :day
            GROUP BY branch_id
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query, {"day": day.isoformat()}).mappings().all()
        return [
            DailyAggregate(
                branch_id=str(row["branch_id"]),
                total=float(row["total"] or 0.0),
                order_count=int(row["order_count"] or 0),
                avg_ticket=float(row["avg_ticket"]) if row["avg_ticket"] is not None else None,
            )
            for row in rows
        ]

    def insert_transactions(self, payload: Iterable[Dict[str, Any]]) -> int:
        """Persist transaction rows; rows missing branch or timestamp are skipped."""
        rows = [
            {
                "branch_id": item.get("branch_id"),
                "total": float(item.get("total") or 0.0),
                "created_at": _format_timestamp(item.get("created_at")),
            }
            for item in payload
            if item.get("branch_id") and item.get("created_at")
        ]
        if not rows:
            return 0

        stmt = text(
            """
            INSERT INTO transactions (branch_id, total, created_at)
            VALUES (:branch_id, :total, :created_at)
            """
        )
        with self._engine.begin() as conn:
            conn.execute(stmt, rows)
        return len(rows)

    def dispose(self) -> None:
        self._engine.dispose()


class SqlTransactionSource:
    """Async query source backed by :class:`TransactionRepository`.

    The blocking SQLAlchemy call runs in a worker thread so the event loop
    keeps serving the other sections.
    """

    def __init__(self, repository: TransactionRepository) -> None:
        self._repository = repository

    async def query_daily_aggregates(self, day: date) -> List[DailyAggregate]:
        try:
            return await asyncio.to_thread(self._repository.fetch_daily_aggregates, day)
        except SQLAlchemyError as exc:
            raise QuerySourceError(f"Daily aggregate query failed for {day.isoformat()}: {exc}") from exc


def _format_timestamp(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).isoformat(sep=" ")
    return str(value)
