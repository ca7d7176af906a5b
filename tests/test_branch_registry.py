"""Tests for branch/goal resolution and its source precedence."""
from __future__ import annotations

import json

import httpx
import pytest

from retail_briefing.errors import RegistryUnavailableError
from retail_briefing.infrastructure.registry.branches import (
    DEFAULT_BRANCHES,
    BranchRegistry,
    parse_branches_from_sheet,
)

SHEET_CSV = (
    "branch_id,name,daily_goal,timezone\n"
    "SUC01,San Ángel,\"85,000\",America/Mexico_City\n"
    "SUC07,Puebla Centro,,America/Mexico_City\n"
    ",orphan row,1000,\n"
    "SUC08,,abc,\n"
)


def sheet_client(calls, *, status=200, body=SHEET_CSV):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(status, text=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_defaults_when_nothing_configured():
    registry = BranchRegistry()

    branches = await registry.get_branch_list()
    goals = await registry.get_all_daily_goals()

    assert [b.id for b in branches] == list(DEFAULT_BRANCHES)
    assert goals["SUC04"] == 100000
    assert await registry.get_branch_name("SUC02") == "Coyoacán"
    assert await registry.get_branch_name("SUC99") == "SUC99"
    assert await registry.get_daily_goal("SUC99") == 70000


@pytest.mark.asyncio
async def test_inline_json_config():
    raw = json.dumps({"N1": {"name": "Norte", "daily_goal": 42000}, "N2": {"daily_goal": "x"}})
    registry = BranchRegistry(branches_json=raw)

    branches = await registry.get_branch_list()

    assert [(b.id, b.name, b.daily_goal) for b in branches] == [("N1", "Norte", 42000.0), ("N2", "N2", 70000.0)]


@pytest.mark.asyncio
async def test_invalid_json_is_a_registry_failure():
    with pytest.raises(RegistryUnavailableError):
        await BranchRegistry(branches_json="{not json").get_all_daily_goals()
    with pytest.raises(RegistryUnavailableError):
        await BranchRegistry(branches_json="[1, 2]").get_all_daily_goals()


@pytest.mark.asyncio
async def test_sheet_rows_are_parsed_and_take_precedence():
    calls = []
    registry = BranchRegistry(
        sheet_url="https://sheets.example/export?format=csv",
        branches_json=json.dumps({"IGNORED": {"daily_goal": 1}}),
        http_client=sheet_client(calls),
    )

    branches = await registry.get_branch_list()

    assert [b.id for b in branches] == ["SUC01", "SUC07", "SUC08"]
    assert branches[0].daily_goal == 85000.0
    assert branches[1].daily_goal == 70000.0
    assert branches[2].name == "SUC08"
    assert branches[2].timezone == "America/Mexico_City"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_sheet_failure_raises_instead_of_using_defaults():
    registry = BranchRegistry(sheet_url="https://sheets.example/csv", http_client=sheet_client([], status=503))

    with pytest.raises(RegistryUnavailableError):
        await registry.get_branch_list()


@pytest.mark.asyncio
async def test_cache_honours_ttl_and_invalidation():
    calls = []
    now = [0.0]
    registry = BranchRegistry(
        sheet_url="https://sheets.example/csv",
        http_client=sheet_client(calls),
        cache_ttl=300,
        clock=lambda: now[0],
    )

    await registry.get_all_daily_goals()
    now[0] = 120.0
    await registry.get_branch_list()
    assert len(calls) == 1

    now[0] = 301.0
    await registry.get_branch_list()
    assert len(calls) == 2

    registry.invalidate_cache()
    await registry.get_branch_list()
    assert len(calls) == 3


def test_parse_branches_skips_duplicates():
    rows = [
        {"branch_id": "A", "daily_goal": "100"},
        {"branch_id": "A", "daily_goal": "200"},
        {"branch_id": " ", "daily_goal": "300"},
    ]
    branches = parse_branches_from_sheet(rows)

    assert [(b.id, b.daily_goal) for b in branches] == [("A", 100.0)]
