import asyncio

import pytest

from tracker.async_reports import dashboard_snapshot, delete_expenses
from tracker.domain import Expense, Income, IncomeSource
from tracker.events import EventBus
from tracker.services import FinanceService
from tracker.storage import InMemoryStore


def make_service():
    expenses = tuple(
        Expense(f"e{i}", 10.0 * i, f"2026-0{1 + i % 3}-1{i}", "Dining" if i % 2 else "Rent")
        for i in range(1, 7)
    )
    income = (
        Income("i1", 1000.0, "2026-03-01", IncomeSource.SALARY),
        Income("i2", 200.0, "2026-01-05", IncomeSource.OTHER),
    )
    return FinanceService(InMemoryStore(expenses, income), bus=EventBus())


@pytest.mark.asyncio
async def test_snapshot_matches_service_views():
    svc = make_service()
    snap = await dashboard_snapshot(svc)
    assert snap["balance"] == svc.get_balance_summary()
    assert snap["by_category"] == svc.get_spending_by_category()
    assert snap["trends"] == svc.get_spending_trends()
    assert snap["monthly"] == svc.get_monthly_breakdown()
    assert snap["recent"] == svc.get_recent_expenses()
    assert snap["expense_summary"].count == 6


@pytest.mark.asyncio
async def test_snapshot_filters_are_independent():
    svc = make_service()
    snap = await dashboard_snapshot(svc, {"category": "Rent"}, {"source": "Other"})
    assert snap["balance"].total_income == 200.0
    assert {c.category for c in snap["by_category"]} == {"Rent"}
    # monthly breakdown stays unfiltered
    assert sum(m.expenses for m in snap["monthly"]) == 210.0


@pytest.mark.asyncio
async def test_snapshot_trends_match_service_for_expense_filter():
    svc = make_service()
    f = {"startDate": "2026-03-01"}
    snap = await dashboard_snapshot(svc, f)
    assert snap["trends"] == svc.get_spending_trends(f)
    assert [p.date for p in snap["trends"]] == ["2026-03-01", "2026-03-12", "2026-03-15"]
    # the balance still uses the unfiltered income side
    assert snap["balance"].total_income == 1200.0


@pytest.mark.asyncio
async def test_delete_expenses_counts_successes():
    svc = make_service()
    removed = await delete_expenses(svc, ["e1", "e2", "missing"])
    assert removed == 2
    assert {e.id for e in svc.get_expenses()} == {"e3", "e4", "e5", "e6"}


def test_snapshot_runs_under_asyncio_run():
    svc = make_service()
    snap = asyncio.run(dashboard_snapshot(svc, months=1))
    assert len(snap["monthly"]) == 1
