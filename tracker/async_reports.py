import asyncio
from typing import Any, Dict, Optional, Sequence

from tracker import aggregates
from tracker.filters import apply_filter
from tracker.services import FilterLike, FinanceService, as_filter


async def dashboard_snapshot(
    service: FinanceService,
    expense_filter: FilterLike = None,
    income_filter: FilterLike = None,
    months: Optional[int] = None,
) -> Dict[str, Any]:
    """Compute every dashboard view concurrently from one store snapshot.

    Records are fetched once, so all views agree with each other even if
    the store changes while they are being built.
    """
    expenses = service.all_expenses()
    income = service.all_income()
    ef, inf = as_filter(expense_filter), as_filter(income_filter)
    months = service.months if months is None else months

    async def view(name: str, fn, *args) -> tuple[str, Any]:
        await asyncio.sleep(0)  # cooperate
        return name, fn(*args)

    filtered_expenses = apply_filter(expenses, ef)
    filtered_income = apply_filter(income, inf)
    # trends narrow both sides with the expense filter, like FinanceService.get_spending_trends
    trend_income = apply_filter(income, ef)

    results = await asyncio.gather(
        view("balance", aggregates.balance_summary, filtered_expenses, filtered_income),
        view("expense_summary", aggregates.summarize, filtered_expenses),
        view("income_summary", aggregates.summarize, filtered_income),
        view("by_category", aggregates.spending_by_category, filtered_expenses),
        view("trends", aggregates.spending_trends, filtered_expenses, trend_income),
        view("monthly", aggregates.monthly_breakdown, expenses, income, months),
        view("recent", aggregates.recent, expenses, service.recent_limit),
    )
    return {k: v for k, v in results}


async def delete_expenses(service: FinanceService, ids: Sequence[str]) -> int:
    """Delete several expenses concurrently; returns how many were removed."""
    async def delete_one(rid: str) -> bool:
        await asyncio.sleep(0)
        return service.delete_expense(rid)

    results = await asyncio.gather(*(delete_one(rid) for rid in ids))
    return sum(1 for ok in results if ok)
