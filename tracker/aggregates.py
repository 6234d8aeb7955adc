"""Aggregations over already-materialized record collections.

All functions here are pure: they build fresh local accumulators, never
mutate their input and never filter unless stated. Callers decide which
records to pass (see ``tracker.services.FinanceService``).
"""
from datetime import date as _date
from typing import Iterable, Sequence

from tracker.categories import category_color
from tracker.domain import (
    BalanceSummary,
    DailySpending,
    Expense,
    Income,
    MonthlyBreakdown,
    RecordFilter,
    SpendingByCategory,
    Summary,
    TrendDataPoint,
    WeekSummary,
)
from tracker.filters import apply_filter
from tracker.functional import pipe
from tracker.lazy import lazy_top_categories, rank_totals

TOP_CATEGORIES = 3


def month_key(day: str) -> str:
    return day[:7]


def _ratio_percent(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0


def summarize(records: Iterable) -> Summary:
    """Totals, count, average and per-label / per-month sums.

    The label is the expense category or the income source. Key order is
    first occurrence.
    """
    total = 0.0
    count = 0
    by_category: dict[str, float] = {}
    by_month: dict[str, float] = {}
    for r in records:
        total += r.amount
        count += 1
        by_category[r.label] = by_category.get(r.label, 0) + r.amount
        m = month_key(r.date)
        by_month[m] = by_month.get(m, 0) + r.amount
    return Summary(
        total=total,
        average=total / count if count else 0,
        count=count,
        by_category=by_category,
        by_month=by_month,
    )


def savings_rate(income: float, expenses: float) -> float:
    return _ratio_percent(income - expenses, income)


def balance_summary(expenses: Sequence[Expense], income: Sequence[Income]) -> BalanceSummary:
    total_expenses = summarize(expenses).total
    total_income = summarize(income).total
    return BalanceSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        balance=total_income - total_expenses,
        savings_rate=savings_rate(total_income, total_expenses),
    )


def category_entries(summary: Summary) -> list[SpendingByCategory]:
    return [
        SpendingByCategory(
            category=name,
            amount=amount,
            percentage=_ratio_percent(amount, summary.total),
            color=category_color(name),
        )
        for name, amount in summary.by_category.items()
    ]


def by_amount_desc(entries: list[SpendingByCategory]) -> list[SpendingByCategory]:
    return sorted(entries, key=lambda e: e.amount, reverse=True)


def spending_by_category(expenses: Sequence[Expense]) -> list[SpendingByCategory]:
    """Percentages are relative to the total of the records passed in."""
    return pipe(expenses, summarize, category_entries, by_amount_desc)


def spending_trends(expenses: Sequence[Expense], income: Sequence[Income]) -> list[TrendDataPoint]:
    by_date: dict[str, dict[str, float]] = {}
    for e in expenses:
        slot = by_date.setdefault(e.date, {"income": 0, "expenses": 0})
        slot["expenses"] += e.amount
    for i in income:
        slot = by_date.setdefault(i.date, {"income": 0, "expenses": 0})
        slot["income"] += i.amount

    points = [
        TrendDataPoint(
            date=day,
            income=slot["income"],
            expenses=slot["expenses"],
            balance=slot["income"] - slot["expenses"],
        )
        for day, slot in by_date.items()
    ]
    return sorted(points, key=lambda p: p.date)


def monthly_breakdown(
    expenses: Sequence[Expense], income: Sequence[Income], months: int = 6
) -> list[MonthlyBreakdown]:
    """Per-month income, expenses, savings and top expense categories.

    Most recent month first, at most ``months`` entries.
    """
    by_month: dict[str, dict] = {}

    def bucket(day: str) -> dict:
        return by_month.setdefault(month_key(day), {"income": 0, "expenses": 0, "categories": {}})

    for e in expenses:
        slot = bucket(e.date)
        slot["expenses"] += e.amount
        slot["categories"][e.category] = slot["categories"].get(e.category, 0) + e.amount
    for i in income:
        bucket(i.date)["income"] += i.amount

    rows = [
        MonthlyBreakdown(
            month=m,
            income=slot["income"],
            expenses=slot["expenses"],
            savings=slot["income"] - slot["expenses"],
            top_categories=tuple(rank_totals(slot["categories"], TOP_CATEGORIES)),
        )
        for m, slot in by_month.items()
    ]
    rows.sort(key=lambda row: row.month, reverse=True)
    return rows[: max(0, months)]


def daily_spending(expenses: Sequence[Expense], year: int, month: int) -> list[DailySpending]:
    prefix = f"{year}-{month:02d}"
    in_month = apply_filter(expenses, RecordFilter(start_date=f"{prefix}-01", end_date=f"{prefix}-31"))
    per_day: dict[int, float] = {}
    for e in in_month:
        day = int(e.date.split("-")[2])
        per_day[day] = per_day.get(day, 0) + e.amount
    return [DailySpending(day=d, amount=per_day[d]) for d in sorted(per_day)]


def recent(records: Sequence, limit: int = 5) -> tuple:
    return apply_filter(records)[: max(0, limit)]


def group_by_date(records: Iterable) -> dict[str, list]:
    grouped: dict[str, list] = {}
    for r in records:
        grouped.setdefault(r.date, []).append(r)
    return grouped


def week_key(day: str) -> str:
    """Week label ``YYYY-Www`` with weeks starting on Sunday.

    Week 1 runs from January 1st to the first Saturday of the year.
    """
    d = _date.fromisoformat(day)
    jan1 = _date(d.year, 1, 1)
    days = (d - jan1).days
    jan1_weekday = (jan1.weekday() + 1) % 7  # Sunday = 0
    week = -(-(days + jan1_weekday + 1) // 7)
    return f"{d.year}-W{week:02d}"


def group_by_week(records: Iterable) -> dict[str, list]:
    grouped: dict[str, list] = {}
    for r in records:
        grouped.setdefault(week_key(r.date), []).append(r)
    return {k: grouped[k] for k in sorted(grouped, reverse=True)}


def week_summaries(expenses: Iterable[Expense]) -> list[WeekSummary]:
    return [
        WeekSummary(
            week=week,
            total=sum(e.amount for e in items),
            count=len(items),
            top_categories=tuple(lazy_top_categories(items, TOP_CATEGORIES)),
        )
        for week, items in group_by_week(expenses).items()
    ]
