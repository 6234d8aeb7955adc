import logging
from typing import Any, Mapping, Optional, Sequence, Union

from tracker import aggregates
from tracker.categories import canonical_category, get_categories
from tracker.domain import (
    BalanceSummary,
    Category,
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
from tracker.events import (
    EXPENSE_ADDED,
    EXPENSE_DELETED,
    EXPENSE_UPDATED,
    INCOME_ADDED,
    INCOME_DELETED,
    INCOME_UPDATED,
    EventBus,
    event_bus,
)
from tracker.filters import apply_filter, filter_from_mapping
from tracker.storage import RecordStore

log = logging.getLogger(__name__)

FilterLike = Union[RecordFilter, Mapping[str, Any], None]


def as_filter(f: FilterLike) -> Optional[RecordFilter]:
    if f is None or isinstance(f, RecordFilter):
        return f
    return filter_from_mapping(f)


class FinanceService:
    """Facade over an injected record store.

    Each call takes one snapshot from the store, narrows it with the filter
    engine and hands it to the pure functions in ``tracker.aggregates``.
    UI and tool callers go through the same methods.
    """

    def __init__(self, store: RecordStore, user_id: Optional[str] = None,
                 bus: Optional[EventBus] = None, months: int = 6, recent_limit: int = 5):
        self.store = store
        self.user_id = user_id
        self.bus = bus if bus is not None else event_bus
        self.months = months
        self.recent_limit = recent_limit

    # --- queries

    def all_expenses(self) -> tuple[Expense, ...]:
        return self.store.list_expenses(self.user_id)

    def all_income(self) -> tuple[Income, ...]:
        return self.store.list_income(self.user_id)

    def get_expenses(self, f: FilterLike = None) -> tuple[Expense, ...]:
        return apply_filter(self.all_expenses(), as_filter(f))

    def get_income(self, f: FilterLike = None) -> tuple[Income, ...]:
        return apply_filter(self.all_income(), as_filter(f))

    def get_expense_summary(self, f: FilterLike = None) -> Summary:
        return aggregates.summarize(self.get_expenses(f))

    def get_income_summary(self, f: FilterLike = None) -> Summary:
        return aggregates.summarize(self.get_income(f))

    def get_balance_summary(self, expense_filter: FilterLike = None,
                            income_filter: FilterLike = None) -> BalanceSummary:
        return aggregates.balance_summary(self.get_expenses(expense_filter), self.get_income(income_filter))

    def get_spending_by_category(self, f: FilterLike = None) -> list[SpendingByCategory]:
        return aggregates.spending_by_category(self.get_expenses(f))

    def get_spending_trends(self, f: FilterLike = None) -> list[TrendDataPoint]:
        # one filter for both sides: category narrows expenses, source narrows income
        return aggregates.spending_trends(self.get_expenses(f), self.get_income(f))

    def get_monthly_breakdown(self, months: Optional[int] = None) -> list[MonthlyBreakdown]:
        # all records, deliberately unfiltered
        return aggregates.monthly_breakdown(
            self.all_expenses(), self.all_income(), self.months if months is None else months
        )

    def get_daily_spending(self, year: int, month: int) -> list[DailySpending]:
        return aggregates.daily_spending(self.all_expenses(), year, month)

    def get_recent_expenses(self, limit: Optional[int] = None) -> tuple[Expense, ...]:
        return aggregates.recent(self.all_expenses(), self.recent_limit if limit is None else limit)

    def get_recent_income(self, limit: Optional[int] = None) -> tuple[Income, ...]:
        return aggregates.recent(self.all_income(), self.recent_limit if limit is None else limit)

    def get_expenses_by_date(self, f: FilterLike = None) -> dict[str, list[Expense]]:
        return aggregates.group_by_date(self.get_expenses(f))

    def get_expenses_by_week(self, f: FilterLike = None) -> dict[str, list[Expense]]:
        return aggregates.group_by_week(self.get_expenses(f))

    def get_weekly_summary(self, f: FilterLike = None) -> list[WeekSummary]:
        return aggregates.week_summaries(self.get_expenses(f))

    def get_categories(self, kind: Optional[str] = None) -> tuple[Category, ...]:
        return get_categories(kind)

    # --- commands

    def _publish(self, name: str, record_id: str, amount: float = 0) -> list[dict]:
        balance = self.get_balance_summary().balance
        return self.bus.publish(name, {"id": record_id, "amount": amount, "balance": balance})

    def add_expense(self, amount: float, date: str, category: str, description: str = "") -> Expense:
        e = self.store.add_expense(amount, date, canonical_category(category), description,
                                   user_id=self.user_id or "")
        self._publish(EXPENSE_ADDED, e.id, e.amount)
        return e

    def update_expense(self, expense_id: str, **changes: Any) -> Optional[Expense]:
        if "category" in changes:
            changes["category"] = canonical_category(changes["category"])
        e = self.store.update_expense(expense_id, **changes)
        if e is not None:
            self._publish(EXPENSE_UPDATED, e.id, e.amount)
        return e

    def delete_expense(self, expense_id: str) -> bool:
        deleted = self.store.delete_expense(expense_id)
        if deleted:
            self._publish(EXPENSE_DELETED, expense_id)
        return deleted

    def delete_expenses(self, ids: Sequence[str]) -> int:
        deleted = sum(1 for rid in ids if self.delete_expense(rid))
        log.info("Bulk delete removed %d of %d expenses", deleted, len(ids))
        return deleted

    def add_income(self, amount: float, date: str, source: Any, description: str = "") -> Income:
        i = self.store.add_income(amount, date, source, description, user_id=self.user_id or "")
        self._publish(INCOME_ADDED, i.id, i.amount)
        return i

    def update_income(self, income_id: str, **changes: Any) -> Optional[Income]:
        i = self.store.update_income(income_id, **changes)
        if i is not None:
            self._publish(INCOME_UPDATED, i.id, i.amount)
        return i

    def delete_income(self, income_id: str) -> bool:
        deleted = self.store.delete_income(income_id)
        if deleted:
            self._publish(INCOME_DELETED, income_id)
        return deleted
