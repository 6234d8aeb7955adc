from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class IncomeSource(str, Enum):
    SALARY = "Salary"
    FREELANCE = "Freelance"
    INVESTMENTS = "Investments"
    OTHER = "Other"


@dataclass(frozen=True)
class Expense:
    id: str
    amount: float
    date: str          # "YYYY-MM-DD"
    category: str      # open vocabulary, see tracker.categories
    description: str = ""
    user_id: str = ""
    created_at: str = ""
    type: str = field(default="expense", init=False)

    @property
    def label(self) -> str:
        return self.category


@dataclass(frozen=True)
class Income:
    id: str
    amount: float
    date: str
    source: IncomeSource
    description: str = ""
    user_id: str = ""

    @property
    def label(self) -> str:
        return self.source.value


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str
    icon: str
    type: str  # "expense" or "income"


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    created_at: str


@dataclass(frozen=True)
class RecordFilter:
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    category: Optional[str] = None     # expenses only
    source: Optional[str] = None       # income only
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    search_query: Optional[str] = None


# Derived views. Never stored, recomputed on every call.

@dataclass(frozen=True)
class Summary:
    total: float
    average: float
    count: int
    by_category: dict
    by_month: dict


@dataclass(frozen=True)
class BalanceSummary:
    total_income: float
    total_expenses: float
    balance: float
    savings_rate: float


@dataclass(frozen=True)
class SpendingByCategory:
    category: str
    amount: float
    percentage: float
    color: str


@dataclass(frozen=True)
class TrendDataPoint:
    date: str
    income: float
    expenses: float
    balance: float


@dataclass(frozen=True)
class CategoryAmount:
    name: str
    amount: float


@dataclass(frozen=True)
class MonthlyBreakdown:
    month: str
    income: float
    expenses: float
    savings: float
    top_categories: tuple[CategoryAmount, ...]


@dataclass(frozen=True)
class DailySpending:
    day: int
    amount: float


@dataclass(frozen=True)
class WeekSummary:
    week: str
    total: float
    count: int
    top_categories: tuple[CategoryAmount, ...]
