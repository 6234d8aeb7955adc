from typing import Optional

from tracker.domain import Category
from tracker.functional import Maybe, Nothing, Some

FALLBACK_COLOR = "#64748b"

CATEGORIES: tuple[Category, ...] = (
    Category("1", "Groceries", "#10b981", "ShoppingCart", "expense"),
    Category("2", "Rent", "#6366f1", "Home", "expense"),
    Category("3", "Transportation", "#f59e0b", "Car", "expense"),
    Category("4", "Utilities", "#8b5cf6", "Zap", "expense"),
    Category("5", "Entertainment", "#ec4899", "Film", "expense"),
    Category("6", "Dining", "#f97316", "Utensils", "expense"),
    Category("7", "Healthcare", "#ef4444", "Heart", "expense"),
    Category("8", "Shopping", "#06b6d4", "ShoppingBag", "expense"),
    Category("9", "Subscriptions", "#84cc16", "CreditCard", "expense"),
    Category("10", "Salary", "#22c55e", "Briefcase", "income"),
    Category("11", "Freelance", "#3b82f6", "Laptop", "income"),
    Category("12", "Investments", "#a855f7", "TrendingUp", "income"),
    Category("13", "Other", "#64748b", "MoreHorizontal", "income"),
)

# Only expense categories are colored in breakdowns; lookup is case-sensitive.
CATEGORY_COLORS: dict[str, str] = {c.name: c.color for c in CATEGORIES if c.type == "expense"}


def category_color(name: str) -> str:
    return CATEGORY_COLORS.get(name, FALLBACK_COLOR)


def get_categories(kind: Optional[str] = None) -> tuple[Category, ...]:
    if kind:
        return tuple(c for c in CATEGORIES if c.type == kind)
    return CATEGORIES


def expense_category_names() -> list[str]:
    return [c.name for c in get_categories("expense")]


def category_by_name(name: str, cats: tuple[Category, ...] = CATEGORIES) -> Maybe[Category]:
    wanted = str(name or "").strip().lower()
    return next((Some(c) for c in cats if c.name.lower() == wanted), Nothing())


def canonical_category(name: str) -> str:
    """Spell a known expense category the way CATEGORIES does; pass others through."""
    return category_by_name(name, get_categories("expense")).map(lambda c: c.name).get_or_else(name)
