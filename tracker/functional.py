from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date as _date
from typing import Any, Callable, Generic, Mapping, TypeVar

from tracker.domain import Expense, Income, IncomeSource

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):
    """An optional lookup result: ``Some(value)`` or ``Nothing()``."""

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    def is_some(self) -> bool:
        return isinstance(self, Some)


@dataclass(frozen=True)
class Some(Maybe[T]):
    value: T

    def map(self, f):
        return Some(f(self.value))

    def get_or_else(self, default):
        return self.value


@dataclass(frozen=True)
class Nothing(Maybe[T]):

    def map(self, f):
        return self

    def get_or_else(self, default):
        return default


class Either(Generic[E, T], ABC):
    """Validation result: ``Right(value)`` or ``Left(error)``."""

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return self.bind(lambda value: Right(f(value)))

    def is_right(self) -> bool:
        return isinstance(self, Right)

    def is_left(self) -> bool:
        return isinstance(self, Left)


@dataclass(frozen=True)
class Right(Either[E, T]):
    value: T

    def bind(self, f):
        return f(self.value)

    def get_or_else(self, default):
        return self.value

    def get_error(self):
        raise ValueError(f"{self!r} holds no error")


@dataclass(frozen=True)
class Left(Either[E, T]):
    error: E

    def bind(self, f):
        return self

    def get_or_else(self, default):
        return default

    def get_error(self):
        return self.error


# --- Boundary validation: raw rows and new records are checked here, never in aggregation.

def _invalid(error: str, message: str, **extra: Any) -> Left:
    return Left({"error": error, "message": message, **extra})


def parse_iso_date(value: Any) -> Either[dict, str]:
    text = str(value or "").strip()
    try:
        parsed = _date.fromisoformat(text)
    except ValueError:
        return _invalid("invalid_date", f"Date {text!r} is not a valid YYYY-MM-DD date", date=text)
    # fromisoformat accepts other ISO spellings on newer interpreters
    if parsed.isoformat() != text:
        return _invalid("invalid_date", f"Date {text!r} is not a valid YYYY-MM-DD date", date=text)
    return Right(text)


def parse_amount(value: Any) -> Either[dict, float]:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return _invalid("invalid_amount", f"Amount {value!r} is not a number", amount=value)
    if not amount > 0:  # also rejects NaN
        return _invalid("invalid_amount", f"Amount must be positive, got {amount}", amount=amount)
    return Right(round(amount, 2))


def parse_source(value: Any) -> Either[dict, IncomeSource]:
    if isinstance(value, IncomeSource):
        return Right(value)
    text = str(value or "").strip()
    for source in IncomeSource:
        if source.value.lower() == text.lower():
            return Right(source)
    return _invalid(
        "invalid_source",
        f"Income source {text!r} is not one of {', '.join(s.value for s in IncomeSource)}",
        source=text,
    )


def _require_text(value: Any, name: str) -> Either[dict, str]:
    text = str(value or "").strip()
    if not text:
        return _invalid(f"missing_{name}", f"Field {name!r} is required")
    return Right(text)


def _field(row: Mapping[str, Any], *keys: str, default: Any = "") -> Any:
    for k in keys:
        if k in row and row[k] is not None:
            return row[k]
    return default


def parse_expense_row(row: Mapping[str, Any]) -> Either[dict, Expense]:
    """Build an Expense from a raw mapping (CSV row, tool arguments, seed entry).

    Accepts both the CSV column names (userId, createdAt) and snake_case.
    Returns Left with an error dict describing the first invalid field.
    """
    return (
        _require_text(_field(row, "id"), "id")
        .bind(lambda rid: parse_amount(_field(row, "amount", default=None))
        .bind(lambda amount: parse_iso_date(_field(row, "date"))
        .bind(lambda day: _require_text(_field(row, "category"), "category")
        .map(lambda category: Expense(
            id=rid,
            amount=amount,
            date=day,
            category=category,
            description=str(_field(row, "description")).strip(),
            user_id=str(_field(row, "userId", "user_id")).strip(),
            created_at=str(_field(row, "createdAt", "created_at")).strip(),
        )))))
    )


def parse_income_row(row: Mapping[str, Any]) -> Either[dict, Income]:
    return (
        _require_text(_field(row, "id"), "id")
        .bind(lambda rid: parse_amount(_field(row, "amount", default=None))
        .bind(lambda amount: parse_iso_date(_field(row, "date"))
        .bind(lambda day: parse_source(_field(row, "source"))
        .map(lambda source: Income(
            id=rid,
            amount=amount,
            date=day,
            source=source,
            description=str(_field(row, "description")).strip(),
            user_id=str(_field(row, "userId", "user_id")).strip(),
        )))))
    )


def pipe(x, *funcs):
    """pipe(x, f, g, h) == h(g(f(x)))"""
    res = x
    for f in funcs:
        res = f(res)
    return res
