"""Record stores.

Aggregation never touches storage directly: a ``RecordStore`` hands out
immutable snapshots (tuples of frozen records) and every write goes through
the same parse-and-validate step the CSV reader uses.
"""
import logging
import random
import string
import time
from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Tuple

import pandas as pd

from tracker.domain import Expense, Income, IncomeSource
from tracker.functional import Either, parse_expense_row, parse_income_row
from tracker.transforms import add_record, find_record, for_user, load_seed, remove_records, update_record

log = logging.getLogger(__name__)

EXPENSE_COLUMNS = ["id", "userId", "date", "amount", "category", "description", "type", "createdAt"]
INCOME_COLUMNS = ["id", "userId", "date", "amount", "source", "description"]


class RecordValidationError(ValueError):
    def __init__(self, error: dict):
        super().__init__(error.get("message", "invalid record"))
        self.error = error


def new_id(prefix: str) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _unwrap(result: Either) -> Any:
    if result.is_left():
        raise RecordValidationError(result.get_error())
    return result.get_or_else(None)


def expense_to_row(e: Expense) -> dict:
    return {
        "id": e.id, "userId": e.user_id, "date": e.date, "amount": e.amount,
        "category": e.category, "description": e.description.replace(",", " "),
        "type": e.type, "createdAt": e.created_at,
    }


def income_to_row(i: Income) -> dict:
    return {
        "id": i.id, "userId": i.user_id, "date": i.date, "amount": i.amount,
        "source": i.source.value, "description": i.description.replace(",", " "),
    }


def _merge(row: dict, changes: Mapping[str, Any]) -> dict:
    # accept snake_case change keys for the camelCase columns
    aliases = {"user_id": "userId", "created_at": "createdAt"}
    merged = dict(row)
    for k, v in changes.items():
        if k in ("id", "type"):
            continue
        merged[aliases.get(k, k)] = v.value if isinstance(v, IncomeSource) else v
    return merged


class RecordStore(ABC):

    @abstractmethod
    def list_expenses(self, user_id: Optional[str] = None) -> Tuple[Expense, ...]:
        pass

    @abstractmethod
    def add_expense(self, amount: float, date: str, category: str,
                    description: str = "", user_id: str = "") -> Expense:
        pass

    @abstractmethod
    def update_expense(self, expense_id: str, **changes: Any) -> Optional[Expense]:
        pass

    @abstractmethod
    def delete_expense(self, expense_id: str) -> bool:
        pass

    @abstractmethod
    def list_income(self, user_id: Optional[str] = None) -> Tuple[Income, ...]:
        pass

    @abstractmethod
    def add_income(self, amount: float, date: str, source: Any,
                   description: str = "", user_id: str = "") -> Income:
        pass

    @abstractmethod
    def update_income(self, income_id: str, **changes: Any) -> Optional[Income]:
        pass

    @abstractmethod
    def delete_income(self, income_id: str) -> bool:
        pass


class InMemoryStore(RecordStore):
    """Process-local store. Each write swaps in a new tuple."""

    def __init__(self, expenses: Tuple[Expense, ...] = (), income: Tuple[Income, ...] = ()):
        self._expenses = tuple(expenses)
        self._income = tuple(income)

    @classmethod
    def from_seed(cls, path: str) -> "InMemoryStore":
        expenses, income = load_seed(path)
        return cls(expenses, income)

    def list_expenses(self, user_id=None):
        return for_user(self._expenses, user_id)

    def add_expense(self, amount, date, category, description="", user_id=""):
        e = _unwrap(parse_expense_row({
            "id": new_id("exp"), "amount": amount, "date": date, "category": category,
            "description": description, "user_id": user_id, "created_at": _now_iso(),
        }))
        self._expenses = add_record(self._expenses, e)
        return e

    def update_expense(self, expense_id, **changes):
        current = find_record(self._expenses, expense_id)
        if current is None:
            return None
        updated = _unwrap(parse_expense_row(_merge(expense_to_row(current), changes)))
        self._expenses = update_record(self._expenses, expense_id, asdict(updated))
        return updated

    def delete_expense(self, expense_id):
        before = len(self._expenses)
        self._expenses = remove_records(self._expenses, {expense_id})
        return len(self._expenses) < before

    def list_income(self, user_id=None):
        return for_user(self._income, user_id)

    def add_income(self, amount, date, source, description="", user_id=""):
        i = _unwrap(parse_income_row({
            "id": new_id("inc"), "amount": amount, "date": date, "source": source,
            "description": description, "user_id": user_id,
        }))
        self._income = add_record(self._income, i)
        return i

    def update_income(self, income_id, **changes):
        current = find_record(self._income, income_id)
        if current is None:
            return None
        updated = _unwrap(parse_income_row(_merge(income_to_row(current), changes)))
        self._income = update_record(self._income, income_id, asdict(updated))
        return updated

    def delete_income(self, income_id):
        before = len(self._income)
        self._income = remove_records(self._income, {income_id})
        return len(self._income) < before


class CsvTable:
    """One flat CSV file with a fixed column order, one record per line."""

    def __init__(self, path: Path, columns: list, parse: Callable[[Mapping[str, Any]], Either],
                 to_row: Callable[[Any], dict]):
        self.path = Path(path)
        self.columns = columns
        self.parse = parse
        self.to_row = to_row

    def _read_frame(self) -> pd.DataFrame:
        if not self.path.exists():
            return pd.DataFrame(columns=self.columns)
        try:
            return pd.read_csv(self.path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=self.columns)

    def read(self) -> tuple:
        try:
            frame = self._read_frame()
        except (OSError, pd.errors.ParserError) as e:
            # a failed fetch is "no data" to the aggregation layer
            log.error("Failed to read %s: %s", self.path, e)
            return ()
        records = []
        for row in frame.to_dict("records"):
            result = self.parse(row)
            if result.is_left():
                log.warning("Rejecting row %r in %s: %s", row.get("id"), self.path.name,
                            result.get_error()["message"])
                continue
            records.append(result.get_or_else(None))
        return tuple(records)

    def append(self, record) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not self.path.exists() or self.path.stat().st_size == 0
        pd.DataFrame([self.to_row(record)], columns=self.columns).to_csv(
            self.path, mode="a", header=write_header, index=False
        )

    def rewrite(self, records: tuple) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame([self.to_row(r) for r in records], columns=self.columns).to_csv(self.path, index=False)


class CsvStore(RecordStore):
    def __init__(self, data_dir: Path):
        data_dir = Path(data_dir)
        self.expenses = CsvTable(data_dir / "expenses.csv", EXPENSE_COLUMNS, parse_expense_row, expense_to_row)
        self.income = CsvTable(data_dir / "income.csv", INCOME_COLUMNS, parse_income_row, income_to_row)

    def list_expenses(self, user_id=None):
        return for_user(self.expenses.read(), user_id)

    def add_expense(self, amount, date, category, description="", user_id=""):
        e = _unwrap(parse_expense_row({
            "id": new_id("exp"), "amount": amount, "date": date, "category": category,
            "description": str(description or "").replace(",", " "), "user_id": user_id,
            "created_at": _now_iso(),
        }))
        self.expenses.append(e)
        log.info("Added expense %s (%s %.2f)", e.id, e.category, e.amount)
        return e

    def _update(self, table: CsvTable, rid: str, changes: Mapping[str, Any]):
        records = table.read()
        current = find_record(records, rid)
        if current is None:
            return None
        updated = _unwrap(table.parse(_merge(table.to_row(current), changes)))
        table.rewrite(update_record(records, rid, asdict(updated)))
        return updated

    def _delete(self, table: CsvTable, rid: str) -> bool:
        records = table.read()
        remaining = remove_records(records, {rid})
        if len(remaining) == len(records):
            return False
        table.rewrite(remaining)
        log.info("Deleted %s from %s", rid, table.path.name)
        return True

    def update_expense(self, expense_id, **changes):
        return self._update(self.expenses, expense_id, changes)

    def delete_expense(self, expense_id):
        return self._delete(self.expenses, expense_id)

    def list_income(self, user_id=None):
        return for_user(self.income.read(), user_id)

    def add_income(self, amount, date, source, description="", user_id=""):
        i = _unwrap(parse_income_row({
            "id": new_id("inc"), "amount": amount, "date": date, "source": source,
            "description": str(description or "").replace(",", " "), "user_id": user_id,
        }))
        self.income.append(i)
        log.info("Added income %s (%s %.2f)", i.id, i.source.value, i.amount)
        return i

    def update_income(self, income_id, **changes):
        return self._update(self.income, income_id, changes)

    def delete_income(self, income_id):
        return self._delete(self.income, income_id)
