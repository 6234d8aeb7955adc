import json
import logging
from dataclasses import replace
from functools import reduce
from typing import Any, Callable, Mapping, Optional, Tuple, TypeVar

from tracker.domain import Expense, Income
from tracker.functional import Either, parse_expense_row, parse_income_row

log = logging.getLogger(__name__)

R = TypeVar("R", Expense, Income)


def _parse_all(rows: list, parse: Callable[[Mapping[str, Any]], Either]) -> Tuple:
    def step(acc: Tuple, row: Mapping[str, Any]) -> Tuple:
        result = parse(row)
        if result.is_left():
            log.warning("Skipping seed row %r: %s", row.get("id"), result.get_error()["message"])
            return acc
        return acc + (result.get_or_else(None),)

    return reduce(step, rows, ())


def load_seed(path: str) -> Tuple[Tuple[Expense, ...], Tuple[Income, ...]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    expenses = _parse_all(data.get("expenses", []), parse_expense_row)
    income = _parse_all(data.get("income", []), parse_income_row)
    log.debug("Loaded %d expenses and %d income entries from %s", len(expenses), len(income), path)
    return expenses, income


def add_record(records: Tuple[R, ...], r: R) -> Tuple[R, ...]:
    return records + (r,)


def find_record(records: Tuple[R, ...], rid: str) -> Optional[R]:
    return next((r for r in records if r.id == rid), None)


def update_record(records: Tuple[R, ...], rid: str, changes: Mapping[str, Any]) -> Tuple[R, ...]:
    # id and type are identity, never rewritten
    allowed = {k: v for k, v in changes.items() if k not in ("id", "type")}
    return tuple(replace(r, **allowed) if r.id == rid else r for r in records)


def remove_records(records: Tuple[R, ...], ids: set) -> Tuple[R, ...]:
    return tuple(filter(lambda r: r.id not in ids, records))


def for_user(records: Tuple[R, ...], user_id: Optional[str]) -> Tuple[R, ...]:
    if not user_id:
        return records
    return tuple(filter(lambda r: r.user_id == user_id, records))
