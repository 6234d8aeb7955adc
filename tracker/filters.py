"""Filter engine: predicate factories and ``apply_filter``.

Every predicate is a closure over one criterion; ``apply_filter`` ANDs the
ones a filter asks for and returns the matches newest first.
"""
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, TypeVar

from tracker.domain import Expense, Income, RecordFilter
from tracker.lazy import iter_records

R = TypeVar("R", Expense, Income)
Predicate = Callable[[Any], bool]


def by_date_range(start: Optional[str], end: Optional[str]) -> Predicate:
    # ISO dates are zero padded, so string order is chronological order
    def _filter(r) -> bool:
        if start and r.date < start:
            return False
        if end and r.date > end:
            return False
        return True

    return _filter


def by_category(category: str) -> Predicate:
    wanted = category.lower()

    def _filter(r) -> bool:
        # income records carry a source, not a category
        if not isinstance(r, Expense):
            return True
        return r.category.lower() == wanted

    return _filter


def by_source(source: str) -> Predicate:
    wanted = source.lower()

    def _filter(r) -> bool:
        if not isinstance(r, Income):
            return True
        return r.source.value.lower() == wanted

    return _filter


def by_amount_range(min: Optional[float], max: Optional[float]) -> Predicate:
    def _filter(r) -> bool:
        if min is not None and r.amount < min:
            return False
        if max is not None and r.amount > max:
            return False
        return True

    return _filter


def by_search(query: str) -> Predicate:
    needle = query.lower()

    def _filter(r) -> bool:
        description = (getattr(r, "description", None) or "").lower()
        return needle in description or needle in r.label.lower()

    return _filter


def predicates_for(f: Optional[RecordFilter]) -> list[Predicate]:
    if f is None:
        return []
    preds: list[Predicate] = []
    if f.start_date or f.end_date:
        preds.append(by_date_range(f.start_date, f.end_date))
    if f.category:
        preds.append(by_category(f.category))
    if f.source:
        preds.append(by_source(f.source))
    if f.min_amount is not None or f.max_amount is not None:
        preds.append(by_amount_range(f.min_amount, f.max_amount))
    if f.search_query:
        preds.append(by_search(f.search_query))
    return preds


def sort_newest_first(records: Iterable[R]) -> tuple[R, ...]:
    # sorted() is stable, so same-day records keep their input order
    return tuple(sorted(records, key=lambda r: r.date, reverse=True))


def apply_filter(records: Sequence[R], f: Optional[RecordFilter] = None) -> tuple[R, ...]:
    preds = predicates_for(f)
    return sort_newest_first(iter_records(records, lambda r: all(p(r) for p in preds)))


# --- Building filters from loosely typed input (UI widgets, tool arguments)

_KEYS = {
    "start_date": ("start_date", "startDate"),
    "end_date": ("end_date", "endDate"),
    "category": ("category",),
    "source": ("source",),
    "min_amount": ("min_amount", "minAmount"),
    "max_amount": ("max_amount", "maxAmount"),
    "search_query": ("search_query", "searchQuery"),
}


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if number != number else number  # NaN


def filter_from_mapping(data: Optional[Mapping[str, Any]]) -> Optional[RecordFilter]:
    """Build a RecordFilter, accepting camelCase or snake_case keys.

    Blank or unparseable values are dropped rather than rejected, so a bad
    field just imposes no constraint.
    """
    if not data:
        return None
    values: dict[str, Any] = {}
    for name, keys in _KEYS.items():
        raw = next((data[k] for k in keys if data.get(k) is not None), None)
        parse = _number if name.endswith("_amount") else _text
        values[name] = parse(raw)
    if all(v is None for v in values.values()):
        return None
    return RecordFilter(**values)
