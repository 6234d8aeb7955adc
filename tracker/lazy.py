from typing import Callable, Iterable, Iterator, Mapping, TypeVar

from tracker.domain import CategoryAmount, Expense

R = TypeVar("R")


def iter_records(records: Iterable[R], pred: Callable[[R], bool]) -> Iterator[R]:
    for r in records:
        if pred(r):
            yield r


def rank_totals(totals: Mapping[str, float], k: int) -> Iterator[CategoryAmount]:
    """Yield the k largest entries of a name->amount mapping, largest first.

    Equal amounts keep the mapping's insertion order.
    """
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    for name, amount in ordered[: max(0, k)]:
        yield CategoryAmount(name=name, amount=amount)


def lazy_top_categories(expenses: Iterable[Expense], k: int) -> Iterator[CategoryAmount]:
    totals: dict[str, float] = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, 0) + e.amount
    yield from rank_totals(totals, k)
