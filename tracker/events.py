import logging
from typing import Callable, Dict, List, NamedTuple
from datetime import datetime

__all__ = [
    'event_bus', 'Event', 'EventBus', 'register_default_handlers',
    'EXPENSE_ADDED', 'EXPENSE_UPDATED', 'EXPENSE_DELETED',
    'INCOME_ADDED', 'INCOME_UPDATED', 'INCOME_DELETED', 'RECORD_EVENTS',
]

log = logging.getLogger(__name__)


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = list(self._subscribers.get(name, []))
        if not handlers:
            return []
        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in handlers]


EXPENSE_ADDED = "EXPENSE_ADDED"
EXPENSE_UPDATED = "EXPENSE_UPDATED"
EXPENSE_DELETED = "EXPENSE_DELETED"
INCOME_ADDED = "INCOME_ADDED"
INCOME_UPDATED = "INCOME_UPDATED"
INCOME_DELETED = "INCOME_DELETED"

RECORD_EVENTS = (
    EXPENSE_ADDED, EXPENSE_UPDATED, EXPENSE_DELETED,
    INCOME_ADDED, INCOME_UPDATED, INCOME_DELETED,
)


def log_change_handler(event: Event, payload: dict) -> dict:
    log.info("%s %s", event.name, payload.get("id", ""))
    return {"logged": event.name}


def negative_balance_handler(event: Event, payload: dict) -> dict:
    balance = payload.get("balance")
    if balance is not None and balance < 0:
        return {
            "alert": f"Balance is negative: {balance:,.2f}",
            "balance": balance,
        }
    return {}


def register_default_handlers(bus: "EventBus") -> None:
    for name in RECORD_EVENTS:
        bus.subscribe(name, log_change_handler)
    for name in (EXPENSE_ADDED, EXPENSE_UPDATED, INCOME_DELETED):
        bus.subscribe(name, negative_balance_handler)


event_bus = EventBus()
register_default_handlers(event_bus)
