import pytest

from tracker.config import load_settings
from tracker.domain import Expense, IncomeSource
from tracker.storage import CsvStore, InMemoryStore, RecordValidationError
from tracker.transforms import add_record, load_seed, remove_records, update_record


def test_load_seed():
    expenses, income = load_seed(str(load_settings({}).seed_path))
    assert len(expenses) >= 10
    assert len(income) == 8
    assert all(i.source in IncomeSource for i in income)


def test_tuple_transforms_are_immutable():
    e1 = Expense("1", 10.0, "2026-01-01", "Rent")
    e2 = Expense("2", 20.0, "2026-01-02", "Dining")
    records = (e1,)
    added = add_record(records, e2)
    assert len(added) == 2 and len(records) == 1

    updated = update_record(added, "2", {"amount": 25.0, "id": "ignored"})
    assert updated[1].amount == 25.0
    assert updated[1].id == "2"
    assert added[1].amount == 20.0

    assert remove_records(updated, {"1"}) == (updated[1],)


def test_in_memory_store_crud():
    store = InMemoryStore()
    e = store.add_expense(12.5, "2026-02-01", "Dining", "Lunch")
    assert e.id.startswith("exp_")
    assert e.created_at
    assert store.list_expenses() == (e,)

    changed = store.update_expense(e.id, amount=15, category="Groceries")
    assert changed.amount == 15.0
    assert changed.category == "Groceries"
    assert changed.id == e.id
    assert store.list_expenses() == (changed,)

    assert store.delete_expense(e.id) is True
    assert store.delete_expense(e.id) is False
    assert store.list_expenses() == ()


def test_in_memory_store_rejects_invalid_records():
    store = InMemoryStore()
    with pytest.raises(RecordValidationError) as info:
        store.add_expense(-5, "2026-02-01", "Dining")
    assert info.value.error["error"] == "invalid_amount"

    e = store.add_expense(5, "2026-02-01", "Dining")
    with pytest.raises(RecordValidationError):
        store.update_expense(e.id, date="not-a-date")
    assert store.list_expenses()[0].date == "2026-02-01"


def test_in_memory_store_unknown_ids():
    store = InMemoryStore()
    assert store.update_expense("missing", amount=1) is None
    assert store.update_income("missing", amount=1) is None
    assert store.delete_income("missing") is False


def test_in_memory_income_and_user_scope():
    store = InMemoryStore()
    mine = store.add_income(100, "2026-02-01", "Salary", user_id="u1")
    store.add_income(50, "2026-02-02", IncomeSource.OTHER, user_id="u2")
    assert store.list_income("u1") == (mine,)
    assert len(store.list_income()) == 2

    updated = store.update_income(mine.id, source=IncomeSource.FREELANCE)
    assert updated.source is IncomeSource.FREELANCE

    with pytest.raises(RecordValidationError):
        store.add_income(10, "2026-02-01", "Lottery")


def test_csv_store_round_trip(tmp_path):
    store = CsvStore(tmp_path)
    e = store.add_expense(42.0, "2026-02-01", "Dining", "Pizza, beer", user_id="u1")
    store.add_expense(10.0, "2026-02-02", "Rent", user_id="u2")
    i = store.add_income(5000, "2026-02-01", "Salary", "Pay", user_id="u1")

    header = (tmp_path / "expenses.csv").read_text().splitlines()[0]
    assert header == "id,userId,date,amount,category,description,type,createdAt"

    reloaded = CsvStore(tmp_path)
    mine = reloaded.list_expenses("u1")
    assert [x.id for x in mine] == [e.id]
    assert mine[0].description == "Pizza  beer"
    assert mine[0].amount == 42.0
    assert reloaded.list_income("u1")[0].source is IncomeSource.SALARY
    assert reloaded.list_income("u1")[0].id == i.id


def test_csv_store_update_and_delete(tmp_path):
    store = CsvStore(tmp_path)
    e = store.add_expense(42.0, "2026-02-01", "Dining")
    other = store.add_expense(8.0, "2026-02-03", "Groceries")

    updated = store.update_expense(e.id, amount=50)
    assert updated.amount == 50.0
    assert {x.id: x.amount for x in store.list_expenses()} == {e.id: 50.0, other.id: 8.0}

    assert store.delete_expense(e.id) is True
    assert [x.id for x in store.list_expenses()] == [other.id]
    assert store.delete_expense("nope") is False
    assert store.update_expense("nope", amount=1) is None


def test_csv_store_missing_files_are_empty(tmp_path):
    store = CsvStore(tmp_path / "nothing-here")
    assert store.list_expenses() == ()
    assert store.list_income() == ()


def test_csv_store_rejects_malformed_rows(tmp_path):
    (tmp_path / "expenses.csv").write_text(
        "id,userId,date,amount,category,description,type,createdAt\n"
        "exp_1,u1,2026-02-01,12.50,Dining,Lunch,expense,2026-02-01T00:00:00Z\n"
        "exp_2,u1,2026-13-01,5,Dining,Bad month,expense,\n"
        "exp_3,u1,2026-02-02,abc,Dining,Bad amount,expense,\n"
        "exp_4,u1,2026-02-03,7,,No category,expense,\n"
    )
    records = CsvStore(tmp_path).list_expenses()
    assert [r.id for r in records] == ["exp_1"]
