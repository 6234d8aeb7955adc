import pytest

from tracker.aggregates import (
    balance_summary,
    daily_spending,
    group_by_date,
    group_by_week,
    monthly_breakdown,
    recent,
    spending_by_category,
    spending_trends,
    summarize,
    week_key,
    week_summaries,
)
from tracker.categories import FALLBACK_COLOR
from tracker.domain import CategoryAmount, Expense, Income, IncomeSource, Summary


def exp(id, amount, date, category, description=""):
    return Expense(id, amount, date, category, description)


def inc(id, amount, date, source=IncomeSource.SALARY, description=""):
    return Income(id, amount, date, source, description)


def test_summarize_empty_is_all_zero():
    s = summarize([])
    assert s == Summary(total=0, average=0, count=0, by_category={}, by_month={})


def test_summarize_totals_and_breakdowns():
    records = [
        exp("1", 100.0, "2026-02-01", "Rent"),
        exp("2", 50.0, "2026-02-03", "Dining"),
        exp("3", 30.0, "2026-01-20", "Dining"),
    ]
    s = summarize(records)
    assert s.total == 180.0
    assert s.count == 3
    assert s.average == pytest.approx(60.0)
    assert s.by_category == {"Rent": 100.0, "Dining": 80.0}
    assert list(s.by_category) == ["Rent", "Dining"]
    assert s.by_month == {"2026-02": 150.0, "2026-01": 30.0}


def test_summarize_income_groups_by_source():
    s = summarize([inc("1", 5000.0, "2026-02-01"), inc("2", 800.0, "2026-02-05", IncomeSource.FREELANCE)])
    assert s.by_category == {"Salary": 5000.0, "Freelance": 800.0}


def test_summary_is_additive_over_partitions():
    a = [exp("1", 10.1, "2026-01-01", "Rent"), exp("2", 20.2, "2026-01-02", "Dining")]
    b = [exp("3", 30.3, "2026-02-01", "Rent")]
    assert summarize(a).total + summarize(b).total == pytest.approx(summarize(a + b).total)


def test_balance_summary():
    b = balance_summary(
        [exp("1", 1500.0, "2026-02-01", "Rent")],
        [inc("1", 5000.0, "2026-02-01")],
    )
    assert b.total_income == 5000.0
    assert b.total_expenses == 1500.0
    assert b.balance == b.total_income - b.total_expenses
    assert b.savings_rate == pytest.approx(70.0)


def test_savings_rate_is_zero_without_income():
    b = balance_summary([exp("1", 10.0, "2026-02-01", "Rent")], [])
    assert b.savings_rate == 0
    assert b.balance == -10.0


def test_savings_rate_can_be_negative():
    b = balance_summary([exp("1", 150.0, "2026-02-01", "Rent")], [inc("1", 100.0, "2026-02-01")])
    assert b.savings_rate == pytest.approx(-50.0)


def test_spending_by_category_scenario():
    result = spending_by_category([
        exp("1", 100.0, "2026-02-01", "Rent"),
        exp("2", 50.0, "2026-02-01", "Dining"),
    ])
    assert [r.category for r in result] == ["Rent", "Dining"]
    assert result[0].amount == 100.0
    assert result[0].percentage == pytest.approx(66.67, abs=0.01)
    assert result[1].percentage == pytest.approx(33.33, abs=0.01)
    assert result[0].color == "#6366f1"
    assert result[1].color == "#f97316"


def test_spending_by_category_percentages_sum_to_100():
    result = spending_by_category([
        exp("1", 33.3, "2026-02-01", "Rent"),
        exp("2", 21.7, "2026-02-02", "Dining"),
        exp("3", 9.99, "2026-02-03", "Groceries"),
        exp("4", 1.01, "2026-02-04", "Dining"),
    ])
    assert sum(r.percentage for r in result) == pytest.approx(100.0)
    assert [r.amount for r in result] == sorted((r.amount for r in result), reverse=True)


def test_spending_by_category_unknown_category_gets_fallback_color():
    result = spending_by_category([exp("1", 5.0, "2026-02-01", "Pets")])
    assert result[0].color == FALLBACK_COLOR
    assert result[0].percentage == pytest.approx(100.0)


def test_spending_by_category_color_lookup_is_case_sensitive():
    result = spending_by_category([exp("1", 5.0, "2026-02-01", "rent")])
    assert result[0].color == FALLBACK_COLOR


def test_spending_by_category_empty():
    assert spending_by_category([]) == []


def test_spending_trends_scenario():
    points = spending_trends(
        [exp("1", 100.0, "2026-02-01", "Rent"), exp("2", 50.0, "2026-02-01", "Dining")],
        [inc("1", 5000.0, "2026-02-02")],
    )
    assert [(p.date, p.income, p.expenses, p.balance) for p in points] == [
        ("2026-02-01", 0, 150.0, -150.0),
        ("2026-02-02", 5000.0, 0, 5000.0),
    ]


def test_spending_trends_ascending_and_merged_same_day():
    points = spending_trends(
        [exp("1", 20.0, "2026-03-05", "Dining"), exp("2", 10.0, "2026-01-01", "Dining")],
        [inc("1", 100.0, "2026-03-05"), inc("2", 40.0, "2026-02-01")],
    )
    assert [p.date for p in points] == ["2026-01-01", "2026-02-01", "2026-03-05"]
    last = points[-1]
    assert (last.income, last.expenses, last.balance) == (100.0, 20.0, 80.0)


def make_three_months():
    expenses = [
        exp("1", 10.0, "2026-03-01", "Rent"),
        exp("2", 50.0, "2026-03-02", "Dining"),
        exp("3", 40.0, "2026-03-03", "Groceries"),
        exp("4", 30.0, "2026-03-04", "Shopping"),
        exp("5", 50.0, "2026-03-05", "Utilities"),
        exp("6", 70.0, "2026-02-10", "Rent"),
        exp("7", 5.0, "2026-01-10", "Dining"),
    ]
    income = [inc("1", 1000.0, "2026-03-01"), inc("2", 900.0, "2026-01-01")]
    return expenses, income


def test_monthly_breakdown_returns_most_recent_month_only():
    expenses, income = make_three_months()
    rows = monthly_breakdown(expenses, income, 1)
    assert len(rows) == 1
    march = rows[0]
    assert march.month == "2026-03"
    assert march.income == 1000.0
    assert march.expenses == 180.0
    assert march.savings == 820.0
    # ties keep first-seen order: Dining before Utilities
    assert march.top_categories == (
        CategoryAmount("Dining", 50.0),
        CategoryAmount("Utilities", 50.0),
        CategoryAmount("Groceries", 40.0),
    )


def test_monthly_breakdown_orders_months_descending():
    expenses, income = make_three_months()
    rows = monthly_breakdown(expenses, income)
    assert [r.month for r in rows] == ["2026-03", "2026-02", "2026-01"]
    feb = rows[1]
    assert feb.income == 0
    assert feb.savings == -70.0
    jan = rows[2]
    assert jan.top_categories == (CategoryAmount("Dining", 5.0),)


def test_monthly_breakdown_income_only_month_has_no_categories():
    rows = monthly_breakdown([], [inc("1", 10.0, "2026-04-01")])
    assert rows[0].top_categories == ()
    assert rows[0].expenses == 0


def test_monthly_breakdown_zero_months():
    expenses, income = make_three_months()
    assert monthly_breakdown(expenses, income, 0) == []


def test_daily_spending_sums_per_day():
    days = daily_spending(
        [
            exp("1", 10.0, "2026-02-03", "Dining"),
            exp("2", 5.0, "2026-02-03", "Groceries"),
            exp("3", 7.0, "2026-02-01", "Rent"),
            exp("4", 99.0, "2026-03-01", "Rent"),
        ],
        2026, 2,
    )
    assert [(d.day, d.amount) for d in days] == [(1, 7.0), (3, 15.0)]


def test_recent_takes_newest_first():
    records = [exp(str(i), 1.0, f"2026-01-{i:02d}", "Dining") for i in range(1, 9)]
    assert [r.id for r in recent(records, 3)] == ["8", "7", "6"]


def test_group_by_date_preserves_order():
    records = [exp("a", 1.0, "2026-01-02", "Rent"), exp("b", 2.0, "2026-01-01", "Rent"),
               exp("c", 3.0, "2026-01-02", "Dining")]
    grouped = group_by_date(records)
    assert list(grouped) == ["2026-01-02", "2026-01-01"]
    assert [e.id for e in grouped["2026-01-02"]] == ["a", "c"]


def test_week_key_weeks_start_on_sunday():
    # 2026-01-01 is a Thursday
    assert week_key("2026-01-01") == "2026-W01"
    assert week_key("2026-01-03") == "2026-W01"
    assert week_key("2026-01-04") == "2026-W02"
    assert week_key("2026-01-10") == "2026-W02"


def test_group_by_week_newest_week_first():
    records = [exp("a", 1.0, "2026-01-01", "Rent"), exp("b", 2.0, "2026-01-05", "Rent")]
    assert list(group_by_week(records)) == ["2026-W02", "2026-W01"]


def test_week_summaries():
    records = [
        exp("a", 10.0, "2026-01-04", "Dining"),
        exp("b", 30.0, "2026-01-05", "Rent"),
        exp("c", 5.0, "2026-01-06", "Dining"),
        exp("d", 1.0, "2026-01-01", "Rent"),
    ]
    weeks = week_summaries(records)
    assert weeks[0].week == "2026-W02"
    assert weeks[0].total == 45.0
    assert weeks[0].count == 3
    assert weeks[0].top_categories[0] == CategoryAmount("Rent", 30.0)
    assert weeks[1].count == 1
