import pytest

from budgetwise.models.transaction import normalize_transactions
from budgetwise.utils.analytics import (
    aggregate_category_breakdown,
    aggregate_lifetime_totals,
    aggregate_monthly_trends,
    compute_category_trends,
    compute_insights,
    top_spending_transactions,
)

sample_transactions = normalize_transactions([
    {"amount": 100, "type": "income", "date": "2024-01-15", "category": "Salary"},
    {"amount": 40, "type": "expense", "date": "2024-01-20", "category": "Food"},
    {"amount": 60, "type": "expense", "date": "2024-02-05", "category": "Food"},
])


def _two_years_of_spending():
    records = []
    for month in range(1, 13):
        records.append({"amount": 100, "type": "expense", "date": f"2022-{month:02d}-10", "category": "Rent"})
    for month in range(1, 13):
        amount = 100 if month <= 6 else 150
        records.append({"amount": amount, "type": "expense", "date": f"2023-{month:02d}-10", "category": "Rent"})
    return normalize_transactions(records)


def test_lifetime_totals_example():
    totals = aggregate_lifetime_totals(sample_transactions)
    assert totals.total_income == 100
    assert totals.total_expense == 100
    assert totals.total_savings == 0
    assert totals.avg_monthly_income == 50
    assert totals.avg_monthly_expense == 50
    assert totals.best_saving_month == "2024-01"
    assert totals.worst_spending_month == "2024-02"
    assert totals.monthly["2024-01"].income == 100
    assert totals.monthly["2024-01"].expense == 40


def test_lifetime_totals_partition_and_savings_identity():
    transactions = normalize_transactions([
        {"amount": 10, "type": "Income", "date": "2024-03-01"},
        {"amount": 5, "type": "transfer", "date": "2024-03-02"},
        {"amount": 7.5, "date": "2024-04-01"},
        {"amount": "2.5", "type": "INCOME"},
    ])
    totals = aggregate_lifetime_totals(transactions)
    assert totals.total_income + totals.total_expense == pytest.approx(25)
    assert totals.total_income == pytest.approx(12.5)
    assert totals.total_expense == pytest.approx(12.5)
    assert totals.total_savings == totals.total_income - totals.total_expense


def test_lifetime_totals_undated_records_only_count_in_totals():
    transactions = normalize_transactions([
        {"amount": 30, "type": "expense", "date": "not a date", "category": "Misc"},
        {"amount": 20, "type": "expense", "date": "2024-05-01", "category": "Misc"},
        {"amount": 10, "type": "expense", "category": "Misc"},
    ])
    totals = aggregate_lifetime_totals(transactions)
    assert totals.total_expense == 60
    assert list(totals.monthly) == ["2024-05"]
    assert totals.avg_monthly_expense == 60


def test_lifetime_totals_empty():
    totals = aggregate_lifetime_totals([])
    assert totals.total_income == 0
    assert totals.total_expense == 0
    assert totals.total_savings == 0
    assert totals.avg_monthly_income == 0
    assert totals.best_saving_month is None
    assert totals.worst_spending_month is None
    assert totals.monthly == {}


def test_best_and_worst_month_ties_go_to_earliest_month():
    transactions = normalize_transactions([
        {"amount": 50, "type": "income", "date": "2024-02-01"},
        {"amount": 40, "type": "expense", "date": "2024-02-02"},
        {"amount": 50, "type": "income", "date": "2024-01-01"},
        {"amount": 40, "type": "expense", "date": "2024-01-02"},
    ])
    totals = aggregate_lifetime_totals(transactions)
    assert totals.best_saving_month == "2024-01"
    assert totals.worst_spending_month == "2024-01"


def test_category_breakdown_example():
    breakdown = aggregate_category_breakdown(sample_transactions)
    assert breakdown.total_expense == 100
    assert len(breakdown.categories) == 1
    food = breakdown.categories[0]
    assert food.category == "Food"
    assert food.total == 100
    assert food.percent == 100
    assert food.avg_monthly == 50


def test_category_breakdown_sorted_and_percentages_sum_to_100():
    transactions = normalize_transactions([
        {"amount": 20, "type": "expense", "date": "2024-01-01", "category": {"_id": "c1", "name": "Food"}},
        {"amount": 50, "type": "expense", "date": "2024-01-02", "category": "Rent"},
        {"amount": 30, "type": "other", "date": "2024-02-02"},
        {"amount": 1000, "type": "income", "date": "2024-03-02", "category": "Salary"},
    ])
    breakdown = aggregate_category_breakdown(transactions)
    names = [share.category for share in breakdown.categories]
    assert names == ["Rent", "Uncategorized", "Food"]
    assert sum(share.percent for share in breakdown.categories) == pytest.approx(100)
    # Global month count includes the income-only month
    assert breakdown.categories[0].avg_monthly == pytest.approx(50 / 3)


def test_category_breakdown_zero_expense():
    transactions = normalize_transactions([
        {"amount": 0, "type": "expense", "date": "2024-01-01", "category": "Food"},
    ])
    breakdown = aggregate_category_breakdown(transactions)
    assert breakdown.total_expense == 0
    assert sum(share.percent for share in breakdown.categories) == 0
    assert aggregate_category_breakdown([]).categories == []


def test_monthly_trends_example():
    series = aggregate_monthly_trends(sample_transactions)
    assert [point.to_dict() for point in series] == [
        {"month": "2024-01", "income": 100, "expense": 40, "savings": 60},
        {"month": "2024-02", "income": 0, "expense": 60, "savings": -60},
    ]


def test_monthly_trends_sorted_without_gap_filling():
    transactions = normalize_transactions([
        {"amount": 5, "type": "expense", "date": "2024-06-01"},
        {"amount": 5, "type": "expense", "date": "2023-12-01"},
        {"amount": 5, "type": "expense", "date": "2024-01-01"},
    ])
    series = aggregate_monthly_trends(transactions)
    assert [point.month for point in series] == ["2023-12", "2024-01", "2024-06"]
    assert all(point.savings == point.income - point.expense for point in series)
    assert aggregate_monthly_trends([]) == []


def test_category_trends_alignment_and_limit():
    transactions = normalize_transactions([
        {"amount": 100, "type": "expense", "date": "2024-01-05", "category": "Food"},
        {"amount": 150, "type": "expense", "date": "2024-02-05", "category": "Food"},
        {"amount": 500, "type": "expense", "date": "2024-01-01", "category": "Rent"},
        {"amount": 500, "type": "expense", "date": "2024-02-01", "category": "Rent"},
        {"amount": 20, "type": "expense", "date": "2024-02-11", "category": "Fun"},
        {"amount": 2000, "type": "income", "date": "2024-03-01", "category": "Salary"},
    ])
    trends = compute_category_trends(transactions)
    assert [trend.category for trend in trends] == ["Rent", "Food", "Fun"]
    for trend in trends:
        assert trend.months == ["2024-01", "2024-02", "2024-03"]
        assert len(trend.values) == len(trend.months)

    food = trends[1]
    assert food.values == [100, 150, 0]
    assert food.pct_change == pytest.approx(-100)
    # First value of the window is zero
    assert trends[2].pct_change is None

    assert len(compute_category_trends(transactions, major_n=1)) == 1


def test_category_trends_pct_change_uses_trailing_six_months():
    records = [
        {"amount": amount, "type": "expense", "date": f"2024-{month:02d}-01", "category": "Food"}
        for month, amount in zip(range(1, 9), [10, 20, 50, 60, 70, 80, 90, 100])
    ]
    trends = compute_category_trends(normalize_transactions(records))
    # Window is Mar..Aug: 50 -> 100
    assert trends[0].pct_change == pytest.approx(100)


def test_category_trends_single_month_has_no_change():
    transactions = normalize_transactions([
        {"amount": 10, "type": "expense", "date": "2024-01-05", "category": "Food"},
    ])
    trends = compute_category_trends(transactions)
    assert trends[0].pct_change is None
    assert compute_category_trends([]) == []


def test_insights_empty():
    assert compute_insights([]).to_dict() == {
        "spending_growth_pct": 0,
        "savings_ratio": None,
        "biggest_category": None,
        "biggest_category_amount": None,
        "yoy_change_pct": 0,
    }


def test_insights_growth_and_year_over_year():
    insights = compute_insights(_two_years_of_spending())
    # Last six months 900 against the previous six 600
    assert insights.spending_growth_pct == pytest.approx(50)
    # 2023 total 1500 against 2022 total 1200
    assert insights.yoy_change_pct == pytest.approx(25)
    assert insights.savings_ratio is None
    assert insights.biggest_category == "Rent"
    assert insights.biggest_category_amount == 2700


def test_insights_short_history_divides_by_one():
    insights = compute_insights(sample_transactions)
    assert insights.spending_growth_pct == pytest.approx(10000)
    assert insights.yoy_change_pct == pytest.approx(10000)
    assert insights.savings_ratio == 0
    assert insights.biggest_category == "Food"
    assert insights.biggest_category_amount == 100


def test_top_spending_transactions_excludes_income():
    transactions = normalize_transactions([
        {"amount": 5000, "type": "income", "date": "2024-01-01"},
        {"amount": 50, "type": "expense", "date": "2024-01-02"},
        {"amount": 75, "type": "expense", "date": "2024-01-03"},
    ])
    top = top_spending_transactions(transactions)
    assert [t.amount for t in top] == [75, 50]
    assert top_spending_transactions(transactions, limit=1)[0].amount == 75
    assert top_spending_transactions([]) == []


def test_top_spending_transactions_is_stable_on_ties():
    transactions = normalize_transactions([
        {"id": "a", "amount": 10, "type": "expense"},
        {"id": "b", "amount": 10, "type": "expense"},
        {"id": "c", "amount": 20, "type": "expense"},
    ])
    assert [t.id for t in top_spending_transactions(transactions)] == ["c", "a", "b"]
