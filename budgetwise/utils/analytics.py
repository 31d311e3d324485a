"""
Transaction analytics used by the dashboard and insights views.

Every function here is pure: it reads a list of normalized transactions and
derives summary figures without raising, treating an empty list as a valid
zero state.
"""
from __future__ import annotations

import datetime as dt
import math
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from budgetwise.models.transaction import Transaction

# Trailing windows (in month buckets) used by the insight summary
GROWTH_WINDOW = 6
YEAR_WINDOW = 12
TREND_WINDOW = 6


def month_key(value: Optional[dt.date]) -> Optional[str]:
    """Format a date as a YYYY-MM bucket key."""
    if value is None:
        return None
    return f"{value.year:04d}-{value.month:02d}"


def distinct_month_count(transactions: Sequence[Transaction]) -> int:
    """Number of distinct dated months, floored at 1 so it is always a safe divisor."""
    months = {t.month_key for t in transactions if t.month_key is not None}
    return max(1, len(months))


@dataclass
class MonthTotals:
    income: float = 0.0
    expense: float = 0.0

    @property
    def savings(self) -> float:
        return self.income - self.expense


@dataclass
class LifetimeTotals:
    total_income: float
    total_expense: float
    total_savings: float
    avg_monthly_income: float
    avg_monthly_expense: float
    best_saving_month: Optional[str]
    worst_spending_month: Optional[str]
    monthly: Dict[str, MonthTotals] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CategoryShare:
    category: str
    total: float
    percent: float
    avg_monthly: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CategoryBreakdown:
    categories: List[CategoryShare]
    total_expense: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MonthlyTrendPoint:
    month: str
    income: float
    expense: float
    savings: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CategoryTrend:
    category: str
    months: List[str]
    values: List[float]
    pct_change: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Insights:
    spending_growth_pct: float
    savings_ratio: Optional[float]
    biggest_category: Optional[str]
    biggest_category_amount: Optional[float]
    yoy_change_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def group_by_month(transactions: Sequence[Transaction]) -> Dict[str, MonthTotals]:
    """Sum income and expense per month; undated transactions are left out."""
    monthly: Dict[str, MonthTotals] = {}
    for t in transactions:
        key = t.month_key
        if key is None:
            continue
        bucket = monthly.setdefault(key, MonthTotals())
        if t.is_income:
            bucket.income += t.amount
        else:
            bucket.expense += t.amount
    return monthly


def aggregate_lifetime_totals(transactions: Sequence[Transaction]) -> LifetimeTotals:
    total_income = 0.0
    total_expense = 0.0
    for t in transactions:
        if t.is_income:
            total_income += t.amount
        else:
            total_expense += t.amount

    monthly = group_by_month(transactions)
    month_count = max(1, len(monthly))

    # Strict comparison over ascending keys: on ties the earliest month wins.
    best_saving_month: Optional[str] = None
    worst_spending_month: Optional[str] = None
    for key in sorted(monthly):
        totals = monthly[key]
        if best_saving_month is None or totals.savings > monthly[best_saving_month].savings:
            best_saving_month = key
        if worst_spending_month is None or totals.expense > monthly[worst_spending_month].expense:
            worst_spending_month = key

    return LifetimeTotals(
        total_income=total_income,
        total_expense=total_expense,
        total_savings=total_income - total_expense,
        avg_monthly_income=total_income / month_count,
        avg_monthly_expense=total_expense / month_count,
        best_saving_month=best_saving_month,
        worst_spending_month=worst_spending_month,
        monthly=monthly,
    )


def aggregate_category_breakdown(transactions: Sequence[Transaction]) -> CategoryBreakdown:
    """Expense totals per category name with their share and monthly rate."""
    totals: Dict[str, float] = defaultdict(float)
    total_expense = 0.0
    for t in transactions:
        if t.is_income:
            continue
        total_expense += t.amount
        totals[t.category.name] += t.amount

    # Global month count keeps categories comparable with each other
    month_count = distinct_month_count(transactions)

    categories = [
        CategoryShare(
            category=name,
            total=total,
            percent=(total / total_expense) * 100 if total_expense > 0 else 0.0,
            avg_monthly=total / month_count,
        )
        for name, total in totals.items()
    ]
    categories.sort(key=lambda share: share.total, reverse=True)
    return CategoryBreakdown(categories=categories, total_expense=total_expense)


def aggregate_monthly_trends(transactions: Sequence[Transaction]) -> List[MonthlyTrendPoint]:
    """Ascending month series; months without activity are not filled in."""
    monthly = group_by_month(transactions)
    return [
        MonthlyTrendPoint(
            month=key,
            income=monthly[key].income,
            expense=monthly[key].expense,
            savings=monthly[key].savings,
        )
        for key in sorted(monthly)
    ]


def category_month_matrix(
    transactions: Sequence[Transaction],
) -> Tuple[List[str], Dict[str, Dict[str, float]]]:
    """
    Returns the ascending month axis (every dated month, income included) and a
    category -> month -> expense map.
    """
    months = set()
    matrix: Dict[str, Dict[str, float]] = {}
    for t in transactions:
        key = t.month_key
        if key is None:
            continue
        months.add(key)
        if t.is_income:
            continue
        by_month = matrix.setdefault(t.category.name, {})
        by_month[key] = by_month.get(key, 0.0) + t.amount
    return sorted(months), matrix


def _trailing_pct_change(values: Sequence[float], window: int = TREND_WINDOW) -> Optional[float]:
    trailing = list(values[-window:])
    if len(trailing) < 2 or trailing[0] <= 0:
        return None
    return ((trailing[-1] - trailing[0]) / trailing[0]) * 100


def compute_category_trends(
    transactions: Sequence[Transaction],
    major_n: int = 8,
) -> List[CategoryTrend]:
    """Month-aligned expense series for the `major_n` biggest categories."""
    months, matrix = category_month_matrix(transactions)

    ranked = sorted(
        ((name, sum(by_month.values())) for name, by_month in matrix.items()),
        key=lambda item: item[1],
        reverse=True,
    )
    majors = [name for name, _ in ranked[: max(major_n, 0)]]

    trends = []
    for name in majors:
        values = [matrix[name].get(month, 0.0) for month in months]
        trends.append(
            CategoryTrend(
                category=name,
                months=list(months),
                values=values,
                pct_change=_trailing_pct_change(values),
            )
        )
    return trends


def _sum_expense(points: Sequence[MonthlyTrendPoint]) -> float:
    return sum(point.expense for point in points)


def _growth_pct(current: float, previous: float) -> float:
    # An empty comparison window divides by 1 rather than 0
    denominator = previous or 1
    growth = ((current - previous) / denominator) * 100
    return growth if math.isfinite(growth) else 0.0


def compute_insights(transactions: Sequence[Transaction]) -> Insights:
    lifetime = aggregate_lifetime_totals(transactions)
    breakdown = aggregate_category_breakdown(transactions)
    monthly = aggregate_monthly_trends(transactions)

    last12 = monthly[-YEAR_WINDOW:]
    last6 = last12[-GROWTH_WINDOW:]
    prev6 = last12[: max(0, len(last12) - GROWTH_WINDOW)]
    spending_growth_pct = _growth_pct(_sum_expense(last6), _sum_expense(prev6))

    # Approximation: trailing 12 buckets against the 12 before them
    count = len(monthly)
    prev12 = monthly[max(0, count - 2 * YEAR_WINDOW) : max(0, count - YEAR_WINDOW)]
    yoy_change_pct = _growth_pct(_sum_expense(last12), _sum_expense(prev12))

    savings_ratio: Optional[float] = None
    if lifetime.total_income > 0:
        savings_ratio = (lifetime.total_savings / lifetime.total_income) * 100
        if not math.isfinite(savings_ratio):
            savings_ratio = None

    biggest = breakdown.categories[0] if breakdown.categories else None

    return Insights(
        spending_growth_pct=spending_growth_pct,
        savings_ratio=savings_ratio,
        biggest_category=biggest.category if biggest else None,
        biggest_category_amount=biggest.total if biggest else None,
        yoy_change_pct=yoy_change_pct,
    )


def top_spending_transactions(
    transactions: Sequence[Transaction],
    limit: int = 10,
) -> List[Transaction]:
    expenses = [t for t in transactions if not t.is_income]
    expenses.sort(key=lambda t: t.amount, reverse=True)
    return expenses[: max(limit, 0)]
