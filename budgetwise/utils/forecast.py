"""
Next-month expense forecast based on each category's monthly history.
"""
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from budgetwise.models.transaction import Transaction

HISTORY_MONTHS = 6


@dataclass
class Forecast:
    by_category: Dict[str, float] = field(default_factory=dict)
    total: float = 0.0
    # Least-squares slope of each forecast category's history, per month
    trend: Dict[str, float] = field(default_factory=dict)
    # Plain mean of the trailing window, for comparison with the weighted figure
    rolling_average: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def weighted_moving_average(values: Sequence[float], window: int = 3) -> float:
    """
    Average of the trailing `window` values with recent months weighted more.
    Falls back to the plain mean when there is less history than the window.
    """
    if not values:
        return 0.0
    if len(values) < window:
        return sum(values) / len(values)

    recent = list(values[-window:])
    weight_sum = 0.0
    total = 0.0
    for index, value in enumerate(recent):
        weight = (index + 1.0) / len(recent)
        total += value * weight
        weight_sum += weight
    return total / weight_sum if weight_sum > 0 else 0.0


def linear_trend_slope(values: Sequence[float]) -> float:
    """Least-squares slope of the series against its index."""
    n = len(values)
    if n < 2:
        return 0.0

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for x, y in enumerate(values):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    return slope if math.isfinite(slope) else 0.0


def rolling_average(values: Sequence[float], window: int) -> float:
    if not values or window <= 0:
        return 0.0
    recent = list(values[-window:])
    return sum(recent) / len(recent)


def _months_back(month: str, count: int) -> str:
    year, mon = (int(part) for part in month.split("-"))
    index = year * 12 + (mon - 1) - count
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def expense_history(
    transactions: Sequence[Transaction],
    history_months: Optional[int] = None,
) -> Dict[str, List[float]]:
    """
    Per-category monthly expense series over the months that saw any expense.
    Only dated, positive, non-income amounts are counted.

    With `history_months`, only the calendar months up to that many back from
    the latest dated transaction are considered.
    """
    cutoff = None
    if history_months:
        latest = max((t.month_key for t in transactions if t.month_key), default=None)
        if latest is not None:
            cutoff = _months_back(latest, history_months - 1)

    by_month: Dict[str, Dict[str, float]] = {}
    for t in transactions:
        if t.is_income or t.month_key is None or t.amount <= 0:
            continue
        if cutoff is not None and t.month_key < cutoff:
            continue
        bucket = by_month.setdefault(t.month_key, {})
        bucket[t.category.name] = bucket.get(t.category.name, 0.0) + abs(t.amount)

    months = sorted(by_month)
    categories: List[str] = []
    for month in months:
        for name in by_month[month]:
            if name not in categories:
                categories.append(name)

    return {
        name: [by_month[month].get(name, 0.0) for month in months]
        for name in categories
    }


def forecast_next_month(
    transactions: Sequence[Transaction],
    window: int = 3,
    history_months: int = HISTORY_MONTHS,
) -> Forecast:
    forecast = Forecast()
    for name, history in expense_history(transactions, history_months).items():
        if len(history) < 2:
            continue
        forecast.by_category[name] = round(weighted_moving_average(history, window), 2)
        forecast.trend[name] = round(linear_trend_slope(history), 2)
        forecast.rolling_average[name] = round(rolling_average(history, window), 2)
    forecast.total = round(sum(forecast.by_category.values()), 2)
    return forecast
