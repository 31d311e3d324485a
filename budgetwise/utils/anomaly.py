"""
Spending anomaly detection over per-category monthly history.

Two detectors are available: a z-score check on the latest month and a more
outlier-resistant modified z-score based on the median absolute deviation.
"""
import logging
import statistics
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Sequence

from budgetwise.models.transaction import Transaction
from budgetwise.utils.analytics import category_month_matrix

logger = logging.getLogger(__name__)

SPENDING_SPIKE = "spending_spike"
MAD_SCALE = 0.6745


@dataclass
class Alert:
    category: str
    message: str
    amount: float
    baseline: float
    kind: str = SPENDING_SPIKE
    created_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def category_history(transactions: Sequence[Transaction]) -> Dict[str, List[float]]:
    """Monthly expense series per category, aligned on every dated month."""
    months, matrix = category_month_matrix(transactions)
    return {
        name: [by_month.get(month, 0.0) for month in months]
        for name, by_month in matrix.items()
    }


def z_score(values: Sequence[float], value: float) -> float:
    if len(values) < 2:
        return 0.0
    mean = statistics.fmean(values)
    stdev = statistics.pstdev(values)
    return (value - mean) / stdev if stdev > 0 else 0.0


def detect_anomalies(
    history: Mapping[str, Sequence[float]],
    threshold: float = 2.0,
) -> List[Alert]:
    """Flag categories whose latest month sits more than `threshold` deviations from the mean."""
    alerts: List[Alert] = []
    for category, values in history.items():
        if len(values) < 2:
            continue

        last_value = values[-1]
        score = z_score(values, last_value)
        if abs(score) > threshold:
            mean = statistics.fmean(values)
            alerts.append(
                Alert(
                    category=category,
                    message=(
                        f"Unusual {category} spending detected: {last_value:.2f} "
                        f"(avg: {mean:.2f}, z-score: {score:.2f})"
                    ),
                    amount=last_value,
                    baseline=mean,
                )
            )
    logger.debug(f"z-score detector raised {len(alerts)} alerts")
    return alerts


def detect_anomalies_mad(
    history: Mapping[str, Sequence[float]],
    threshold: float = 3.5,
) -> List[Alert]:
    """Modified z-score detector; categories with no spread (MAD of 0) are skipped."""
    alerts: List[Alert] = []
    for category, values in history.items():
        if len(values) < 3:
            continue

        last_value = values[-1]
        median = statistics.median(values)
        mad = statistics.median([abs(v - median) for v in values])
        if mad == 0:
            continue

        modified_z = MAD_SCALE * (last_value - median) / mad
        if abs(modified_z) > threshold:
            alerts.append(
                Alert(
                    category=category,
                    message=(
                        f"Outlier {category} spending detected: {last_value:.2f} "
                        f"(median: {median:.2f}, MAD: {mad:.2f})"
                    ),
                    amount=last_value,
                    baseline=median,
                )
            )
    logger.debug(f"MAD detector raised {len(alerts)} alerts")
    return alerts
