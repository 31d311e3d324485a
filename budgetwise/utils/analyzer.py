from __future__ import annotations

import json
import logging
import statistics
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from budgetwise.models.transaction import Transaction
from budgetwise.utils import analytics
from budgetwise.utils.anomaly import category_history, detect_anomalies, detect_anomalies_mad
from budgetwise.utils.forecast import forecast_next_month
from budgetwise.utils.tips import recommend_tips

logger = logging.getLogger(__name__)


class FinanceAnalyzer:
    """
    Bundles the transaction analytics behind one configured object so routes
    can build dashboard payloads without repeating tunables.
    """

    def __init__(
        self,
        budget_config_path: Optional[str | Path] = None,
        spike_sigma: float = 2.5,
        minimum_spike_amount: float = 250.0,
        major_categories: int = 8,
        top_limit: int = 10,
        forecast_window: int = 3,
        forecast_history_months: int = 6,
        anomaly_threshold: float = 2.0,
        mad_threshold: float = 3.5,
    ) -> None:
        self._spike_sigma = spike_sigma
        self._minimum_spike_amount = minimum_spike_amount
        self._budget_thresholds = self._load_budget_thresholds(budget_config_path)
        self.major_categories = major_categories
        self.top_limit = top_limit
        self.forecast_window = forecast_window
        self.forecast_history_months = forecast_history_months
        self.anomaly_threshold = anomaly_threshold
        self.mad_threshold = mad_threshold

    @staticmethod
    def _load_budget_thresholds(path: Optional[str | Path]) -> Dict[str, float]:
        if not path:
            return {}

        budget_file = Path(path)
        if not budget_file.exists():
            logger.info(f"Budget thresholds file {budget_file} not found, overspending checks disabled")
            return {}

        try:
            with budget_file.open() as fp:
                data = json.load(fp)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object of category thresholds")
            return {str(k): float(v) for k, v in data.items()}
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not load budget thresholds from {budget_file}: {e}")
            return {}

    def load_thresholds(self, overrides: Optional[Dict[str, float]] = None) -> Dict[str, float]:
        merged = dict(self._budget_thresholds)
        if overrides:
            merged.update(overrides)
        return merged

    def category_totals(self, transactions: Sequence[Transaction]) -> Dict[str, float]:
        breakdown = analytics.aggregate_category_breakdown(transactions)
        return {share.category: round(share.total, 2) for share in breakdown.categories}

    def overspending_categories(
        self,
        transactions: Sequence[Transaction],
        budget_overrides: Optional[Dict[str, float]] = None,
    ) -> Dict[str, float]:
        thresholds = self.load_thresholds(budget_overrides)
        if not thresholds:
            return {}

        totals = self.category_totals(transactions)
        return {
            cat: amount
            for cat, amount in totals.items()
            if cat in thresholds and amount > thresholds[cat]
        }

    def suggest_budget(
        self,
        transactions: Sequence[Transaction],
        buffer_percentage: float = 0.15,
    ) -> Dict[str, float]:
        """
        Suggests a monthly budget per category: average monthly spend plus a buffer.
        """
        breakdown = analytics.aggregate_category_breakdown(transactions)
        return {
            share.category: round(share.avg_monthly * (1 + buffer_percentage), 2)
            for share in breakdown.categories
        }

    def detect_spending_spikes(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        """
        Detect unusually large single expenses using a z-score over all expense amounts.
        """
        expenses = [t for t in transactions if not t.is_income]
        if not expenses:
            return []

        amounts = [t.amount for t in expenses]
        mean = statistics.fmean(amounts)
        stdev = statistics.pstdev(amounts)

        spikes: List[Transaction] = []
        for t in expenses:
            if t.amount < self._minimum_spike_amount:
                continue
            z_score = 0 if stdev == 0 else (t.amount - mean) / stdev
            if z_score >= self._spike_sigma:
                spikes.append(t)
        return spikes

    def alerts(self, transactions: Sequence[Transaction], method: str = "zscore") -> List[Dict[str, Any]]:
        history = category_history(transactions)
        if method == "mad":
            found = detect_anomalies_mad(history, self.mad_threshold)
        else:
            found = detect_anomalies(history, self.anomaly_threshold)
        return [alert.to_dict() for alert in found]

    def summarize(
        self,
        transactions: Sequence[Transaction],
        budget_overrides: Optional[Dict[str, float]] = None,
    ) -> Dict[str, Any]:
        lifetime = analytics.aggregate_lifetime_totals(transactions)
        breakdown = analytics.aggregate_category_breakdown(transactions)

        return {
            "lifetime": lifetime.to_dict(),
            "categories": breakdown.to_dict(),
            "monthly": [point.to_dict() for point in analytics.aggregate_monthly_trends(transactions)],
            "category_trends": [
                trend.to_dict()
                for trend in analytics.compute_category_trends(transactions, self.major_categories)
            ],
            "insights": analytics.compute_insights(transactions).to_dict(),
            "top_transactions": [
                t.model_dump(mode="json")
                for t in analytics.top_spending_transactions(transactions, self.top_limit)
            ],
            "forecast": forecast_next_month(
                transactions, self.forecast_window, self.forecast_history_months
            ).to_dict(),
            "alerts": self.alerts(transactions),
            "tips": recommend_tips(transactions)["tips"],
            "overspending_categories": self.overspending_categories(transactions, budget_overrides),
            "suggested_budgets": self.suggest_budget(transactions),
            "spending_spikes": [t.model_dump(mode="json") for t in self.detect_spending_spikes(transactions)],
        }
