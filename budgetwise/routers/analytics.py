import logging
from typing import Dict, List

from fastapi import APIRouter, HTTPException, Query

from budgetwise.core.config import settings
from budgetwise.models.transaction import AnalyticsRequest
from budgetwise.utils import analytics
from budgetwise.utils.analyzer import FinanceAnalyzer
from budgetwise.utils.forecast import Forecast, forecast_next_month
from budgetwise.utils.tips import recommend_tips

router = APIRouter()
logger = logging.getLogger(__name__)

finance_analyzer = FinanceAnalyzer(
    settings.BUDGET_THRESHOLDS_JSON,
    spike_sigma=settings.SPIKE_SIGMA,
    minimum_spike_amount=settings.MINIMUM_SPIKE_AMOUNT,
    major_categories=settings.MAJOR_CATEGORY_COUNT,
    top_limit=settings.TOP_TRANSACTIONS_LIMIT,
    forecast_window=settings.FORECAST_WINDOW,
    forecast_history_months=settings.FORECAST_HISTORY_MONTHS,
    anomaly_threshold=settings.ANOMALY_Z_THRESHOLD,
    mad_threshold=settings.ANOMALY_MAD_THRESHOLD,
)


@router.post("/summary")
def dashboard_summary(request: AnalyticsRequest) -> Dict:
    """
    Full dashboard payload: lifetime totals, breakdowns, trends, insights,
    forecast, alerts and tips in one response.
    """
    transactions = request.to_transactions()
    logger.info(f"Building dashboard summary for {len(transactions)} transactions")
    try:
        return finance_analyzer.summarize(transactions, request.budget_overrides)
    except Exception as e:
        logger.error(f"Unexpected error building summary: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error while building summary")


@router.post("/lifetime")
def lifetime_totals(request: AnalyticsRequest) -> Dict:
    return analytics.aggregate_lifetime_totals(request.to_transactions()).to_dict()


@router.post("/categories")
def category_breakdown(request: AnalyticsRequest) -> Dict:
    return analytics.aggregate_category_breakdown(request.to_transactions()).to_dict()


@router.post("/monthly")
def monthly_trends(request: AnalyticsRequest) -> List[Dict]:
    return [point.to_dict() for point in analytics.aggregate_monthly_trends(request.to_transactions())]


@router.post("/category-trends")
def category_trends(
    request: AnalyticsRequest,
    major_n: int = Query(default=settings.MAJOR_CATEGORY_COUNT, ge=1, le=50),
) -> List[Dict]:
    trends = analytics.compute_category_trends(request.to_transactions(), major_n)
    return [trend.to_dict() for trend in trends]


@router.post("/insights")
def insights(request: AnalyticsRequest) -> Dict:
    return analytics.compute_insights(request.to_transactions()).to_dict()


@router.post("/top-transactions")
def top_transactions(
    request: AnalyticsRequest,
    limit: int = Query(default=settings.TOP_TRANSACTIONS_LIMIT, ge=1, le=100),
) -> List[Dict]:
    top = analytics.top_spending_transactions(request.to_transactions(), limit)
    return [t.model_dump(mode="json") for t in top]


@router.post("/forecast")
def forecast(request: AnalyticsRequest) -> Dict:
    transactions = request.to_transactions()
    if not transactions:
        return dict(Forecast().to_dict(), message="Not enough data for forecast")
    return forecast_next_month(
        transactions, settings.FORECAST_WINDOW, settings.FORECAST_HISTORY_MONTHS
    ).to_dict()


@router.post("/alerts")
def alerts(
    request: AnalyticsRequest,
    method: str = Query(default="zscore", pattern="^(zscore|mad)$"),
) -> Dict:
    return {"alerts": finance_analyzer.alerts(request.to_transactions(), method)}


@router.post("/tips")
def tips(request: AnalyticsRequest) -> Dict:
    return recommend_tips(request.to_transactions())
