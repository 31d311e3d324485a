from collections import defaultdict
from typing import Any, Dict, List, Sequence

from budgetwise.models.transaction import Transaction

MIN_TIPS = 4
MAX_TIPS = 6

# (category, share of expenses in percent, tip)
CATEGORY_RULES = [
    ("food", 30, "Food spending is above 30% of your budget. Consider meal planning and batch cooking to reduce this category."),
    ("entertainment", 20, "Entertainment expenses are 20%+ of your budget. Try setting a monthly entertainment cap."),
    ("transport", 15, "Transportation is taking up over 15% of your budget. Explore carpooling or public transit options."),
]
LATE_CATEGORY_RULES = [
    ("utilities", 10, "Utilities are over 10%. Audit your subscriptions and energy usage for quick savings."),
    ("shopping", 20, "Shopping expenses are significant. Consider a 48-hour rule before non-essential purchases."),
]
LOW_SAVINGS_TIP = "Your savings rate is below 10%. Try cutting discretionary spending to improve financial security."
HIGH_SAVINGS_TIP = "Great job! Your saving rate is 20%+. Keep up the excellent financial discipline!"
FALLBACK_TIPS = [
    "Track your expenses regularly to identify spending patterns and opportunities.",
    "Build an emergency fund equal to 3-6 months of living expenses.",
]


def analyze_spending(transactions: Sequence[Transaction]) -> Dict[str, Any]:
    category_totals: Dict[str, float] = defaultdict(float)
    total_expense = 0.0
    total_income = 0.0

    for t in transactions:
        amount = abs(t.amount)
        if t.is_income:
            total_income += amount
        else:
            category_totals[t.category.name] += amount
            total_expense += amount

    category_percentages: Dict[str, float] = {}
    if total_expense > 0:
        category_percentages = {
            name: (total / total_expense) * 100 for name, total in category_totals.items()
        }

    saving_rate = ((total_income - total_expense) / total_income) * 100 if total_income > 0 else 0.0

    return {
        "total_expense": total_expense,
        "total_income": total_income,
        "saving_rate": saving_rate,
        "categories": dict(category_totals),
        "category_percentages": category_percentages,
        "transaction_count": len(transactions),
    }


def generate_tips(analysis: Dict[str, Any]) -> List[str]:
    """Rule-based tips, padded with generic advice while short and capped at six."""
    shares: Dict[str, float] = defaultdict(float)
    for name, pct in analysis.get("category_percentages", {}).items():
        shares[name.lower()] += pct
    saving_rate = analysis.get("saving_rate", 0.0)

    tips = [tip for name, limit, tip in CATEGORY_RULES if shares[name] > limit]
    if saving_rate < 10:
        tips.append(LOW_SAVINGS_TIP)
    tips.extend(tip for name, limit, tip in LATE_CATEGORY_RULES if shares[name] > limit)
    if saving_rate >= 20:
        tips.append(HIGH_SAVINGS_TIP)

    for fallback in FALLBACK_TIPS:
        if len(tips) < MIN_TIPS:
            tips.append(fallback)

    return tips[:MAX_TIPS]


def recommend_tips(transactions: Sequence[Transaction]) -> Dict[str, Any]:
    analysis = analyze_spending(transactions)
    return {"tips": generate_tips(analysis), "analysis": analysis}
