"""
Monthly category budgets and savings goals.
"""
import logging
import math
import re
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence
from uuid import uuid4

from budgetwise.db.store import KeyValueStore
from budgetwise.models.transaction import EXPENSE, Transaction, merge_categories

logger = logging.getLogger(__name__)

BUDGETS_KEY = "budgets_v1"
GOALS_KEY = "savings_goals_v1"
ALERT_PERCENT = 80

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class InvalidBudgetError(ValueError):
    """Raised for malformed budget or goal input."""


class GoalNotFoundError(LookupError):
    """Raised when a savings goal id does not exist."""


def validate_month(month: str) -> str:
    if not isinstance(month, str) or not _MONTH_RE.match(month):
        raise InvalidBudgetError(f"Month must follow YYYY-MM format, got {month!r}")
    return month


def _non_negative_amount(value: Any, field: str) -> float:
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        raise InvalidBudgetError(f"{field} must be a number")
    if not math.isfinite(amount) or amount < 0:
        raise InvalidBudgetError(f"{field} must be a non-negative number")
    return amount


def goal_progress(goal: Dict[str, Any]) -> int:
    target = float(goal.get("target") or 0)
    if target <= 0:
        return 0
    saved = float(goal.get("saved") or 0)
    return min(100, round((saved / target) * 100))


class BudgetBook:
    """Budgets keyed by month and category id, plus a list of savings goals."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # Budgets

    def _all_budgets(self) -> Dict[str, Dict[str, float]]:
        budgets = self.store.read(BUDGETS_KEY, {})
        return budgets if isinstance(budgets, dict) else {}

    def get_budgets(self, month: str) -> Dict[str, float]:
        validate_month(month)
        return dict(self._all_budgets().get(month, {}))

    def budget_for(self, month: str, category_id: str) -> float:
        return float(self.get_budgets(month).get(category_id) or 0)

    def set_budget(self, month: str, category_id: str, amount: Any) -> Dict[str, float]:
        validate_month(month)
        if not category_id:
            raise InvalidBudgetError("Category is required")
        value = _non_negative_amount(amount, "Budget")

        budgets = self._all_budgets()
        budgets.setdefault(month, {})[category_id] = value
        self.store.write(BUDGETS_KEY, budgets)
        logger.info(f"Budget for {category_id} in {month} set to {value}")
        return dict(budgets[month])

    def spent_by_category(self, month: str, transactions: Sequence[Transaction]) -> Dict[str, float]:
        """Expense totals for the month keyed by category id (name when there is no id)."""
        validate_month(month)
        spent: Dict[str, float] = defaultdict(float)
        for t in transactions:
            if t.is_income or t.month_key != month:
                continue
            spent[t.category.id or t.category.name] += t.amount
        return dict(spent)

    def budget_progress(
        self,
        month: str,
        transactions: Sequence[Transaction],
        categories: Optional[Iterable[Any]] = None,
    ) -> List[Dict[str, Any]]:
        budgets = self.get_budgets(month)
        spent = self.spent_by_category(month, transactions)

        rows = []
        for category in merge_categories(categories or [], EXPENSE):
            category_id = category.id or category.name
            budget = float(budgets.get(category_id) or 0)
            category_spent = spent.get(category_id, 0.0)
            percent = 0
            if budget > 0:
                percent = max(0, min(100, round((category_spent / budget) * 100)))
            rows.append(
                {
                    "category_id": category_id,
                    "name": category.name,
                    "budget": budget,
                    "spent": category_spent,
                    "remaining": budget - category_spent,
                    "percent": percent,
                    "alert": percent > ALERT_PERCENT,
                }
            )
        return rows

    # Savings goals

    def list_goals(self) -> List[Dict[str, Any]]:
        goals = self.store.read(GOALS_KEY, [])
        if not isinstance(goals, list):
            return []
        return [dict(goal, progress=goal_progress(goal)) for goal in goals]

    def _write_goals(self, goals: List[Dict[str, Any]]) -> None:
        stripped = [{k: v for k, v in goal.items() if k != "progress"} for goal in goals]
        self.store.write(GOALS_KEY, stripped)

    def add_goal(self, name: str, target: Any, saved: Any = 0) -> Dict[str, Any]:
        if not name or not str(name).strip():
            raise InvalidBudgetError("Goal name is required")
        target_value = _non_negative_amount(target, "Target")
        if target_value <= 0:
            raise InvalidBudgetError("Target must be greater than zero")

        goal = {
            "id": f"g_{uuid4().hex[:12]}",
            "name": str(name).strip(),
            "target": target_value,
            "saved": _non_negative_amount(saved, "Saved amount"),
            "created_at": datetime.utcnow().isoformat(),
        }
        # Newest first
        self._write_goals([goal] + self.list_goals())
        logger.info(f"Added savings goal {goal['id']} ({goal['name']})")
        return dict(goal, progress=goal_progress(goal))

    def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        goals = self.list_goals()
        for index, goal in enumerate(goals):
            if goal.get("id") != goal_id:
                continue

            updated = dict(goal)
            if "name" in updates and updates["name"] is not None:
                if not str(updates["name"]).strip():
                    raise InvalidBudgetError("Goal name is required")
                updated["name"] = str(updates["name"]).strip()
            if "target" in updates and updates["target"] is not None:
                updated["target"] = _non_negative_amount(updates["target"], "Target")
            if "saved" in updates and updates["saved"] is not None:
                updated["saved"] = _non_negative_amount(updates["saved"], "Saved amount")

            updated["progress"] = goal_progress(updated)
            goals[index] = updated
            self._write_goals(goals)
            return updated

        raise GoalNotFoundError(f"Goal {goal_id} not found")

    def delete_goal(self, goal_id: str) -> None:
        goals = self.list_goals()
        remaining = [goal for goal in goals if goal.get("id") != goal_id]
        if len(remaining) == len(goals):
            raise GoalNotFoundError(f"Goal {goal_id} not found")
        self._write_goals(remaining)
        logger.info(f"Deleted savings goal {goal_id}")
