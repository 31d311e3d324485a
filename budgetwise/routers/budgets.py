"""
Budgets Router
Monthly category budgets, budget progress and savings goals
"""
import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from budgetwise.db.store import KeyValueStore
from budgetwise.models.budget import (
    BudgetProgressRequest,
    BudgetUpdate,
    GoalCreate,
    GoalPublic,
    GoalUpdate,
)
from budgetwise.models.transaction import normalize_transactions
from budgetwise.utils.budgets import BudgetBook, GoalNotFoundError, InvalidBudgetError

router = APIRouter()
goals_router = APIRouter()
logger = logging.getLogger(__name__)


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_budget_book(store: KeyValueStore = Depends(get_store)) -> BudgetBook:
    return BudgetBook(store)


@router.get("/{month}")
def get_budgets(month: str, book: BudgetBook = Depends(get_budget_book)) -> Dict:
    """
    month must follow YYYY-MM format. Example: 2025-11
    """
    try:
        return {"month": month, "budgets": book.get_budgets(month)}
    except InvalidBudgetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{month}/{category_id}")
def set_budget(
    month: str,
    category_id: str,
    update: BudgetUpdate,
    book: BudgetBook = Depends(get_budget_book),
) -> Dict:
    try:
        budgets = book.set_budget(month, category_id, update.amount)
    except InvalidBudgetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"month": month, "budgets": budgets}


@router.post("/{month}/progress")
def budget_progress(
    month: str,
    request: BudgetProgressRequest,
    book: BudgetBook = Depends(get_budget_book),
) -> Dict:
    transactions = normalize_transactions(request.transactions, request.categories)
    try:
        rows = book.budget_progress(month, transactions, request.categories)
    except InvalidBudgetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"month": month, "categories": rows}


@goals_router.get("/", response_model=List[GoalPublic])
def list_goals(book: BudgetBook = Depends(get_budget_book)):
    return book.list_goals()


@goals_router.post("/", response_model=GoalPublic, status_code=status.HTTP_201_CREATED)
def create_goal(goal: GoalCreate, book: BudgetBook = Depends(get_budget_book)):
    try:
        return book.add_goal(goal.name, goal.target, goal.saved)
    except InvalidBudgetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@goals_router.put("/{goal_id}", response_model=GoalPublic)
def update_goal(goal_id: str, goal_update: GoalUpdate, book: BudgetBook = Depends(get_budget_book)):
    updates = goal_update.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return book.update_goal(goal_id, updates)
    except GoalNotFoundError:
        raise HTTPException(status_code=404, detail="Goal not found")
    except InvalidBudgetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@goals_router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(goal_id: str, book: BudgetBook = Depends(get_budget_book)):
    try:
        book.delete_goal(goal_id)
    except GoalNotFoundError:
        raise HTTPException(status_code=404, detail="Goal not found")
    return None
