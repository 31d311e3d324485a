from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BudgetUpdate(BaseModel):
    amount: float = Field(ge=0)


class BudgetProgressRequest(BaseModel):
    transactions: List[Dict[str, Any]] = Field(default_factory=list)
    categories: List[Dict[str, Any]] = Field(default_factory=list)


class GoalCreate(BaseModel):
    name: str = Field(min_length=1)
    target: float = Field(gt=0)
    saved: float = Field(default=0, ge=0)


class GoalUpdate(BaseModel):
    name: Optional[str] = None
    target: Optional[float] = Field(default=None, gt=0)
    saved: Optional[float] = Field(default=None, ge=0)


class GoalPublic(BaseModel):
    id: str
    name: str
    target: float
    saved: float
    created_at: str
    progress: int
