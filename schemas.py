"""
Database Schemas for the Personal Finance Tracker

Each persisted Pydantic model represents a collection in MongoDB.
Collection name = lowercase of the class name.

The *In models are the write payloads accepted by the API, and the
remaining models are derived, month-scoped views that are never stored.
"""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, Literal, List
import datetime as dt

Currency = float  # simple alias for readability


# ---------- Persisted records ----------

class Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Optional[str] = Field(None, description="Document id (string form of the Mongo _id)")


class Category(Record):
    name: str
    monthly_limit: Currency = Field(0.0, ge=0, description="Monthly spending limit, 0 means no limit")
    color: str = Field("#F63D68", description="Display color for the UI")


class Income(Record):
    description: str
    amount: Currency
    date: dt.date
    is_recurring: bool = Field(False, description="Counts in every month when true")
    recurring_day: Optional[int] = Field(None, ge=1, le=31, description="Day of month a recurring income arrives")
    active: bool = True


class Expense(Record):
    name: str
    amount: Currency
    due_date: dt.date
    is_recurring: bool = False
    recurrence_count: int = Field(1, ge=0, description="Number of installments, 0 means it never ends")
    current_recurrence: int = Field(1, description="1-based installment number of this record")
    was_paid: bool = False
    paid_at: Optional[dt.date] = None
    category_id: Optional[str] = None


class Transaction(Record):
    category_id: str
    amount: Currency
    description: str
    date: dt.date


class SavingsGoal(Record):
    name: str
    goal_amount: Currency = Field(..., gt=0)
    current_amount: Currency = Field(0.0, ge=0)
    deadline: Optional[dt.date] = None


# ---------- Write payloads ----------

class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    monthly_limit: Currency = Field(0.0, ge=0)
    color: str = "#F63D68"


class IncomeIn(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Currency = Field(..., gt=0)
    date: dt.date
    is_recurring: bool = False
    recurring_day: Optional[int] = Field(None, ge=1, le=31)
    active: bool = True

    @model_validator(mode="after")
    def _normalize_recurring_day(self) -> "IncomeIn":
        if not self.is_recurring:
            self.recurring_day = None
        elif self.recurring_day is None:
            self.recurring_day = self.date.day
        return self


class ExpenseIn(BaseModel):
    name: str = Field(..., min_length=1)
    amount: Currency = Field(..., gt=0)
    due_date: dt.date
    is_recurring: bool = False
    recurrence_count: int = Field(0, ge=0, description="Installments for a recurring expense, 0 for no end")
    current_recurrence: int = Field(1, ge=1)
    category_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_installments(self) -> "ExpenseIn":
        if not self.is_recurring:
            # a one-off expense is a series of a single installment
            self.recurrence_count = 1
            self.current_recurrence = 1
        if self.recurrence_count > 0 and self.current_recurrence > self.recurrence_count:
            raise ValueError("current_recurrence cannot exceed recurrence_count")
        return self


class TransactionIn(BaseModel):
    category_id: str
    amount: Currency = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    date: dt.date


class SavingsGoalIn(BaseModel):
    name: str = Field(..., min_length=1)
    goal_amount: Currency = Field(..., gt=0)
    current_amount: Currency = Field(0.0, ge=0)
    deadline: Optional[dt.date] = None


class DepositIn(BaseModel):
    amount: Currency = Field(..., gt=0, description="Amount added to the goal")


# ---------- Month-scoped views ----------

class CategoryWithSpend(Category):
    spent: Currency = 0.0
    percentage: Optional[float] = Field(None, description="spent / monthly_limit * 100, None when there is no limit")
    remaining: Optional[Currency] = Field(None, description="What is left of the limit, never negative")
    over_limit: bool = False


class Summary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_income: Currency = 0.0
    total_expenses_paid: Currency = 0.0
    total_transactions: Currency = 0.0
    pending_expenses: Currency = 0.0
    total_spent: Currency = 0.0
    available_balance: Currency = 0.0


class MonthAggregate(BaseModel):
    model_config = ConfigDict(frozen=True)

    categories: List[CategoryWithSpend]
    summary: Summary


class GoalProgress(SavingsGoal):
    progress: float = Field(0.0, description="current_amount / goal_amount * 100, uncapped")


class SavingsOverview(BaseModel):
    model_config = ConfigDict(frozen=True)

    goals: List[GoalProgress]
    total_goal: Currency = 0.0
    total_saved: Currency = 0.0
    progress: float = 0.0


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["overdue", "upcoming", "budget", "goal"]
    message: str
    reference_id: Optional[str] = None
    date: Optional[dt.date] = None
