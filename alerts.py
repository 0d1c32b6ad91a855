"""Computed dashboard notifications: pending bills, budgets and goal milestones."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List

from schemas import Alert, CategoryWithSpend, Expense, GoalProgress

UPCOMING_WINDOW = timedelta(days=7)
BUDGET_WARNING_RATIO = 0.9


def bill_alerts(expenses: Iterable[Expense], today: date) -> List[Alert]:
    alerts: List[Alert] = []
    for e in sorted((e for e in expenses if not e.was_paid), key=lambda e: e.due_date):
        if e.due_date < today:
            alerts.append(Alert(kind="overdue", message=f"Overdue: {e.name} ${e.amount:.2f} was due {e.due_date.isoformat()}",
                                reference_id=e.id, date=e.due_date))
        elif e.due_date < today + UPCOMING_WINDOW:
            alerts.append(Alert(kind="upcoming", message=f"Upcoming bill: {e.name} ${e.amount:.2f} due {e.due_date.isoformat()}",
                                reference_id=e.id, date=e.due_date))
    return alerts


def budget_alerts(categories: Iterable[CategoryWithSpend]) -> List[Alert]:
    alerts: List[Alert] = []
    for c in categories:
        if c.monthly_limit <= 0:
            continue
        if c.over_limit:
            alerts.append(Alert(kind="budget", message=f"Over budget on {c.name}: {c.percentage:.0f}% spent",
                                reference_id=c.id))
        elif c.spent >= BUDGET_WARNING_RATIO * c.monthly_limit:
            alerts.append(Alert(kind="budget", message=f"You're at {int(c.percentage)}% of your {c.name} budget",
                                reference_id=c.id))
    return alerts


def goal_alerts(goals: Iterable[GoalProgress]) -> List[Alert]:
    # Goal milestones 50%, 75%, 100%
    alerts: List[Alert] = []
    for g in goals:
        if g.progress >= 100:
            message = f"Goal reached: {g.name}"
        elif g.progress >= 75:
            message = f"Great! {g.name} is 75% funded"
        elif g.progress >= 50:
            message = f"Halfway there on {g.name}"
        else:
            continue
        alerts.append(Alert(kind="goal", message=message, reference_id=g.id, date=g.deadline))
    return alerts


def build_alerts(expenses: Iterable[Expense], categories: Iterable[CategoryWithSpend],
                 goals: Iterable[GoalProgress], today: date) -> List[Alert]:
    return bill_alerts(expenses, today) + budget_alerts(categories) + goal_alerts(goals)
