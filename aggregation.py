"""
Month-scoped roll-ups: spend per category, the income/expense summary,
and savings goal progress.

All functions are pure. The expenses passed in must already be the
effective expenses of the month (see recurrence.project_expenses).
"""
from __future__ import annotations

from typing import Dict, Iterable, List

from months import YearMonth
from schemas import (
    Category, CategoryWithSpend, Expense, GoalProgress, Income, MonthAggregate,
    SavingsGoal, SavingsOverview, Summary, Transaction,
)


def filter_income_for_month(income: Iterable[Income], month: YearMonth) -> List[Income]:
    """Recurring income counts in every month, the rest only in the month of its date."""
    return [i for i in income if i.is_recurring or month.contains(i.date)]


def spend_by_category(expenses: Iterable[Expense], transactions: Iterable[Transaction],
                      month: YearMonth) -> Dict[str, float]:
    spent: Dict[str, float] = {}
    for t in transactions:
        if month.contains(t.date):
            spent[t.category_id] = spent.get(t.category_id, 0.0) + t.amount
    for e in expenses:
        if e.category_id and e.was_paid and month.contains(e.due_date):
            spent[e.category_id] = spent.get(e.category_id, 0.0) + e.amount
    return spent


def with_spend(category: Category, spent: float) -> CategoryWithSpend:
    limit = category.monthly_limit
    if limit > 0:
        percentage = spent * 100 / limit
        remaining = max(0.0, limit - spent)
    else:
        percentage = remaining = None
    return CategoryWithSpend(
        **category.model_dump(),
        spent=spent,
        percentage=percentage,
        remaining=remaining,
        over_limit=limit > 0 and spent > limit,
    )


def category_spend(categories: Iterable[Category], expenses: Iterable[Expense],
                   transactions: Iterable[Transaction], month: YearMonth) -> List[CategoryWithSpend]:
    spent = spend_by_category(expenses, transactions, month)
    return [with_spend(c, spent.get(c.id, 0.0)) for c in categories]


def summarize(income: Iterable[Income], expenses: Iterable[Expense],
              transactions: Iterable[Transaction], month: YearMonth) -> Summary:
    expenses = [e for e in expenses if month.contains(e.due_date)]
    total_income = sum(i.amount for i in filter_income_for_month(income, month))
    paid = sum(e.amount for e in expenses if e.was_paid)
    pending = sum(e.amount for e in expenses if not e.was_paid)
    spent_on_transactions = sum(t.amount for t in transactions if month.contains(t.date))
    return Summary(
        total_income=total_income,
        total_expenses_paid=paid,
        total_transactions=spent_on_transactions,
        pending_expenses=pending,
        total_spent=paid + spent_on_transactions,
        # pending bills are deducted before they are paid
        available_balance=total_income - paid - spent_on_transactions - pending,
    )


def aggregate(categories: Iterable[Category], income: Iterable[Income], expenses: Iterable[Expense],
              transactions: Iterable[Transaction], month: YearMonth) -> MonthAggregate:
    expenses = list(expenses)
    transactions = list(transactions)
    return MonthAggregate(
        categories=category_spend(categories, expenses, transactions, month),
        summary=summarize(income, expenses, transactions, month),
    )


def savings_overview(goals: Iterable[SavingsGoal]) -> SavingsOverview:
    progress = [
        GoalProgress(**g.model_dump(), progress=g.current_amount * 100 / g.goal_amount)
        for g in goals
    ]
    total_goal = sum(g.goal_amount for g in progress)
    total_saved = sum(g.current_amount for g in progress)
    return SavingsOverview(
        goals=progress,
        total_goal=total_goal,
        total_saved=total_saved,
        progress=total_saved * 100 / total_goal if total_goal > 0 else 0.0,
    )
