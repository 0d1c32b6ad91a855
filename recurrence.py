"""Projection of recurring expenses into a target month."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set, Tuple

from months import YearMonth
from schemas import Expense

logger = logging.getLogger(__name__)


class InvalidExpenseError(ValueError):
    """A stored expense breaks the installment invariant."""

    def __init__(self, expense_id: Optional[str], reason: str):
        self.expense_id = expense_id
        self.reason = reason
        super().__init__(f"Expense {expense_id}: {reason}")


def virtual_expense_id(source_id: Optional[str], month: YearMonth) -> str:
    return f"{source_id}_{month.year:04d}_{month.month:02d}"


def parse_virtual_expense_id(expense_id: str) -> Optional[Tuple[str, YearMonth]]:
    """Split a projected id into its source id and month, or None for a stored id."""
    parts = expense_id.rsplit("_", 2)
    if len(parts) != 3 or not parts[0]:
        return None
    source_id, year, month = parts
    try:
        return source_id, YearMonth.parse(f"{year}-{month}")
    except ValueError:
        return None


def check_expense(expense: Expense) -> None:
    if expense.current_recurrence < 1:
        raise InvalidExpenseError(expense.id, f"current_recurrence must be >= 1, got {expense.current_recurrence}")
    if 0 < expense.recurrence_count < expense.current_recurrence:
        raise InvalidExpenseError(
            expense.id,
            f"current_recurrence {expense.current_recurrence} exceeds recurrence_count {expense.recurrence_count}",
        )


def project_instance(expense: Expense, month: YearMonth) -> Optional[Expense]:
    """
    Build the virtual installment of a recurring ``expense`` for ``month``.

    Returns None when the series has no installment there: the month is not
    after the stored due date, the installments are used up, or the due day
    does not exist in the month (day 31 in a 30 day month is skipped, not
    moved to the last day).
    """
    if not expense.is_recurring:
        return None
    elapsed = month.months_since(expense.due_date)
    if elapsed <= 0:
        return None
    sequence = expense.current_recurrence + elapsed
    if expense.recurrence_count and sequence > expense.recurrence_count:
        return None
    due = month.day(expense.due_date.day)
    if due is None:
        logger.debug("Skipping %s in %s: no day %d", expense.id, month, expense.due_date.day)
        return None
    return expense.model_copy(update={
        "id": virtual_expense_id(expense.id, month),
        "due_date": due,
        "was_paid": False,
        "paid_at": None,
        "current_recurrence": sequence,
    })


def project_expenses(expenses: Iterable[Expense], month: YearMonth) -> List[Expense]:
    """
    Return the effective expenses of ``month``.

    Stored expenses due inside the month come first, ordered by due date.
    Each recurring expense stored before the month then contributes its
    projected installment, unless an expense with the same name is already
    due that month. Nothing is mutated, so repeated calls agree.
    """
    expenses = list(expenses)
    for expense in expenses:
        check_expense(expense)

    effective = sorted((e for e in expenses if month.contains(e.due_date)), key=lambda e: e.due_date)
    stored = len(effective)
    seen: Set[str] = {e.name for e in effective}

    history = sorted(
        (e for e in expenses if e.is_recurring and e.due_date < month.start),
        key=lambda e: e.due_date,
    )
    for expense in history:
        if expense.name in seen:
            continue
        instance = project_instance(expense, month)
        if instance is None:
            continue
        effective.append(instance)
        seen.add(instance.name)

    logger.debug("%d effective expenses in %s (%d projected)", len(effective), month, len(effective) - stored)
    return effective
