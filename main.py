import logging
import os
from datetime import date
from typing import List, Optional, Dict, Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import database
from database import DatabaseUnavailable, create_document, get_documents, get_document, update_document, delete_document
from schemas import (
    Category, CategoryIn, CategoryWithSpend, DepositIn, Expense, ExpenseIn, Income, IncomeIn,
    SavingsGoal, SavingsGoalIn, Transaction, TransactionIn, Alert,
)
from months import YearMonth
from recurrence import InvalidExpenseError, parse_virtual_expense_id, project_expenses, project_instance
from aggregation import aggregate, filter_income_for_month, savings_overview
from alerts import build_alerts

def log_level(name: Optional[str]) -> str:
    """Level name from LOG_LEVEL, INFO when it is not a logging level."""
    name = (name or "INFO").strip().upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


LOG_LEVEL = log_level(os.getenv("LOG_LEVEL"))
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Personal Finance Tracker API")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DatabaseUnavailable)
async def database_unavailable(request: Request, exc: DatabaseUnavailable):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(InvalidExpenseError)
async def invalid_expense(request: Request, exc: InvalidExpenseError):
    # stored data breaks the installment rules
    logger.error("Inconsistent expense %s: %s", exc.expense_id, exc.reason)
    return JSONResponse(status_code=409, content={"detail": str(exc), "expense_id": exc.expense_id})


# ---------- Utilities ----------
COLL_CATEGORY = "category"
COLL_INCOME = "income"
COLL_EXPENSE = "expense"
COLL_TRANSACTION = "transaction"
COLL_GOAL = "savingsgoal"

MONTH_PATTERN = r"^\d{4}-\d{2}$"


def today() -> date:
    return date.today()


def resolve_month(month: Optional[str]) -> YearMonth:
    if month is None:
        return YearMonth.current(today())
    try:
        return YearMonth.parse(month)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def month_range(month: YearMonth) -> Dict[str, str]:
    return {"$gte": month.start.isoformat(), "$lt": month.next_start.isoformat()}


def get_or_404(collection: str, doc_id: str) -> Dict[str, Any]:
    doc = get_document(collection, doc_id)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"{collection.capitalize()} not found")
    return doc


def delete_or_404(collection: str, doc_id: str) -> Dict[str, Any]:
    if not delete_document(collection, doc_id):
        raise HTTPException(status_code=404, detail=f"{collection.capitalize()} not found")
    return {"deleted_id": doc_id}


def load_categories() -> List[Category]:
    return [Category(**d) for d in get_documents(COLL_CATEGORY, sort=[("name", 1)])]


def load_income() -> List[Income]:
    return [Income(**d) for d in get_documents(COLL_INCOME, {"active": True}, sort=[("date", -1)])]


def load_expenses(month: YearMonth) -> List[Expense]:
    """Expenses due in the month plus the recurring history the projection needs."""
    in_month = get_documents(COLL_EXPENSE, {"due_date": month_range(month)}, sort=[("due_date", 1)])
    recurring = get_documents(
        COLL_EXPENSE,
        {"is_recurring": True, "due_date": {"$lt": month.start.isoformat()}},
        sort=[("due_date", 1)],
    )
    return [Expense(**d) for d in in_month + recurring]


def load_transactions(month: YearMonth) -> List[Transaction]:
    docs = get_documents(COLL_TRANSACTION, {"date": month_range(month)}, sort=[("date", -1)])
    return [Transaction(**d) for d in docs]


def load_goals() -> List[SavingsGoal]:
    return [SavingsGoal(**d) for d in get_documents(COLL_GOAL, sort=[("created_at", -1)])]


def month_view(month: YearMonth) -> Dict[str, Any]:
    categories = load_categories()
    income = load_income()
    expenses = project_expenses(load_expenses(month), month)
    transactions = load_transactions(month)
    totals = aggregate(categories, income, expenses, transactions, month)
    return {
        "categories": totals.categories,
        "income": filter_income_for_month(income, month),
        "expenses": expenses,
        "transactions": transactions,
        "summary": totals.summary,
    }


@app.get("/")
def read_root():
    return {"message": "Personal Finance Tracker Backend Running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": []
    }

    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# ---------- Categories ----------
@app.get("/api/categories", response_model=List[CategoryWithSpend])
def list_categories(month: Optional[str] = Query(None, pattern=MONTH_PATTERN)):
    target = resolve_month(month)
    categories = load_categories()
    expenses = project_expenses(load_expenses(target), target)
    return aggregate(categories, [], expenses, load_transactions(target), target).categories


@app.post("/api/categories", response_model=Category)
def add_category(payload: CategoryIn):
    _id = create_document(COLL_CATEGORY, payload)
    return Category(**get_or_404(COLL_CATEGORY, _id))


@app.put("/api/categories/{category_id}", response_model=Category)
def edit_category(category_id: str, payload: CategoryIn):
    doc = update_document(COLL_CATEGORY, category_id, payload)
    if doc is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return Category(**doc)


@app.delete("/api/categories/{category_id}")
def remove_category(category_id: str):
    # expenses and transactions keep their category_id
    return delete_or_404(COLL_CATEGORY, category_id)


# ---------- Income ----------
@app.get("/api/income", response_model=List[Income])
def list_income(month: Optional[str] = Query(None, pattern=MONTH_PATTERN)):
    return filter_income_for_month(load_income(), resolve_month(month))


@app.post("/api/income", response_model=Income)
def add_income(payload: IncomeIn):
    _id = create_document(COLL_INCOME, payload)
    return Income(**get_or_404(COLL_INCOME, _id))


@app.put("/api/income/{income_id}", response_model=Income)
def edit_income(income_id: str, payload: IncomeIn):
    doc = update_document(COLL_INCOME, income_id, payload)
    if doc is None:
        raise HTTPException(status_code=404, detail="Income not found")
    return Income(**doc)


@app.delete("/api/income/{income_id}")
def remove_income(income_id: str):
    return delete_or_404(COLL_INCOME, income_id)


# ---------- Expenses ----------
@app.get("/api/expenses", response_model=List[Expense])
def list_expenses(month: Optional[str] = Query(None, pattern=MONTH_PATTERN)):
    target = resolve_month(month)
    return project_expenses(load_expenses(target), target)


@app.post("/api/expenses", response_model=Expense)
def add_expense(payload: ExpenseIn):
    doc = payload.model_dump(mode="json")
    doc.update({"was_paid": False, "paid_at": None})
    _id = create_document(COLL_EXPENSE, doc)
    return Expense(**get_or_404(COLL_EXPENSE, _id))


@app.put("/api/expenses/{expense_id}", response_model=Expense)
def edit_expense(expense_id: str, payload: ExpenseIn):
    # paid status is only changed through toggle-paid
    doc = update_document(COLL_EXPENSE, expense_id, payload)
    if doc is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return Expense(**doc)


@app.delete("/api/expenses/{expense_id}")
def remove_expense(expense_id: str):
    return delete_or_404(COLL_EXPENSE, expense_id)


def same_installment(stored: Expense, instance: Expense) -> bool:
    return (stored.is_recurring and stored.due_date == instance.due_date
            and stored.recurrence_count == instance.recurrence_count
            and stored.current_recurrence == instance.current_recurrence)


def materialize_expense(expense_id: str) -> Optional[Expense]:
    """
    Store the projected installment behind a virtual id so it can be paid.

    Returns None when ``expense_id`` is not a virtual id. If the installment
    was already stored, that record is returned. A stored expense with the
    same name from another series is a conflict.
    """
    parsed = parse_virtual_expense_id(expense_id)
    if parsed is None:
        return None
    source_id, target = parsed
    source = Expense(**get_or_404(COLL_EXPENSE, source_id))
    instance = project_instance(source, target)
    if instance is None:
        raise HTTPException(status_code=404, detail=f"Expense has no installment in {target}")
    existing = get_documents(COLL_EXPENSE, {"name": source.name, "due_date": month_range(target)}, limit=1)
    if existing:
        stored = Expense(**existing[0])
        if same_installment(stored, instance):
            return stored
        logger.warning("Virtual expense %s clashes with stored expense %s", expense_id, stored.id)
        raise HTTPException(status_code=409, detail=f"{target} already has a stored expense named '{source.name}'")
    _id = create_document(COLL_EXPENSE, instance)
    logger.info("Materialized installment %d of %s in %s as %s",
                instance.current_recurrence, source_id, target, _id)
    return Expense(**get_or_404(COLL_EXPENSE, _id))


@app.post("/api/expenses/{expense_id}/toggle-paid", response_model=Expense)
def toggle_expense_paid(expense_id: str):
    expense = materialize_expense(expense_id) or Expense(**get_or_404(COLL_EXPENSE, expense_id))
    paid = not expense.was_paid
    doc = update_document(COLL_EXPENSE, expense.id, {
        "was_paid": paid,
        "paid_at": today().isoformat() if paid else None,
    })
    if doc is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return Expense(**doc)


# ---------- Transactions ----------
@app.get("/api/transactions", response_model=List[Transaction])
def list_transactions(month: Optional[str] = Query(None, pattern=MONTH_PATTERN)):
    return load_transactions(resolve_month(month))


@app.post("/api/transactions", response_model=Transaction)
def add_transaction(payload: TransactionIn):
    if get_document(COLL_CATEGORY, payload.category_id) is None:
        logger.warning("Rejected transaction for unknown category %s", payload.category_id)
        raise HTTPException(status_code=404, detail="Category not found")
    _id = create_document(COLL_TRANSACTION, payload)
    return Transaction(**get_or_404(COLL_TRANSACTION, _id))


@app.delete("/api/transactions/{transaction_id}")
def remove_transaction(transaction_id: str):
    return delete_or_404(COLL_TRANSACTION, transaction_id)


# ---------- Savings goals ----------
@app.get("/api/goals")
def list_goals():
    return savings_overview(load_goals())


@app.post("/api/goals", response_model=SavingsGoal)
def add_goal(payload: SavingsGoalIn):
    _id = create_document(COLL_GOAL, payload)
    return SavingsGoal(**get_or_404(COLL_GOAL, _id))


@app.put("/api/goals/{goal_id}", response_model=SavingsGoal)
def edit_goal(goal_id: str, payload: SavingsGoalIn):
    doc = update_document(COLL_GOAL, goal_id, payload)
    if doc is None:
        raise HTTPException(status_code=404, detail="Savings goal not found")
    return SavingsGoal(**doc)


@app.delete("/api/goals/{goal_id}")
def remove_goal(goal_id: str):
    return delete_or_404(COLL_GOAL, goal_id)


@app.post("/api/goals/{goal_id}/deposit", response_model=SavingsGoal)
def deposit_to_goal(goal_id: str, payload: DepositIn):
    goal = SavingsGoal(**get_or_404(COLL_GOAL, goal_id))
    doc = update_document(COLL_GOAL, goal_id, {"current_amount": goal.current_amount + payload.amount})
    if doc is None:
        raise HTTPException(status_code=404, detail="Savings goal not found")
    return SavingsGoal(**doc)


# ---------- Dashboard ----------
@app.get("/api/summary")
def summary(month: Optional[str] = Query(None, pattern=MONTH_PATTERN)):
    target = resolve_month(month)
    view = month_view(target)
    savings = savings_overview(load_goals())
    return {
        "month": str(target),
        "label": target.label,
        "previous_month": str(target.previous()),
        "next_month": str(target.next()),
        **view,
        "savings": savings,
        "alerts": build_alerts(view["expenses"], view["categories"], savings.goals, today()),
    }


@app.get("/api/notifications", response_model=List[Alert])
def get_notifications(month: Optional[str] = Query(None, pattern=MONTH_PATTERN)):
    target = resolve_month(month)
    view = month_view(target)
    return build_alerts(view["expenses"], view["categories"], savings_overview(load_goals()).goals, today())


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
