from datetime import date

from alerts import bill_alerts, budget_alerts, build_alerts, goal_alerts
from schemas import CategoryWithSpend, Expense, GoalProgress

TODAY = date(2024, 5, 15)


def _expense(id, due, paid=False):
    return Expense(id=id, name=f'Conta {id}', amount=100, due_date=due, was_paid=paid,
                   paid_at=due if paid else None)


def test_overdue_and_upcoming_bills():
    expenses = [
        _expense('late', date(2024, 5, 10)),
        _expense('paid', date(2024, 5, 9), paid=True),
        _expense('today', TODAY),
        _expense('soon', date(2024, 5, 21)),
        _expense('later', date(2024, 5, 22)),
    ]

    alerts = bill_alerts(expenses, TODAY)

    assert [(a.kind, a.reference_id) for a in alerts] == [
        ('overdue', 'late'),
        ('upcoming', 'today'),
        ('upcoming', 'soon'),
    ]


def test_budget_warning_and_overspend():
    categories = [
        CategoryWithSpend(id='1', name='Mercado', monthly_limit=100, spent=95, percentage=95, remaining=5),
        CategoryWithSpend(id='2', name='Lazer', monthly_limit=100, spent=120, percentage=120, remaining=0,
                          over_limit=True),
        CategoryWithSpend(id='3', name='Saude', monthly_limit=100, spent=50, percentage=50, remaining=50),
        CategoryWithSpend(id='4', name='Outros', monthly_limit=0, spent=900),
    ]

    alerts = budget_alerts(categories)

    assert [a.reference_id for a in alerts] == ['1', '2']
    assert "95% of your Mercado budget" in alerts[0].message
    assert alerts[1].message.startswith('Over budget on Lazer')


def test_goal_milestones():
    goals = [
        GoalProgress(id=str(i), name=f'Meta {i}', goal_amount=100, current_amount=p, progress=p)
        for i, p in enumerate([10, 50, 80, 130])
    ]

    alerts = goal_alerts(goals)

    assert [a.message for a in alerts] == [
        'Halfway there on Meta 1',
        'Great! Meta 2 is 75% funded',
        'Goal reached: Meta 3',
    ]


def test_build_alerts_orders_bills_budgets_goals():
    alerts = build_alerts(
        [_expense('late', date(2024, 5, 1))],
        [CategoryWithSpend(id='c', name='Mercado', monthly_limit=10, spent=20, percentage=200, remaining=0,
                           over_limit=True)],
        [GoalProgress(id='g', name='Viagem', goal_amount=10, current_amount=10, progress=100)],
        TODAY,
    )

    assert [a.kind for a in alerts] == ['overdue', 'budget', 'goal']
