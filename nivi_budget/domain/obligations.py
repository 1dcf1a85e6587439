"""EMI and debt tracking - recurring payments booked against the needs category"""

import copy
import math
from datetime import date, datetime, timezone
from typing import List, Optional

from nivi_budget.domain.ledger import add_expense
from nivi_budget.domain.models import EMI, Debt, FinanceState, new_id
from nivi_budget.utils.date_utils import add_months, days_between

EMI_SUBCATEGORY = ("needs", "Bank EMI")
DEBT_SUBCATEGORY = ("needs", "Debts")

# Reminders surface when due today or tomorrow
REMINDER_WINDOW_DAYS = 1


def emi_progress(emi: EMI) -> float:
    """Percentage of the tenure already paid"""
    if emi.total_tenure <= 0:
        return 0.0
    return (emi.total_tenure - emi.tenure_left) / emi.total_tenure * 100


def debt_months_remaining(pending_amount: float, monthly_payment: float) -> int:
    return math.ceil(pending_amount / monthly_payment)


def _book_payment(
    state: FinanceState,
    target: tuple,
    amount: float,
    description: str,
    paid_at: Optional[datetime],
) -> FinanceState:
    """Add the payment as an expense when the target subcategory still exists"""
    category_id, subcategory_name = target
    category = state.find_category(category_id)
    sub = None
    if category is not None:
        sub = next((s for s in category.subcategories if s.name == subcategory_name), None)
    if sub is None:
        return copy.deepcopy(state)
    return add_expense(state, sub.id, amount, description, paid_at)


def add_emi(state: FinanceState, name: str, amount: float, tenure: int) -> FinanceState:
    emi = EMI(
        id=new_id(),
        name=name.strip(),
        amount=amount,
        tenure_left=tenure,
        total_tenure=tenure,
        paid_count=0,
        is_active=tenure > 0,
    )
    new_state = copy.deepcopy(state)
    new_state.emis.append(emi)
    return new_state


def edit_emi(state: FinanceState, emi_id: str, name: str, amount: float, tenure: int) -> FinanceState:
    """Replace an EMI's terms; the tenure restarts from the new value"""
    if not any(e.id == emi_id for e in state.emis):
        return state

    updated = EMI(
        id=emi_id,
        name=name.strip(),
        amount=amount,
        tenure_left=tenure,
        total_tenure=tenure,
        paid_count=0,
        is_active=tenure > 0,
    )
    new_state = copy.deepcopy(state)
    new_state.emis = [updated if e.id == emi_id else e for e in new_state.emis]
    return new_state


def delete_emi(state: FinanceState, emi_id: str) -> FinanceState:
    if not any(e.id == emi_id for e in state.emis):
        return state
    new_state = copy.deepcopy(state)
    new_state.emis = [e for e in new_state.emis if e.id != emi_id]
    return new_state


def pay_emi(state: FinanceState, emi_id: str, paid_at: Optional[datetime] = None) -> FinanceState:
    """
    Pay one installment.

    Books the amount under needs / "Bank EMI", decrements the tenure and
    closes the EMI when it reaches zero. Closed EMIs are left untouched.
    """
    emi = next((e for e in state.emis if e.id == emi_id), None)
    if emi is None or not emi.is_active:
        return state

    new_state = _book_payment(state, EMI_SUBCATEGORY, emi.amount, f"EMI Payment - {emi.name}", paid_at)
    for item in new_state.emis:
        if item.id == emi_id:
            item.tenure_left = max(0, item.tenure_left - 1)
            item.paid_count += 1
            item.is_active = item.tenure_left > 0
    return new_state


def add_debt(
    state: FinanceState,
    name: str,
    pending_amount: float,
    monthly_payment: float,
    reminder_date: Optional[datetime] = None,
) -> FinanceState:
    debt = Debt(
        id=new_id(),
        name=name.strip(),
        pending_amount=pending_amount,
        monthly_payment=monthly_payment,
        total_months=debt_months_remaining(pending_amount, monthly_payment),
        paid_amount=0.0,
        is_active=pending_amount > 0,
        reminder_date=reminder_date,
    )
    new_state = copy.deepcopy(state)
    new_state.debts.append(debt)
    return new_state


def edit_debt(
    state: FinanceState,
    debt_id: str,
    name: str,
    pending_amount: float,
    monthly_payment: float,
    reminder_date: Optional[datetime] = None,
) -> FinanceState:
    """Replace a debt's terms; paid amount restarts at zero"""
    if not any(d.id == debt_id for d in state.debts):
        return state

    updated = Debt(
        id=debt_id,
        name=name.strip(),
        pending_amount=pending_amount,
        monthly_payment=monthly_payment,
        total_months=debt_months_remaining(pending_amount, monthly_payment),
        paid_amount=0.0,
        is_active=pending_amount > 0,
        reminder_date=reminder_date,
    )
    new_state = copy.deepcopy(state)
    new_state.debts = [updated if d.id == debt_id else d for d in new_state.debts]
    return new_state


def delete_debt(state: FinanceState, debt_id: str) -> FinanceState:
    if not any(d.id == debt_id for d in state.debts):
        return state
    new_state = copy.deepcopy(state)
    new_state.debts = [d for d in new_state.debts if d.id != debt_id]
    return new_state


def pay_debt(state: FinanceState, debt_id: str, paid_at: Optional[datetime] = None) -> FinanceState:
    """
    Pay one monthly installment of a debt.

    Books the payment under needs / "Debts". While the debt stays open its
    reminder moves one month ahead; once settled the reminder is cleared.
    """
    debt = next((d for d in state.debts if d.id == debt_id), None)
    if debt is None or not debt.is_active:
        return state

    new_state = _book_payment(
        state, DEBT_SUBCATEGORY, debt.monthly_payment, f"Debt Payment - {debt.name}", paid_at
    )
    for item in new_state.debts:
        if item.id != debt_id:
            continue
        item.paid_amount += item.monthly_payment
        item.pending_amount = max(0.0, item.pending_amount - item.monthly_payment)
        item.is_active = item.pending_amount > 0
        if not item.is_active:
            item.reminder_date = None
        elif item.reminder_date is not None:
            item.reminder_date = add_months(item.reminder_date, 1)
    return new_state


def due_debt_reminders(state: FinanceState, today: Optional[date] = None) -> List[Debt]:
    """Active debts whose reminder falls today or tomorrow"""
    today = today or datetime.now(timezone.utc).date()
    return [
        debt
        for debt in state.debts
        if debt.is_active
        and debt.reminder_date is not None
        and 0 <= days_between(today, debt.reminder_date.date()) <= REMINDER_WINDOW_DAYS
    ]
