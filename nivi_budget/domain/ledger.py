"""Category ledger - spent amounts, balances and allocation moves between categories"""

import copy
import logging
from datetime import datetime, timezone
from typing import Optional

from nivi_budget.domain.allocation import allocate, distribute_across_subcategories, refresh_category_totals
from nivi_budget.domain.exceptions import InvalidInputError
from nivi_budget.domain.models import Expense, FinanceState, MainCategory, new_id

logger = logging.getLogger(__name__)


def _rescale_category(category: MainCategory, new_total: float) -> None:
    """
    Move a category to a new allocation, keeping subcategory proportions.

    With no previous allocation there is nothing to scale, so amounts are
    derived from the stored percentages instead.
    """
    old_total = category.total_allocated
    if old_total > 0:
        ratio = new_total / old_total
        for sub in category.subcategories:
            sub.allocated_amount = sub.allocated_amount * ratio
            sub.balance = sub.allocated_amount - sub.spent_amount
    else:
        category.subcategories = distribute_across_subcategories(new_total, category.subcategories)

    category.total_allocated = new_total
    refresh_category_totals(category)


def add_expense(
    state: FinanceState,
    subcategory_id: str,
    amount: float,
    description: str,
    date: Optional[datetime] = None,
) -> FinanceState:
    """
    Record spending against a subcategory.

    Overspending is allowed: the balance simply goes negative.
    """
    expense = Expense(
        id=new_id(),
        amount=amount,
        description=description,
        date=date or datetime.now(timezone.utc),
        subcategory_id=subcategory_id,
    )

    _, sub = state.find_subcategory(subcategory_id)
    if sub is None:
        return state

    new_state = copy.deepcopy(state)
    category, sub = new_state.find_subcategory(subcategory_id)

    sub.expenses.append(expense)
    sub.spent_amount += amount
    sub.balance = sub.allocated_amount - sub.spent_amount
    new_state.transactions.append(copy.copy(expense))
    refresh_category_totals(category)

    if sub.is_overspent:
        logger.info(
            "Subcategory overspent",
            extra={"subcategory_id": sub.id, "balance": sub.balance},
        )
    return new_state


def _apply_spent_delta(state: FinanceState, subcategory_id: str, delta: float) -> None:
    # Floor at zero: a bad edit sequence must never leave negative spending
    category, sub = state.find_subcategory(subcategory_id)
    if sub is None:
        return
    sub.spent_amount = max(0.0, sub.spent_amount + delta)
    sub.balance = sub.allocated_amount - sub.spent_amount
    refresh_category_totals(category)


def edit_expense(
    state: FinanceState,
    transaction_id: str,
    new_amount: float,
    new_description: Optional[str] = None,
) -> FinanceState:
    if new_amount <= 0:
        raise InvalidInputError(f"Expense amount must be positive, got {new_amount}")

    old = next((t for t in state.transactions if t.id == transaction_id), None)
    if old is None:
        return state
    if new_description is None:
        new_description = old.description

    new_state = copy.deepcopy(state)
    for entry in new_state.transactions:
        if entry.id == transaction_id:
            entry.amount = new_amount
            entry.description = new_description

    _, sub = new_state.find_subcategory(old.subcategory_id)
    if sub is not None:
        for expense in sub.expenses:
            if expense.id == transaction_id:
                expense.amount = new_amount
                expense.description = new_description

    _apply_spent_delta(new_state, old.subcategory_id, new_amount - old.amount)
    return new_state


def delete_expense(state: FinanceState, transaction_id: str) -> FinanceState:
    old = next((t for t in state.transactions if t.id == transaction_id), None)
    if old is None:
        return state

    new_state = copy.deepcopy(state)
    new_state.transactions = [t for t in new_state.transactions if t.id != transaction_id]

    _, sub = new_state.find_subcategory(old.subcategory_id)
    if sub is not None:
        sub.expenses = [e for e in sub.expenses if e.id != transaction_id]

    _apply_spent_delta(new_state, old.subcategory_id, -old.amount)
    return new_state


def transfer(state: FinanceState, from_category_id: str, to_category_id: str, amount: float) -> FinanceState:
    """
    Move allocation from one category to another.

    The two totals keep their sum; each side's subcategories are rescaled to
    the new category total.
    """
    if amount <= 0:
        raise InvalidInputError(f"Transfer amount must be positive, got {amount}")
    if from_category_id == to_category_id:
        return state

    source = state.find_category(from_category_id)
    target = state.find_category(to_category_id)
    if source is None or target is None:
        return state
    if amount > source.total_allocated:
        raise InvalidInputError(
            f"Cannot transfer {amount} out of {source.id}, only {source.total_allocated} allocated"
        )

    new_state = copy.deepcopy(state)
    source = new_state.find_category(from_category_id)
    target = new_state.find_category(to_category_id)

    _rescale_category(source, source.total_allocated - amount)
    _rescale_category(target, target.total_allocated + amount)
    return new_state


def handle_income_change(state: FinanceState, new_income: float) -> FinanceState:
    """
    Re-derive every category allocation from a new income total.

    Only allocation figures move; spent amounts are never touched.
    """
    new_state = copy.deepcopy(state)
    new_state.income = new_income
    for category in new_state.categories:
        _rescale_category(category, allocate(new_income, category.percentage))
    return new_state
