"""Income transactions and the allocation changes they trigger"""

import copy
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from nivi_budget.domain.allocation import seed_categories
from nivi_budget.domain.ledger import handle_income_change
from nivi_budget.domain.models import FinanceState, IncomeTransaction, new_id


def _income_total(state: FinanceState) -> float:
    return sum(t.amount for t in state.income_transactions)


def add_income(
    state: FinanceState,
    amount: float,
    description: str,
    source: str,
    date: Optional[datetime] = None,
) -> FinanceState:
    """
    Record income and re-allocate.

    The very first income on an account without categories seeds the four
    default categories; afterwards existing allocations are rescaled.
    """
    transaction = IncomeTransaction(
        id=new_id(),
        amount=amount,
        description=description,
        source=source,
        date=date or datetime.now(timezone.utc),
    )

    new_state = copy.deepcopy(state)
    new_state.income_transactions.append(transaction)
    new_income = _income_total(new_state)

    if not new_state.categories:
        new_state.income = new_income
        new_state.categories = seed_categories(new_income)
        return new_state
    return handle_income_change(new_state, new_income)


def edit_income(
    state: FinanceState,
    transaction_id: str,
    amount: float,
    description: Optional[str] = None,
    source: Optional[str] = None,
    date: Optional[datetime] = None,
) -> FinanceState:
    if not any(t.id == transaction_id for t in state.income_transactions):
        return state

    new_state = copy.deepcopy(state)
    new_state.income_transactions = [
        replace(
            t,
            amount=amount,
            description=t.description if description is None else description,
            source=t.source if source is None else source,
            date=t.date if date is None else date,
        )
        if t.id == transaction_id
        else t
        for t in new_state.income_transactions
    ]
    return handle_income_change(new_state, _income_total(new_state))


def delete_income(state: FinanceState, transaction_id: str) -> FinanceState:
    if not any(t.id == transaction_id for t in state.income_transactions):
        return state

    new_state = copy.deepcopy(state)
    new_state.income_transactions = [t for t in new_state.income_transactions if t.id != transaction_id]
    return handle_income_change(new_state, _income_total(new_state))
