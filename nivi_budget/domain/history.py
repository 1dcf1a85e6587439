"""Combined income and expense history"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from nivi_budget.domain.models import FinanceState
from nivi_budget.utils.date_utils import as_utc

INCOME_CATEGORY = "income"
UNKNOWN = "Unknown"


@dataclass
class HistoryEntry:
    """One row of the transaction history"""

    id: str
    type: str  # "income" or "expense"
    amount: float
    description: str
    date: datetime
    subcategory_name: str
    category_name: str
    category_id: str


def build_history(
    state: FinanceState,
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    since: Optional[datetime] = None,
) -> List[HistoryEntry]:
    """
    Merge expenses and income into one list, newest first.

    Expenses whose subcategory no longer exists are labelled "Unknown".
    search matches the description or subcategory name, case-insensitively.
    """
    entries = []
    for expense in state.transactions:
        category, sub = state.find_subcategory(expense.subcategory_id)
        entries.append(
            HistoryEntry(
                id=expense.id,
                type="expense",
                amount=expense.amount,
                description=expense.description,
                date=expense.date,
                subcategory_name=sub.name if sub else UNKNOWN,
                category_name=category.name if category else UNKNOWN,
                category_id=category.id if category else "",
            )
        )
    for income in state.income_transactions:
        entries.append(
            HistoryEntry(
                id=income.id,
                type="income",
                amount=income.amount,
                description=income.description,
                date=income.date,
                subcategory_name="Income",
                category_name="Income",
                category_id=INCOME_CATEGORY,
            )
        )

    if search:
        needle = search.lower()
        entries = [
            e for e in entries if needle in e.description.lower() or needle in e.subcategory_name.lower()
        ]
    if category_id:
        entries = [e for e in entries if e.category_id == category_id]
    if since is not None:
        entries = [e for e in entries if as_utc(e.date) >= as_utc(since)]

    return sorted(entries, key=lambda e: as_utc(e.date), reverse=True)


def net_total(entries: List[HistoryEntry]) -> float:
    """Income minus expenses over the given entries"""
    return sum(e.amount if e.type == "income" else -e.amount for e in entries)
