"""Conversion between the domain tree and the stored camelCase JSON document"""

import math
from datetime import datetime
from typing import Any, Dict, Optional

from nivi_budget.domain.allocation import percentage_total
from nivi_budget.domain.exceptions import DomainException, InvalidDocumentError
from nivi_budget.domain.models import (
    CATEGORY_IDS,
    PERCENTAGE_TOLERANCE,
    EMI,
    Debt,
    Expense,
    FinanceState,
    IncomeTransaction,
    MainCategory,
    SubCategory,
)

INCOME_TOLERANCE = 1e-6


def empty_document() -> Dict[str, Any]:
    """Document created for a user on first access"""
    return state_to_document(FinanceState())


def _dump_date(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _load_date(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    # JavaScript clients send a trailing Z
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _expense_to_dict(expense: Expense) -> Dict[str, Any]:
    return {
        "id": expense.id,
        "amount": expense.amount,
        "description": expense.description,
        "date": _dump_date(expense.date),
        "subcategoryId": expense.subcategory_id,
    }


def _expense_from_dict(data: Dict[str, Any]) -> Expense:
    return Expense(
        id=data["id"],
        amount=float(data["amount"]),
        description=data.get("description", ""),
        date=_load_date(data["date"]),
        subcategory_id=data["subcategoryId"],
    )


def state_to_document(state: FinanceState) -> Dict[str, Any]:
    return {
        "income": state.income,
        "incomeTransactions": [
            {
                "id": t.id,
                "amount": t.amount,
                "description": t.description,
                "source": t.source,
                "date": _dump_date(t.date),
            }
            for t in state.income_transactions
        ],
        "categories": [
            {
                "id": c.id,
                "name": c.name,
                "percentage": c.percentage,
                "totalAllocated": c.total_allocated,
                "totalSpent": c.total_spent,
                "totalBalance": c.total_balance,
                "subcategories": [
                    {
                        "id": s.id,
                        "name": s.name,
                        "allocatedAmount": s.allocated_amount,
                        "allocatedPercentage": s.allocated_percentage,
                        "spentAmount": s.spent_amount,
                        "balance": s.balance,
                        "expenses": [_expense_to_dict(e) for e in s.expenses],
                    }
                    for s in c.subcategories
                ],
            }
            for c in state.categories
        ],
        "emis": [
            {
                "id": e.id,
                "name": e.name,
                "amount": e.amount,
                "tenureLeft": e.tenure_left,
                "totalTenure": e.total_tenure,
                "paidCount": e.paid_count,
                "isActive": e.is_active,
            }
            for e in state.emis
        ],
        "debts": [
            {
                "id": d.id,
                "name": d.name,
                "pendingAmount": d.pending_amount,
                "monthlyPayment": d.monthly_payment,
                "totalMonths": d.total_months,
                "paidAmount": d.paid_amount,
                "isActive": d.is_active,
                "reminderDate": _dump_date(d.reminder_date),
            }
            for d in state.debts
        ],
        "transactions": [_expense_to_dict(t) for t in state.transactions],
    }


def state_from_document(document: Dict[str, Any]) -> FinanceState:
    """
    Rebuild the domain tree from a stored document.

    Raises:
        InvalidDocumentError: On missing keys, bad values or broken invariants
    """
    try:
        state = FinanceState(
            income=float(document.get("income", 0)),
            income_transactions=[
                IncomeTransaction(
                    id=t["id"],
                    amount=float(t["amount"]),
                    description=t.get("description", ""),
                    source=t.get("source", ""),
                    date=_load_date(t["date"]),
                )
                for t in document.get("incomeTransactions", [])
            ],
            categories=[
                MainCategory(
                    id=c["id"],
                    name=c["name"],
                    percentage=float(c["percentage"]),
                    total_allocated=float(c.get("totalAllocated", 0)),
                    total_spent=float(c.get("totalSpent", 0)),
                    total_balance=float(c.get("totalBalance", 0)),
                    subcategories=[
                        SubCategory(
                            id=s["id"],
                            name=s["name"],
                            allocated_percentage=float(s["allocatedPercentage"]),
                            allocated_amount=float(s.get("allocatedAmount", 0)),
                            spent_amount=float(s.get("spentAmount", 0)),
                            balance=float(s.get("balance", 0)),
                            expenses=[_expense_from_dict(e) for e in s.get("expenses", [])],
                        )
                        for s in c.get("subcategories", [])
                    ],
                )
                for c in document.get("categories", [])
            ],
            emis=[
                EMI(
                    id=e["id"],
                    name=e["name"],
                    amount=float(e["amount"]),
                    tenure_left=int(e["tenureLeft"]),
                    total_tenure=int(e["totalTenure"]),
                    paid_count=int(e.get("paidCount", 0)),
                    is_active=bool(e.get("isActive", True)),
                )
                for e in document.get("emis", [])
            ],
            debts=[
                Debt(
                    id=d["id"],
                    name=d["name"],
                    pending_amount=float(d["pendingAmount"]),
                    monthly_payment=float(d["monthlyPayment"]),
                    total_months=int(d["totalMonths"]),
                    paid_amount=float(d.get("paidAmount", 0)),
                    is_active=bool(d.get("isActive", True)),
                    reminder_date=_load_date(d.get("reminderDate")),
                )
                for d in document.get("debts", [])
            ],
            transactions=[_expense_from_dict(t) for t in document.get("transactions", [])],
        )
    except (KeyError, ValueError, TypeError, DomainException) as e:
        raise InvalidDocumentError(f"Invalid finance document: {e}") from e

    _check_tree(state)
    return state


def _check_tree(state: FinanceState) -> None:
    """Rules spanning the whole tree; an empty category list is left for seeding"""
    if state.categories:
        ids = sorted(c.id for c in state.categories)
        if ids != sorted(CATEGORY_IDS):
            raise InvalidDocumentError(f"Expected categories {list(CATEGORY_IDS)}, got {ids}")
        for category in state.categories:
            if category.subcategories and abs(percentage_total(category) - 100) > PERCENTAGE_TOLERANCE:
                raise InvalidDocumentError(
                    f"Subcategory shares of {category.id!r} sum to {percentage_total(category)}, not 100"
                )

    received = sum(t.amount for t in state.income_transactions)
    if not math.isclose(state.income, received, rel_tol=1e-9, abs_tol=INCOME_TOLERANCE):
        raise InvalidDocumentError(
            f"Income {state.income} does not match its transactions, which sum to {received}"
        )
