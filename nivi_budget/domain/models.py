"""Domain models - pure Python dataclasses representing the finance state tree"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from nivi_budget.domain.exceptions import InvalidInputError

CATEGORY_IDS = ("needs", "wants", "goals", "unwanted")

# Slack for percentages that drift above 100 after repeated redistribution
PERCENTAGE_TOLERANCE = 1e-6


def new_id() -> str:
    return uuid.uuid4().hex


def _require_name(name: str, what: str) -> None:
    if not name or not name.strip():
        raise InvalidInputError(f"{what} name must not be empty")


@dataclass
class Expense:
    """Money spent out of a subcategory"""

    id: str
    amount: float
    description: str
    date: datetime
    subcategory_id: str  # back-reference, the subcategory owns the expense

    def __post_init__(self):
        if self.amount <= 0:
            raise InvalidInputError(f"Expense amount must be positive, got {self.amount}")


@dataclass
class SubCategory:
    """User-adjustable budget line inside a main category"""

    id: str
    name: str
    allocated_percentage: float
    allocated_amount: float = 0.0
    spent_amount: float = 0.0
    balance: float = 0.0  # negative means overspent
    expenses: List[Expense] = field(default_factory=list)

    def __post_init__(self):
        _require_name(self.name, "Subcategory")
        if not -PERCENTAGE_TOLERANCE <= self.allocated_percentage <= 100 + PERCENTAGE_TOLERANCE:
            raise InvalidInputError(
                f"Subcategory percentage must be within [0, 100], got {self.allocated_percentage}"
            )
        if self.spent_amount < 0:
            raise InvalidInputError(f"Spent amount must not be negative, got {self.spent_amount}")

    @property
    def is_overspent(self) -> bool:
        return self.balance < 0


@dataclass
class MainCategory:
    """One of the four fixed top-level budget buckets"""

    id: str
    name: str
    percentage: float  # share of income
    total_allocated: float = 0.0
    total_spent: float = 0.0
    total_balance: float = 0.0
    subcategories: List[SubCategory] = field(default_factory=list)

    def __post_init__(self):
        if self.id not in CATEGORY_IDS:
            raise InvalidInputError(f"Unknown category id: {self.id!r}")

    def find_subcategory(self, subcategory_id: str) -> Optional[SubCategory]:
        return next((s for s in self.subcategories if s.id == subcategory_id), None)


@dataclass
class IncomeTransaction:
    """Single recorded income; their sum is the current income"""

    id: str
    amount: float
    description: str
    source: str
    date: datetime

    def __post_init__(self):
        if self.amount <= 0:
            raise InvalidInputError(f"Income amount must be positive, got {self.amount}")


@dataclass
class EMI:
    """Fixed monthly loan installment tracked until tenure runs out"""

    id: str
    name: str
    amount: float
    tenure_left: int
    total_tenure: int
    paid_count: int = 0
    is_active: bool = True

    def __post_init__(self):
        _require_name(self.name, "EMI")
        if self.amount <= 0:
            raise InvalidInputError(f"EMI amount must be positive, got {self.amount}")
        if self.tenure_left < 0 or self.total_tenure < 0 or self.paid_count < 0:
            raise InvalidInputError("EMI tenure and paid count must not be negative")


@dataclass
class Debt:
    """Pending amount paid down through monthly payments"""

    id: str
    name: str
    pending_amount: float
    monthly_payment: float
    total_months: int
    paid_amount: float = 0.0
    is_active: bool = True
    reminder_date: Optional[datetime] = None

    def __post_init__(self):
        _require_name(self.name, "Debt")
        if self.monthly_payment <= 0:
            raise InvalidInputError(f"Monthly payment must be positive, got {self.monthly_payment}")
        if self.pending_amount < 0 or self.paid_amount < 0:
            raise InvalidInputError("Debt amounts must not be negative")


@dataclass
class FinanceState:
    """Aggregate root of one user's finances"""

    income: float = 0.0
    income_transactions: List[IncomeTransaction] = field(default_factory=list)
    categories: List[MainCategory] = field(default_factory=list)
    emis: List[EMI] = field(default_factory=list)
    debts: List[Debt] = field(default_factory=list)
    transactions: List[Expense] = field(default_factory=list)  # flat log of every expense

    def find_category(self, category_id: str) -> Optional[MainCategory]:
        return next((c for c in self.categories if c.id == category_id), None)

    def find_subcategory(self, subcategory_id: str) -> tuple[Optional[MainCategory], Optional[SubCategory]]:
        """Locate a subcategory and its owning category anywhere in the tree"""
        for category in self.categories:
            sub = category.find_subcategory(subcategory_id)
            if sub is not None:
                return category, sub
        return None, None
