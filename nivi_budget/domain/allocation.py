"""Allocation calculator - maps income onto categories and subcategories"""

from dataclasses import replace
from typing import Dict, List, Tuple

from nivi_budget.domain.models import MainCategory, SubCategory, new_id

# (id, display name, share of income)
MAIN_CATEGORIES: List[Tuple[str, str, float]] = [
    ("needs", "NEEDS", 60),
    ("wants", "WANTS", 20),
    ("goals", "GOALS", 15),
    ("unwanted", "UNWANTED & UNEXPECTED", 5),
]

DEFAULT_SUBCATEGORIES: Dict[str, List[Tuple[str, float]]] = {
    "needs": [
        ("Bank EMI", 30),
        ("Debts", 20),
        ("Home Needs", 15),
        ("Bills", 20),
        ("Education", 10),
        ("Insurances", 5),
    ],
    "wants": [
        ("Vehicle (Gas/Repair)", 25),
        ("Phone/Gadgets", 20),
        ("Dr/Pharmacy Visits", 30),
        ("Investments", 25),
    ],
    "goals": [
        ("New Home", 40),
        ("New Vehicle", 30),
        ("New Furniture/Gadgets", 20),
        ("Tours/Travels", 10),
    ],
    "unwanted": [
        ("Hotels/Restaurants", 40),
        ("Entertainment", 35),
        ("Parties", 25),
    ],
}

FALLBACK_SUBCATEGORY_NAME = "General"


def allocate(income: float, percentage: float) -> float:
    """Share of income for a percentage. No rounding, display rounds."""
    return income * percentage / 100


def distribute_across_subcategories(
    category_allocated: float,
    subcategories: List[SubCategory],
) -> List[SubCategory]:
    """
    Derive each subcategory's amount and balance from its stored percentage.

    Spent amounts are left untouched. Returns new objects, so calling this
    twice with the same inputs gives identical output.
    """
    distributed = []
    for sub in subcategories:
        amount = allocate(category_allocated, sub.allocated_percentage)
        distributed.append(replace(sub, allocated_amount=amount, balance=amount - sub.spent_amount))
    return distributed


def refresh_category_totals(category: MainCategory) -> MainCategory:
    """Recompute total spent and total balance from the subcategories (in place)"""
    category.total_spent = sum(sub.spent_amount for sub in category.subcategories)
    category.total_balance = category.total_allocated - category.total_spent
    return category


def percentage_total(category: MainCategory) -> float:
    return sum(sub.allocated_percentage for sub in category.subcategories)


def seed_categories(income: float = 0.0) -> List[MainCategory]:
    """
    Build the four fixed categories with their default subcategories.

    With zero income every amount is 0 but the percentages are kept, so the
    first income addition restores proportional amounts.
    """
    categories = []
    for category_id, name, percentage in MAIN_CATEGORIES:
        total_allocated = allocate(income, percentage)
        subcategories = [
            SubCategory(id=new_id(), name=sub_name, allocated_percentage=sub_percentage)
            for sub_name, sub_percentage in DEFAULT_SUBCATEGORIES[category_id]
        ]
        category = MainCategory(
            id=category_id,
            name=name,
            percentage=percentage,
            total_allocated=total_allocated,
            subcategories=distribute_across_subcategories(total_allocated, subcategories),
        )
        categories.append(refresh_category_totals(category))
    return categories


def fallback_subcategory(category_allocated: float) -> SubCategory:
    """Single 100% line used when a category loses its last subcategory"""
    return SubCategory(
        id=new_id(),
        name=FALLBACK_SUBCATEGORY_NAME,
        allocated_percentage=100.0,
        allocated_amount=category_allocated,
        spent_amount=0.0,
        balance=category_allocated,
    )
