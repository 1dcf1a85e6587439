"""
Redistribution engine - keeps sibling subcategories summing to 100%.

One rule governs every mutation: when a subcategory's share changes, the
siblings absorb the difference in proportion to their current percentages.
If the siblings hold 0% between them the remainder is split evenly.
"""

import copy
import logging
from typing import List

from nivi_budget.domain.allocation import (
    distribute_across_subcategories,
    fallback_subcategory,
    refresh_category_totals,
)
from nivi_budget.domain.exceptions import InvalidInputError
from nivi_budget.domain.models import FinanceState, SubCategory, new_id

logger = logging.getLogger(__name__)

# Relative slack when comparing an edited amount with the category allocation
AMOUNT_TOLERANCE = 1e-9


def scale_siblings(siblings: List[SubCategory], target_total: float) -> List[float]:
    """
    New percentages for siblings so that they sum to target_total.

    Proportional to the current percentages, even split when those sum to 0.
    """
    if not siblings:
        return []
    current_total = sum(sub.allocated_percentage for sub in siblings)
    if current_total > 0:
        return [sub.allocated_percentage / current_total * target_total for sub in siblings]
    return [target_total / len(siblings)] * len(siblings)


def set_subcategory_allocation(
    state: FinanceState,
    category_id: str,
    subcategory_id: str,
    new_amount: float,
) -> FinanceState:
    """
    Pin one subcategory to an amount and spread the rest over its siblings.

    The edited line's percentage becomes new_amount / category total; the
    siblings share 100 minus that. A category without allocation, or one with
    a single subcategory, has nothing to redistribute and is left unchanged.
    """
    if new_amount < 0:
        raise InvalidInputError(f"Allocation must not be negative, got {new_amount}")

    category = state.find_category(category_id)
    if category is None or category.find_subcategory(subcategory_id) is None:
        return state

    total = category.total_allocated
    if total <= 0 or len(category.subcategories) < 2:
        logger.info(
            "Allocation edit skipped",
            extra={"category_id": category_id, "subcategory_id": subcategory_id, "total_allocated": total},
        )
        return state
    if new_amount > total * (1 + AMOUNT_TOLERANCE):
        raise InvalidInputError(f"Allocation {new_amount} exceeds category allocation {total}")

    new_state = copy.deepcopy(state)
    category = new_state.find_category(category_id)

    new_percentage = min(new_amount / total * 100, 100.0)
    siblings = [sub for sub in category.subcategories if sub.id != subcategory_id]
    sibling_percentages = dict(
        zip((sub.id for sub in siblings), scale_siblings(siblings, 100 - new_percentage))
    )

    for sub in category.subcategories:
        sub.allocated_percentage = sibling_percentages.get(sub.id, new_percentage)

    category.subcategories = distribute_across_subcategories(total, category.subcategories)
    refresh_category_totals(category)
    return new_state


def add_subcategory(
    state: FinanceState,
    category_id: str,
    name: str,
    percentage: float,
) -> FinanceState:
    """Insert a subcategory at the requested share, scaling existing siblings down"""
    if not name or not name.strip():
        raise InvalidInputError("Subcategory name must not be empty")
    if percentage <= 0 or percentage > 100:
        raise InvalidInputError(f"Percentage must be within (0, 100], got {percentage}")

    if state.find_category(category_id) is None:
        return state

    new_state = copy.deepcopy(state)
    category = new_state.find_category(category_id)

    siblings = category.subcategories
    if not siblings:
        percentage = 100.0
    for sub, scaled in zip(siblings, scale_siblings(siblings, 100 - percentage)):
        sub.allocated_percentage = scaled

    siblings.append(SubCategory(id=new_id(), name=name.strip(), allocated_percentage=percentage))
    category.subcategories = distribute_across_subcategories(category.total_allocated, siblings)
    refresh_category_totals(category)
    return new_state


def delete_subcategory(state: FinanceState, category_id: str, subcategory_id: str) -> FinanceState:
    """
    Remove a subcategory and hand its share to the remaining siblings.

    Its expenses leave the flat transaction log too. Deleting the last line
    leaves a single "General" subcategory at 100%.
    """
    category = state.find_category(category_id)
    if category is None or category.find_subcategory(subcategory_id) is None:
        return state

    new_state = copy.deepcopy(state)
    category = new_state.find_category(category_id)

    remaining = [sub for sub in category.subcategories if sub.id != subcategory_id]
    if remaining:
        for sub, scaled in zip(remaining, scale_siblings(remaining, 100.0)):
            sub.allocated_percentage = scaled
        category.subcategories = distribute_across_subcategories(category.total_allocated, remaining)
    else:
        category.subcategories = [fallback_subcategory(category.total_allocated)]

    refresh_category_totals(category)
    new_state.transactions = [t for t in new_state.transactions if t.subcategory_id != subcategory_id]
    return new_state


def rename_subcategory(state: FinanceState, category_id: str, subcategory_id: str, name: str) -> FinanceState:
    if not name or not name.strip():
        raise InvalidInputError("Subcategory name must not be empty")

    category = state.find_category(category_id)
    if category is None or category.find_subcategory(subcategory_id) is None:
        return state

    new_state = copy.deepcopy(state)
    new_state.find_category(category_id).find_subcategory(subcategory_id).name = name.strip()
    return new_state
