"""Unit tests for the redistribution engine"""

import random

import pytest
from datetime import datetime, timezone
from nivi_budget.domain.allocation import percentage_total
from nivi_budget.domain.exceptions import InvalidInputError
from nivi_budget.domain.ledger import add_expense
from nivi_budget.domain.models import Expense, FinanceState, MainCategory, SubCategory
from nivi_budget.domain.redistribution import (
    add_subcategory,
    delete_subcategory,
    rename_subcategory,
    scale_siblings,
    set_subcategory_allocation,
)


def make_state(total: float, percentages: dict[str, float], spent: dict[str, float] | None = None) -> FinanceState:
    """Single needs category with subcategories named after their ids"""
    spent = spent or {}
    subs = []
    for sub_id, pct in percentages.items():
        amount = total * pct / 100
        used = spent.get(sub_id, 0.0)
        subs.append(
            SubCategory(
                id=sub_id,
                name=sub_id.upper(),
                allocated_percentage=pct,
                allocated_amount=amount,
                spent_amount=used,
                balance=amount - used,
            )
        )
    total_spent = sum(spent.values())
    category = MainCategory(
        id="needs",
        name="NEEDS",
        percentage=60,
        total_allocated=total,
        total_spent=total_spent,
        total_balance=total - total_spent,
        subcategories=subs,
    )
    return FinanceState(income=total / 0.6, categories=[category])


def pct(state: FinanceState, sub_id: str) -> float:
    return state.find_subcategory(sub_id)[1].allocated_percentage


def test_scale_siblings_proportional_and_even_split():
    subs = [
        SubCategory(id="a", name="A", allocated_percentage=20),
        SubCategory(id="b", name="B", allocated_percentage=60),
    ]
    assert scale_siblings(subs, 40) == pytest.approx([10, 30])

    zero = [SubCategory(id=i, name=i, allocated_percentage=0) for i in "xyz"]
    assert scale_siblings(zero, 30) == pytest.approx([10, 10, 10])
    assert scale_siblings([], 50) == []


def test_set_allocation_scenario_two_siblings():
    """Test A 500 of 1000 edited to 700 leaves B with the remaining 30%"""
    state = make_state(1000, {"a": 50, "b": 50})

    result = set_subcategory_allocation(state, "needs", "a", 700)

    assert pct(result, "a") == pytest.approx(70)
    assert pct(result, "b") == pytest.approx(30)
    assert result.find_subcategory("a")[1].allocated_amount == pytest.approx(700)
    assert result.find_subcategory("b")[1].allocated_amount == pytest.approx(300)
    # input state is untouched
    assert pct(state, "a") == 50


def test_set_allocation_keeps_relative_emphasis_of_siblings():
    state = make_state(1000, {"a": 40, "b": 40, "c": 20}, spent={"c": 50})

    result = set_subcategory_allocation(state, "needs", "a", 100)

    assert pct(result, "a") == pytest.approx(10)
    assert pct(result, "b") == pytest.approx(60)
    assert pct(result, "c") == pytest.approx(30)
    c = result.find_subcategory("c")[1]
    assert c.balance == pytest.approx(300 - 50)
    assert result.categories[0].total_balance == pytest.approx(950)


def test_set_allocation_even_split_when_siblings_are_empty():
    state = make_state(1000, {"a": 100, "b": 0, "c": 0})

    result = set_subcategory_allocation(state, "needs", "a", 400)

    assert pct(result, "b") == pytest.approx(30)
    assert pct(result, "c") == pytest.approx(30)


def test_set_allocation_without_category_allocation_is_noop():
    state = make_state(0, {"a": 50, "b": 50})
    assert set_subcategory_allocation(state, "needs", "a", 10) is state


def test_set_allocation_on_single_subcategory_is_noop():
    state = make_state(1000, {"a": 100})
    assert set_subcategory_allocation(state, "needs", "a", 300) is state


def test_set_allocation_unknown_ids_are_noops():
    state = make_state(1000, {"a": 50, "b": 50})
    assert set_subcategory_allocation(state, "wants", "a", 10) is state
    assert set_subcategory_allocation(state, "needs", "zzz", 10) is state


@pytest.mark.parametrize("amount", [-1, 1000.5])
def test_set_allocation_rejects_out_of_range_amounts(amount):
    state = make_state(1000, {"a": 50, "b": 50})
    with pytest.raises(InvalidInputError):
        set_subcategory_allocation(state, "needs", "a", amount)


def test_add_subcategory_scales_existing_down():
    state = make_state(1000, {"a": 50, "b": 50})

    result = add_subcategory(state, "needs", "Gym", 20)

    category = result.categories[0]
    gym = category.subcategories[-1]
    assert gym.name == "Gym"
    assert gym.allocated_percentage == 20
    assert gym.allocated_amount == pytest.approx(200)
    assert gym.spent_amount == 0
    assert pct(result, "a") == pytest.approx(40)
    assert pct(result, "b") == pytest.approx(40)
    assert percentage_total(category) == pytest.approx(100)


def test_add_subcategory_even_split_when_siblings_are_empty():
    state = make_state(1000, {"a": 0, "b": 0})

    result = add_subcategory(state, "needs", "Gym", 50)

    assert pct(result, "a") == pytest.approx(25)
    assert pct(result, "b") == pytest.approx(25)


@pytest.mark.parametrize("percentage", [0, -10, 100.1])
def test_add_subcategory_rejects_bad_percentage(percentage):
    state = make_state(1000, {"a": 100})
    with pytest.raises(InvalidInputError):
        add_subcategory(state, "needs", "Gym", percentage)


def test_add_subcategory_rejects_blank_name():
    state = make_state(1000, {"a": 100})
    with pytest.raises(InvalidInputError):
        add_subcategory(state, "needs", "   ", 10)


def test_delete_subcategory_hands_share_to_siblings():
    state = make_state(1000, {"a": 50, "b": 30, "c": 20}, spent={"c": 80})

    result = delete_subcategory(state, "needs", "c")

    category = result.categories[0]
    assert [s.id for s in category.subcategories] == ["a", "b"]
    assert pct(result, "a") == pytest.approx(62.5)
    assert pct(result, "b") == pytest.approx(37.5)
    assert category.total_spent == 0
    assert category.total_balance == pytest.approx(1000)


def test_delete_subcategory_cascades_to_transaction_log():
    state = make_state(1000, {"a": 50, "b": 50})
    when = datetime(2024, 5, 1, tzinfo=timezone.utc)
    state = add_expense(state, "a", 100, "groceries", when)
    state = add_expense(state, "b", 40, "water", when)

    result = delete_subcategory(state, "needs", "a")

    assert [t for t in result.transactions if t.subcategory_id == "a"] == []
    assert len(result.transactions) == 1
    assert result.categories[0].total_spent == pytest.approx(40)


def test_delete_last_subcategory_creates_general():
    """Test deleting the only subcategory leaves a fresh General line at 100%"""
    state = make_state(1000, {"a": 100}, spent={"a": 200})

    result = delete_subcategory(state, "needs", "a")

    category = result.categories[0]
    assert len(category.subcategories) == 1
    general = category.subcategories[0]
    assert general.name == "General"
    assert general.allocated_percentage == 100
    assert general.spent_amount == 0
    assert general.allocated_amount == 1000
    assert category.total_spent == 0


def test_delete_unknown_subcategory_is_noop():
    state = make_state(1000, {"a": 100})
    assert delete_subcategory(state, "needs", "nope") is state
    assert delete_subcategory(state, "goals", "a") is state


def test_rename_subcategory():
    state = make_state(1000, {"a": 100})

    result = rename_subcategory(state, "needs", "a", "  Rent ")

    assert result.find_subcategory("a")[1].name == "Rent"
    assert state.find_subcategory("a")[1].name == "A"
    assert rename_subcategory(state, "needs", "zzz", "Rent") is state
    with pytest.raises(InvalidInputError):
        rename_subcategory(state, "needs", "a", "")


def test_percentages_are_conserved_under_mixed_mutations():
    """Test every category still sums to 100% after a random sequence of mutations"""
    rng = random.Random(42)
    state = make_state(5000, {"a": 30, "b": 30, "c": 40})

    for step in range(200):
        category = state.categories[0]
        subs = category.subcategories
        action = rng.choice(["set", "add", "delete"])
        if action == "set" and len(subs) > 1:
            target = rng.choice(subs)
            state = set_subcategory_allocation(state, "needs", target.id, rng.uniform(0, category.total_allocated))
        elif action == "add":
            state = add_subcategory(state, "needs", f"line {step}", rng.uniform(1, 60))
        else:
            state = delete_subcategory(state, "needs", rng.choice(subs).id)

        assert percentage_total(state.categories[0]) == pytest.approx(100, rel=1e-9)
