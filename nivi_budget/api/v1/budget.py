"""Subcategory and expense mutations under /v1/finance"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from nivi_budget.api.dependencies import get_finance_store, get_request_id, get_snapshot_writer
from nivi_budget.api.v1.mutations import apply_mutation
from nivi_budget.api.v1.schemas import (
    AllocationRequest,
    ExpenseRequest,
    ExpenseUpdateRequest,
    FinanceDocumentSchema,
    SubcategoryCreateRequest,
    SubcategoryRenameRequest,
)
from nivi_budget.domain.ledger import add_expense, delete_expense, edit_expense
from nivi_budget.domain.redistribution import (
    add_subcategory,
    delete_subcategory,
    rename_subcategory,
    set_subcategory_allocation,
)
from nivi_budget.infrastructure.database.snapshots import SnapshotWriter
from nivi_budget.services.finance_store import FinanceStore

router = APIRouter()


@router.post("/finance/categories/{category_id}/subcategories", response_model=FinanceDocumentSchema)
def create_subcategory(
    category_id: str,
    body: SubcategoryCreateRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    """Add a subcategory; existing siblings shrink proportionally to make room"""
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        add_subcategory, category_id, body.name, body.percentage,
    )


@router.put(
    "/finance/categories/{category_id}/subcategories/{subcategory_id}/allocation",
    response_model=FinanceDocumentSchema,
)
def update_allocation(
    category_id: str,
    subcategory_id: str,
    body: AllocationRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    """Pin a subcategory's amount; siblings share what is left"""
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        set_subcategory_allocation, category_id, subcategory_id, body.amount,
    )


@router.patch(
    "/finance/categories/{category_id}/subcategories/{subcategory_id}",
    response_model=FinanceDocumentSchema,
)
def update_subcategory(
    category_id: str,
    subcategory_id: str,
    body: SubcategoryRenameRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        rename_subcategory, category_id, subcategory_id, body.name,
    )


@router.delete(
    "/finance/categories/{category_id}/subcategories/{subcategory_id}",
    response_model=FinanceDocumentSchema,
)
def remove_subcategory(
    category_id: str,
    subcategory_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    """Delete a subcategory together with its expenses"""
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        delete_subcategory, category_id, subcategory_id,
    )


@router.post("/finance/subcategories/{subcategory_id}/expenses", response_model=FinanceDocumentSchema)
def create_expense(
    subcategory_id: str,
    body: ExpenseRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    """Record an expense. Overspending is allowed and shows as a negative balance."""
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        add_expense, subcategory_id, body.amount, body.description, body.date,
        overspend_check=subcategory_id,
    )


@router.patch("/finance/transactions/{transaction_id}", response_model=FinanceDocumentSchema)
def update_expense(
    transaction_id: str,
    body: ExpenseUpdateRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        edit_expense, transaction_id, body.amount, body.description,
    )


@router.delete("/finance/transactions/{transaction_id}", response_model=FinanceDocumentSchema)
def remove_expense(
    transaction_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        delete_expense, transaction_id,
    )
