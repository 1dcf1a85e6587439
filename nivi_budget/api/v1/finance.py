"""GET/PUT /v1/finance plus income and transfer mutations"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from nivi_budget.api.dependencies import (
    get_current_user_id,
    get_finance_store,
    get_request_id,
    get_session_registry,
    get_snapshot_writer,
)
from nivi_budget.api.v1.mutations import apply_mutation
from nivi_budget.api.v1.schemas import (
    FinanceDocumentSchema,
    IncomeRequest,
    IncomeUpdateRequest,
    TransferRequest,
)
from nivi_budget.domain.exceptions import InvalidDocumentError
from nivi_budget.domain.income import add_income, delete_income, edit_income
from nivi_budget.domain.ledger import transfer
from nivi_budget.domain.serialization import state_from_document, state_to_document
from nivi_budget.infrastructure.database.repositories import FinanceDocumentRepository
from nivi_budget.infrastructure.database.session import get_db
from nivi_budget.infrastructure.database.snapshots import SnapshotWriter
from nivi_budget.services.finance_store import FinanceSessionRegistry, FinanceStore

router = APIRouter()


@router.get("/finance", response_model=FinanceDocumentSchema)
def get_finance(store: FinanceStore = Depends(get_finance_store)):
    """
    Retrieve the caller's finance state.

    First access creates an empty document and seeds the four categories at
    zero allocation.
    """
    return state_to_document(store.state)


@router.put("/finance", response_model=FinanceDocumentSchema)
def put_finance(
    body: FinanceDocumentSchema,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    registry: FinanceSessionRegistry = Depends(get_session_registry),
):
    """
    Replace the whole finance document.

    Stored verbatim, no merge and no version check: last writer wins.
    """
    try:
        state = state_from_document(body.model_dump(by_alias=True, mode="json"))
    except InvalidDocumentError as e:
        logging.warning(f"Rejected finance document: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    document = state_to_document(state)
    FinanceDocumentRepository(db).put(user_id, document)
    db.commit()
    registry.install(user_id, state)
    return document


@router.post("/finance/income", response_model=FinanceDocumentSchema)
def create_income(
    body: IncomeRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    """Record income and re-allocate every category"""
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        add_income, body.amount, body.description, body.source, body.date,
    )


@router.patch("/finance/income/{transaction_id}", response_model=FinanceDocumentSchema)
def update_income(
    transaction_id: str,
    body: IncomeUpdateRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        edit_income, transaction_id, body.amount, body.description, body.source, body.date,
    )


@router.delete("/finance/income/{transaction_id}", response_model=FinanceDocumentSchema)
def remove_income(
    transaction_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        delete_income, transaction_id,
    )


@router.post("/finance/transfers", response_model=FinanceDocumentSchema)
def create_transfer(
    body: TransferRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    """Move allocation between two categories; their combined total is unchanged"""
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        transfer, body.from_category_id, body.to_category_id, body.amount,
    )
