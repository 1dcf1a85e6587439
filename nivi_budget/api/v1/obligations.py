"""EMI and debt endpoints under /v1/finance"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from nivi_budget.api.dependencies import get_finance_store, get_request_id, get_snapshot_writer
from nivi_budget.api.v1.mutations import apply_mutation
from nivi_budget.api.v1.schemas import (
    DebtRequest,
    DebtSchema,
    DebtStatus,
    EMIRequest,
    EMIStatus,
    FinanceDocumentSchema,
    ObligationsResponse,
)
from nivi_budget.domain.obligations import (
    add_debt,
    add_emi,
    debt_months_remaining,
    delete_debt,
    delete_emi,
    due_debt_reminders,
    edit_debt,
    edit_emi,
    emi_progress,
    pay_debt,
    pay_emi,
)
from nivi_budget.domain.serialization import state_to_document
from nivi_budget.infrastructure.database.snapshots import SnapshotWriter
from nivi_budget.services.finance_store import FinanceStore

router = APIRouter()


@router.get("/finance/obligations", response_model=ObligationsResponse)
def get_obligations(
    today: Optional[date] = Query(None, description="Reference day for reminders, defaults to today"),
    store: FinanceStore = Depends(get_finance_store),
):
    """
    EMIs with their progress, debts with months remaining, and due reminders.

    A reminder is due when it falls today or tomorrow.
    """
    state = store.state
    document = state_to_document(state)
    debts_by_id = {d["id"]: d for d in document["debts"]}

    return ObligationsResponse(
        emis=[
            EMIStatus(**item, progress=emi_progress(emi))
            for item, emi in zip(document["emis"], state.emis)
        ],
        debts=[
            DebtStatus(
                **item,
                months_remaining=debt_months_remaining(debt.pending_amount, debt.monthly_payment),
            )
            for item, debt in zip(document["debts"], state.debts)
        ],
        due_reminders=[DebtSchema(**debts_by_id[d.id]) for d in due_debt_reminders(state, today)],
    )


@router.post("/finance/emis", response_model=FinanceDocumentSchema)
def create_emi(
    body: EMIRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        add_emi, body.name, body.amount, body.tenure,
    )


@router.put("/finance/emis/{emi_id}", response_model=FinanceDocumentSchema)
def update_emi(
    emi_id: str,
    body: EMIRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        edit_emi, emi_id, body.name, body.amount, body.tenure,
    )


@router.delete("/finance/emis/{emi_id}", response_model=FinanceDocumentSchema)
def remove_emi(
    emi_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        delete_emi, emi_id,
    )


@router.post("/finance/emis/{emi_id}/payments", response_model=FinanceDocumentSchema)
def create_emi_payment(
    emi_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    """Pay one installment, booked as an expense under needs / Bank EMI"""
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        pay_emi, emi_id,
    )


@router.post("/finance/debts", response_model=FinanceDocumentSchema)
def create_debt(
    body: DebtRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        add_debt, body.name, body.pending_amount, body.monthly_payment, body.reminder_date,
    )


@router.put("/finance/debts/{debt_id}", response_model=FinanceDocumentSchema)
def update_debt(
    debt_id: str,
    body: DebtRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        edit_debt, debt_id, body.name, body.pending_amount, body.monthly_payment, body.reminder_date,
    )


@router.delete("/finance/debts/{debt_id}", response_model=FinanceDocumentSchema)
def remove_debt(
    debt_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        delete_debt, debt_id,
    )


@router.post("/finance/debts/{debt_id}/payments", response_model=FinanceDocumentSchema)
def create_debt_payment(
    debt_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    store: FinanceStore = Depends(get_finance_store),
    writer: SnapshotWriter = Depends(get_snapshot_writer),
):
    """Pay one monthly installment, booked as an expense under needs / Debts"""
    return apply_mutation(
        store, background_tasks, writer, get_request_id(request),
        pay_debt, debt_id,
    )
