"""Shared write path for every finance mutation endpoint"""

import logging
import time
from typing import Any, Callable, Dict

from fastapi import BackgroundTasks, HTTPException

from nivi_budget.domain.exceptions import InvalidInputError
from nivi_budget.domain.models import FinanceState
from nivi_budget.domain.serialization import state_to_document
from nivi_budget.infrastructure.database.snapshots import SnapshotWriter
from nivi_budget.infrastructure.observability.logging import log_mutation
from nivi_budget.infrastructure.observability.metrics import record_mutation
from nivi_budget.services.finance_store import FinanceStore


def apply_mutation(
    store: FinanceStore,
    background_tasks: BackgroundTasks,
    writer: SnapshotWriter,
    request_id: str,
    operation: Callable[..., FinanceState],
    *args,
    overspend_check: str | None = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Apply a domain operation and schedule the snapshot save.

    Flow:
    1. Run the operation against the in-memory state (synchronous)
    2. Schedule a background save of the whole document, not awaited
    3. Record metrics and logs
    4. Return the updated document

    Unknown ids leave the state unchanged; nothing is saved in that case.
    """
    start_time = time.time()
    before = store.state

    try:
        state = store.apply(operation, *args, **kwargs)
    except InvalidInputError as e:
        logging.warning(f"Rejected {operation.__name__}: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logging.error(f"Unexpected error in {operation.__name__}: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    document = state_to_document(state)
    if state is before:
        return document

    background_tasks.add_task(writer.save, store.user_id, document)

    overspent = False
    if overspend_check is not None:
        _, sub = state.find_subcategory(overspend_check)
        overspent = sub is not None and sub.is_overspent

    duration_ms = (time.time() - start_time) * 1000
    record_mutation(operation.__name__, overspent=overspent)
    log_mutation(request_id, store.user_id, operation.__name__, duration_ms)
    return document
