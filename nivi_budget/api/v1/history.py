"""GET /v1/finance/history - Combined income and expense history"""

from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from nivi_budget.api.dependencies import get_finance_store
from nivi_budget.api.v1.schemas import HistoryItem, HistoryResponse
from nivi_budget.domain.history import build_history, net_total
from nivi_budget.services.finance_store import FinanceStore

router = APIRouter()

PERIOD_DAYS = {"week": 7, "month": 30}


def _period_start(period: str, now: datetime) -> Optional[datetime]:
    if period == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period in PERIOD_DAYS:
        return now - timedelta(days=PERIOD_DAYS[period])
    return None


@router.get("/finance/history", response_model=HistoryResponse)
def get_history(
    search: Optional[str] = Query(None, description="Matches description or subcategory name"),
    category: Optional[str] = Query(None, description="Category id, or 'income'"),
    period: Literal["all", "today", "week", "month"] = Query("all"),
    store: FinanceStore = Depends(get_finance_store),
):
    """
    Retrieve income and expenses, newest first.

    Returns:
        Matching entries and their net total (income minus expenses)
    """
    entries = build_history(
        store.state,
        search=search,
        category_id=category,
        since=_period_start(period, datetime.now(timezone.utc)),
    )

    return HistoryResponse(
        entries=[
            HistoryItem(
                id=e.id,
                type=e.type,
                amount=e.amount,
                description=e.description,
                date=e.date,
                subcategory_name=e.subcategory_name,
                category_name=e.category_name,
                category_id=e.category_id,
            )
            for e in entries
        ],
        net_total=net_total(entries),
    )
