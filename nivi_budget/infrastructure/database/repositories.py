"""Data access layer for finance documents"""

from typing import Any, Dict

from sqlalchemy.orm import Session

from nivi_budget.domain.allocation import seed_categories
from nivi_budget.domain.models import FinanceState
from nivi_budget.domain.serialization import empty_document, state_from_document
from nivi_budget.infrastructure.database.models import FinanceDocument


class FinanceDocumentRepository:
    """Get/put store for the finance blob, keyed by user identity"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self, user_id: str) -> Dict[str, Any]:
        """Fetch the stored document, creating an empty default on first access"""
        row = self.db.get(FinanceDocument, user_id)
        if row is None:
            row = FinanceDocument(user_id=user_id, payload=empty_document())
            self.db.add(row)
            self.db.flush()
        return row.payload

    def put(self, user_id: str, document: Dict[str, Any]) -> FinanceDocument:
        """Store the document verbatim, replacing whatever was there"""
        row = self.db.get(FinanceDocument, user_id)
        if row is None:
            row = FinanceDocument(user_id=user_id, payload=document)
            self.db.add(row)
        else:
            row.payload = document
        self.db.flush()
        return row

    def load(self, user_id: str) -> FinanceState:
        """
        Load the user's state tree.

        Accounts without categories get the four defaults at 0 allocation, so
        there is something to display before any income exists.
        """
        state = state_from_document(self.get_or_create(user_id))
        if not state.categories:
            state.categories = seed_categories(state.income)
        return state
