"""Fire-and-forget persistence of finance snapshots after each mutation"""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nivi_budget.infrastructure.database.repositories import FinanceDocumentRepository
from nivi_budget.infrastructure.database.session import SessionLocal
from nivi_budget.infrastructure.observability.metrics import (
    snapshot_save_failures_counter,
    snapshot_save_latency_histogram,
)

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Pushes the whole finance document to the store in its own session"""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def save(self, user_id: str, document: Dict[str, Any]) -> bool:
        """
        Write the snapshot, last writer wins.

        Failures are logged and counted, never raised and never retried: the
        in-memory state stays as it is and the next mutation's save is the
        retry.

        Returns:
            True when the snapshot was committed
        """
        db = self.session_factory()
        try:
            with snapshot_save_latency_histogram.time():
                FinanceDocumentRepository(db).put(user_id, document)
                db.commit()
            return True
        except SQLAlchemyError:
            db.rollback()
            snapshot_save_failures_counter.inc()
            logger.exception("Snapshot save failed", extra={"user_id": user_id})
            return False
        finally:
            db.close()
