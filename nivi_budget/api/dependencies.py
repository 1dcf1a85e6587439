"""Dependency injection for FastAPI endpoints"""

import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from nivi_budget.domain.exceptions import IdentityServiceError, InvalidCredentialsError, InvalidDocumentError
from nivi_budget.infrastructure.clients.identity import IdentityClient
from nivi_budget.infrastructure.database.repositories import FinanceDocumentRepository
from nivi_budget.infrastructure.database.session import get_db
from nivi_budget.infrastructure.database.snapshots import SnapshotWriter
from nivi_budget.infrastructure.observability.metrics import identity_failures_counter
from nivi_budget.services.finance_store import FinanceSessionRegistry, FinanceStore

bearer_scheme = HTTPBearer()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_identity_client() -> IdentityClient:
    """Provide identity service client instance"""
    return IdentityClient()


def get_snapshot_writer() -> SnapshotWriter:
    """Provide the background snapshot writer"""
    return SnapshotWriter()


def get_session_registry(request: Request) -> FinanceSessionRegistry:
    return request.app.state.finance_sessions


async def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    identity_client: IdentityClient = Depends(get_identity_client),
) -> str:
    """Resolve the bearer credential to a user identity"""
    try:
        return await identity_client.resolve_user(credentials.credentials)
    except InvalidCredentialsError:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    except IdentityServiceError as e:
        identity_failures_counter.inc()
        logging.error(f"Identity service error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Identity service unavailable")


def get_finance_store(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    registry: FinanceSessionRegistry = Depends(get_session_registry),
) -> FinanceStore:
    """Session-scoped store of the caller's finance state, loaded on first access"""
    try:
        store = registry.get_or_load(user_id, FinanceDocumentRepository(db))
        db.commit()  # persists the default document created on first access
        return store
    except InvalidDocumentError as e:
        db.rollback()
        logging.error(f"Stored finance data is invalid: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Stored finance data is invalid")
