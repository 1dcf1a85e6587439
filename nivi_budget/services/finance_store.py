"""
Session-scoped ownership of each user's finance state.

A FinanceStore holds the canonical in-memory tree for one user. Domain
operations are pure functions from state to state; apply() runs one under
the store lock and swaps the result in, which makes it the only write path.
Persisting the result is the caller's job and never blocks a mutation.
"""

import logging
import threading
from typing import Callable, Dict

from nivi_budget.domain.models import FinanceState
from nivi_budget.infrastructure.database.repositories import FinanceDocumentRepository

logger = logging.getLogger(__name__)


class FinanceStore:
    """Owner of one user's finance state"""

    def __init__(self, user_id: str, state: FinanceState):
        self.user_id = user_id
        self._state = state
        self._lock = threading.Lock()

    @property
    def state(self) -> FinanceState:
        return self._state

    def apply(self, operation: Callable[..., FinanceState], *args, **kwargs) -> FinanceState:
        """
        Run a domain operation against the current state and keep its result.

        Exceptions from the operation propagate and leave the state as it was.
        """
        with self._lock:
            self._state = operation(self._state, *args, **kwargs)
            return self._state

    def replace(self, state: FinanceState) -> FinanceState:
        """Swap in a whole new tree, as received from a wholesale PUT"""
        with self._lock:
            self._state = state
            return self._state


class FinanceSessionRegistry:
    """
    Per-application map of user id to FinanceStore.

    Stores are loaded on first access. Two clients of the same user share one
    store within a process; across processes the last saved snapshot wins.
    """

    def __init__(self):
        self._stores: Dict[str, FinanceStore] = {}
        self._lock = threading.Lock()

    def get_or_load(self, user_id: str, repository: FinanceDocumentRepository) -> FinanceStore:
        with self._lock:
            store = self._stores.get(user_id)
            if store is None:
                store = FinanceStore(user_id, repository.load(user_id))
                self._stores[user_id] = store
                logger.info("Finance state loaded", extra={"user_id": user_id})
            return store

    def install(self, user_id: str, state: FinanceState) -> FinanceStore:
        """Make state the canonical tree for user_id without loading the stored one"""
        with self._lock:
            store = self._stores.get(user_id)
            if store is None:
                store = FinanceStore(user_id, state)
                self._stores[user_id] = store
                return store
        store.replace(state)
        return store
