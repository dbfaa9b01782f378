"""
Persistence boundary for the arbitration engine.
Loads and atomically replaces one pool document.
"""

import logging
from contextlib import AbstractContextManager
from typing import Callable

from sqlmodel import Session

from src.database import get_session
from src.models import PoolState
from src.repositories import PoolDocumentRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]


class PoolStore:
    """Reads and writes the serialized state of a single resource pool"""

    def __init__(self, pool_name: str, session_factory: SessionFactory = get_session):
        self.pool_name = pool_name
        self._session_factory = session_factory

    def load(self) -> PoolState:
        """Load the pool state, or an empty state for a new pool"""
        with self._session_factory() as session:
            state = PoolDocumentRepository(session).load_state(self.pool_name)

        if state is None:
            logger.info(f"No stored document for pool '{self.pool_name}', starting empty")
            return PoolState()
        return state

    def save(self, state: PoolState) -> None:
        with self._session_factory() as session:
            document = PoolDocumentRepository(session).save_state(self.pool_name, state)
            version = document.version
        logger.debug(f"Saved pool '{self.pool_name}' (version {version})")
