"""
Repository pattern for database access
Provides clean separation between business logic and data access
"""

from sqlmodel import Session
from typing import Optional
from datetime import datetime, timezone

from src.db_models import PoolDocument
from src.models import PoolState


class PoolDocumentRepository:
    """Repository for PoolDocument operations"""

    def __init__(self, session: Session):
        self.session = session

    def get_document(self, pool_name: str) -> Optional[PoolDocument]:
        """Get the raw document row for a pool"""
        return self.session.get(PoolDocument, pool_name)

    def load_state(self, pool_name: str) -> Optional[PoolState]:
        """Deserialize a pool's state, or None if it was never saved"""
        document = self.get_document(pool_name)
        if document is None:
            return None
        return PoolState.model_validate_json(document.data)

    def save_state(self, pool_name: str, state: PoolState) -> PoolDocument:
        """Replace the pool's document with the given state"""
        data = state.model_dump_json()
        document = self.get_document(pool_name)

        if document is None:
            document = PoolDocument(pool_name=pool_name, data=data)
            self.session.add(document)
        else:
            document.data = data
            document.version += 1
            document.updated_at = datetime.now(timezone.utc)

        self.session.commit()
        self.session.refresh(document)
        return document

