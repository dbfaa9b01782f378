"""
Database models using SQLModel
Each resource pool is persisted as one JSON document row
"""

from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PoolDocument(SQLModel, table=True):
    """Serialized state of one resource pool"""

    __tablename__ = "pool_documents"

    pool_name: str = Field(primary_key=True, max_length=100)
    data: str  # JSON string of PoolState
    version: int = Field(default=1)
    updated_at: datetime = Field(default_factory=_utcnow, index=True)
