"""
Type-safe data models for the resource pool
Pydantic models for persisted entities, dataclasses for operation results
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.exceptions import ErrorKind


class ResourceType(str, Enum):
    """Kinds of shared resources"""

    EQUIPMENT = "equipment"
    LICENSE = "license"
    PARKING = "parking"


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    RETURNED = "returned"


class Resource(BaseModel):
    """A named, quantity-limited shared item"""

    id: str
    type: ResourceType
    name: str
    quantity: int = Field(ge=0)
    metadata: Optional[Dict[str, str]] = None


class Assignment(BaseModel):
    """One unit of a resource bound to one user"""

    id: str
    resource_id: str
    user_id: str
    assigned_at: datetime
    due_return_at: Optional[datetime] = None
    status: AssignmentStatus = AssignmentStatus.ACTIVE


class WaitlistEntry(BaseModel):
    """Pending request for a resource that had no spare capacity"""

    id: str
    resource_id: str
    user_id: str
    requested_at: datetime
    # Stored but not used for ordering
    priority: Optional[float] = None


class UtilizationLogEntry(BaseModel):
    """Daily allocated-vs-total snapshot for one resource"""

    resource_id: str
    date: str  # YYYY-MM-DD
    allocated: int
    total: int


class ConversationMessage(BaseModel):
    role: str  # "user" or "assistant"
    content: str


class PoolState(BaseModel):
    """The single serialized document owned by the arbitration engine"""

    resources: List[Resource] = Field(default_factory=list)
    assignments: List[Assignment] = Field(default_factory=list)
    waitlist: List[WaitlistEntry] = Field(default_factory=list)
    utilization_log: List[UtilizationLogEntry] = Field(default_factory=list)
    notifications: Dict[str, List[str]] = Field(default_factory=dict)
    conversations: Dict[str, List[ConversationMessage]] = Field(default_factory=dict)


@dataclass
class RequestResult:
    """Outcome of a resource request"""

    ok: bool
    message: str
    assignment_id: Optional[str] = None
    waitlist_position: Optional[int] = None
    error: Optional[ErrorKind] = None

    @property
    def granted(self) -> bool:
        return self.assignment_id is not None


@dataclass
class ReturnResult:
    """Outcome of a resource return"""

    ok: bool
    message: str
    auto_assigned: Optional[str] = None
    error: Optional[ErrorKind] = None


@dataclass
class ResourceAvailability:
    """Resource annotated with the number of free units"""

    id: str
    type: ResourceType
    name: str
    quantity: int
    available: int
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class UtilizationRecord:
    resource_id: str
    date: str
    allocated: int
    total: int
    utilization: float


DEFAULT_RESOURCES: List[Resource] = [
    Resource(
        id="P1",
        type=ResourceType.PARKING,
        name="Parking Spot 1",
        quantity=1,
        metadata={"location": "Lot A"},
    ),
    Resource(
        id="P2",
        type=ResourceType.PARKING,
        name="Parking Spot 2",
        quantity=1,
        metadata={"location": "Lot A"},
    ),
    Resource(id="L1", type=ResourceType.LICENSE, name="Adobe CC", quantity=5),
    Resource(id="E1", type=ResourceType.EQUIPMENT, name="Projector", quantity=2),
]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_ID_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Time-prefixed id: base36 milliseconds plus 7 random base36 chars"""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"{_base36(millis)}-{suffix}"
