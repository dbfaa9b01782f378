"""
Allocation ledger - the authoritative record of who holds what.
Assignments are never deleted; returning flips their status.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.exceptions import AssignmentNotFound
from src.models import Assignment, AssignmentStatus, PoolState, generate_id

logger = logging.getLogger(__name__)


class AllocationLedger:
    """View over the assignments of a pool state"""

    def __init__(self, state: PoolState, clock: Callable[[], datetime]):
        self.state = state
        self._clock = clock

    def active_count(self, resource_id: str) -> int:
        """Number of units of a resource currently assigned"""
        return sum(
            1
            for a in self.state.assignments
            if a.resource_id == resource_id and a.status == AssignmentStatus.ACTIVE
        )

    def create(
        self, resource_id: str, user_id: str, due_return_at: Optional[datetime] = None
    ) -> Assignment:
        """
        Append a new active assignment.

        The caller must have verified capacity beforehand.
        """
        assignment = Assignment(
            id=generate_id(),
            resource_id=resource_id,
            user_id=user_id,
            assigned_at=self._clock(),
            due_return_at=due_return_at,
        )
        self.state.assignments.append(assignment)
        logger.info(f"Assigned {resource_id} to user {user_id} ({assignment.id})")
        return assignment

    def release(self, assignment_id: str) -> Assignment:
        """
        Mark an active assignment as returned.

        Raises:
            AssignmentNotFound: if no active assignment has that id
        """
        for assignment in self.state.assignments:
            if assignment.id == assignment_id and assignment.status == AssignmentStatus.ACTIVE:
                assignment.status = AssignmentStatus.RETURNED
                logger.info(
                    f"Released {assignment.resource_id} from user {assignment.user_id} ({assignment.id})"
                )
                return assignment
        raise AssignmentNotFound(assignment_id)

    def find_active_for(self, resource_id: str, user_id: str) -> Optional[Assignment]:
        """Earliest active assignment of a resource held by a user"""
        for assignment in self.state.assignments:
            if (
                assignment.resource_id == resource_id
                and assignment.user_id == user_id
                and assignment.status == AssignmentStatus.ACTIVE
            ):
                return assignment
        return None

    def list_active_for(self, user_id: str) -> List[Assignment]:
        return [
            a
            for a in self.state.assignments
            if a.user_id == user_id and a.status == AssignmentStatus.ACTIVE
        ]

    def list_active(self) -> List[Assignment]:
        return [a for a in self.state.assignments if a.status == AssignmentStatus.ACTIVE]
