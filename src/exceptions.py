"""
Error kinds raised inside the resource pool core.
Business conditions are turned into failure results by the engine;
collaborator failures are logged and absorbed.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable reason attached to a failed request/return"""

    UNKNOWN_RESOURCE = "unknown_resource"
    NO_ACTIVE_ASSIGNMENT = "no_active_assignment"


class PoolError(Exception):
    """Base class for resource pool errors"""


class UnknownResource(PoolError):
    """Referenced resource id is not in the catalog"""

    def __init__(self, resource_id: str):
        super().__init__(f"Unknown resource: {resource_id}")
        self.resource_id = resource_id


class NoActiveAssignment(PoolError):
    """Return attempted for a resource the user does not hold"""

    def __init__(self, resource_id: str, user_id: str):
        super().__init__(f"No active assignment found for {resource_id} and you.")
        self.resource_id = resource_id
        self.user_id = user_id


class AssignmentNotFound(PoolError):
    """No active assignment with the given id exists in the ledger"""

    def __init__(self, assignment_id: str):
        super().__init__(f"No active assignment with id {assignment_id}")
        self.assignment_id = assignment_id


class TransportUnavailable(PoolError):
    """A notification transport could not deliver a message"""


class GenerationUnavailable(PoolError):
    """The free-text assistant could not produce a reply"""

    def __init__(self, reason: str, empty: bool = False):
        super().__init__(reason)
        self.empty = empty
