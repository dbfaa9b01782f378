"""
Resource catalog - registry of resource definitions and quantities.
"""

import logging
from typing import List, Optional, Sequence

from src.exceptions import UnknownResource
from src.ledger import AllocationLedger
from src.models import (
    DEFAULT_RESOURCES,
    PoolState,
    Resource,
    ResourceAvailability,
    ResourceType,
)

logger = logging.getLogger(__name__)


class ResourceCatalog:
    """View over the resources of a pool state"""

    def __init__(self, state: PoolState, ledger: AllocationLedger):
        self.state = state
        self.ledger = ledger

    def seed_if_empty(self) -> bool:
        """Populate the default resource set if the catalog is empty"""
        if self.state.resources:
            return False
        self.state.resources = [r.model_copy(deep=True) for r in DEFAULT_RESOURCES]
        logger.info(f"Seeded catalog with {len(self.state.resources)} default resources")
        return True

    def reseed(self, resources: Sequence[Resource]) -> None:
        """Replace the whole catalog (administrative operation)"""
        ids = [r.id for r in resources]
        if len(ids) != len(set(ids)):
            raise ValueError("Resource ids must be unique")
        self.state.resources = [r.model_copy(deep=True) for r in resources]
        logger.info(f"Catalog reseeded with {len(ids)} resources: {', '.join(ids)}")

    def find(self, resource_id: str) -> Optional[Resource]:
        for resource in self.state.resources:
            if resource.id == resource_id:
                return resource
        return None

    def get(self, resource_id: str) -> Resource:
        """
        Get a resource by id.

        Raises:
            UnknownResource: if the id is not in the catalog
        """
        resource = self.find(resource_id)
        if resource is None:
            raise UnknownResource(resource_id)
        return resource

    def list(self, type_filter: Optional[ResourceType] = None) -> List[ResourceAvailability]:
        """Resources (optionally of one type) with their free unit count"""
        resources = self.state.resources
        if type_filter is not None:
            resources = [r for r in resources if r.type == type_filter]

        return [
            ResourceAvailability(
                id=r.id,
                type=r.type,
                name=r.name,
                quantity=r.quantity,
                available=r.quantity - self.ledger.active_count(r.id),
                metadata=dict(r.metadata or {}),
            )
            for r in resources
        ]
