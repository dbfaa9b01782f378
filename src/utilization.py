"""
Utilization recorder - daily allocated-vs-total snapshots per resource.
"""

import logging
from typing import Dict, List, Optional

from src.models import PoolState, UtilizationLogEntry, UtilizationRecord

logger = logging.getLogger(__name__)


def utilization_ratio(allocated: int, total: int) -> float:
    """allocated/total, or 0.0 for a resource with no units"""
    if total <= 0:
        return 0.0
    return allocated / total


class UtilizationRecorder:
    """View over the utilization log of a pool state"""

    def __init__(self, state: PoolState):
        self.state = state

    def has_entry(self, resource_id: str, date: str) -> bool:
        return any(
            e.resource_id == resource_id and e.date == date
            for e in self.state.utilization_log
        )

    def record_snapshot(self, date: str, allocated_by_resource: Dict[str, int]) -> int:
        """
        Log today's counts for every resource not yet logged on that date.

        Existing entries are never updated (first writer wins).

        Returns:
            Number of entries written
        """
        written = 0
        for resource in self.state.resources:
            if self.has_entry(resource.id, date):
                continue
            self.state.utilization_log.append(
                UtilizationLogEntry(
                    resource_id=resource.id,
                    date=date,
                    allocated=allocated_by_resource.get(resource.id, 0),
                    total=resource.quantity,
                )
            )
            written += 1

        if written:
            logger.info(f"Recorded utilization for {written} resources on {date}")
        return written

    def query(
        self,
        today: str,
        resource_id: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[UtilizationRecord]:
        """
        Utilization records filtered by resource and an inclusive date range.

        Both bounds default to today. Dates are ISO strings compared
        lexicographically.
        """
        start = date_from or today
        end = date_to or today

        return [
            UtilizationRecord(
                resource_id=e.resource_id,
                date=e.date,
                allocated=e.allocated,
                total=e.total,
                utilization=utilization_ratio(e.allocated, e.total),
            )
            for e in self.state.utilization_log
            if (not resource_id or e.resource_id == resource_id)
            and start <= e.date <= end
        ]
