"""
Waitlist manager - per-resource FIFO queue of pending requests.
Entries are served by request time; equal timestamps keep insertion order.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from src.models import PoolState, WaitlistEntry, generate_id

logger = logging.getLogger(__name__)


class WaitlistManager:
    """View over the waitlist of a pool state"""

    def __init__(self, state: PoolState, clock: Callable[[], datetime]):
        self.state = state
        self._clock = clock

    def entries_for(self, resource_id: str) -> List[WaitlistEntry]:
        """Entries for one resource in serving order"""
        entries = [w for w in self.state.waitlist if w.resource_id == resource_id]
        # sorted() is stable, so ties fall back to insertion order
        return sorted(entries, key=lambda w: w.requested_at)

    def enqueue(self, resource_id: str, user_id: str) -> Tuple[WaitlistEntry, int]:
        """
        Append a waitlist entry.

        Returns:
            The new entry and its 1-based position for that resource
        """
        entry = WaitlistEntry(
            id=generate_id(),
            resource_id=resource_id,
            user_id=user_id,
            requested_at=self._clock(),
        )
        self.state.waitlist.append(entry)

        position = [w.id for w in self.entries_for(resource_id)].index(entry.id) + 1
        logger.info(f"User {user_id} waitlisted for {resource_id} at position {position}")
        return entry, position

    def dequeue_head(self, resource_id: str) -> Optional[WaitlistEntry]:
        """Remove and return the earliest-requested entry for a resource"""
        entries = self.entries_for(resource_id)
        if not entries:
            return None

        head = entries[0]
        self.state.waitlist = [w for w in self.state.waitlist if w.id != head.id]
        logger.info(f"Dequeued user {head.user_id} from {resource_id} waitlist")
        return head

    def positions_for(self, user_id: str) -> List[str]:
        """Resource ids the user is waiting for"""
        return [w.resource_id for w in self.state.waitlist if w.user_id == user_id]
