"""
Arbitration engine - the single writer of a resource pool.

Every public operation runs under one asyncio lock against a deep copy of the
pool state. The copy is persisted and only then swapped in, so a failed save
leaves the previous state intact. Notifications are dispatched as background
tasks after the commit and never affect the outcome of an operation.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Callable, List, Optional, Protocol, Sequence, Set, Tuple

from src.catalog import ResourceCatalog
from src.exceptions import ErrorKind, NoActiveAssignment, UnknownResource
from src.formatting import format_assignment_line
from src.ledger import AllocationLedger
from src.models import (
    Assignment,
    ConversationMessage,
    PoolState,
    RequestResult,
    Resource,
    ResourceAvailability,
    ResourceType,
    ReturnResult,
    UtilizationRecord,
)
from src.store import PoolStore
from src.utilization import UtilizationRecorder
from src.waitlist import WaitlistManager

logger = logging.getLogger(__name__)

REMINDER_HOURS_AHEAD = 24
CONVERSATION_CAP_PER_USER = 20


class Notifier(Protocol):
    """Best-effort delivery of a message to a user; must never raise"""

    async def notify(
        self, user_id: str, message: str, preferred_channel: Optional[str] = None
    ) -> None: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class _Views:
    """Catalog, ledger, waitlist and utilization views over one state"""

    state: PoolState
    ledger: AllocationLedger
    catalog: ResourceCatalog
    waitlist: WaitlistManager
    utilization: UtilizationRecorder
    outbox: List[Tuple[str, str]] = field(default_factory=list)

    def push_notification(self, user_id: str, message: str) -> None:
        """Append to the user's in-app notification queue"""
        self.state.notifications.setdefault(user_id, []).append(message)

    def notify_later(self, user_id: str, message: str) -> None:
        """Queue an external notification for after the commit"""
        self.outbox.append((user_id, message))


class ArbitrationEngine:
    """Turns request/return events into assignments and waitlist moves"""

    def __init__(
        self,
        store: PoolStore,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utcnow,
        reminder_hours_ahead: int = REMINDER_HOURS_AHEAD,
        conversation_cap: int = CONVERSATION_CAP_PER_USER,
    ):
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self.reminder_hours_ahead = reminder_hours_ahead
        self.conversation_cap = conversation_cap

        self._state = PoolState()
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _views(self, state: PoolState) -> _Views:
        ledger = AllocationLedger(state, self._clock)
        return _Views(
            state=state,
            ledger=ledger,
            catalog=ResourceCatalog(state, ledger),
            waitlist=WaitlistManager(state, self._clock),
            utilization=UtilizationRecorder(state),
        )

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[_Views]:
        """
        Serialized read-modify-write of the pool state.

        The body mutates a working copy; it is persisted and committed only if
        the body completes and actually changed something.
        """
        async with self._lock:
            working = self._state.model_copy(deep=True)
            views = self._views(working)
            yield views
            if working != self._state:
                self._store.save(working)
                self._state = working

        for user_id, message in views.outbox:
            self._dispatch(user_id, message)

    @asynccontextmanager
    async def _snapshot(self) -> AsyncIterator[_Views]:
        """Serialized read-only access to the committed state"""
        async with self._lock:
            yield self._views(self._state)

    def _dispatch(self, user_id: str, message: str) -> None:
        if self._notifier is None:
            return
        task = asyncio.get_running_loop().create_task(self._deliver(user_id, message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, user_id: str, message: str) -> None:
        try:
            await self._notifier.notify(user_id, message)
        except Exception as e:
            logger.error(f"Notification to user {user_id} failed: {e}")

    async def drain(self) -> None:
        """Wait for in-flight notifications (shutdown, tests)"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _today(self) -> str:
        return self._clock().date().isoformat()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load the persisted pool and seed the default catalog if empty"""
        async with self._lock:
            self._state = self._store.load()
        async with self._transaction() as tx:
            tx.catalog.seed_if_empty()
        logger.info(
            f"Pool '{self._store.pool_name}' ready: {len(self._state.resources)} resources, "
            f"{len(self._state.assignments)} assignments, {len(self._state.waitlist)} waiting"
        )

    async def reseed(self, resources: Sequence[Resource]) -> None:
        """Replace the catalog (administrative)"""
        async with self._transaction() as tx:
            tx.catalog.reseed(resources)

    # ------------------------------------------------------------------
    # Request / return
    # ------------------------------------------------------------------

    async def request_resource(
        self, resource_id: str, user_id: str, due_return_at: Optional[datetime] = None
    ) -> RequestResult:
        """Grant a unit if one is free, otherwise put the user on the waitlist"""
        if due_return_at is not None:
            due_return_at = _as_utc(due_return_at)

        async with self._transaction() as tx:
            try:
                resource = tx.catalog.get(resource_id)
            except UnknownResource as e:
                logger.info(f"Request for unknown resource {resource_id} by user {user_id}")
                return RequestResult(ok=False, message=str(e), error=ErrorKind.UNKNOWN_RESOURCE)

            if tx.ledger.active_count(resource_id) < resource.quantity:
                assignment = tx.ledger.create(resource_id, user_id, due_return_at)
                return RequestResult(
                    ok=True,
                    message=f"Assigned {resource.name} to you.",
                    assignment_id=assignment.id,
                )

            _, position = tx.waitlist.enqueue(resource_id, user_id)
            tx.notify_later(
                user_id,
                f"You're #{position} for {resource.name}. We'll notify you when it's available.",
            )
            return RequestResult(
                ok=False,
                message=f"No availability. You were added to the waitlist (position {position}).",
                waitlist_position=position,
            )

    async def return_resource(self, resource_id: str, user_id: str) -> ReturnResult:
        """Release the user's unit and hand it to the head of the waitlist"""
        async with self._transaction() as tx:
            assignment = tx.ledger.find_active_for(resource_id, user_id)
            if assignment is None:
                error = NoActiveAssignment(resource_id, user_id)
                logger.info(f"User {user_id} tried to return {resource_id} without holding it")
                return ReturnResult(
                    ok=False, message=str(error), error=ErrorKind.NO_ACTIVE_ASSIGNMENT
                )

            tx.ledger.release(assignment.id)

            head = tx.waitlist.dequeue_head(resource_id)
            if head is None:
                return ReturnResult(ok=True, message="Returned successfully.")

            resource = tx.catalog.find(resource_id)
            name = resource.name if resource else resource_id
            tx.ledger.create(resource_id, head.user_id)
            message = f"{name} is now assigned to you."
            tx.push_notification(head.user_id, message)
            tx.notify_later(head.user_id, message)

            return ReturnResult(
                ok=True,
                message=f"Returned. Next in line ({head.user_id}) was auto-assigned.",
                auto_assigned=head.user_id,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_my_assignments(self, user_id: str) -> List[Assignment]:
        async with self._snapshot() as view:
            return [a.model_copy() for a in view.ledger.list_active_for(user_id)]

    async def list_resources(
        self, type_filter: Optional[ResourceType] = None
    ) -> List[ResourceAvailability]:
        async with self._snapshot() as view:
            return view.catalog.list(type_filter)

    async def get_utilization(
        self,
        resource_id: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[UtilizationRecord]:
        async with self._snapshot() as view:
            return view.utilization.query(
                today=self._today(),
                resource_id=resource_id,
                date_from=date_from,
                date_to=date_to,
            )

    async def list_notifications(self, user_id: str) -> List[str]:
        async with self._snapshot() as view:
            return list(view.state.notifications.get(user_id, []))

    async def clear_notifications(self, user_id: str) -> None:
        async with self._transaction() as tx:
            tx.state.notifications.pop(user_id, None)

    async def take_notifications(self, user_id: str) -> List[str]:
        """Return the user's notifications and clear exactly those, atomically"""
        async with self._transaction() as tx:
            return tx.state.notifications.pop(user_id, [])

    # ------------------------------------------------------------------
    # Scheduled sweep
    # ------------------------------------------------------------------

    async def check_return_reminders(self) -> int:
        """
        Remind holders whose return is due within the reminder window and
        record today's utilization snapshot.

        Returns:
            Number of reminders issued
        """
        now = self._clock()
        window_end = now + timedelta(hours=self.reminder_hours_ahead)
        reminders = 0

        async with self._transaction() as tx:
            for assignment in tx.ledger.list_active():
                if assignment.due_return_at is None:
                    continue
                due = _as_utc(assignment.due_return_at)
                if due > window_end or due < now:
                    continue

                resource = tx.catalog.find(assignment.resource_id)
                name = resource.name if resource else assignment.resource_id
                message = f"Reminder: Please return {name} by {due.date().isoformat()}."
                tx.push_notification(assignment.user_id, message)
                tx.notify_later(assignment.user_id, message)
                reminders += 1

            counts = {r.id: tx.ledger.active_count(r.id) for r in tx.state.resources}
            tx.utilization.record_snapshot(now.date().isoformat(), counts)

        logger.info(f"Reminder sweep done: {reminders} reminders issued")
        return reminders

    # ------------------------------------------------------------------
    # Chat context
    # ------------------------------------------------------------------

    async def record_conversation(self, user_id: str, user_text: str, reply: str) -> None:
        """Append one exchange to the user's bounded history"""
        async with self._transaction() as tx:
            history = tx.state.conversations.get(user_id, []) + [
                ConversationMessage(role="user", content=user_text),
                ConversationMessage(role="assistant", content=reply),
            ]
            tx.state.conversations[user_id] = history[-self.conversation_cap:]

    async def conversation_for(self, user_id: str) -> List[ConversationMessage]:
        async with self._snapshot() as view:
            return [m.model_copy() for m in view.state.conversations.get(user_id, [])]

    async def build_state_summary(self, user_id: str) -> str:
        """Compact description of what the user holds and waits for"""
        async with self._snapshot() as view:
            assignments = view.ledger.list_active_for(user_id)
            waiting = view.waitlist.positions_for(user_id)
            unread = len(view.state.notifications.get(user_id, []))

        held = "; ".join(format_assignment_line(a) for a in assignments) or "none"
        lines = [
            "Current state for this user:",
            f"Assignments: {held}",
            f"Waitlist positions: {', '.join(waiting) or 'none'}",
            f"Unread notifications: {unread}",
        ]
        return "\n".join(lines)

    async def resource_directory(self) -> str:
        """e.g. 'P1 (Parking Spot 1), L1 (Adobe CC)'"""
        async with self._snapshot() as view:
            return ", ".join(f"{r.id} ({r.name})" for r in view.state.resources)
