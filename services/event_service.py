# ============================================================================
# EVENT SERVICE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Publish/subscribe over the event stream
# PURPOSE: Emit typed events and deliver them to in-process subscribers
# CREATED: 19 OCT 2026
# ============================================================================
"""
Event Service

emit() appends to the event stream and wakes the delivery loop. Emission
failures propagate to the caller: an agent that cannot publish its result
event fails its job and is retried.

Delivery is at-least-once by polling. Each subscription keeps a cursor
(the last sequence it handled) and sees only events appended at or after
the moment it subscribed. A handler that raises is retried on later polls
up to max_delivery_attempts, after which the event is skipped for that
subscription.

Job lifecycle helpers (emit_job_completed / emit_job_failed) are
fire-and-forget: failures are logged but don't propagate.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core.config import EventBusDefaults
from core.contracts import AgentType, EventType
from core.models import AgentEvent, utcnow
from repositories.base import EventStore

logger = logging.getLogger(__name__)

EventHandler = Callable[[AgentEvent], Awaitable[Any]]

# Source identifier for events from the orchestrator itself
SOURCE_ORCHESTRATOR = AgentType.ORCHESTRATOR.value


@dataclass
class Subscription:
    """One handler bound to one event type."""
    id: int
    event_type: EventType
    handler: EventHandler
    cursor: int
    created_at: datetime = field(default_factory=utcnow)
    failures: Dict[str, int] = field(default_factory=dict)
    active: bool = True


class EventService:
    """Service for emitting events and delivering them to subscribers."""

    def __init__(self, store: EventStore, defaults: Optional[EventBusDefaults] = None):
        """
        Initialize event service.

        Args:
            store: Event stream
            defaults: Delivery polling settings
        """
        self.store = store
        self.defaults = defaults or EventBusDefaults()
        self._subscriptions: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._wake = asyncio.Event()
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._delivered = 0
        self._dropped = 0

    # =========================================================================
    # PUBLISH
    # =========================================================================

    async def emit(
        self,
        event_type: EventType,
        payload: Dict[str, Any],
        source: str,
        correlation_id: Optional[str] = None,
    ) -> str:
        """
        Append an event to the stream.

        Args:
            event_type: Type of event
            payload: JSON-serializable event body
            source: Emitting agent name
            correlation_id: Usually the message_id of the job that caused it

        Returns:
            The new event id
        """
        event = AgentEvent(
            type=EventType(event_type),
            payload=payload,
            source=source,
            correlation_id=correlation_id,
        )
        stored = await self.store.append(event)
        logger.debug(f"Event emitted: {stored.type.value} seq={stored.sequence} from {source}")
        self._wake.set()
        return stored.id

    async def emit_job_completed(self, job_id: str, agent_type: str, task: str) -> None:
        """Emit JOB_COMPLETED. Fire-and-forget."""
        try:
            await self.emit(
                EventType.JOB_COMPLETED,
                {"job_id": job_id, "agent_type": agent_type, "task": task},
                SOURCE_ORCHESTRATOR,
                correlation_id=job_id,
            )
        except Exception as e:
            logger.warning(f"Failed to emit job.completed for job {job_id}: {e}")

    async def emit_job_failed(
        self, job_id: str, agent_type: str, task: str, error: str, final: bool
    ) -> None:
        """Emit JOB_FAILED. Fire-and-forget."""
        try:
            await self.emit(
                EventType.JOB_FAILED,
                {
                    "job_id": job_id,
                    "agent_type": agent_type,
                    "task": task,
                    "error": error,
                    "final": final,
                },
                SOURCE_ORCHESTRATOR,
                correlation_id=job_id,
            )
        except Exception as e:
            logger.warning(f"Failed to emit job.failed for job {job_id}: {e}")

    # =========================================================================
    # SUBSCRIBE
    # =========================================================================

    async def subscribe(
        self, event_type: EventType, handler: EventHandler
    ) -> Callable[[], None]:
        """
        Register a handler for one event type.

        Returns:
            Callable that removes the subscription
        """
        cursor = await self.store.latest_sequence()
        sub = Subscription(
            id=next(self._ids),
            event_type=EventType(event_type),
            handler=handler,
            cursor=cursor,
        )
        self._subscriptions[sub.id] = sub
        logger.info(f"Subscribed #{sub.id} to {sub.event_type.value} from seq {cursor}")

        def unsubscribe() -> None:
            sub.active = False
            if self._subscriptions.pop(sub.id, None) is not None:
                logger.info(f"Unsubscribed #{sub.id} from {sub.event_type.value}")

        return unsubscribe

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    # =========================================================================
    # DELIVERY
    # =========================================================================

    async def deliver_pending(self) -> int:
        """
        Deliver events past each subscription's cursor.

        Returns:
            Number of successful handler invocations
        """
        delivered = 0
        for sub in list(self._subscriptions.values()):
            if not sub.active:
                continue
            events = await self.store.read_after(
                sub.cursor, [sub.event_type], limit=self.defaults.batch_size
            )
            for event in events:
                if not sub.active:
                    break
                if not await self._deliver(sub, event):
                    # Retry this event on the next poll
                    break
                sub.cursor = event.sequence
                delivered += 1

        self._delivered += delivered
        return delivered

    async def _deliver(self, sub: Subscription, event: AgentEvent) -> bool:
        """
        Invoke one handler for one event.

        Returns:
            True if the cursor may advance past the event
        """
        try:
            await sub.handler(event)
        except Exception as e:
            attempts = sub.failures.get(event.id, 0) + 1
            sub.failures[event.id] = attempts
            if attempts < self.defaults.max_delivery_attempts:
                logger.warning(
                    f"Subscriber #{sub.id} failed on {event.type.value} "
                    f"seq={event.sequence} (attempt {attempts}): {e}"
                )
                return False
            logger.error(
                f"Subscriber #{sub.id} gave up on {event.type.value} "
                f"seq={event.sequence} after {attempts} attempts: {e}",
                exc_info=True,
            )
            sub.failures.pop(event.id, None)
            sub.cursor = event.sequence
            self._dropped += 1
            return False

        sub.failures.pop(event.id, None)
        return True

    # =========================================================================
    # BACKGROUND LOOP
    # =========================================================================

    async def start(self) -> None:
        """Start the delivery loop in the background."""
        if self._task is not None and not self._task.done():
            logger.warning("Event delivery already running")
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="event-delivery")
        logger.info("Event delivery started")

    async def stop(self) -> None:
        """Stop the delivery loop and wait for it to exit."""
        self._stop_event.set()
        self._wake.set()
        if self._task is not None:
            await self._task
            self._task = None
        logger.info("Event delivery stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            self._wake.clear()
            try:
                await self.deliver_pending()
            except Exception as e:
                logger.exception(f"Event delivery cycle failed: {e}")

            try:
                await asyncio.wait_for(
                    self._wake.wait(),
                    timeout=self.defaults.poll_interval_seconds,
                )
            except asyncio.TimeoutError:
                pass

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "running": self._task is not None and not self._task.done(),
            "subscriptions": len(self._subscriptions),
            "delivered": self._delivered,
            "dropped": self._dropped,
        }
