# ============================================================================
# EVENT REPOSITORY
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Event stream on PostgreSQL
# PURPOSE: Database access for queue_events table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Event Repository

Append-only event stream. The BIGSERIAL sequence column is the delivery
cursor used by EventService subscriptions.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from psycopg import sql
from psycopg.rows import dict_row, tuple_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.contracts import EventType
from core.models import AgentEvent
from .base import EventStore
from .database import TABLE_EVENTS

logger = logging.getLogger(__name__)


class EventRepository(EventStore):
    """Repository for AgentEvent entities."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def append(self, event: AgentEvent) -> AgentEvent:
        """
        Append an event.

        Returns:
            The event with sequence populated
        """
        async with self.pool.connection() as conn:
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute(
                sql.SQL("""
                INSERT INTO {} (
                    id, type, payload, source, correlation_id, created_at
                ) VALUES (
                    %(id)s, %(type)s, %(payload)s, %(source)s,
                    %(correlation_id)s, %(created_at)s
                )
                RETURNING sequence
                """).format(TABLE_EVENTS),
                {
                    "id": event.id,
                    "type": event.type.value,
                    "payload": Json(event.payload),
                    "source": event.source,
                    "correlation_id": event.correlation_id,
                    "created_at": event.created_at,
                },
            )
            row = await cur.fetchone()

        return event.model_copy(update={"sequence": row["sequence"]})

    async def read_after(
        self,
        after_sequence: int,
        event_types: Optional[Iterable[str]] = None,
        limit: int = 100,
    ) -> List[AgentEvent]:
        """
        Read events past a cursor.

        Args:
            after_sequence: Exclusive lower bound
            event_types: Restrict to these types (all types if None)
            limit: Maximum results

        Returns:
            Events oldest first
        """
        query = sql.SQL("SELECT * FROM {} WHERE sequence > %s").format(TABLE_EVENTS)
        params: List[Any] = [after_sequence]

        if event_types is not None:
            query = query + sql.SQL(" AND type = ANY(%s)")
            params.append([str(getattr(t, "value", t)) for t in event_types])

        query = query + sql.SQL(" ORDER BY sequence ASC LIMIT %s")
        params.append(limit)

        async with self.pool.connection() as conn:
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute(query, params)
            rows = await cur.fetchall()

        return [self._row_to_event(row) for row in rows]

    async def latest_sequence(self) -> int:
        async with self.pool.connection() as conn:
            cur = conn.cursor(row_factory=tuple_row)
            await cur.execute(
                sql.SQL("SELECT COALESCE(MAX(sequence), 0) FROM {}").format(TABLE_EVENTS)
            )
            row = await cur.fetchone()
            return row[0] if row else 0

    def _row_to_event(self, row: Dict[str, Any]) -> AgentEvent:
        """Convert database row to AgentEvent."""
        return AgentEvent(
            id=row["id"],
            type=EventType(row["type"]),
            payload=row["payload"] or {},
            source=row["source"],
            correlation_id=row.get("correlation_id"),
            created_at=row["created_at"],
            sequence=row["sequence"],
        )
