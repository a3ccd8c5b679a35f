# ============================================================================
# AGENT LOG REPOSITORY
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Agent log records on PostgreSQL
# PURPOSE: Database access for agent_logs table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Log Repository

Append-only store behind AgentLogService.
"""

import logging
from typing import Any, Dict, List, Optional

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.contracts import LogLevel
from core.models import AgentLog
from .base import AgentLogStore
from .database import TABLE_AGENT_LOGS

logger = logging.getLogger(__name__)


class AgentLogRepository(AgentLogStore):
    """Repository for AgentLog records."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def append(self, record: AgentLog) -> AgentLog:
        async with self.pool.connection() as conn:
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute(
                sql.SQL("""
                INSERT INTO {} (
                    agent_type, level, message, context, job_id, created_at
                ) VALUES (
                    %(agent_type)s, %(level)s, %(message)s, %(context)s,
                    %(job_id)s, %(created_at)s
                )
                RETURNING id
                """).format(TABLE_AGENT_LOGS),
                {
                    "agent_type": record.agent_type,
                    "level": record.level.value,
                    "message": record.message,
                    "context": Json(record.context),
                    "job_id": record.job_id,
                    "created_at": record.created_at,
                },
            )
            row = await cur.fetchone()

        return record.model_copy(update={"id": row["id"]})

    async def query(
        self,
        agent_type: Optional[str] = None,
        level: Optional[LogLevel] = None,
        job_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AgentLog]:
        """
        Query log records.

        Args:
            agent_type: Filter by agent
            level: Filter by exact level
            job_id: Filter by job
            limit: Maximum results

        Returns:
            Records newest first
        """
        conditions = []
        params: List[Any] = []

        if agent_type is not None:
            conditions.append(sql.SQL("agent_type = %s"))
            params.append(agent_type)
        if level is not None:
            conditions.append(sql.SQL("level = %s"))
            params.append(LogLevel(level).value)
        if job_id is not None:
            conditions.append(sql.SQL("job_id = %s"))
            params.append(job_id)

        query = sql.SQL("SELECT * FROM {}").format(TABLE_AGENT_LOGS)
        if conditions:
            query = query + sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)
        query = query + sql.SQL(" ORDER BY created_at DESC, id DESC LIMIT %s")
        params.append(limit)

        async with self.pool.connection() as conn:
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute(query, params)
            rows = await cur.fetchall()

        return [self._row_to_log(row) for row in rows]

    def _row_to_log(self, row: Dict[str, Any]) -> AgentLog:
        return AgentLog(
            id=row["id"],
            agent_type=row["agent_type"],
            level=LogLevel(row["level"]),
            message=row["message"],
            context=row["context"] or {},
            job_id=row.get("job_id"),
            created_at=row["created_at"],
        )
