# ============================================================================
# JOB REPOSITORY
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Durable job queue on PostgreSQL
# PURPOSE: Database access for queue_jobs table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Job Repository

PostgreSQL implementation of JobStore.

Claims use a CTE with FOR UPDATE SKIP LOCKED so that any number of
orchestrator instances can poll the same table without handing one job
to two dispatchers. Status changes that need the retry policy (fail,
cancel) lock the row, apply the Job model transition in Python and write
the result back in the same transaction.

psycopg.OperationalError (including pool timeouts) is raised as
TransientJobError.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import AsyncConnection, sql
from psycopg.rows import dict_row, tuple_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.config import JobDefaults
from core.contracts import AgentType, JobStatus
from core.errors import TransientJobError
from core.models import Job, Provenance, utcnow
from .base import JobStore
from .database import TABLE_JOBS

logger = logging.getLogger(__name__)


@asynccontextmanager
async def translate_errors(operation: str):
    """Raise connection-level psycopg failures as TransientJobError."""
    try:
        yield
    except psycopg.OperationalError as e:
        logger.warning(f"Job store unavailable during {operation}: {e}")
        raise TransientJobError(operation, e) from e


class JobRepository(JobStore):
    """Repository for Job entities."""

    def __init__(self, pool: AsyncConnectionPool, policy: Optional[JobDefaults] = None):
        super().__init__(policy)
        self.pool = pool

    async def insert(self, job: Job) -> None:
        """
        Insert a new job.

        Args:
            job: Job built by build_job()
        """
        async with translate_errors("create"), self.pool.connection() as conn:
            await conn.execute(
                sql.SQL("""
                INSERT INTO {} (
                    message_id, agent_type, task, intent, payload,
                    dependencies, provenance, run_at, ttl_sec, status,
                    attempts, max_attempts, backoff_strategy,
                    created_at, updated_at
                ) VALUES (
                    %(message_id)s, %(agent_type)s, %(task)s, %(intent)s,
                    %(payload)s, %(dependencies)s, %(provenance)s, %(run_at)s,
                    %(ttl_sec)s, %(status)s, %(attempts)s, %(max_attempts)s,
                    %(backoff_strategy)s, %(created_at)s, %(updated_at)s
                )
                """).format(TABLE_JOBS),
                {
                    "message_id": job.message_id,
                    "agent_type": job.agent_type.value,
                    "task": job.task,
                    "intent": job.intent.value,
                    "payload": Json(job.payload),
                    "dependencies": job.dependencies,
                    "provenance": Json(job.provenance.model_dump(mode="json")),
                    "run_at": job.run_at,
                    "ttl_sec": job.ttl_sec,
                    "status": job.status.value,
                    "attempts": job.attempts,
                    "max_attempts": job.max_attempts,
                    "backoff_strategy": job.backoff_strategy.value,
                    "created_at": job.created_at,
                    "updated_at": job.updated_at,
                },
            )
        logger.info(f"Created job {job.message_id} for {job.agent_type.value}/{job.task}")

    async def get(self, message_id: str) -> Optional[Job]:
        """
        Get a job by ID.

        Returns:
            Job instance or None if not found
        """
        async with translate_errors("get"), self.pool.connection() as conn:
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute(
                sql.SQL("SELECT * FROM {} WHERE message_id = %s").format(TABLE_JOBS),
                (message_id,),
            )
            row = await cur.fetchone()

        if row is None:
            return None
        return self._row_to_job(row)

    async def claim_next_ready(self, agent_type: AgentType, limit: int) -> List[Job]:
        """
        Claim up to `limit` ready jobs for one agent type.

        A dependency id with no matching row counts as unmet.

        Returns:
            Claimed jobs, now RUNNING, ordered by run_at then created_at
        """
        async with translate_errors("claim"), self.pool.connection() as conn:
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute(
                sql.SQL("""
                WITH ready AS (
                    SELECT j.message_id FROM {jobs} AS j
                    WHERE j.agent_type = %(agent_type)s
                      AND j.status IN ('pending', 'ready')
                      AND j.run_at <= NOW()
                      AND NOT EXISTS (
                          SELECT 1
                          FROM unnest(j.dependencies) AS dep(id)
                          LEFT JOIN {jobs} AS d ON d.message_id = dep.id
                          WHERE d.message_id IS NULL OR d.status <> 'completed'
                      )
                    ORDER BY j.run_at, j.created_at
                    LIMIT %(limit)s
                    FOR UPDATE OF j SKIP LOCKED
                )
                UPDATE {jobs} AS q
                SET status = 'running',
                    updated_at = NOW()
                FROM ready
                WHERE q.message_id = ready.message_id
                RETURNING q.*
                """).format(jobs=TABLE_JOBS),
                {"agent_type": agent_type.value, "limit": limit},
            )
            rows = await cur.fetchall()

        # RETURNING does not preserve CTE order
        jobs = sorted((self._row_to_job(r) for r in rows), key=lambda j: (j.run_at, j.created_at))
        if jobs:
            logger.debug(f"Claimed {len(jobs)} {agent_type.value} jobs")
        return jobs

    async def start(self, message_id: str) -> bool:
        async with translate_errors("start"), self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL("""
                UPDATE {} SET started_at = NOW(), updated_at = NOW()
                WHERE message_id = %s AND status = 'running'
                """).format(TABLE_JOBS),
                (message_id,),
            )
            return result.rowcount > 0

    async def complete(self, message_id: str, result: Any = None) -> bool:
        """
        Mark a running job completed and store its result.

        Returns:
            False if the job was not RUNNING (e.g. cancelled meanwhile)
        """
        async with translate_errors("complete"), self.pool.connection() as conn:
            cur = await conn.execute(
                sql.SQL("""
                UPDATE {} SET
                    status = 'completed',
                    result = %s,
                    completed_at = NOW(),
                    updated_at = NOW()
                WHERE message_id = %s AND status = 'running'
                """).format(TABLE_JOBS),
                (Json(result), message_id),
            )
            updated = cur.rowcount > 0

        if not updated:
            logger.warning(f"complete() ignored for job {message_id}: not running")
        return updated

    async def fail(
        self, message_id: str, error: str, retry_allowed: bool = True
    ) -> Optional[JobStatus]:
        """
        Record a failed attempt and reschedule or bury the job.

        Returns:
            READY or DEAD, or None if the job was not RUNNING
        """
        async with translate_errors("fail"), self.pool.connection() as conn:
            async with conn.transaction():
                job = await self._lock(conn, message_id)
                if job is None or job.status != JobStatus.RUNNING:
                    logger.warning(f"fail() ignored for job {message_id}: not running")
                    return None

                now = utcnow()
                delay = self.backoff_seconds(job.backoff_strategy, job.attempts + 1)
                status = job.mark_failed(error, retry_allowed, delay, now)
                await self._write_state(conn, job)

        if status == JobStatus.DEAD:
            logger.error(
                f"Job {message_id} dead after {job.attempts}/{job.max_attempts} attempts: {error}"
            )
        else:
            logger.info(
                f"Job {message_id} rescheduled in {delay:.1f}s "
                f"(attempt {job.attempts}/{job.max_attempts})"
            )
        return status

    async def cancel(self, message_id: str) -> Optional[Job]:
        async with translate_errors("cancel"), self.pool.connection() as conn:
            async with conn.transaction():
                job = await self._lock(conn, message_id)
                if job is None:
                    return None
                if job.status.is_terminal():
                    return job
                job.mark_cancelled(utcnow())
                await self._write_state(conn, job)

        logger.info(f"Cancelled job {message_id}")
        return job

    async def count_pending_ready(self, agent_type: AgentType) -> int:
        async with translate_errors("count"), self.pool.connection() as conn:
            cur = conn.cursor(row_factory=tuple_row)
            await cur.execute(
                sql.SQL("""
                SELECT COUNT(*) FROM {}
                WHERE agent_type = %s AND status IN ('pending', 'ready')
                """).format(TABLE_JOBS),
                (agent_type.value,),
            )
            row = await cur.fetchone()
            return row[0] if row else 0

    async def reclaim_stale(self, limit: int = 100) -> List[str]:
        """
        Requeue jobs left RUNNING past ttl_sec (crashed or wedged dispatchers).

        Rows are locked with FOR UPDATE SKIP LOCKED, so concurrent
        orchestrators never reclaim the same job twice.

        Returns:
            message_ids of the reclaimed jobs
        """
        async with translate_errors("reclaim"), self.pool.connection() as conn:
            async with conn.transaction():
                cur = conn.cursor(row_factory=dict_row)
                await cur.execute(
                    sql.SQL("""
                    SELECT * FROM {}
                    WHERE status = 'running'
                      AND ttl_sec > 0
                      AND updated_at + make_interval(secs => ttl_sec) < NOW()
                    ORDER BY updated_at
                    LIMIT %s
                    FOR UPDATE SKIP LOCKED
                    """).format(TABLE_JOBS),
                    (limit,),
                )
                rows = await cur.fetchall()

                now = utcnow()
                reclaimed = []
                for row in rows:
                    job = self._row_to_job(row)
                    delay = self.backoff_seconds(job.backoff_strategy, job.attempts + 1)
                    job.mark_failed(self.stale_error(job), True, delay, now)
                    await self._write_state(conn, job)
                    reclaimed.append(job.message_id)

        if reclaimed:
            logger.warning(f"Reclaimed {len(reclaimed)} stale running jobs: {reclaimed}")
        return reclaimed

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _lock(self, conn: AsyncConnection, message_id: str) -> Optional[Job]:
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute(
            sql.SQL("SELECT * FROM {} WHERE message_id = %s FOR UPDATE").format(TABLE_JOBS),
            (message_id,),
        )
        row = await cur.fetchone()
        return self._row_to_job(row) if row else None

    async def _write_state(self, conn: AsyncConnection, job: Job) -> None:
        await conn.execute(
            sql.SQL("""
            UPDATE {} SET
                status = %(status)s,
                attempts = %(attempts)s,
                last_error = %(last_error)s,
                run_at = %(run_at)s,
                completed_at = %(completed_at)s,
                updated_at = %(updated_at)s
            WHERE message_id = %(message_id)s
            """).format(TABLE_JOBS),
            {
                "message_id": job.message_id,
                "status": job.status.value,
                "attempts": job.attempts,
                "last_error": job.last_error,
                "run_at": job.run_at,
                "completed_at": job.completed_at,
                "updated_at": job.updated_at,
            },
        )

    def _row_to_job(self, row: Dict[str, Any]) -> Job:
        """Convert database row to Job model."""
        return Job(
            message_id=row["message_id"],
            agent_type=AgentType(row["agent_type"]),
            task=row["task"],
            intent=row["intent"],
            payload=row["payload"] or {},
            dependencies=list(row["dependencies"] or []),
            provenance=Provenance.model_validate(row["provenance"] or {}),
            run_at=row["run_at"],
            ttl_sec=row["ttl_sec"],
            status=JobStatus(row["status"]),
            attempts=row["attempts"],
            max_attempts=row["max_attempts"],
            backoff_strategy=row["backoff_strategy"],
            result=row.get("result"),
            last_error=row.get("last_error"),
            created_at=row["created_at"],
            started_at=row.get("started_at"),
            completed_at=row.get("completed_at"),
            updated_at=row["updated_at"],
        )
