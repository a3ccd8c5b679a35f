# ============================================================================
# ORCHESTRATION LOOP
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Poll, claim and dispatch loop
# PURPOSE: Route queued jobs to registered agents and record the outcome
# CREATED: 19 OCT 2026
# ============================================================================
"""
Orchestration Loop

Each iteration:
1. Ask the store to reclaim jobs left RUNNING past their ttl_sec
2. For every registered agent type, claim up to batch_size ready jobs
3. Dispatch the claimed jobs one after another
4. Mark each job completed, or failed (the store applies retry/backoff)
5. Wait poll_interval_ms, or until stop() is called

A store error while claiming, or while recording one job's outcome, is
logged as a BatchLoopError. The rest of the batch and the remaining agent
types still run; a job whose outcome could not be recorded stays RUNNING
until a later iteration reclaims it.

Only stop() ends the loop; it lets the in-flight iteration finish and
never cancels a running handler.

Many instances may share one job store. Exclusivity comes from
claim_next_ready(), so the loop itself holds no locks.

Runs as a background task in the FastAPI application.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel

from agents.registry import AgentHandler, AgentRegistry
from core.config import OrchestratorDefaults
from core.contracts import AgentType, EventType, JobStatus, LogLevel
from core.errors import BatchLoopError, HandlerExecutionError
from core.logging import log_context
from core.models import AgentEvent, AgentLog, Job, MessageEnvelope
from repositories.base import JobStore
from services.event_service import EventService
from services.log_service import AgentLogService

logger = logging.getLogger(__name__)


class DispatchResult(BaseModel):
    """Outcome of dispatching one job."""
    job_id: str
    status: str
    result: Optional[Any] = None
    error: Optional[str] = None


class Orchestrator:
    """
    Single cooperative dispatch loop.

    Registry and loop state belong to the instance, so several
    orchestrators can live in one process (tests do this).
    """

    def __init__(
        self,
        job_store: JobStore,
        event_service: EventService,
        log_service: AgentLogService,
        defaults: Optional[OrchestratorDefaults] = None,
        emit_job_events: bool = True,
    ):
        """
        Initialize orchestrator.

        Args:
            job_store: Durable job queue
            event_service: Event publish/subscribe
            log_service: Persisted agent logs
            defaults: Poll interval and batch size
            emit_job_events: Publish job.completed / job.failed after dispatch
        """
        self.job_store = job_store
        self.event_service = event_service
        self.log_service = log_service
        self.defaults = defaults or OrchestratorDefaults()
        self.emit_job_events = emit_job_events
        self.registry = AgentRegistry()

        # State
        self._running = False
        self._stop_event = asyncio.Event()

        # Metrics
        self._started_at: Optional[datetime] = None
        self._cycles = 0
        self._jobs_dispatched = 0
        self._jobs_completed = 0
        self._jobs_failed = 0
        self._jobs_reclaimed = 0
        self._errors = 0
        self._last_cycle_at: Optional[datetime] = None

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, agent_type: AgentType, handler: AgentHandler) -> None:
        """Register the handler for an agent type. Last registration wins."""
        self.registry.register(agent_type, handler)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Run the loop until stop() is called."""
        if self._running:
            logger.warning("Orchestrator already running")
            return

        self._running = True
        self._started_at = datetime.now(timezone.utc)
        self._stop_event.clear()
        logger.info(
            f"Orchestrator started (poll={self.defaults.poll_interval_ms}ms, "
            f"batch={self.defaults.batch_size}, agents={[t.value for t in self.registry]})"
        )

        try:
            while self._running:
                await self.run_once()

                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=self.defaults.poll_interval_seconds,
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.info(
                f"Orchestrator stopped (cycles={self._cycles}, "
                f"dispatched={self._jobs_dispatched}, completed={self._jobs_completed}, "
                f"failed={self._jobs_failed}, errors={self._errors})"
            )

    def stop(self) -> None:
        """Ask the loop to exit after the current iteration."""
        if self._running:
            logger.info("Stopping orchestrator")
        self._running = False
        self._stop_event.set()

    async def run_once(self) -> int:
        """
        One poll iteration over all registered agent types.

        Returns:
            Number of jobs dispatched
        """
        await self._reclaim_stale()

        dispatched = 0
        for agent_type, handler in self.registry.items():
            try:
                jobs = await self.job_store.claim_next_ready(agent_type, self.defaults.batch_size)
            except Exception as e:
                await self._loop_error(agent_type, e)
                continue

            for job in jobs:
                try:
                    await self.dispatch(job, handler)
                    dispatched += 1
                except Exception as e:
                    # Job stays RUNNING until reclaim_stale() picks it up
                    await self._loop_error(agent_type, e, job.message_id)

        self._cycles += 1
        self._last_cycle_at = datetime.now(timezone.utc)
        return dispatched

    async def _reclaim_stale(self) -> None:
        try:
            reclaimed = await self.job_store.reclaim_stale(self.defaults.batch_size)
        except Exception as e:
            self._errors += 1
            logger.error(f"Stale job reclaim failed: {e}", exc_info=True)
            return

        if reclaimed:
            self._jobs_reclaimed += len(reclaimed)
            await self.log(
                AgentType.ORCHESTRATOR,
                LogLevel.WARN,
                f"Reclaimed {len(reclaimed)} stale jobs",
                {"job_ids": reclaimed},
            )

    async def _loop_error(
        self, agent_type: AgentType, cause: Exception, job_id: Optional[str] = None
    ) -> None:
        error = BatchLoopError(agent_type.value, cause)
        self._errors += 1
        logger.error(str(error), exc_info=True)
        context = {"agent_type": agent_type.value, "error": str(cause)}
        if job_id:
            context["job_id"] = job_id
        await self.log(
            AgentType.ORCHESTRATOR,
            LogLevel.ERROR,
            "Orchestrator loop error",
            context,
            job_id,
        )

    # =========================================================================
    # DISPATCH
    # =========================================================================

    async def dispatch(self, job: Job, handler: AgentHandler) -> DispatchResult:
        """
        Run one claimed job through its handler.

        Handler errors are recorded on the job (retry allowed) and reported
        in the result; they do not propagate. Job store errors do propagate;
        run_once() logs them and moves on to the next job.
        """
        job_id = job.message_id
        agent = job.agent_type.value

        with log_context(job_id=job_id, agent_type=agent, operation="dispatch"):
            self._jobs_dispatched += 1
            try:
                await self.job_store.start(job_id)
                envelope = MessageEnvelope.from_job(job)
                logger.info(f"Executing job {job_id} [{agent}]: {job.task}")
                result = await handler(envelope)
                await self.job_store.complete(job_id, result)
            except Exception as e:
                error = HandlerExecutionError(job_id, agent, e)
                logger.error(f"Job {job_id} failed: {error}", exc_info=True)

                status = await self.job_store.fail(job_id, str(error), retry_allowed=True)
                self._jobs_failed += 1
                await self.log(
                    job.agent_type,
                    LogLevel.ERROR,
                    f"Job failed: {job.task}",
                    {"job_id": job_id, "error": str(error)},
                    job_id,
                )
                if self.emit_job_events:
                    await self.event_service.emit_job_failed(
                        job_id, agent, job.task, str(error), final=status == JobStatus.DEAD
                    )
                return DispatchResult(job_id=job_id, status="failed", error=str(error))

            self._jobs_completed += 1
            await self.log(
                job.agent_type,
                LogLevel.INFO,
                f"Job completed: {job.task}",
                {"job_id": job_id, "result": result},
                job_id,
            )
            if self.emit_job_events:
                await self.event_service.emit_job_completed(job_id, agent, job.task)
            return DispatchResult(job_id=job_id, status="completed", result=result)

    # =========================================================================
    # PASSTHROUGHS
    # =========================================================================

    async def emit(
        self,
        event_type: EventType,
        payload: Dict[str, Any],
        source: str = AgentType.ORCHESTRATOR.value,
        correlation_id: Optional[str] = None,
    ) -> str:
        return await self.event_service.emit(event_type, payload, source, correlation_id)

    async def log(
        self,
        agent_type: AgentType,
        level: LogLevel,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        job_id: Optional[str] = None,
    ) -> None:
        await self.log_service.log(agent_type, level, message, context, job_id)

    async def create_job(
        self,
        agent_type: AgentType,
        task: str,
        payload: Dict[str, Any],
        **options: Any,
    ) -> str:
        """
        Enqueue a job.

        Options: intent (default 'execute'), dependencies (default []),
        run_at (default now), ttl_sec (default 600), provenance,
        max_attempts, backoff_strategy.

        Returns:
            The new message_id
        """
        return await self.job_store.create(AgentType(agent_type), task, payload, **options)

    async def subscribe(
        self,
        event_type: EventType,
        handler: Callable[[AgentEvent], Awaitable[Any]],
    ) -> Callable[[], None]:
        """Subscribe to an event type. Returns an unsubscribe callable."""
        return await self.event_service.subscribe(event_type, handler)

    async def get_job_status(self, message_id: str) -> Optional[Job]:
        return await self.job_store.get(message_id)

    async def cancel_job(self, message_id: str) -> Optional[Job]:
        return await self.job_store.cancel(message_id)

    async def get_logs(
        self,
        agent_type: Optional[AgentType] = None,
        level: Optional[LogLevel] = None,
        limit: int = 100,
    ) -> List[AgentLog]:
        return await self.log_service.get_logs(agent_type=agent_type, level=level, limit=limit)

    # =========================================================================
    # HEALTH AND STATS
    # =========================================================================

    async def health_check(self) -> Dict[str, Any]:
        """
        Per-agent queue depth.

        A failing count marks the orchestrator unhealthy and reports zero
        for that agent; the remaining agents are still checked.
        """
        healthy = True
        agents: Dict[str, Dict[str, Any]] = {}

        for agent_type in self.registry.types():
            try:
                pending = await self.job_store.count_pending_ready(agent_type)
            except Exception as e:
                logger.warning(f"Health check failed for {agent_type.value}: {e}")
                healthy = False
                pending = 0
            agents[agent_type.value] = {"registered": True, "jobs_pending": pending}

        return {"healthy": healthy, "agents": agents}

    @property
    def is_running(self) -> bool:
        """Check if orchestrator is running."""
        return self._running

    @property
    def stats(self) -> Dict[str, Any]:
        """Get orchestrator statistics."""
        uptime_seconds = None
        if self._started_at:
            uptime_seconds = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        return {
            "running": self._running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_seconds": uptime_seconds,
            "poll_interval_ms": self.defaults.poll_interval_ms,
            "batch_size": self.defaults.batch_size,
            "agents": [t.value for t in self.registry],
            "cycles": self._cycles,
            "last_cycle_at": self._last_cycle_at.isoformat() if self._last_cycle_at else None,
            "jobs_dispatched": self._jobs_dispatched,
            "jobs_completed": self._jobs_completed,
            "jobs_failed": self._jobs_failed,
            "jobs_reclaimed": self._jobs_reclaimed,
            "errors": self._errors,
        }
