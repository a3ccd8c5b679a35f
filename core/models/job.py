# ============================================================================
# JOB MODEL
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core model - Queued unit of agent work
# PURPOSE: Track one job from creation to a terminal state
# CREATED: 19 OCT 2026
# EXPORTS: Job, Provenance, utcnow
# DEPENDENCIES: pydantic
# ============================================================================
"""
Job Model

A Job is one queued request for an agent to do a task. It is owned by the
job store; the orchestrator only ever sees it through claim/complete/fail.

Readiness:
    A job may be claimed once run_at has passed AND every dependency id
    names an existing job in COMPLETED. Unknown dependency ids count as
    unmet, so such a job waits until it is cancelled.

Retry:
    fail() increments attempts. While retry is allowed and attempts is
    below max_attempts the job returns to READY with run_at pushed out by
    the backoff policy; otherwise it becomes DEAD.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, ClassVar

from pydantic import BaseModel, Field, computed_field

from core.contracts import (
    AgentType,
    BackoffStrategy,
    JobStatus,
    MessageIntent,
    ProvenanceSource,
)
from core.errors import InvalidJobTransitionError


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def new_message_id() -> str:
    return str(uuid.uuid4())


class Provenance(BaseModel):
    """Origin of a job, carried through to the envelope."""
    source: ProvenanceSource = ProvenanceSource.SYSTEM
    version: str = "v1.0"


class Job(BaseModel):
    """
    A queued job.

    Maps to: agent_app.queue_jobs table

    Lifecycle:
        1. Created PENDING by create()
        2. RUNNING once claimed
        3. COMPLETED on handler success
        4. FAILED -> READY (rescheduled) or DEAD on handler error
        5. CANCELLED from any non-terminal state
    """

    # Valid transitions (FAILED is resolved inside the same fail() call)
    TRANSITIONS: ClassVar[Dict[JobStatus, set]] = {
        JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.CANCELLED},
        JobStatus.READY: {JobStatus.RUNNING, JobStatus.CANCELLED},
        JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED},
        JobStatus.FAILED: {JobStatus.READY, JobStatus.DEAD},
        JobStatus.COMPLETED: set(),
        JobStatus.DEAD: set(),
        JobStatus.CANCELLED: set(),
    }

    # Identity
    message_id: str = Field(default_factory=new_message_id, max_length=64)
    agent_type: AgentType
    task: str = Field(..., max_length=256)
    intent: MessageIntent = Field(default=MessageIntent.EXECUTE)

    # Work
    payload: Dict[str, Any] = Field(default_factory=dict)
    dependencies: List[str] = Field(
        default_factory=list,
        description="message_ids that must be COMPLETED before this job runs"
    )
    provenance: Provenance = Field(default_factory=Provenance)

    # Scheduling
    run_at: datetime = Field(default_factory=utcnow)
    ttl_sec: int = Field(
        default=600,
        ge=0,
        description="Seconds a claimed job may stay RUNNING before the store reclaims it (0 = never)"
    )

    # Status and retry
    status: JobStatus = Field(default=JobStatus.PENDING)
    attempts: int = Field(default=0, ge=0)
    max_attempts: int = Field(default=3, ge=1)
    backoff_strategy: BackoffStrategy = Field(default=BackoffStrategy.EXPONENTIAL)

    # Outcome
    result: Optional[Any] = Field(default=None, description="Handler return value")
    last_error: Optional[str] = Field(default=None, max_length=2000)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=utcnow)

    @computed_field
    @property
    def is_terminal(self) -> bool:
        """Check if job is in a terminal state."""
        return self.status.is_terminal()

    def is_due(self, now: datetime) -> bool:
        """Claimable status and run_at reached. Dependencies are checked by the store."""
        return self.status.is_claimable() and self.run_at <= now

    def is_stale(self, now: datetime) -> bool:
        """
        RUNNING for longer than ttl_sec since it was last claimed or started.

        claim and start() both stamp updated_at, and nothing else touches a
        running job, so updated_at marks the current attempt.
        """
        if self.status != JobStatus.RUNNING or self.ttl_sec <= 0:
            return False
        return self.updated_at + timedelta(seconds=self.ttl_sec) < now

    def can_transition_to(self, new_status: JobStatus) -> bool:
        return new_status in self.TRANSITIONS.get(self.status, set())

    def _transition(self, new_status: JobStatus, now: datetime) -> None:
        if not self.can_transition_to(new_status):
            raise InvalidJobTransitionError(
                self.message_id, self.status.value, new_status.value
            )
        self.status = new_status
        self.updated_at = now

    def mark_running(self, now: Optional[datetime] = None) -> None:
        """Mark job as claimed."""
        self._transition(JobStatus.RUNNING, now or utcnow())

    def mark_started(self, now: Optional[datetime] = None) -> None:
        """Stamp started_at on a running job."""
        if self.status != JobStatus.RUNNING:
            raise InvalidJobTransitionError(
                self.message_id, self.status.value, "started"
            )
        now = now or utcnow()
        self.started_at = now
        self.updated_at = now

    def mark_completed(self, result: Any = None, now: Optional[datetime] = None) -> None:
        """Mark job as successfully completed."""
        now = now or utcnow()
        self._transition(JobStatus.COMPLETED, now)
        self.result = result
        self.completed_at = now

    def mark_failed(
        self,
        error: str,
        retry_allowed: bool,
        delay_seconds: float,
        now: Optional[datetime] = None,
    ) -> JobStatus:
        """
        Record a failed attempt and resolve it to READY or DEAD.

        Args:
            error: Error message (truncated to 2000 chars)
            retry_allowed: False forces DEAD regardless of attempts left
            delay_seconds: Backoff delay for the rescheduled attempt
            now: Current time

        Returns:
            The resolved status (READY or DEAD)
        """
        now = now or utcnow()
        self._transition(JobStatus.FAILED, now)
        self.attempts += 1
        self.last_error = (error or "")[:2000]

        if retry_allowed and self.attempts < self.max_attempts:
            self._transition(JobStatus.READY, now)
            self.run_at = now + timedelta(seconds=delay_seconds)
        else:
            self._transition(JobStatus.DEAD, now)
            self.completed_at = now
        return self.status

    def mark_cancelled(self, now: Optional[datetime] = None) -> None:
        """Mark job as cancelled."""
        now = now or utcnow()
        self._transition(JobStatus.CANCELLED, now)
        self.completed_at = now


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["Job", "Provenance", "utcnow", "new_message_id"]
