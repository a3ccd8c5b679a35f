# ============================================================================
# STORE CONTRACTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Abstract persistence surfaces
# PURPOSE: Contracts shared by the PostgreSQL and in-memory adapters
# CREATED: 19 OCT 2026
# ============================================================================
"""
Store Contracts

The orchestrator and agents depend only on these abstract classes. Two
families of adapters implement them:

    repositories/job_repo.py etc.  - PostgreSQL (psycopg3 async)
    repositories/memory.py         - in-process, for local runs and tests

JobStore owns the whole job lifecycle, including the retry policy. Every
mutating call is atomic with respect to concurrent callers; in particular
claim_next_ready() never hands the same job to two callers.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from core.config import JobDefaults
from core.contracts import (
    AgentType,
    BackoffStrategy,
    JobStatus,
    LogLevel,
    MessageIntent,
)
from core.models import (
    AgentEvent,
    AgentLog,
    Commitment,
    EntryLink,
    Job,
    JournalEntry,
    Provenance,
    utcnow,
)


# ============================================================================
# JOBS
# ============================================================================

class JobStore(ABC):
    """
    Durable job queue.

    Subclasses implement persistence; the retry policy lives here so that
    both adapters schedule retries identically.
    """

    def __init__(self, policy: Optional[JobDefaults] = None):
        self.policy = policy or JobDefaults()

    def backoff_seconds(self, strategy: BackoffStrategy, attempts: int) -> float:
        return self.policy.backoff_seconds(strategy, attempts)

    def build_job(
        self,
        agent_type: AgentType,
        task: str,
        payload: Optional[Dict[str, Any]] = None,
        intent: Optional[MessageIntent] = None,
        dependencies: Optional[Iterable[str]] = None,
        run_at: Optional[datetime] = None,
        ttl_sec: Optional[int] = None,
        provenance: Optional[Provenance] = None,
        max_attempts: Optional[int] = None,
        backoff_strategy: Optional[BackoffStrategy] = None,
        now: Optional[datetime] = None,
    ) -> Job:
        """Apply policy defaults and build a new PENDING job with a fresh id."""
        now = now or utcnow()
        return Job(
            agent_type=agent_type,
            task=task,
            payload=payload or {},
            intent=intent or self.policy.intent,
            dependencies=list(dependencies or []),
            run_at=run_at or now,
            ttl_sec=self.policy.ttl_sec if ttl_sec is None else ttl_sec,
            provenance=provenance or Provenance(),
            max_attempts=max_attempts or self.policy.max_attempts,
            backoff_strategy=backoff_strategy or self.policy.backoff_strategy,
            created_at=now,
            updated_at=now,
        )

    async def create(
        self,
        agent_type: AgentType,
        task: str,
        payload: Optional[Dict[str, Any]] = None,
        **options: Any,
    ) -> str:
        """
        Enqueue a new job.

        Every call creates a distinct job; identical submissions are not
        deduplicated.

        Returns:
            The new job's message_id
        """
        job = self.build_job(agent_type, task, payload, **options)
        await self.insert(job)
        return job.message_id

    @abstractmethod
    async def insert(self, job: Job) -> None:
        """Persist a freshly built job."""

    @abstractmethod
    async def get(self, message_id: str) -> Optional[Job]:
        """Get a job by id, or None."""

    @abstractmethod
    async def claim_next_ready(self, agent_type: AgentType, limit: int) -> List[Job]:
        """
        Atomically move up to `limit` ready jobs of one agent type to RUNNING.

        Ready means PENDING or READY, run_at <= now, and every dependency
        COMPLETED. Ordered by run_at, then created_at.
        """

    @abstractmethod
    async def start(self, message_id: str) -> bool:
        """Stamp started_at on a running job. False if not running."""

    @abstractmethod
    async def complete(self, message_id: str, result: Any = None) -> bool:
        """RUNNING -> COMPLETED. False (no-op) if the job is not running."""

    @abstractmethod
    async def fail(
        self, message_id: str, error: str, retry_allowed: bool = True
    ) -> Optional[JobStatus]:
        """
        Record a failed attempt.

        Returns:
            READY or DEAD, or None (no-op) if the job is not running
        """

    @abstractmethod
    async def cancel(self, message_id: str) -> Optional[Job]:
        """
        Cancel a non-terminal job. Terminal jobs are returned unchanged.

        Returns:
            The job after the call, or None if it does not exist
        """

    @abstractmethod
    async def count_pending_ready(self, agent_type: AgentType) -> int:
        """Number of jobs of this type in PENDING or READY."""

    @abstractmethod
    async def reclaim_stale(self, limit: int = 100) -> List[str]:
        """
        Requeue RUNNING jobs held past their ttl_sec.

        Each stale job is recorded as a failed attempt with retry allowed,
        so it returns to READY after backoff or goes DEAD once its attempts
        are used up. Jobs with ttl_sec=0 never expire.

        Returns:
            message_ids of the reclaimed jobs
        """

    @staticmethod
    def stale_error(job: Job) -> str:
        return f"Job exceeded ttl_sec={job.ttl_sec} while running"


# ============================================================================
# EVENT AND LOG STREAMS
# ============================================================================

class EventStore(ABC):
    """Append-only event stream with a monotonically increasing sequence."""

    @abstractmethod
    async def append(self, event: AgentEvent) -> AgentEvent:
        """Persist an event and return it with sequence assigned."""

    @abstractmethod
    async def read_after(
        self,
        after_sequence: int,
        event_types: Optional[Iterable[str]] = None,
        limit: int = 100,
    ) -> List[AgentEvent]:
        """Events with sequence > after_sequence, oldest first."""

    @abstractmethod
    async def latest_sequence(self) -> int:
        """Highest sequence assigned so far (0 when empty)."""


class AgentLogStore(ABC):
    """Append-only agent log records."""

    @abstractmethod
    async def append(self, record: AgentLog) -> AgentLog:
        """Persist a log record."""

    @abstractmethod
    async def query(
        self,
        agent_type: Optional[str] = None,
        level: Optional[LogLevel] = None,
        job_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AgentLog]:
        """Newest-first records matching all given filters."""


# ============================================================================
# JOURNAL AND COMMITMENTS
# ============================================================================

class JournalTransaction(ABC):
    """Writes made by the Entry Classifier, committed together."""

    @abstractmethod
    async def upsert_entry(self, entry: JournalEntry) -> JournalEntry:
        """Insert or replace the entry keyed by id."""

    @abstractmethod
    async def resolve_areas(self, codes: Iterable[str]) -> Dict[str, str]:
        """Map known area codes to area ids. Unknown codes are absent."""

    @abstractmethod
    async def insert_links(self, links: List[EntryLink]) -> int:
        """Link the entry to areas. Returns the number of links written."""


class JournalStore(ABC):
    """Entries, area taxonomy and entry links."""

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[JournalTransaction]:
        """
        Open a transaction.

        Commits when the block exits normally, rolls back when it raises.
        """


class CommitmentStore(ABC):
    """Persisted commitments and their entry links."""

    @abstractmethod
    async def save(self, commitment: Commitment) -> str:
        """
        Upsert the commitment and its entry link atomically.

        An existing id keeps its status and detected_at; the detection
        fields are overwritten. Returns the id.
        """

    @abstractmethod
    async def list_for_entry(self, entry_id: str) -> List[Commitment]:
        """Commitments linked to an entry."""


__all__ = [
    "JobStore",
    "EventStore",
    "AgentLogStore",
    "JournalTransaction",
    "JournalStore",
    "CommitmentStore",
]
