# ============================================================================
# IN-MEMORY STORES
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Process-local implementations of the store contracts
# PURPOSE: Local runs without PostgreSQL (STORAGE_BACKEND=memory) and tests
# CREATED: 19 OCT 2026
# ============================================================================
"""
In-Memory Stores

Same contracts as the PostgreSQL repositories. Each store serializes its
mutations with one asyncio.Lock, which gives claim_next_ready() the same
exclusivity that FOR UPDATE SKIP LOCKED gives the database.

Stores return copies so callers cannot mutate stored state.

The job store takes an injectable clock so tests can step time past
run_at and backoff delays without sleeping.
"""

import asyncio
import itertools
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional

from core.config import JobDefaults
from core.contracts import AgentType, JobStatus, LogLevel
from core.models import (
    AgentEvent,
    AgentLog,
    Area,
    Commitment,
    EntryLink,
    Job,
    JournalEntry,
    utcnow,
)
from .base import (
    AgentLogStore,
    CommitmentStore,
    EventStore,
    JobStore,
    JournalStore,
    JournalTransaction,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


# ============================================================================
# JOBS
# ============================================================================

class InMemoryJobStore(JobStore):
    """JobStore held in a dict."""

    def __init__(self, policy: Optional[JobDefaults] = None, clock: Clock = utcnow):
        super().__init__(policy)
        self.clock = clock
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()

    def build_job(self, *args: Any, **kwargs: Any) -> Job:
        kwargs.setdefault("now", self.clock())
        return super().build_job(*args, **kwargs)

    async def insert(self, job: Job) -> None:
        async with self._lock:
            self._jobs[job.message_id] = job.model_copy(deep=True)
        logger.info(f"Created job {job.message_id} for {job.agent_type.value}/{job.task}")

    async def get(self, message_id: str) -> Optional[Job]:
        async with self._lock:
            job = self._jobs.get(message_id)
            return job.model_copy(deep=True) if job else None

    def _dependencies_met(self, job: Job) -> bool:
        for dep_id in job.dependencies:
            dep = self._jobs.get(dep_id)
            if dep is None or dep.status != JobStatus.COMPLETED:
                return False
        return True

    async def claim_next_ready(self, agent_type: AgentType, limit: int) -> List[Job]:
        async with self._lock:
            now = self.clock()
            ready = [
                job for job in self._jobs.values()
                if job.agent_type == agent_type
                and job.is_due(now)
                and self._dependencies_met(job)
            ]
            ready.sort(key=lambda j: (j.run_at, j.created_at))

            claimed = []
            for job in ready[:max(limit, 0)]:
                job.mark_running(now)
                claimed.append(job.model_copy(deep=True))
            return claimed

    async def start(self, message_id: str) -> bool:
        async with self._lock:
            job = self._jobs.get(message_id)
            if job is None or job.status != JobStatus.RUNNING:
                return False
            job.mark_started(self.clock())
            return True

    async def complete(self, message_id: str, result: Any = None) -> bool:
        async with self._lock:
            job = self._jobs.get(message_id)
            if job is None or job.status != JobStatus.RUNNING:
                logger.warning(f"complete() ignored for job {message_id}: not running")
                return False
            job.mark_completed(result, self.clock())
            return True

    async def fail(
        self, message_id: str, error: str, retry_allowed: bool = True
    ) -> Optional[JobStatus]:
        async with self._lock:
            job = self._jobs.get(message_id)
            if job is None or job.status != JobStatus.RUNNING:
                logger.warning(f"fail() ignored for job {message_id}: not running")
                return None
            delay = self.backoff_seconds(job.backoff_strategy, job.attempts + 1)
            status = job.mark_failed(error, retry_allowed, delay, self.clock())

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
        async with self._lock:
            job = self._jobs.get(message_id)
            if job is None:
                return None
            if not job.status.is_terminal():
                job.mark_cancelled(self.clock())
                logger.info(f"Cancelled job {message_id}")
            return job.model_copy(deep=True)

    async def count_pending_ready(self, agent_type: AgentType) -> int:
        async with self._lock:
            return sum(
                1 for job in self._jobs.values()
                if job.agent_type == agent_type and job.status.is_claimable()
            )

    async def reclaim_stale(self, limit: int = 100) -> List[str]:
        async with self._lock:
            now = self.clock()
            stale = sorted(
                (job for job in self._jobs.values() if job.is_stale(now)),
                key=lambda j: j.updated_at,
            )
            reclaimed = []
            for job in stale[:max(limit, 0)]:
                delay = self.backoff_seconds(job.backoff_strategy, job.attempts + 1)
                job.mark_failed(self.stale_error(job), True, delay, now)
                reclaimed.append(job.message_id)

        if reclaimed:
            logger.warning(f"Reclaimed {len(reclaimed)} stale running jobs: {reclaimed}")
        return reclaimed


# ============================================================================
# EVENT AND LOG STREAMS
# ============================================================================

class InMemoryEventStore(EventStore):
    """Event stream held in a list."""

    def __init__(self):
        self._events: List[AgentEvent] = []
        self._sequence = itertools.count(1)
        self._lock = asyncio.Lock()

    async def append(self, event: AgentEvent) -> AgentEvent:
        async with self._lock:
            stored = event.model_copy(update={"sequence": next(self._sequence)})
            self._events.append(stored)
            return stored

    async def read_after(
        self,
        after_sequence: int,
        event_types: Optional[Iterable[str]] = None,
        limit: int = 100,
    ) -> List[AgentEvent]:
        types = None
        if event_types is not None:
            types = {str(getattr(t, "value", t)) for t in event_types}
        async with self._lock:
            matches = [
                e for e in self._events
                if e.sequence > after_sequence
                and (types is None or e.type.value in types)
            ]
        return matches[:limit]

    async def latest_sequence(self) -> int:
        async with self._lock:
            return self._events[-1].sequence if self._events else 0

    @property
    def events(self) -> List[AgentEvent]:
        return list(self._events)


class InMemoryAgentLogStore(AgentLogStore):
    """Agent log records held in a list."""

    def __init__(self):
        self._records: List[AgentLog] = []
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def append(self, record: AgentLog) -> AgentLog:
        async with self._lock:
            stored = record.model_copy(update={"id": next(self._ids)})
            self._records.append(stored)
            return stored

    async def query(
        self,
        agent_type: Optional[str] = None,
        level: Optional[LogLevel] = None,
        job_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AgentLog]:
        level = LogLevel(level) if level is not None else None
        async with self._lock:
            matches = [
                r for r in reversed(self._records)
                if (agent_type is None or r.agent_type == agent_type)
                and (level is None or r.level == level)
                and (job_id is None or r.job_id == job_id)
            ]
        return matches[:limit]


# ============================================================================
# JOURNAL AND COMMITMENTS
# ============================================================================

class InMemoryJournalTransaction(JournalTransaction):
    """Buffers writes until the owning store commits them."""

    def __init__(self, store: "InMemoryJournalStore"):
        self.store = store
        self.entries: Dict[str, JournalEntry] = {}
        self.links: List[EntryLink] = []

    async def upsert_entry(self, entry: JournalEntry) -> JournalEntry:
        self.entries[entry.id] = entry
        return entry

    async def resolve_areas(self, codes: Iterable[str]) -> Dict[str, str]:
        return {
            code: self.store.areas[code].id
            for code in codes
            if code in self.store.areas
        }

    async def insert_links(self, links: List[EntryLink]) -> int:
        self.links.extend(links)
        return len(links)


class InMemoryJournalStore(JournalStore):
    """Entries and links held in dicts; areas are a fixed taxonomy."""

    def __init__(self, areas: Optional[Iterable[Area]] = None):
        self.areas: Dict[str, Area] = {a.code: a for a in (areas or [])}
        self.entries: Dict[str, JournalEntry] = {}
        self.links: List[EntryLink] = []
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryJournalTransaction]:
        async with self._lock:
            tx = InMemoryJournalTransaction(self)
            yield tx
            # Reached only when the block exits normally
            self.entries.update(tx.entries)
            if tx.links:
                relinked = {link.entry_id for link in tx.links}
                self.links = [
                    link for link in self.links
                    if not (link.entry_id in relinked and link.source == "agent")
                ]
                self.links.extend(tx.links)

    def links_for(self, entry_id: str) -> List[EntryLink]:
        return [link for link in self.links if link.entry_id == entry_id]


class InMemoryCommitmentStore(CommitmentStore):
    """Commitments held in a dict."""

    def __init__(self):
        self.commitments: Dict[str, Commitment] = {}
        self._lock = asyncio.Lock()

    async def save(self, commitment: Commitment) -> str:
        async with self._lock:
            existing = self.commitments.get(commitment.id)
            update = {}
            if existing is not None:
                update = {"status": existing.status, "detected_at": existing.detected_at}
            self.commitments[commitment.id] = commitment.model_copy(update=update, deep=True)
        return commitment.id

    async def list_for_entry(self, entry_id: str) -> List[Commitment]:
        async with self._lock:
            return [
                c.model_copy(deep=True)
                for c in sorted(self.commitments.values(), key=lambda c: c.detected_at)
                if c.entry_id == entry_id
            ]


__all__ = [
    "InMemoryJobStore",
    "InMemoryEventStore",
    "InMemoryAgentLogStore",
    "InMemoryJournalTransaction",
    "InMemoryJournalStore",
    "InMemoryCommitmentStore",
]
