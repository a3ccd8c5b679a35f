# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Persistence layer
# PURPOSE: Store contracts plus PostgreSQL and in-memory adapters
# CREATED: 19 OCT 2026
# ============================================================================
"""
Repositories Module

Provides the job store, event and log streams, and journal persistence.
PostgreSQL adapters use psycopg3 async with connection pooling; the
in-memory adapters implement the same contracts.

Usage:
    from repositories import get_pool, JobRepository

    pool = await get_pool()
    job_repo = JobRepository(pool)
    jobs = await job_repo.claim_next_ready(AgentType.ENTRY_CLASSIFIER, 10)
"""

from .base import (
    JobStore,
    EventStore,
    AgentLogStore,
    JournalStore,
    JournalTransaction,
    CommitmentStore,
)
from .database import get_pool, init_pool, close_pool
from .job_repo import JobRepository
from .event_repo import EventRepository
from .log_repo import AgentLogRepository
from .journal_repo import JournalRepository
from .commitment_repo import CommitmentRepository
from .memory import (
    InMemoryJobStore,
    InMemoryEventStore,
    InMemoryAgentLogStore,
    InMemoryJournalStore,
    InMemoryCommitmentStore,
)

__all__ = [
    # Contracts
    "JobStore",
    "EventStore",
    "AgentLogStore",
    "JournalStore",
    "JournalTransaction",
    "CommitmentStore",
    # Pool
    "get_pool",
    "init_pool",
    "close_pool",
    # PostgreSQL
    "JobRepository",
    "EventRepository",
    "AgentLogRepository",
    "JournalRepository",
    "CommitmentRepository",
    # In-memory
    "InMemoryJobStore",
    "InMemoryEventStore",
    "InMemoryAgentLogStore",
    "InMemoryJournalStore",
    "InMemoryCommitmentStore",
]
