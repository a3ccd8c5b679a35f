# ============================================================================
# RUNTIME FACTORY
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Wiring of stores, services, agents and orchestrator
# PURPOSE: Build a ready-to-start runtime for the selected storage backend
# CREATED: 19 OCT 2026
# ============================================================================
"""
Runtime Factory

    runtime = build_memory_runtime()                  # tests, local runs
    runtime = await build_postgres_runtime()          # STORAGE_BACKEND=postgres
    runtime = await build_runtime(get_defaults())     # picks by backend

Both backends register the Entry Classifier and Commitment Detector agents.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from agents import BaseAgent, CommitmentDetectorAgent, EntryClassifierAgent, AgentConfig
from core.config import Defaults, StorageBackend, get_defaults
from core.contracts import AgentType
from core.models import Area, utcnow
from repositories.base import (
    AgentLogStore,
    CommitmentStore,
    EventStore,
    JobStore,
    JournalStore,
)
from repositories.database import init_pool
from repositories.commitment_repo import CommitmentRepository
from repositories.event_repo import EventRepository
from repositories.job_repo import JobRepository
from repositories.journal_repo import JournalRepository
from repositories.log_repo import AgentLogRepository
from repositories.memory import (
    Clock,
    InMemoryAgentLogStore,
    InMemoryCommitmentStore,
    InMemoryEventStore,
    InMemoryJobStore,
    InMemoryJournalStore,
)
from services.event_service import EventService
from services.log_service import AgentLogService

from .loop import Orchestrator

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Everything one orchestrator process needs."""
    defaults: Defaults
    jobs: JobStore
    events: EventStore
    logs: AgentLogStore
    journal: JournalStore
    commitments: CommitmentStore
    event_service: EventService
    log_service: AgentLogService
    orchestrator: Orchestrator
    agents: Dict[AgentType, BaseAgent] = field(default_factory=dict)

    async def start(self) -> None:
        """Start background event delivery. The loop is started by the caller."""
        await self.event_service.start()

    async def stop(self) -> None:
        self.orchestrator.stop()
        await self.event_service.stop()


def _assemble(
    defaults: Defaults,
    jobs: JobStore,
    events: EventStore,
    logs: AgentLogStore,
    journal: JournalStore,
    commitments: CommitmentStore,
) -> Runtime:
    event_service = EventService(events, defaults.events)
    log_service = AgentLogService(logs)
    orchestrator = Orchestrator(jobs, event_service, log_service, defaults.orchestrator)

    agents: Dict[AgentType, BaseAgent] = {
        AgentType.ENTRY_CLASSIFIER: EntryClassifierAgent(
            journal,
            event_service,
            log_service,
            config=AgentConfig.with_defaults(AgentType.ENTRY_CLASSIFIER, defaults.agents),
        ),
        AgentType.COMMITMENT_DETECTOR: CommitmentDetectorAgent(
            commitments,
            event_service,
            log_service,
            config=AgentConfig.with_defaults(AgentType.COMMITMENT_DETECTOR, defaults.agents),
        ),
    }
    for agent_type, agent in agents.items():
        orchestrator.register(agent_type, agent)

    return Runtime(
        defaults=defaults,
        jobs=jobs,
        events=events,
        logs=logs,
        journal=journal,
        commitments=commitments,
        event_service=event_service,
        log_service=log_service,
        orchestrator=orchestrator,
        agents=agents,
    )


def build_memory_runtime(
    defaults: Optional[Defaults] = None,
    areas: Optional[Iterable[Area]] = None,
    clock: Clock = utcnow,
) -> Runtime:
    """
    Runtime backed by process-local stores.

    Args:
        defaults: Configuration (defaults to get_defaults())
        areas: Taxonomy the journal store resolves area codes against
        clock: Time source for the job store
    """
    defaults = defaults or get_defaults()
    logger.info("Building in-memory runtime")
    return _assemble(
        defaults,
        InMemoryJobStore(defaults.jobs, clock=clock),
        InMemoryEventStore(),
        InMemoryAgentLogStore(),
        InMemoryJournalStore(areas),
        InMemoryCommitmentStore(),
    )


async def build_postgres_runtime(defaults: Optional[Defaults] = None) -> Runtime:
    """Runtime backed by the shared PostgreSQL pool."""
    defaults = defaults or get_defaults()
    pool = await init_pool(
        min_size=defaults.storage.pool_min_size,
        max_size=defaults.storage.pool_max_size,
    )
    logger.info("Building PostgreSQL runtime")
    return _assemble(
        defaults,
        JobRepository(pool, defaults.jobs),
        EventRepository(pool),
        AgentLogRepository(pool),
        JournalRepository(pool),
        CommitmentRepository(pool),
    )


async def build_runtime(defaults: Optional[Defaults] = None) -> Runtime:
    defaults = defaults or get_defaults()
    if defaults.storage.backend == StorageBackend.MEMORY:
        return build_memory_runtime(defaults)
    return await build_postgres_runtime(defaults)
