# ============================================================================
# AGENT BASE CLASS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Contract every specialist agent implements
# PURPOSE: Identity, admission limits, event and log helpers
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Base Class

An agent is an async callable the orchestrator registers as a handler:

    agent = CommitmentDetectorAgent(commitments, events, logs)
    orchestrator.register(AgentType.COMMITMENT_DETECTOR, agent)

Calling the agent runs execute() under the agent's own limiter, so the
declared max_concurrent and rate_limit_per_min apply on the dispatch path
regardless of who dispatches.

Subclasses implement execute() and use _emit() / _log(), which stamp the
agent's name as event source and log agent_type.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.config import AgentDefaults
from core.contracts import AgentType, EventType, LogLevel
from core.logging import log_context
from core.models import MessageEnvelope
from services.event_service import EventService
from services.log_service import AgentLogService

from .limits import AgentLimiter, Clock, Sleep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentConfig:
    """Identity and admission limits of one agent."""
    name: AgentType
    version: str = "v1.0"
    rate_limit_per_min: int = 60
    max_concurrent: int = 5

    @classmethod
    def with_defaults(
        cls, name: AgentType, defaults: Optional[AgentDefaults] = None, version: str = "v1.0"
    ) -> "AgentConfig":
        defaults = defaults or AgentDefaults()
        return cls(
            name=name,
            version=version,
            rate_limit_per_min=defaults.rate_limit_per_min,
            max_concurrent=defaults.max_concurrent,
        )


class BaseAgent(ABC):
    """Abstract base for specialist agents."""

    def __init__(
        self,
        config: AgentConfig,
        events: EventService,
        logs: AgentLogService,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.config = config
        self.events = events
        self.logs = logs
        self.limiter = AgentLimiter(
            max_concurrent=config.max_concurrent,
            rate_limit_per_min=config.rate_limit_per_min,
            clock=clock,
            sleep=sleep,
        )

    @property
    def name(self) -> str:
        return self.config.name.value

    async def __call__(self, envelope: MessageEnvelope) -> Any:
        """Run execute() under this agent's limits."""
        async with self.limiter.admit():
            with log_context(
                agent_type=self.name,
                job_id=envelope.message_id,
                correlation_id=envelope.message_id,
            ):
                return await self.execute(envelope)

    @abstractmethod
    async def execute(self, envelope: MessageEnvelope) -> Any:
        """
        Handle one job.

        Args:
            envelope: Normalized job

        Returns:
            JSON-serializable result stored on the job

        Raises:
            Any exception fails the job and schedules a retry
        """
        pass

    async def _emit(
        self,
        event_type: EventType,
        payload: Dict[str, Any],
        correlation_id: Optional[str] = None,
    ) -> str:
        return await self.events.emit(event_type, payload, self.name, correlation_id)

    async def _log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        job_id: Optional[str] = None,
    ) -> None:
        await self.logs.log(self.name, level, message, context or {}, job_id)

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.config.version,
            "rate_limit_per_min": self.config.rate_limit_per_min,
            "max_concurrent": self.config.max_concurrent,
            **self.limiter.stats,
        }
