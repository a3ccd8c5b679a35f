# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for polling, retries, event delivery, agents
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for the orchestrator loop, job retry policy, event
delivery, agent limits and storage backend. Each group can be overridden
via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from enum import Enum

from core.contracts import BackoffStrategy, MessageIntent


class StorageBackend(str, Enum):
    """Where jobs, events, logs and journal data live."""
    POSTGRES = "postgres"
    MEMORY = "memory"


@dataclass(frozen=True)
class OrchestratorDefaults:
    """
    Defaults for the dispatch loop.

    The loop waits poll_interval_ms after every iteration, whether or
    not the iteration found work.
    """
    poll_interval_ms: int = 5000
    batch_size: int = 10

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    @classmethod
    def from_env(cls) -> "OrchestratorDefaults":
        """Create from environment variables."""
        return cls(
            poll_interval_ms=int(os.getenv("ORCHESTRATOR_POLL_INTERVAL_MS", 5000)),
            batch_size=int(os.getenv("ORCHESTRATOR_BATCH_SIZE", 10)),
        )


@dataclass(frozen=True)
class JobDefaults:
    """
    Defaults applied when a job is created.

    Backoff is owned by the job store:
        fixed       -> base
        linear      -> base * attempts
        exponential -> base * 2^attempts
    capped at backoff_max_seconds.
    """
    intent: MessageIntent = MessageIntent.EXECUTE
    ttl_sec: int = 600
    max_attempts: int = 3
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 300.0

    def backoff_seconds(self, strategy: BackoffStrategy, attempts: int) -> float:
        """Delay before the next attempt, given attempts made so far."""
        base = self.backoff_base_seconds
        if strategy == BackoffStrategy.FIXED:
            delay = base
        elif strategy == BackoffStrategy.LINEAR:
            delay = base * attempts
        else:
            delay = base * (2 ** attempts)
        return min(delay, self.backoff_max_seconds)

    @classmethod
    def from_env(cls) -> "JobDefaults":
        """Create from environment variables."""
        return cls(
            ttl_sec=int(os.getenv("JOB_TTL_SEC", 600)),
            max_attempts=int(os.getenv("JOB_MAX_ATTEMPTS", 3)),
            backoff_strategy=BackoffStrategy(
                os.getenv("JOB_BACKOFF_STRATEGY", BackoffStrategy.EXPONENTIAL.value)
            ),
            backoff_base_seconds=float(os.getenv("JOB_BACKOFF_BASE_SECONDS", 1.0)),
            backoff_max_seconds=float(os.getenv("JOB_BACKOFF_MAX_SECONDS", 300.0)),
        )


@dataclass(frozen=True)
class EventBusDefaults:
    """Defaults for polling delivery of the event stream to subscribers."""
    poll_interval_seconds: float = 1.0
    batch_size: int = 100
    max_delivery_attempts: int = 3

    @classmethod
    def from_env(cls) -> "EventBusDefaults":
        """Create from environment variables."""
        return cls(
            poll_interval_seconds=float(os.getenv("EVENT_POLL_INTERVAL_SECONDS", 1.0)),
            batch_size=int(os.getenv("EVENT_BATCH_SIZE", 100)),
            max_delivery_attempts=int(os.getenv("EVENT_MAX_DELIVERY_ATTEMPTS", 3)),
        )


@dataclass(frozen=True)
class AgentDefaults:
    """Per-agent admission limits."""
    rate_limit_per_min: int = 60
    max_concurrent: int = 5

    @classmethod
    def from_env(cls) -> "AgentDefaults":
        """Create from environment variables."""
        return cls(
            rate_limit_per_min=int(os.getenv("AGENT_RATE_LIMIT_PER_MIN", 60)),
            max_concurrent=int(os.getenv("AGENT_MAX_CONCURRENT", 5)),
        )


@dataclass(frozen=True)
class StorageDefaults:
    """
    Storage backend selection.

    Connection details for postgres are read by repositories.database.
    """
    backend: StorageBackend = StorageBackend.POSTGRES
    pool_min_size: int = 2
    pool_max_size: int = 10

    @classmethod
    def from_env(cls) -> "StorageDefaults":
        """Create from environment variables."""
        return cls(
            backend=StorageBackend(os.getenv("STORAGE_BACKEND", StorageBackend.POSTGRES.value)),
            pool_min_size=int(os.getenv("POSTGRES_POOL_MIN_SIZE", 2)),
            pool_max_size=int(os.getenv("POSTGRES_POOL_MAX_SIZE", 10)),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    orchestrator: OrchestratorDefaults = field(default_factory=OrchestratorDefaults)
    jobs: JobDefaults = field(default_factory=JobDefaults)
    events: EventBusDefaults = field(default_factory=EventBusDefaults)
    agents: AgentDefaults = field(default_factory=AgentDefaults)
    storage: StorageDefaults = field(default_factory=StorageDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment."""
        return cls(
            orchestrator=OrchestratorDefaults.from_env(),
            jobs=JobDefaults.from_env(),
            events=EventBusDefaults.from_env(),
            agents=AgentDefaults.from_env(),
            storage=StorageDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "StorageBackend",
    "OrchestratorDefaults",
    "JobDefaults",
    "EventBusDefaults",
    "AgentDefaults",
    "StorageDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
