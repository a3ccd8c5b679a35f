# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Foundation - Core enums shared by store, orchestrator and agents
# PURPOSE: Define agent identities, job lifecycle, event and log vocabularies
# CREATED: 19 OCT 2026
# EXPORTS: AgentType, JobStatus, MessageIntent, BackoffStrategy,
#          ProvenanceSource, EventType, LogLevel, CommitmentStatus
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the agent orchestration system.

These enums cross every boundary:
- SQL (PostgreSQL text columns)
- HTTP (FastAPI request/response bodies)
- Python (orchestrator, agents, event subscribers)

The AgentType enum is closed: the orchestrator registry is keyed by it,
so adding an agent means adding a member here.
"""

import logging
from enum import Enum


# ============================================================================
# AGENTS
# ============================================================================

class AgentType(str, Enum):
    """Identities of the handlers the orchestrator can dispatch to."""
    ORCHESTRATOR = "Orchestrator"
    ENTRY_CLASSIFIER = "EntryClassifier"
    COMMITMENT_DETECTOR = "CommitmentDetector"


# ============================================================================
# JOB LIFECYCLE
# ============================================================================

class JobStatus(str, Enum):
    """
    Job lifecycle states.

    State transitions:
        PENDING -> READY -> RUNNING -> COMPLETED
                                    -> FAILED -> READY (backoff)
                                              -> DEAD
        any non-terminal -> CANCELLED

    FAILED is transient: the store resolves it to READY or DEAD
    inside the same fail() call.
    """
    PENDING = "pending"          # Created, waiting for run_at / dependencies
    READY = "ready"              # Rescheduled after a failed attempt
    RUNNING = "running"          # Claimed by exactly one dispatcher
    COMPLETED = "completed"      # Handler returned successfully
    FAILED = "failed"            # Handler raised, retry decision pending
    DEAD = "dead"                # Attempts exhausted or retry refused
    CANCELLED = "cancelled"      # Explicitly cancelled

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (JobStatus.COMPLETED, JobStatus.DEAD, JobStatus.CANCELLED)

    def is_claimable(self) -> bool:
        """Check if a job in this state may be claimed once it is due."""
        return self in (JobStatus.PENDING, JobStatus.READY)


class MessageIntent(str, Enum):
    """What the producer expects the agent to do with the payload."""
    PLAN = "plan"
    EXECUTE = "execute"
    VALIDATE = "validate"
    REPORT = "report"
    ANALYZE = "analyze"
    TRANSFORM = "transform"


class BackoffStrategy(str, Enum):
    """Delay policy applied by the job store between attempts."""
    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class ProvenanceSource(str, Enum):
    """Where a job originated."""
    SYSTEM = "system"
    USER = "user"
    IMPORT = "import"


# ============================================================================
# EVENTS
# ============================================================================

class EventType(str, Enum):
    """Types of events published on the event stream."""

    # Journal
    JOURNAL_ENTRY_CREATED = "journal.entry.created"

    # Commitment
    COMMITMENT_DETECTED = "commitment.detected"

    # Job lifecycle
    JOB_COMPLETED = "job.completed"
    JOB_FAILED = "job.failed"


# ============================================================================
# LOGS
# ============================================================================

class LogLevel(str, Enum):
    """Severity of an agent log record."""
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        """Map to the standard library logging level."""
        return {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARN: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.CRITICAL: logging.CRITICAL,
        }[self]


# ============================================================================
# COMMITMENTS
# ============================================================================

class CommitmentStatus(str, Enum):
    """Commitment states. Only ACTIVE is produced by this service."""
    ACTIVE = "active"
    FULFILLED = "fulfilled"
    EXPIRED = "expired"


__all__ = [
    "AgentType",
    "JobStatus",
    "MessageIntent",
    "BackoffStrategy",
    "ProvenanceSource",
    "EventType",
    "LogLevel",
    "CommitmentStatus",
]
