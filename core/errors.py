# ============================================================================
# ORCHESTRATION ERRORS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Name the failure classes the orchestrator distinguishes
# CREATED: 19 OCT 2026
# ============================================================================
"""
Orchestration Errors

Taxonomy:
- TransientJobError: the store is temporarily unreachable. The job is
  retried by the store's backoff policy until max_attempts, then DEAD.
- HandlerExecutionError: agent logic raised (malformed payloads included).
  Logged at ERROR and mapped to fail(job_id, message, retry_allowed=True).
- BatchLoopError: an exception escaped a per-agent batch. Logged, and the
  loop continues after the normal poll interval.

Only an explicit stop() ends the orchestration loop.
"""

from typing import Optional


class OrchestrationError(Exception):
    """Base exception for orchestration errors."""
    pass


class TransientJobError(OrchestrationError):
    """Raised when the job store cannot be reached."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Job store unavailable during {operation}{detail}")


class HandlerExecutionError(OrchestrationError):
    """Raised (or recorded) when an agent handler fails for a job."""

    def __init__(self, job_id: str, agent_type: str, cause: BaseException):
        self.job_id = job_id
        self.agent_type = agent_type
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)


class BatchLoopError(OrchestrationError):
    """Raised when processing a batch for one agent type fails."""

    def __init__(self, agent_type: str, cause: BaseException):
        self.agent_type = agent_type
        self.cause = cause
        super().__init__(f"Batch for {agent_type} failed: {cause}")


class AgentNotRegisteredError(OrchestrationError):
    """Raised when no handler is registered for an agent type."""

    def __init__(self, agent_type: str):
        self.agent_type = agent_type
        super().__init__(f"No handler registered for agent type: {agent_type}")


class InvalidJobTransitionError(OrchestrationError):
    """Raised when a job status transition is not allowed."""

    def __init__(self, message_id: str, current: str, target: str):
        self.message_id = message_id
        self.current = current
        self.target = target
        super().__init__(f"Job {message_id}: cannot transition from {current} to {target}")


__all__ = [
    "OrchestrationError",
    "TransientJobError",
    "HandlerExecutionError",
    "BatchLoopError",
    "AgentNotRegisteredError",
    "InvalidJobTransitionError",
]
