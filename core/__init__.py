# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# CREATED: 19 OCT 2026
# ============================================================================

from core.contracts import (
    AgentType,
    JobStatus,
    MessageIntent,
    BackoffStrategy,
    EventType,
    LogLevel,
)
from core.errors import (
    OrchestrationError,
    TransientJobError,
    HandlerExecutionError,
    BatchLoopError,
)
from core.models import (
    Job,
    MessageEnvelope,
    AgentEvent,
    AgentLog,
)

__all__ = [
    # Enums
    "AgentType",
    "JobStatus",
    "MessageIntent",
    "BackoffStrategy",
    "EventType",
    "LogLevel",
    # Errors
    "OrchestrationError",
    "TransientJobError",
    "HandlerExecutionError",
    "BatchLoopError",
    # Models
    "Job",
    "MessageEnvelope",
    "AgentEvent",
    "AgentLog",
]
