# ============================================================================
# MESSAGE ENVELOPE MODEL
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core model - What an agent receives for one job
# PURPOSE: Normalize a claimed job into the agent call contract
# CREATED: 19 OCT 2026
# EXPORTS: MessageEnvelope, RetryInfo
# DEPENDENCIES: pydantic
# ============================================================================
"""
Message Envelope

Built by the orchestrator from a claimed Job and passed to the agent.
Agents read payload and task; retry tells them which attempt this is.
"""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from core.contracts import AgentType, BackoffStrategy, MessageIntent
from core.models.job import Job, Provenance


class RetryInfo(BaseModel):
    """Retry state at dispatch time."""
    count: int = Field(default=0, ge=0, description="Attempts already made")
    max: int = Field(default=3, ge=1)
    backoff: BackoffStrategy = BackoffStrategy.EXPONENTIAL


class MessageEnvelope(BaseModel):
    """Normalized job handed to an agent."""
    message_id: str
    created_at: datetime
    actor: AgentType
    intent: MessageIntent
    task: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)
    provenance: Provenance = Field(default_factory=Provenance)
    ttl_sec: int = 600
    retry: RetryInfo = Field(default_factory=RetryInfo)

    @classmethod
    def from_job(cls, job: Job) -> "MessageEnvelope":
        """Build the envelope for a claimed job."""
        return cls(
            message_id=job.message_id,
            created_at=job.created_at,
            actor=job.agent_type,
            intent=job.intent,
            task=job.task,
            payload=job.payload,
            dependencies=list(job.dependencies),
            provenance=job.provenance,
            ttl_sec=job.ttl_sec,
            retry=RetryInfo(
                count=job.attempts,
                max=job.max_attempts,
                backoff=job.backoff_strategy,
            ),
        )


__all__ = ["MessageEnvelope", "RetryInfo"]
