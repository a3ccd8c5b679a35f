# ============================================================================
# AGENT EVENT MODEL
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core model - Append-only event stream records
# PURPOSE: Typed events published by agents and consumed by subscribers
# CREATED: 19 OCT 2026
# EXPORTS: AgentEvent
# DEPENDENCIES: pydantic
# ============================================================================
"""
Event Model

AgentEvent is one immutable record on the event stream.

Maps to: agent_app.queue_events table

The store assigns sequence on append. Subscribers track the highest
sequence they have seen and read forward from there.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.contracts import EventType
from core.models.job import utcnow


class AgentEvent(BaseModel):
    """A single event on the stream."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: EventType
    payload: Dict[str, Any] = Field(default_factory=dict)
    source: str = Field(..., max_length=64, description="Emitting agent name")
    correlation_id: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utcnow)
    sequence: Optional[int] = Field(
        default=None,
        description="Store-assigned, monotonically increasing"
    )


__all__ = ["AgentEvent"]
