# ============================================================================
# AGENT LOG MODEL
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core model - Persisted agent log records
# PURPOSE: Queryable audit trail of agent and orchestrator activity
# CREATED: 19 OCT 2026
# EXPORTS: AgentLog
# DEPENDENCIES: pydantic
# ============================================================================
"""
Agent Log Model

Maps to: agent_app.agent_logs table
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.contracts import LogLevel
from core.models.job import utcnow


class AgentLog(BaseModel):
    """One append-only log record."""
    id: Optional[int] = Field(default=None, description="Store-assigned")
    agent_type: str = Field(..., max_length=64)
    level: LogLevel = LogLevel.INFO
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)
    job_id: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utcnow)


__all__ = ["AgentLog"]
