# ============================================================================
# AGENT LOG SERVICE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Persisted agent logs mirrored to Python logging
# PURPOSE: One call that records an AgentLog and writes the log line
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Log Service

log() is fire-and-forget: if the record cannot be persisted the failure
is logged as a warning and the caller carries on. The Python log line is
always written, under the logger "agents.<agent_type>".
"""

import logging
from typing import Any, Dict, List, Optional

from core.contracts import LogLevel
from core.logging import log_context
from core.models import AgentLog
from repositories.base import AgentLogStore

logger = logging.getLogger(__name__)


class AgentLogService:
    """Service for recording and querying agent logs."""

    def __init__(self, store: AgentLogStore):
        self.store = store

    async def log(
        self,
        agent_type: str,
        level: LogLevel,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        job_id: Optional[str] = None,
    ) -> Optional[AgentLog]:
        """
        Record a log entry.

        Args:
            agent_type: Agent name (AgentType value)
            level: Severity
            message: Log message
            context: Structured details
            job_id: Related job

        Returns:
            Persisted record, or None if persistence failed
        """
        agent_type = str(getattr(agent_type, "value", agent_type))
        level = LogLevel(level)
        record = AgentLog(
            agent_type=agent_type,
            level=level,
            message=message,
            context=context or {},
            job_id=job_id,
        )

        with log_context(agent_type=agent_type, job_id=job_id):
            logging.getLogger(f"agents.{agent_type}").log(
                level.to_logging_level(), message, extra={"extra": record.context}
            )

        try:
            return await self.store.append(record)
        except Exception as e:
            logger.warning(f"Failed to persist log for {agent_type}: {e}")
            return None

    async def get_logs(
        self,
        agent_type: Optional[str] = None,
        level: Optional[LogLevel] = None,
        job_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AgentLog]:
        """Newest-first log records matching the filters."""
        if agent_type is not None:
            agent_type = str(getattr(agent_type, "value", agent_type))
        return await self.store.query(
            agent_type=agent_type, level=level, job_id=job_id, limit=limit
        )
