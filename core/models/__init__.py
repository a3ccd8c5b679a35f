# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# CREATED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the agent orchestration system.
"""

from core.models.job import Job, Provenance, utcnow, new_message_id
from core.models.envelope import MessageEnvelope, RetryInfo
from core.models.events import AgentEvent
from core.models.agent_log import AgentLog
from core.models.journal import (
    DEFAULT_TAG_STRENGTH,
    EntryTag,
    JournalEntryPayload,
    EntryClassification,
    Sentiment,
    ProposedScore,
    JournalEntry,
    Area,
    EntryLink,
)
from core.models.commitment import (
    CommitmentEntities,
    CommitmentDetectionResult,
    CommitmentDetectorPayload,
    Commitment,
    commitment_id_for,
)

__all__ = [
    # Job
    "Job",
    "Provenance",
    "utcnow",
    "new_message_id",
    "MessageEnvelope",
    "RetryInfo",
    # Streams
    "AgentEvent",
    "AgentLog",
    # Journal
    "DEFAULT_TAG_STRENGTH",
    "EntryTag",
    "JournalEntryPayload",
    "EntryClassification",
    "Sentiment",
    "ProposedScore",
    "JournalEntry",
    "Area",
    "EntryLink",
    # Commitment
    "CommitmentEntities",
    "CommitmentDetectionResult",
    "CommitmentDetectorPayload",
    "Commitment",
    "commitment_id_for",
]
