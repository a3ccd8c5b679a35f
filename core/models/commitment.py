# ============================================================================
# COMMITMENT MODELS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Domain model - Declared intentions found in journal text
# PURPOSE: Detection results and persisted commitments
# CREATED: 19 OCT 2026
# EXPORTS: CommitmentEntities, CommitmentDetectionResult, Commitment,
#          CommitmentDetectorPayload
# DEPENDENCIES: pydantic
# ============================================================================
"""
Commitment Models

Maps to:
    agent_app.fd_commitment
    agent_app.fd_commitment_entry_link
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from core.contracts import CommitmentStatus
from core.models.job import utcnow


class CommitmentEntities(BaseModel):
    """Entities extracted from one sentence."""
    subjects: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)
    people: List[str] = Field(default_factory=list)
    domains: List[str] = Field(default_factory=list)


class CommitmentDetectionResult(BaseModel):
    """Analysis of one sentence."""
    has_commitment: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    statement: str
    intent_verbs: List[str] = Field(default_factory=list)
    entities: CommitmentEntities = Field(default_factory=CommitmentEntities)


class CommitmentDetectorPayload(BaseModel):
    """Fields the Commitment Detector reads from a journal payload."""
    entry_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    content: str


# Namespace for ids derived from (entry_id, sentence index)
COMMITMENT_NAMESPACE = uuid.UUID("5c1f7d2e-8a43-4b9e-9d16-3f0a6c2b7e41")


def commitment_id_for(entry_id: str, sentence_index: int) -> str:
    """Same entry and sentence always give the same id, so re-detection upserts."""
    return str(uuid.uuid5(COMMITMENT_NAMESPACE, f"{entry_id}:{sentence_index}"))


class Commitment(BaseModel):
    """A persisted commitment, created ACTIVE by the detector."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    entry_id: str
    statement: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    intent_verbs: List[str] = Field(default_factory=list)
    entities: CommitmentEntities = Field(default_factory=CommitmentEntities)
    source: str = "journal"
    status: CommitmentStatus = CommitmentStatus.ACTIVE
    detected_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_detection(
        cls,
        user_id: str,
        entry_id: str,
        result: CommitmentDetectionResult,
        sentence_index: int,
    ) -> "Commitment":
        return cls(
            id=commitment_id_for(entry_id, sentence_index),
            user_id=user_id,
            entry_id=entry_id,
            statement=result.statement,
            confidence=result.confidence,
            intent_verbs=list(result.intent_verbs),
            entities=result.entities,
        )


__all__ = [
    "CommitmentEntities",
    "CommitmentDetectionResult",
    "CommitmentDetectorPayload",
    "Commitment",
    "commitment_id_for",
]
