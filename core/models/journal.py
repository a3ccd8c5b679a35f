# ============================================================================
# JOURNAL MODELS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Domain model - Journal entries and their classification
# PURPOSE: Payload and result shapes for the Entry Classifier
# CREATED: 19 OCT 2026
# EXPORTS: JournalEntryPayload, EntryTag, EntryClassification, Sentiment,
#          ProposedScore, JournalEntry, Area, EntryLink
# DEPENDENCIES: pydantic
# ============================================================================
"""
Journal Models

JournalEntryPayload is what producers enqueue for both journal agents.
EntryClassification, Sentiment and ProposedScore are what the Entry
Classifier derives and publishes on journal.entry.created.

Tables:
    agent_app.fd_entry       - raw entries (JournalEntry)
    agent_app.fd_area        - static area taxonomy (Area)
    agent_app.fd_entry_link  - entry to area links (EntryLink)
"""

from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from core.models.job import utcnow


# Default strength applied to caller tags that omit one
DEFAULT_TAG_STRENGTH = 0.5


class EntryTag(BaseModel):
    """Caller-supplied classification hint."""
    area_code: str = Field(..., min_length=1, max_length=64)
    dimension_code: Optional[str] = Field(default=None, max_length=64)
    strength: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class JournalEntryPayload(BaseModel):
    """Upstream payload for journal jobs."""
    entry_id: str = Field(..., min_length=1, max_length=64)
    user_id: str = Field(..., min_length=1, max_length=64)
    content: str
    date: date_type
    tags: Optional[List[EntryTag]] = None


class EntryClassification(BaseModel):
    """An entry's link strength to one area (and optionally one dimension)."""
    area_code: str
    dimension_code: Optional[str] = None
    strength: float = Field(default=DEFAULT_TAG_STRENGTH, ge=0.0, le=1.0)

    @classmethod
    def from_tag(cls, tag: EntryTag) -> "EntryClassification":
        # `or` mirrors falsy handling: an explicit 0 strength takes the default
        return cls(
            area_code=tag.area_code,
            dimension_code=tag.dimension_code,
            strength=tag.strength or DEFAULT_TAG_STRENGTH,
        )


class Sentiment(BaseModel):
    """Polarity in [-1, 1] and subjectivity in [0, 1]."""
    polarity: float = Field(default=0.0, ge=-1.0, le=1.0)
    subjectivity: float = Field(default=0.5, ge=0.0, le=1.0)


class ProposedScore(BaseModel):
    """Suggested 0-5 score for a dimension."""
    area_code: str
    dimension_code: str
    proposed_score: float = Field(..., ge=0.0, le=5.0)
    confidence: float = Field(..., ge=0.0, le=1.0)


class JournalEntry(BaseModel):
    """Stored raw entry. Maps to: agent_app.fd_entry"""
    id: str
    user_id: str
    content: str
    entry_date: date_type
    source: str = "journal"
    created_at: datetime = Field(default_factory=utcnow)


class Area(BaseModel):
    """Taxonomy area. Maps to: agent_app.fd_area"""
    id: str
    code: str
    name: str


class EntryLink(BaseModel):
    """Maps to: agent_app.fd_entry_link"""
    entry_id: str
    area_id: str
    dimension_code: Optional[str] = None
    strength: float
    source: str = "agent"


__all__ = [
    "DEFAULT_TAG_STRENGTH",
    "EntryTag",
    "JournalEntryPayload",
    "EntryClassification",
    "Sentiment",
    "ProposedScore",
    "JournalEntry",
    "Area",
    "EntryLink",
]
