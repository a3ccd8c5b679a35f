# ============================================================================
# AGENTS MODULE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Agent contract and specialist agents
# PURPOSE: Handlers the orchestrator dispatches jobs to
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agents Module

Usage:
    from agents import AgentRegistry, EntryClassifierAgent

    registry = AgentRegistry()
    registry.register(AgentType.ENTRY_CLASSIFIER, EntryClassifierAgent(journal, events, logs))
"""

from .limits import AgentLimiter, RateLimiter
from .base import AgentConfig, BaseAgent
from .registry import AgentHandler, AgentRegistry
from .analyzers import (
    ContentClassifier,
    SentimentAnalyzer,
    SubjectExtractor,
    NullContentClassifier,
    NeutralSentimentAnalyzer,
    CapitalizedSubjectExtractor,
)
from .journal_agent import EntryClassifierAgent, propose_scores
from .commitment_agent import (
    CommitmentDetectorAgent,
    COMMITMENT_THRESHOLD,
    DOMAIN_KEYWORDS,
    INTENT_LEXICON,
)

__all__ = [
    "AgentLimiter",
    "RateLimiter",
    "AgentConfig",
    "BaseAgent",
    "AgentHandler",
    "AgentRegistry",
    "ContentClassifier",
    "SentimentAnalyzer",
    "SubjectExtractor",
    "NullContentClassifier",
    "NeutralSentimentAnalyzer",
    "CapitalizedSubjectExtractor",
    "EntryClassifierAgent",
    "propose_scores",
    "CommitmentDetectorAgent",
    "COMMITMENT_THRESHOLD",
    "DOMAIN_KEYWORDS",
    "INTENT_LEXICON",
]
