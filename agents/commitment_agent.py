# ============================================================================
# COMMITMENT DETECTOR AGENT
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Specialist - Sentence-level commitment detection
# PURPOSE: Flag declared intentions in journal text and persist them
# CREATED: 19 OCT 2026
# ============================================================================
"""
Commitment Detector Agent

Heuristic pipeline per sentence:

    split   - on runs of . ! ?, stripped, fragments of 10 chars or fewer dropped
    verbs   - case-insensitive substring match against INTENT_LEXICON
    score   - confidence is the highest weight among matched verbs (0.0 if none)
    entities- subjects from the SubjectExtractor, domains from DOMAIN_KEYWORDS
    flag    - has_commitment when confidence >= 0.4 and a subject was found

Every sentence scoring at least COMMITMENT_THRESHOLD is persisted as an
active Commitment and announced with one commitment.detected event, even
when no subject was found. The full per-sentence analysis is returned.

Commitment ids derive from the entry id and sentence index, so a retried
job overwrites what an earlier attempt saved and re-announces the same ids.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from core.contracts import AgentType, EventType, LogLevel
from core.logging import log_context
from core.models import (
    Commitment,
    CommitmentDetectionResult,
    CommitmentDetectorPayload,
    CommitmentEntities,
    MessageEnvelope,
)
from repositories.base import CommitmentStore
from services.event_service import EventService
from services.log_service import AgentLogService

from .analyzers import CapitalizedSubjectExtractor, SubjectExtractor
from .base import AgentConfig, BaseAgent
from .limits import Clock, Sleep

logger = logging.getLogger(__name__)

# Strongest tier first
INTENT_LEXICON: Dict[str, float] = {
    # strong
    "commit": 0.95,
    "promise": 0.95,
    "vow": 0.95,
    "pledge": 0.95,
    "swear": 0.95,
    "declare": 0.95,
    # moderate
    "will": 0.75,
    "plan": 0.75,
    "aim": 0.75,
    "intend": 0.75,
    "determine": 0.75,
    "resolve": 0.75,
    # weak
    "want": 0.5,
    "hope": 0.5,
    "wish": 0.5,
    "consider": 0.5,
    "might": 0.5,
    "should": 0.5,
}

COMMITMENT_THRESHOLD = 0.4

DOMAIN_KEYWORDS: Dict[str, List[str]] = {
    "Work": ["work", "business", "enterprise", "career", "job"],
    "Health": ["health", "fitness", "exercise", "diet", "wellness"],
    "Family": ["family", "wife", "husband", "children", "kids"],
    "Finance": ["money", "finance", "invest", "wealth", "profit"],
    "Learning": ["learn", "study", "course", "education", "skill"],
}

SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
MIN_SENTENCE_LENGTH = 10


def split_sentences(text: str) -> List[str]:
    """Sentences longer than MIN_SENTENCE_LENGTH, stripped."""
    parts = (s.strip() for s in SENTENCE_BOUNDARY.split(text))
    return [s for s in parts if len(s) > MIN_SENTENCE_LENGTH]


def detect_intent_verbs(sentence: str) -> List[str]:
    """Lexicon verbs occurring anywhere in the sentence, in lexicon order."""
    lowered = sentence.lower()
    return [verb for verb in INTENT_LEXICON if verb in lowered]


def score_confidence(intent_verbs: List[str]) -> float:
    if not intent_verbs:
        return 0.0
    return min(1.0, max(INTENT_LEXICON.get(v, 0.0) for v in intent_verbs))


def detect_domains(sentence: str) -> List[str]:
    lowered = sentence.lower()
    return [
        domain for domain, keywords in DOMAIN_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]


class CommitmentDetectorAgent(BaseAgent):
    """Detects commitments in journal entries."""

    def __init__(
        self,
        commitments: CommitmentStore,
        events: EventService,
        logs: AgentLogService,
        subjects: Optional[SubjectExtractor] = None,
        config: Optional[AgentConfig] = None,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
    ):
        super().__init__(
            config or AgentConfig(name=AgentType.COMMITMENT_DETECTOR),
            events,
            logs,
            clock=clock,
            sleep=sleep,
        )
        self.commitments = commitments
        self.subjects = subjects or CapitalizedSubjectExtractor()

    def analyze_sentence(self, sentence: str) -> CommitmentDetectionResult:
        intent_verbs = detect_intent_verbs(sentence)
        confidence = score_confidence(intent_verbs)
        entities = CommitmentEntities(
            subjects=self.subjects.extract(sentence),
            domains=detect_domains(sentence),
        )
        return CommitmentDetectionResult(
            has_commitment=confidence >= COMMITMENT_THRESHOLD and len(entities.subjects) > 0,
            confidence=confidence,
            statement=sentence.strip(),
            intent_verbs=intent_verbs,
            entities=entities,
        )

    def detect(self, text: str) -> List[CommitmentDetectionResult]:
        return [self.analyze_sentence(s) for s in split_sentences(text)]

    async def execute(self, envelope: MessageEnvelope) -> List[Dict[str, Any]]:
        payload = CommitmentDetectorPayload.model_validate(envelope.payload)
        job_id = envelope.message_id

        with log_context(entry_id=payload.entry_id, user_id=payload.user_id):
            await self._log(
                LogLevel.INFO,
                f"Analyzing entry {payload.entry_id} for commitments",
                {"message_id": job_id, "user_id": payload.user_id, "entry_id": payload.entry_id},
                job_id,
            )
            try:
                results = self.detect(payload.content)
                persisted = await self._persist(payload, results, job_id)
            except Exception as e:
                await self._log(
                    LogLevel.ERROR,
                    f"Failed to analyze entry: {e}",
                    {"message_id": job_id, "error": str(e)},
                    job_id,
                )
                raise

            await self._log(
                LogLevel.INFO,
                f"Found {persisted} commitments in entry {payload.entry_id}",
                {"message_id": job_id, "sentences": len(results), "commitments": persisted},
                job_id,
            )
            return [r.model_dump() for r in results]

    async def _persist(
        self,
        payload: CommitmentDetectorPayload,
        results: List[CommitmentDetectionResult],
        job_id: str,
    ) -> int:
        count = 0
        for index, result in enumerate(results):
            if result.confidence < COMMITMENT_THRESHOLD:
                continue
            commitment = Commitment.from_detection(payload.user_id, payload.entry_id, result, index)
            commitment_id = await self.commitments.save(commitment)
            await self._emit(
                EventType.COMMITMENT_DETECTED,
                {
                    "commitment_id": commitment_id,
                    "user_id": payload.user_id,
                    "entry_id": payload.entry_id,
                    "statement": result.statement,
                    "confidence": result.confidence,
                    "entities": result.entities.model_dump(),
                },
                correlation_id=job_id,
            )
            count += 1
        return count
