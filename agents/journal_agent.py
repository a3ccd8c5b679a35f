# ============================================================================
# ENTRY CLASSIFIER AGENT
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Specialist - Journal entry ingestion and classification
# PURPOSE: Persist entries, link them to areas, propose dimension scores
# CREATED: 19 OCT 2026
# ============================================================================
"""
Entry Classifier Agent

Steps 1-5 run in order inside one journal transaction; step 6 runs after
it commits:

    1. Upsert the raw entry keyed by entry_id
    2. Classify: caller tags verbatim (strength defaults to 0.5), otherwise
       the pluggable ContentClassifier
    3. Link the entry to the classified areas (source='agent'); codes the
       taxonomy does not know are skipped with a warning
    4. Sentiment via the pluggable SentimentAnalyzer
    5. Propose score = clamp(0, 5, 2.5 + 2 * polarity) for each
       classification with a dimension, confidence = strength
    6. Emit journal.entry.created

Any of steps 1-5 raising rolls the transaction back and re-raises, so the
job fails and is retried without leaving a partial entry behind. A
failed emit also re-raises; the retry upserts the same entry and replaces
its agent links, then emits again.
"""

import logging
from typing import Any, Dict, List, Optional

from core.contracts import AgentType, EventType, LogLevel
from core.logging import log_context
from core.models import (
    EntryClassification,
    EntryLink,
    JournalEntry,
    JournalEntryPayload,
    MessageEnvelope,
    ProposedScore,
    Sentiment,
)
from repositories.base import JournalStore, JournalTransaction
from services.event_service import EventService
from services.log_service import AgentLogService

from .analyzers import (
    ContentClassifier,
    NeutralSentimentAnalyzer,
    NullContentClassifier,
    SentimentAnalyzer,
)
from .base import AgentConfig, BaseAgent
from .limits import Clock, Sleep

logger = logging.getLogger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 5.0
SCORE_MIDPOINT = 2.5
SCORE_POLARITY_WEIGHT = 2.0


def propose_scores(
    classification: List[EntryClassification], sentiment: Sentiment
) -> List[ProposedScore]:
    """Score every classification that names a dimension."""
    score = max(SCORE_MIN, min(SCORE_MAX, SCORE_MIDPOINT + sentiment.polarity * SCORE_POLARITY_WEIGHT))
    return [
        ProposedScore(
            area_code=c.area_code,
            dimension_code=c.dimension_code,
            proposed_score=score,
            confidence=c.strength,
        )
        for c in classification
        if c.dimension_code
    ]


class EntryClassifierAgent(BaseAgent):
    """Ingests journal entries."""

    def __init__(
        self,
        journal: JournalStore,
        events: EventService,
        logs: AgentLogService,
        classifier: Optional[ContentClassifier] = None,
        sentiment: Optional[SentimentAnalyzer] = None,
        config: Optional[AgentConfig] = None,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
    ):
        super().__init__(
            config or AgentConfig(name=AgentType.ENTRY_CLASSIFIER),
            events,
            logs,
            clock=clock,
            sleep=sleep,
        )
        self.journal = journal
        self.classifier = classifier or NullContentClassifier()
        self.sentiment = sentiment or NeutralSentimentAnalyzer()

    async def execute(self, envelope: MessageEnvelope) -> Dict[str, Any]:
        payload = JournalEntryPayload.model_validate(envelope.payload)
        job_id = envelope.message_id

        with log_context(entry_id=payload.entry_id, user_id=payload.user_id):
            await self._log(
                LogLevel.INFO,
                f"Processing entry {payload.entry_id}",
                {"message_id": job_id, "user_id": payload.user_id, "entry_id": payload.entry_id},
                job_id,
            )
            try:
                result = await self._process(payload, job_id)
            except Exception as e:
                await self._log(
                    LogLevel.ERROR,
                    f"Failed to process entry: {e}",
                    {"message_id": job_id, "error": str(e)},
                    job_id,
                )
                raise

            await self._log(
                LogLevel.INFO,
                f"Entry {payload.entry_id} processed successfully",
                {"message_id": job_id, "classification": result["classification"]},
                job_id,
            )
            return result

    async def _process(self, payload: JournalEntryPayload, job_id: str) -> Dict[str, Any]:
        async with self.journal.transaction() as tx:
            entry = await tx.upsert_entry(
                JournalEntry(
                    id=payload.entry_id,
                    user_id=payload.user_id,
                    content=payload.content,
                    entry_date=payload.date,
                )
            )
            classification = await self.classify(payload)
            await self.link_entry(tx, entry.id, classification)
            sentiment = await self.sentiment.analyze(payload.content)
            proposed = propose_scores(classification, sentiment)

            result = {
                "entry_id": entry.id,
                "user_id": payload.user_id,
                "classification": [c.model_dump() for c in classification],
                "sentiment": sentiment.model_dump(),
                "proposed_scores": [p.model_dump() for p in proposed],
            }

        # Only committed entries are announced
        await self._emit(EventType.JOURNAL_ENTRY_CREATED, result, correlation_id=job_id)

        return {
            "success": True,
            "entry_id": result["entry_id"],
            "classification": result["classification"],
            "sentiment": result["sentiment"],
            "proposed_scores": result["proposed_scores"],
        }

    async def classify(self, payload: JournalEntryPayload) -> List[EntryClassification]:
        """Explicit tags win; inference runs only when none are given."""
        if payload.tags:
            return [EntryClassification.from_tag(tag) for tag in payload.tags]
        return await self.classifier.classify(payload.content)

    async def link_entry(
        self,
        tx: JournalTransaction,
        entry_id: str,
        classification: List[EntryClassification],
    ) -> int:
        if not classification:
            return 0

        area_ids = await tx.resolve_areas(c.area_code for c in classification)
        links = []
        for c in classification:
            area_id = area_ids.get(c.area_code)
            if area_id is None:
                logger.warning(f"Unknown area code '{c.area_code}' for entry {entry_id}, skipping link")
                continue
            links.append(
                EntryLink(
                    entry_id=entry_id,
                    area_id=area_id,
                    dimension_code=c.dimension_code,
                    strength=c.strength,
                    source="agent",
                )
            )
        return await tx.insert_links(links)
