# ============================================================================
# ENTRY CLASSIFIER TESTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Tests - Journal entry ingestion and classification
# PURPOSE: Verify upsert, classification, linking, scoring and rollback
# CREATED: 19 OCT 2026
# ============================================================================
"""
Entry Classifier Tests

Covers:
1. Caller tags used verbatim, default strength 0.5, and win over inference
2. Unknown area codes skipped, known ones linked with source='agent'
3. Proposed scores from sentiment polarity, only where a dimension exists
4. Inference path when no tags are given
5. journal.entry.created emitted with the job as correlation id
6. A failing step rolls the entry back; the event follows the commit
7. Re-processing an entry replaces its agent links

Run with:
    pytest tests/test_journal_agent.py -v
"""

import asyncio
import pytest
from contextlib import asynccontextmanager
from typing import List

from agents.analyzers import ContentClassifier, SentimentAnalyzer
from agents.journal_agent import EntryClassifierAgent, propose_scores
from core.contracts import AgentType, EventType, LogLevel
from core.models import (
    Area,
    EntryClassification,
    Job,
    MessageEnvelope,
    Sentiment,
)
from repositories.memory import (
    InMemoryAgentLogStore,
    InMemoryEventStore,
    InMemoryJournalStore,
)
from services import AgentLogService, EventService

AREAS = [
    Area(id="area-health", code="HEALTH", name="Health"),
    Area(id="area-work", code="WORK", name="Work"),
    Area(id="area-finance", code="FINANCE", name="Finance"),
]


def make_envelope(payload: dict) -> MessageEnvelope:
    job = Job(agent_type=AgentType.ENTRY_CLASSIFIER, task="classify_entry", payload=payload)
    return MessageEnvelope.from_job(job)


def entry_payload(**overrides) -> dict:
    payload = {
        "entry_id": "e-1",
        "user_id": "u-1",
        "content": "Went for a long run before work.",
        "date": "2026-01-01",
    }
    payload.update(overrides)
    return payload


class FixedSentiment(SentimentAnalyzer):
    def __init__(self, polarity: float):
        self.polarity = polarity

    async def analyze(self, content: str) -> Sentiment:
        return Sentiment(polarity=self.polarity, subjectivity=0.5)


class KeywordClassifier(ContentClassifier):
    async def classify(self, content: str) -> List[EntryClassification]:
        if "work" in content.lower():
            return [EntryClassification(area_code="WORK", dimension_code="focus", strength=0.6)]
        return []


class FinanceClassifier(ContentClassifier):
    def __init__(self):
        self.calls = 0

    async def classify(self, content: str) -> List[EntryClassification]:
        self.calls += 1
        return [EntryClassification(area_code="FINANCE", strength=0.9)]


class FailingSentiment(SentimentAnalyzer):
    async def analyze(self, content: str) -> Sentiment:
        raise RuntimeError("sentiment model unavailable")


class FailingCommitJournal(InMemoryJournalStore):
    @asynccontextmanager
    async def transaction(self):
        async with super().transaction() as tx:
            yield tx
            raise ConnectionError("commit failed")


class FailingEventStore(InMemoryEventStore):
    async def append(self, event):
        raise ConnectionError("event stream down")


@pytest.fixture
def journal():
    return InMemoryJournalStore(AREAS)


@pytest.fixture
def events():
    return InMemoryEventStore()


@pytest.fixture
def logs():
    return InMemoryAgentLogStore()


def make_agent(journal, events, logs, **kwargs) -> EntryClassifierAgent:
    return EntryClassifierAgent(journal, EventService(events), AgentLogService(logs), **kwargs)


# ============================================================================
# SCORING
# ============================================================================

class TestProposeScores:

    def test_neutral_sentiment_scores_midpoint(self):
        classification = [
            EntryClassification(area_code="HEALTH", dimension_code="fitness", strength=0.8),
            EntryClassification(area_code="WORK", strength=0.4),
        ]
        scores = propose_scores(classification, Sentiment())
        assert len(scores) == 1
        assert scores[0].dimension_code == "fitness"
        assert scores[0].proposed_score == 2.5
        assert scores[0].confidence == 0.8

    def test_polarity_moves_score(self):
        classification = [EntryClassification(area_code="HEALTH", dimension_code="fitness")]
        assert propose_scores(classification, Sentiment(polarity=1.0))[0].proposed_score == 4.5
        assert propose_scores(classification, Sentiment(polarity=-1.0))[0].proposed_score == 0.5
        assert propose_scores(classification, Sentiment(polarity=0.25))[0].proposed_score == 3.0


# ============================================================================
# EXECUTE
# ============================================================================

class TestExecute:

    def test_tags_classify_link_and_score(self, journal, events, logs):
        agent = make_agent(journal, events, logs, sentiment=FixedSentiment(0.5))
        envelope = make_envelope(entry_payload(tags=[
            {"area_code": "HEALTH", "dimension_code": "fitness", "strength": 0.9},
            {"area_code": "WORK"},
            {"area_code": "NOPE", "dimension_code": "x"},
        ]))

        result = asyncio.run(agent(envelope))

        assert result["success"] is True
        assert result["entry_id"] == "e-1"
        assert [(c["area_code"], c["strength"]) for c in result["classification"]] == [
            ("HEALTH", 0.9), ("WORK", 0.5), ("NOPE", 0.5),
        ]
        # Scores follow classification, not links
        assert [(s["area_code"], s["proposed_score"]) for s in result["proposed_scores"]] == [
            ("HEALTH", 3.5), ("NOPE", 3.5),
        ]
        assert result["sentiment"]["polarity"] == 0.5

        links = journal.links_for("e-1")
        assert [(l.area_id, l.dimension_code, l.strength, l.source) for l in links] == [
            ("area-health", "fitness", 0.9, "agent"),
            ("area-work", None, 0.5, "agent"),
        ]
        assert journal.entries["e-1"].user_id == "u-1"
        assert journal.entries["e-1"].source == "journal"

    def test_tags_override_classifier(self, journal, events, logs):
        classifier = FinanceClassifier()
        agent = make_agent(journal, events, logs, classifier=classifier)
        envelope = make_envelope(entry_payload(
            content="Paid off the credit card and moved money into savings.",
            tags=[{"area_code": "HEALTH"}],
        ))

        result = asyncio.run(agent(envelope))

        assert [c["area_code"] for c in result["classification"]] == ["HEALTH"]
        assert [l.area_id for l in journal.links_for("e-1")] == ["area-health"]
        assert classifier.calls == 0

    def test_event_emitted_with_correlation(self, journal, events, logs):
        agent = make_agent(journal, events, logs)
        envelope = make_envelope(entry_payload(tags=[{"area_code": "HEALTH"}]))

        asyncio.run(agent(envelope))

        [event] = events.events
        assert event.type == EventType.JOURNAL_ENTRY_CREATED
        assert event.source == AgentType.ENTRY_CLASSIFIER.value
        assert event.correlation_id == envelope.message_id
        assert event.payload["entry_id"] == "e-1"
        assert event.payload["user_id"] == "u-1"

    def test_no_tags_uses_classifier(self, journal, events, logs):
        agent = make_agent(journal, events, logs, classifier=KeywordClassifier())

        result = asyncio.run(agent(make_envelope(entry_payload())))

        assert [c["area_code"] for c in result["classification"]] == ["WORK"]
        assert [l.area_id for l in journal.links_for("e-1")] == ["area-work"]

    def test_default_classifier_links_nothing(self, journal, events, logs):
        agent = make_agent(journal, events, logs)

        result = asyncio.run(agent(make_envelope(entry_payload())))

        assert result["classification"] == []
        assert result["proposed_scores"] == []
        assert journal.links_for("e-1") == []
        assert "e-1" in journal.entries

    def test_step_failure_rolls_back(self, journal, events, logs):
        agent = make_agent(journal, events, logs, sentiment=FailingSentiment())
        envelope = make_envelope(entry_payload(tags=[{"area_code": "HEALTH"}]))

        with pytest.raises(RuntimeError):
            asyncio.run(agent(envelope))

        assert journal.entries == {}
        assert journal.links == []
        assert events.events == []
        errors = asyncio.run(logs.query(level=LogLevel.ERROR))
        assert len(errors) == 1
        assert errors[0].job_id == envelope.message_id

    def test_commit_failure_emits_nothing(self, events, logs):
        journal = FailingCommitJournal(AREAS)
        agent = make_agent(journal, events, logs)

        with pytest.raises(ConnectionError):
            asyncio.run(agent(make_envelope(entry_payload(tags=[{"area_code": "HEALTH"}]))))

        assert journal.entries == {}
        assert events.events == []

    def test_emit_failure_retry_is_idempotent(self, journal, events, logs):
        envelope = make_envelope(entry_payload(tags=[{"area_code": "HEALTH"}]))

        with pytest.raises(ConnectionError):
            asyncio.run(make_agent(journal, FailingEventStore(), logs)(envelope))
        assert "e-1" in journal.entries

        asyncio.run(make_agent(journal, events, logs)(envelope))

        assert [l.area_id for l in journal.links_for("e-1")] == ["area-health"]
        assert [e.type for e in events.events] == [EventType.JOURNAL_ENTRY_CREATED]

    def test_reprocessing_replaces_links(self, journal, events, logs):
        agent = make_agent(journal, events, logs)

        async def run():
            await agent(make_envelope(entry_payload(tags=[{"area_code": "HEALTH"}])))
            await agent(make_envelope(entry_payload(
                content="Edited",
                tags=[{"area_code": "WORK", "strength": 0.7}],
            )))

        asyncio.run(run())

        links = journal.links_for("e-1")
        assert [(l.area_id, l.strength) for l in links] == [("area-work", 0.7)]
        assert journal.entries["e-1"].content == "Edited"

    def test_invalid_date_rejected(self, journal, events, logs):
        agent = make_agent(journal, events, logs)
        with pytest.raises(ValueError):
            asyncio.run(agent(make_envelope(entry_payload(date="not-a-date"))))
        assert journal.entries == {}
