# ============================================================================
# COMMITMENT DETECTOR TESTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Tests - Sentence heuristics and persistence
# PURPOSE: Verify commitment detection, scoring and emitted events
# CREATED: 19 OCT 2026
# ============================================================================
"""
Commitment Detector Tests

Covers:
1. Sentence splitting and the minimum length filter
2. Intent verb matching (substring, lexicon order) and confidence
3. Subject and domain extraction, has_commitment flag
4. execute(): persistence threshold, one event per commitment, and
   stable ids so a retry overwrites instead of duplicating
5. Error paths: invalid payload, store failure

Run with:
    pytest tests/test_commitment_agent.py -v
"""

import asyncio
import pytest
from pydantic import ValidationError

from agents.commitment_agent import (
    COMMITMENT_THRESHOLD,
    CommitmentDetectorAgent,
    detect_domains,
    detect_intent_verbs,
    score_confidence,
    split_sentences,
)
from core.contracts import AgentType, CommitmentStatus, EventType, LogLevel
from core.models import (
    Commitment,
    CommitmentDetectionResult,
    Job,
    MessageEnvelope,
    commitment_id_for,
)
from repositories.memory import (
    InMemoryAgentLogStore,
    InMemoryCommitmentStore,
    InMemoryEventStore,
)
from services import AgentLogService, EventService


def make_envelope(payload: dict) -> MessageEnvelope:
    job = Job(agent_type=AgentType.COMMITMENT_DETECTOR, task="detect_commitments", payload=payload)
    return MessageEnvelope.from_job(job)


@pytest.fixture
def stores():
    return InMemoryCommitmentStore(), InMemoryEventStore(), InMemoryAgentLogStore()


@pytest.fixture
def agent(stores):
    commitments, events, logs = stores
    return CommitmentDetectorAgent(commitments, EventService(events), AgentLogService(logs))


# ============================================================================
# HEURISTICS
# ============================================================================

class TestSplitSentences:

    def test_short_fragments_dropped(self):
        text = "I will call Mom tonight. Ok. Then I plan to rest!! Fine?"
        assert split_sentences(text) == ["I will call Mom tonight", "Then I plan to rest"]

    def test_exactly_ten_chars_dropped(self):
        assert split_sentences("abcdefghij. abcdefghijk.") == ["abcdefghijk"]

    def test_empty(self):
        assert split_sentences("") == []


class TestIntentVerbs:

    def test_lexicon_order_and_case(self):
        assert detect_intent_verbs("I WILL keep my Promise") == ["promise", "will"]

    def test_substring_match(self):
        # "willing" contains "will"
        assert detect_intent_verbs("She was willing to help") == ["will"]

    def test_confidence_is_strongest_verb(self):
        assert score_confidence(["want", "will"]) == 0.75
        assert score_confidence(["might"]) == 0.5
        assert score_confidence(["vow", "hope"]) == 0.95

    def test_no_verbs_scores_zero(self):
        assert score_confidence([]) == 0.0

    def test_domains(self):
        assert detect_domains("Balance work and family time") == ["Work", "Family"]
        assert detect_domains("A walk in the park") == []


class TestAnalyzeSentence:

    def test_commitment_with_subject(self, agent):
        result = agent.analyze_sentence("I will finish the Report for my Career by Friday")
        assert result.has_commitment is True
        assert result.confidence == 0.75
        assert result.intent_verbs == ["will"]
        assert result.entities.subjects == ["Report", "Career", "Friday"]
        assert result.entities.domains == ["Work"]

    def test_no_subject_means_no_commitment_flag(self, agent):
        result = agent.analyze_sentence("i will finish it by tomorrow")
        assert result.has_commitment is False
        assert result.confidence == 0.75
        assert result.entities.subjects == []

    def test_single_capital_letter_is_not_a_subject(self, agent):
        assert agent.analyze_sentence("I said so yesterday").entities.subjects == []

    def test_below_threshold(self, agent):
        result = agent.analyze_sentence("Lunch with Anna was lovely")
        assert result.confidence < COMMITMENT_THRESHOLD
        assert result.has_commitment is False


# ============================================================================
# EXECUTE
# ============================================================================

class TestExecute:

    def test_persists_and_emits_per_commitment(self, agent, stores):
        commitments, events, _ = stores
        envelope = make_envelope({
            "entry_id": "e-1",
            "user_id": "u-1",
            "content": (
                "I promise to call Sam every week. "
                "Lunch was lovely today. "
                "maybe i should sleep earlier."
            ),
        })

        results = asyncio.run(agent(envelope))

        assert len(results) == 3
        assert [r["has_commitment"] for r in results] == [True, False, False]

        saved = asyncio.run(commitments.list_for_entry("e-1"))
        # The subjectless "should" sentence still clears the threshold
        assert [c.confidence for c in saved] == [0.95, 0.5]
        assert all(c.status == CommitmentStatus.ACTIVE for c in saved)
        assert all(c.source == "journal" and c.user_id == "u-1" for c in saved)

        detected = [e for e in events.events if e.type == EventType.COMMITMENT_DETECTED]
        assert len(detected) == 2
        assert detected[0].source == AgentType.COMMITMENT_DETECTOR.value
        assert detected[0].correlation_id == envelope.message_id
        assert detected[0].payload["commitment_id"] == saved[0].id
        assert detected[0].payload["statement"] == "I promise to call Sam every week"

    def test_nothing_detected(self, agent, stores):
        commitments, events, logs = stores
        envelope = make_envelope({"entry_id": "e-2", "user_id": "u-1", "content": "Quiet day at home."})

        results = asyncio.run(agent(envelope))

        assert len(results) == 1
        assert commitments.commitments == {}
        assert events.events == []
        messages = [r.message for r in asyncio.run(logs.query())]
        assert "Found 0 commitments in entry e-2" in messages

    def test_retry_upserts_same_commitments(self, stores):
        class EmitOnceFails(InMemoryEventStore):
            failed = False

            async def append(self, event):
                if not self.failed:
                    self.failed = True
                    raise ConnectionError("event stream down")
                return await super().append(event)

        commitments, _, logs = stores
        events = EmitOnceFails()
        agent = CommitmentDetectorAgent(commitments, EventService(events), AgentLogService(logs))
        envelope = make_envelope({
            "entry_id": "e-1",
            "user_id": "u-1",
            "content": "I promise to call Sam every week. I plan to visit Rome in May.",
        })

        with pytest.raises(ConnectionError):
            asyncio.run(agent(envelope))
        first = asyncio.run(commitments.list_for_entry("e-1"))
        assert len(first) == 1

        asyncio.run(agent(envelope))

        saved = asyncio.run(commitments.list_for_entry("e-1"))
        assert len(saved) == 2
        assert saved[0].id == first[0].id
        assert saved[0].id == commitment_id_for("e-1", 0)
        assert saved[1].id == commitment_id_for("e-1", 1)
        assert [e.payload["commitment_id"] for e in events.events] == [s.id for s in saved]

    def test_resave_keeps_status(self, stores):
        commitments, _, _ = stores
        result = CommitmentDetectionResult(has_commitment=True, confidence=0.75, statement="I plan to rest more")
        original = Commitment.from_detection("u-1", "e-1", result, 0)
        asyncio.run(commitments.save(original.model_copy(update={"status": CommitmentStatus.FULFILLED})))

        asyncio.run(commitments.save(Commitment.from_detection("u-1", "e-1", result, 0)))

        saved = asyncio.run(commitments.list_for_entry("e-1"))
        assert len(saved) == 1
        assert saved[0].status == CommitmentStatus.FULFILLED

    def test_invalid_payload_raises(self, agent):
        with pytest.raises(ValidationError):
            asyncio.run(agent(make_envelope({"entry_id": "e-1", "user_id": "u-1"})))

    def test_store_failure_logs_and_reraises(self, stores):
        class BrokenStore(InMemoryCommitmentStore):
            async def save(self, commitment):
                raise ConnectionError("db down")

        _, events, logs = stores
        agent = CommitmentDetectorAgent(BrokenStore(), EventService(events), AgentLogService(logs))
        envelope = make_envelope({"entry_id": "e-1", "user_id": "u-1", "content": "I will call Sam today."})

        with pytest.raises(ConnectionError):
            asyncio.run(agent(envelope))

        errors = asyncio.run(logs.query(level=LogLevel.ERROR))
        assert len(errors) == 1
        assert errors[0].agent_type == AgentType.COMMITMENT_DETECTOR.value
        assert errors[0].job_id == envelope.message_id
