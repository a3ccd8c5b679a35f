# ============================================================================
# EVENT SERVICE TESTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Tests - Publish/subscribe delivery semantics
# PURPOSE: Verify subscription cursors, retries and the background loop
# CREATED: 19 OCT 2026
# ============================================================================
"""
Event Service Tests

Covers:
1. Subscribers see only events published after they subscribed
2. Type filtering and unsubscribe
3. Raising handlers retried up to max_delivery_attempts, then skipped
4. Lifecycle helpers never raise
5. Background delivery loop start/stop
6. Agent log service persistence and fallback

Run with:
    pytest tests/test_event_service.py -v
"""

import asyncio
import pytest

from core.config import EventBusDefaults
from core.contracts import EventType, LogLevel
from repositories.memory import InMemoryAgentLogStore, InMemoryEventStore
from services import AgentLogService, EventService

SOURCE = "Test"


class BrokenEventStore(InMemoryEventStore):
    async def append(self, event):
        raise ConnectionError("stream down")


class Recorder:
    def __init__(self, fail_times: int = 0):
        self.events = []
        self.calls = 0
        self.fail_times = fail_times

    async def __call__(self, event):
        self.calls += 1
        if self.calls <= self.fail_times:
            raise RuntimeError("handler failed")
        self.events.append(event)


@pytest.fixture
def store():
    return InMemoryEventStore()


@pytest.fixture
def service(store):
    return EventService(store, EventBusDefaults(poll_interval_seconds=0.01))


class TestDelivery:

    def test_delivers_events_after_subscription_only(self, service):
        recorder = Recorder()

        async def run():
            await service.emit(EventType.COMMITMENT_DETECTED, {"n": 0}, SOURCE)
            await service.subscribe(EventType.COMMITMENT_DETECTED, recorder)
            event_id = await service.emit(EventType.COMMITMENT_DETECTED, {"n": 1}, SOURCE)
            delivered = await service.deliver_pending()
            again = await service.deliver_pending()
            return event_id, delivered, again

        event_id, delivered, again = asyncio.run(run())
        assert (delivered, again) == (1, 0)
        assert [e.id for e in recorder.events] == [event_id]
        assert recorder.events[0].payload == {"n": 1}

    def test_type_filter(self, service):
        recorder = Recorder()

        async def run():
            await service.subscribe(EventType.JOURNAL_ENTRY_CREATED, recorder)
            await service.emit(EventType.COMMITMENT_DETECTED, {}, SOURCE)
            await service.emit(EventType.JOURNAL_ENTRY_CREATED, {}, SOURCE)
            await service.deliver_pending()

        asyncio.run(run())
        assert [e.type for e in recorder.events] == [EventType.JOURNAL_ENTRY_CREATED]

    def test_unsubscribe(self, service):
        recorder = Recorder()

        async def run():
            unsubscribe = await service.subscribe(EventType.JOB_COMPLETED, recorder)
            unsubscribe()
            await service.emit(EventType.JOB_COMPLETED, {}, SOURCE)
            await service.deliver_pending()

        asyncio.run(run())
        assert recorder.calls == 0
        assert service.subscription_count == 0

    def test_each_subscriber_gets_its_own_copy(self, service):
        a, b = Recorder(), Recorder()

        async def run():
            await service.subscribe(EventType.JOB_FAILED, a)
            await service.subscribe(EventType.JOB_FAILED, b)
            await service.emit(EventType.JOB_FAILED, {}, SOURCE)
            await service.deliver_pending()

        asyncio.run(run())
        assert len(a.events) == len(b.events) == 1

    def test_failing_handler_retried_then_succeeds(self, service):
        recorder = Recorder(fail_times=1)

        async def run():
            await service.subscribe(EventType.JOB_COMPLETED, recorder)
            await service.emit(EventType.JOB_COMPLETED, {}, SOURCE)
            first = await service.deliver_pending()
            second = await service.deliver_pending()
            return first, second

        first, second = asyncio.run(run())
        assert (first, second) == (0, 1)
        assert recorder.calls == 2
        assert len(recorder.events) == 1

    def test_failing_handler_skipped_after_max_attempts(self, service):
        recorder = Recorder(fail_times=3)

        async def run():
            await service.subscribe(EventType.JOB_COMPLETED, recorder)
            await service.emit(EventType.JOB_COMPLETED, {"n": 1}, SOURCE)
            for _ in range(3):
                await service.deliver_pending()
            await service.emit(EventType.JOB_COMPLETED, {"n": 2}, SOURCE)
            await service.deliver_pending()

        asyncio.run(run())
        assert recorder.calls == 4
        assert [e.payload["n"] for e in recorder.events] == [2]
        assert service.stats["dropped"] == 1

    def test_emit_failure_propagates(self):
        service = EventService(BrokenEventStore())
        with pytest.raises(ConnectionError):
            asyncio.run(service.emit(EventType.COMMITMENT_DETECTED, {}, SOURCE))

    def test_lifecycle_helpers_swallow_failures(self):
        service = EventService(BrokenEventStore())

        async def run():
            await service.emit_job_completed("job-1", "EntryClassifier", "t")
            await service.emit_job_failed("job-1", "EntryClassifier", "t", "boom", final=True)

        asyncio.run(run())


class TestBackgroundLoop:

    def test_start_delivers_and_stop_exits(self, service):
        recorder = Recorder()

        async def run():
            await service.subscribe(EventType.COMMITMENT_DETECTED, recorder)
            await service.start()
            await service.emit(EventType.COMMITMENT_DETECTED, {}, SOURCE)
            for _ in range(100):
                if recorder.events:
                    break
                await asyncio.sleep(0.01)
            running = service.stats["running"]
            await service.stop()
            return running

        running = asyncio.run(run())
        assert running is True
        assert len(recorder.events) == 1
        assert service.stats["running"] is False


class TestAgentLogService:

    def test_log_persists_and_filters(self):
        logs = AgentLogService(InMemoryAgentLogStore())

        async def run():
            await logs.log("EntryClassifier", LogLevel.INFO, "one", {"k": 1}, "job-1")
            await logs.log("EntryClassifier", LogLevel.ERROR, "two")
            await logs.log("CommitmentDetector", LogLevel.INFO, "three")
            return (
                await logs.get_logs(agent_type="EntryClassifier"),
                await logs.get_logs(level=LogLevel.ERROR),
                await logs.get_logs(job_id="job-1"),
                await logs.get_logs(limit=1),
            )

        by_agent, errors, by_job, limited = asyncio.run(run())
        assert [r.message for r in by_agent] == ["two", "one"]
        assert [r.message for r in errors] == ["two"]
        assert by_job[0].context == {"k": 1}
        assert [r.message for r in limited] == ["three"]

    def test_persist_failure_returns_none(self):
        class BrokenLogStore(InMemoryAgentLogStore):
            async def append(self, record):
                raise ConnectionError("db down")

        logs = AgentLogService(BrokenLogStore())
        assert asyncio.run(logs.log("EntryClassifier", LogLevel.WARN, "x")) is None
