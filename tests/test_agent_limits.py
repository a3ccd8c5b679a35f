# ============================================================================
# AGENT LIMITS TESTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Tests - Concurrency and rate limits on the dispatch path
# PURPOSE: Verify AgentLimiter, RateLimiter and BaseAgent admission
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Limits Tests

Covers:
1. Sliding-window rate limit waits for the oldest admission to age out
2. max_concurrent caps in-flight calls
3. BaseAgent.__call__ goes through the limiter
4. Registry behaviour (replace, unregister, lookup errors)

Run with:
    pytest tests/test_agent_limits.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock

from agents import AgentConfig, AgentRegistry, BaseAgent
from agents.limits import AgentLimiter, RateLimiter
from core.contracts import AgentType
from core.errors import AgentNotRegisteredError
from core.models import Job, MessageEnvelope
from repositories.memory import InMemoryAgentLogStore, InMemoryEventStore
from services import AgentLogService, EventService


class FakeTime:
    """Monotonic clock whose sleep advances it."""

    def __init__(self):
        self.now = 1000.0
        self.sleeps = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class SleepyAgent(BaseAgent):
    async def execute(self, envelope):
        await asyncio.sleep(0.01)
        return envelope.message_id


def envelope() -> MessageEnvelope:
    return MessageEnvelope.from_job(Job(agent_type=AgentType.ENTRY_CLASSIFIER, task="t"))


# ============================================================================
# RATE LIMIT
# ============================================================================

class TestRateLimiter:

    def test_under_limit_never_waits(self):
        fake = FakeTime()
        limiter = RateLimiter(3, clock=fake.clock, sleep=fake.sleep)

        async def run():
            for _ in range(3):
                await limiter.acquire()

        asyncio.run(run())
        assert limiter.waits == 0
        assert fake.sleeps == []
        assert limiter.in_window == 3

    def test_over_limit_waits_for_window(self):
        fake = FakeTime()
        limiter = RateLimiter(2, clock=fake.clock, sleep=fake.sleep)

        async def run():
            await limiter.acquire()
            fake.now += 10
            await limiter.acquire()
            await limiter.acquire()

        asyncio.run(run())
        # Third admission waits until the first (t=1000) leaves the window
        assert limiter.waits == 1
        assert fake.sleeps == [50.0]

    def test_window_expiry_frees_slots(self):
        fake = FakeTime()
        limiter = RateLimiter(1, clock=fake.clock, sleep=fake.sleep)

        async def run():
            await limiter.acquire()
            fake.now += 61
            await limiter.acquire()

        asyncio.run(run())
        assert limiter.waits == 0

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            RateLimiter(0)


# ============================================================================
# CONCURRENCY
# ============================================================================

class TestAgentLimiter:

    def test_max_concurrent_caps_in_flight(self):
        limiter = AgentLimiter(max_concurrent=2, rate_limit_per_min=100)

        async def work():
            async with limiter.admit():
                await asyncio.sleep(0.01)

        async def run():
            await asyncio.gather(*(work() for _ in range(6)))

        asyncio.run(run())
        assert limiter.peak_in_flight == 2
        assert limiter.admitted == 6
        assert limiter.in_flight == 0

    def test_slot_released_on_error(self):
        limiter = AgentLimiter(max_concurrent=1, rate_limit_per_min=100)

        async def run():
            with pytest.raises(RuntimeError):
                async with limiter.admit():
                    raise RuntimeError("boom")
            async with limiter.admit():
                pass

        asyncio.run(run())
        assert limiter.admitted == 2
        assert limiter.in_flight == 0

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            AgentLimiter(max_concurrent=0, rate_limit_per_min=10)


class TestBaseAgent:

    def _agent(self, **config):
        return SleepyAgent(
            AgentConfig(name=AgentType.ENTRY_CLASSIFIER, **config),
            EventService(InMemoryEventStore()),
            AgentLogService(InMemoryAgentLogStore()),
        )

    def test_call_respects_max_concurrent(self):
        agent = self._agent(max_concurrent=1)

        async def run():
            return await asyncio.gather(*(agent(envelope()) for _ in range(3)))

        results = asyncio.run(run())
        assert len(set(results)) == 3
        assert agent.limiter.peak_in_flight == 1

    def test_describe(self):
        info = self._agent(max_concurrent=3, rate_limit_per_min=10).describe()
        assert info["name"] == "EntryClassifier"
        assert info["version"] == "v1.0"
        assert info["max_concurrent"] == 3
        assert info["rate_limit_per_min"] == 10
        assert info["admitted"] == 0


# ============================================================================
# REGISTRY
# ============================================================================

class TestAgentRegistry:

    def test_register_replace_and_lookup(self):
        registry = AgentRegistry()
        first, second = AsyncMock(), AsyncMock()
        registry.register(AgentType.ENTRY_CLASSIFIER, first)
        registry.register(AgentType.ENTRY_CLASSIFIER, second)

        assert len(registry) == 1
        assert registry.get(AgentType.ENTRY_CLASSIFIER) is second
        assert AgentType.ENTRY_CLASSIFIER in registry
        assert "EntryClassifier" in registry
        assert "Unknown" not in registry
        [meta] = registry.metadata()
        assert meta["agent_type"] == "EntryClassifier"
        assert meta["is_async"] is True

    def test_get_or_raise(self):
        registry = AgentRegistry()
        assert registry.get(AgentType.COMMITMENT_DETECTOR) is None
        with pytest.raises(AgentNotRegisteredError):
            registry.get_or_raise(AgentType.COMMITMENT_DETECTOR)

    def test_unregister(self):
        registry = AgentRegistry()
        registry.register(AgentType.COMMITMENT_DETECTOR, AsyncMock())
        assert registry.unregister(AgentType.COMMITMENT_DETECTOR) is True
        assert registry.unregister(AgentType.COMMITMENT_DETECTOR) is False
        assert registry.types() == []
