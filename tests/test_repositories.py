# ============================================================================
# POSTGRES REPOSITORY TESTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Tests - Row shapes on shared pool connections
# PURPOSE: Verify repositories pick row factories per cursor
# CREATED: 19 OCT 2026
# ============================================================================
"""
Postgres Repository Tests

Pooled connections are reused across repositories, so a row factory set
on the connection would leak into the next caller. These tests run the
repositories against a fake pool whose connection refuses row_factory
assignment and shapes rows the way the requested cursor factory would.

Covers:
1. Dict reads followed by scalar reads on the same connection
2. latest_sequence() and resolve_areas() read positional rows

Run with:
    pytest tests/test_repositories.py -v
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from psycopg.rows import dict_row, tuple_row

from core.config import JobDefaults
from core.contracts import AgentType
from core.models import Job
from repositories.event_repo import EventRepository
from repositories.job_repo import JobRepository
from repositories.journal_repo import PostgresJournalTransaction


class FakeCursor:
    def __init__(self, rows: List[Dict[str, Any]], row_factory):
        self.rows = rows
        self.row_factory = row_factory

    async def execute(self, query, params=None):
        return self

    def _shape(self, row: Dict[str, Any]):
        if self.row_factory is dict_row:
            return dict(row)
        return tuple(row.values())

    async def fetchone(self):
        return self._shape(self.rows[0]) if self.rows else None

    async def fetchall(self):
        return [self._shape(r) for r in self.rows]


class FakeConnection:
    """Serves one queued result set per cursor."""

    def __init__(self, results: List[List[Dict[str, Any]]]):
        self.results = list(results)
        self.factories = []

    @property
    def row_factory(self):
        return tuple_row

    @row_factory.setter
    def row_factory(self, value):
        raise AssertionError("row_factory assigned on a pooled connection")

    def cursor(self, row_factory=None):
        factory = row_factory or tuple_row
        self.factories.append(factory)
        return FakeCursor(self.results.pop(0), factory)


class FakePool:
    def __init__(self, conn: FakeConnection):
        self.conn = conn

    @asynccontextmanager
    async def connection(self):
        yield self.conn


class TestSharedConnection:

    def test_job_get_then_count(self):
        job = Job(agent_type=AgentType.ENTRY_CLASSIFIER, task="classify_entry")
        conn = FakeConnection([[job.model_dump()], [{"count": 3}]])
        repo = JobRepository(FakePool(conn), JobDefaults())

        async def run():
            fetched = await repo.get(job.message_id)
            pending = await repo.count_pending_ready(AgentType.ENTRY_CLASSIFIER)
            return fetched, pending

        fetched, pending = asyncio.run(run())

        assert fetched.message_id == job.message_id
        assert pending == 3
        assert conn.factories == [dict_row, tuple_row]

    def test_latest_sequence(self):
        conn = FakeConnection([[{"coalesce": 7}]])

        assert asyncio.run(EventRepository(FakePool(conn)).latest_sequence()) == 7
        assert conn.factories == [tuple_row]

    def test_resolve_areas(self):
        conn = FakeConnection([[{"code": "HEALTH", "id": "area-health"}]])
        tx = PostgresJournalTransaction(conn)

        assert asyncio.run(tx.resolve_areas(["HEALTH", "NOPE"])) == {"HEALTH": "area-health"}
        assert conn.factories == [tuple_row]
