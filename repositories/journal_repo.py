# ============================================================================
# JOURNAL REPOSITORY
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Domain - Journal entries, area taxonomy, entry links
# PURPOSE: Database access for fd_entry, fd_area, fd_entry_link
# CREATED: 19 OCT 2026
# ============================================================================
"""
Journal Repository

The Entry Classifier does all its writes through one JournalTransaction,
backed here by a single connection inside conn.transaction(). An
exception anywhere in the block rolls back the entry and its links.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List

from psycopg import AsyncConnection, sql
from psycopg.rows import tuple_row
from psycopg_pool import AsyncConnectionPool

from core.models import EntryLink, JournalEntry
from .base import JournalStore, JournalTransaction
from .database import TABLE_AREAS, TABLE_ENTRIES, TABLE_ENTRY_LINKS

logger = logging.getLogger(__name__)


class PostgresJournalTransaction(JournalTransaction):
    """Journal writes on one open transaction."""

    def __init__(self, conn: AsyncConnection):
        self.conn = conn

    async def upsert_entry(self, entry: JournalEntry) -> JournalEntry:
        await self.conn.execute(
            sql.SQL("""
            INSERT INTO {} (id, user_id, content, entry_date, source, created_at)
            VALUES (%(id)s, %(user_id)s, %(content)s, %(entry_date)s,
                    %(source)s, %(created_at)s)
            ON CONFLICT (id) DO UPDATE SET
                user_id = EXCLUDED.user_id,
                content = EXCLUDED.content,
                entry_date = EXCLUDED.entry_date
            """).format(TABLE_ENTRIES),
            entry.model_dump(),
        )
        return entry

    async def resolve_areas(self, codes: Iterable[str]) -> Dict[str, str]:
        codes = list(codes)
        if not codes:
            return {}
        cur = self.conn.cursor(row_factory=tuple_row)
        await cur.execute(
            sql.SQL("SELECT code, id FROM {} WHERE code = ANY(%s)").format(TABLE_AREAS),
            (codes,),
        )
        rows = await cur.fetchall()
        return {code: str(area_id) for code, area_id in rows}

    async def insert_links(self, links: List[EntryLink]) -> int:
        if not links:
            return 0
        # Replace earlier agent links so a re-run entry is not linked twice
        entry_ids = sorted({link.entry_id for link in links})
        await self.conn.execute(
            sql.SQL("""
            DELETE FROM {} WHERE entry_id = ANY(%s) AND source = 'agent'
            """).format(TABLE_ENTRY_LINKS),
            (entry_ids,),
        )
        async with self.conn.cursor() as cur:
            await cur.executemany(
                sql.SQL("""
                INSERT INTO {} (entry_id, area_id, dimension_code, strength, source)
                VALUES (%(entry_id)s, %(area_id)s, %(dimension_code)s,
                        %(strength)s, %(source)s)
                """).format(TABLE_ENTRY_LINKS),
                [link.model_dump() for link in links],
            )
        return len(links)


class JournalRepository(JournalStore):
    """PostgreSQL JournalStore."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresJournalTransaction]:
        async with self.pool.connection() as conn:
            async with conn.transaction():
                yield PostgresJournalTransaction(conn)
