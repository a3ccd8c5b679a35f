# ============================================================================
# COMMITMENT REPOSITORY
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Domain - Detected commitments
# PURPOSE: Database access for fd_commitment and fd_commitment_entry_link
# CREATED: 19 OCT 2026
# ============================================================================
"""
Commitment Repository

save() writes the commitment and its entry link in one transaction.
Saving an existing id refreshes the detection fields and keeps the
status and detected_at already stored.
"""

import logging
from typing import Any, Dict, List

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.contracts import CommitmentStatus
from core.models import Commitment, CommitmentEntities
from .base import CommitmentStore
from .database import TABLE_COMMITMENT_LINKS, TABLE_COMMITMENTS

logger = logging.getLogger(__name__)


class CommitmentRepository(CommitmentStore):
    """Repository for Commitment entities."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def save(self, commitment: Commitment) -> str:
        async with self.pool.connection() as conn:
            async with conn.transaction():
                await conn.execute(
                    sql.SQL("""
                    INSERT INTO {} (
                        id, user_id, statement, confidence, intent_verbs,
                        entities, source, status, detected_at
                    ) VALUES (
                        %(id)s, %(user_id)s, %(statement)s, %(confidence)s,
                        %(intent_verbs)s, %(entities)s, %(source)s, %(status)s,
                        %(detected_at)s
                    )
                    ON CONFLICT (id) DO UPDATE SET
                        statement = EXCLUDED.statement,
                        confidence = EXCLUDED.confidence,
                        intent_verbs = EXCLUDED.intent_verbs,
                        entities = EXCLUDED.entities
                    """).format(TABLE_COMMITMENTS),
                    {
                        "id": commitment.id,
                        "user_id": commitment.user_id,
                        "statement": commitment.statement,
                        "confidence": commitment.confidence,
                        "intent_verbs": commitment.intent_verbs,
                        "entities": Json(commitment.entities.model_dump()),
                        "source": commitment.source,
                        "status": commitment.status.value,
                        "detected_at": commitment.detected_at,
                    },
                )
                await conn.execute(
                    sql.SQL("""
                    INSERT INTO {} (commitment_id, entry_id) VALUES (%s, %s)
                    ON CONFLICT DO NOTHING
                    """).format(TABLE_COMMITMENT_LINKS),
                    (commitment.id, commitment.entry_id),
                )

        logger.debug(f"Saved commitment {commitment.id} for entry {commitment.entry_id}")
        return commitment.id

    async def list_for_entry(self, entry_id: str) -> List[Commitment]:
        async with self.pool.connection() as conn:
            cur = conn.cursor(row_factory=dict_row)
            await cur.execute(
                sql.SQL("""
                SELECT c.*, l.entry_id FROM {} AS c
                JOIN {} AS l ON l.commitment_id = c.id
                WHERE l.entry_id = %s
                ORDER BY c.detected_at
                """).format(TABLE_COMMITMENTS, TABLE_COMMITMENT_LINKS),
                (entry_id,),
            )
            rows = await cur.fetchall()

        return [self._row_to_commitment(row) for row in rows]

    def _row_to_commitment(self, row: Dict[str, Any]) -> Commitment:
        return Commitment(
            id=str(row["id"]),
            user_id=row["user_id"],
            entry_id=row["entry_id"],
            statement=row["statement"],
            confidence=row["confidence"],
            intent_verbs=list(row["intent_verbs"] or []),
            entities=CommitmentEntities.model_validate(row["entities"] or {}),
            source=row["source"],
            status=CommitmentStatus(row["status"]),
            detected_at=row["detected_at"],
        )
