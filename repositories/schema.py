# ============================================================================
# SCHEMA DDL
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - PostgreSQL schema for agent_app
# PURPOSE: Idempotent DDL for queue, stream and journal tables
# CREATED: 19 OCT 2026
# EXPORTS: build_statements, deploy_schema
# DEPENDENCIES: psycopg
# ============================================================================
"""
Schema DDL

All statements are IF NOT EXISTS, so deploying twice is harmless.

Usage:
    statements = build_statements()
    for stmt in statements:
        print(stmt.as_string(None))

    count = deploy_schema(conninfo)
"""

import logging
from typing import List, Optional

import psycopg
from psycopg import sql

from .database import (
    SCHEMA,
    TABLE_AGENT_LOGS,
    TABLE_AREAS,
    TABLE_COMMITMENT_LINKS,
    TABLE_COMMITMENTS,
    TABLE_ENTRIES,
    TABLE_ENTRY_LINKS,
    TABLE_EVENTS,
    TABLE_JOBS,
    get_connection_string,
)

logger = logging.getLogger(__name__)


def _index(name: str, table: sql.Identifier, columns: str, where: Optional[str] = None) -> sql.Composed:
    stmt = sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {} (" + columns + ")").format(
        sql.Identifier(name), table
    )
    if where:
        stmt = stmt + sql.SQL(" WHERE " + where)
    return stmt


def build_statements() -> List[sql.Composable]:
    """Ordered DDL for the whole schema."""
    return [
        sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(SCHEMA)),

        # Jobs
        sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            message_id VARCHAR(64) PRIMARY KEY,
            agent_type VARCHAR(64) NOT NULL,
            task VARCHAR(256) NOT NULL,
            intent VARCHAR(32) NOT NULL DEFAULT 'execute',
            payload JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            dependencies TEXT[] NOT NULL DEFAULT '{{}}',
            provenance JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            run_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            ttl_sec INTEGER NOT NULL DEFAULT 600,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            attempts INTEGER NOT NULL DEFAULT 0,
            max_attempts INTEGER NOT NULL DEFAULT 3,
            backoff_strategy VARCHAR(16) NOT NULL DEFAULT 'exponential',
            result JSONB,
            last_error VARCHAR(2000),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            started_at TIMESTAMPTZ,
            completed_at TIMESTAMPTZ,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """).format(TABLE_JOBS),
        _index("idx_queue_jobs_claim", TABLE_JOBS, "agent_type, run_at, created_at",
               "status IN ('pending', 'ready')"),
        _index("idx_queue_jobs_status", TABLE_JOBS, "status"),
        _index("idx_queue_jobs_running", TABLE_JOBS, "updated_at", "status = 'running'"),

        # Event stream
        sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            sequence BIGSERIAL PRIMARY KEY,
            id VARCHAR(64) NOT NULL UNIQUE,
            type VARCHAR(64) NOT NULL,
            payload JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            source VARCHAR(64) NOT NULL,
            correlation_id VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """).format(TABLE_EVENTS),
        _index("idx_queue_events_type", TABLE_EVENTS, "type, sequence"),

        # Agent logs
        sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            id BIGSERIAL PRIMARY KEY,
            agent_type VARCHAR(64) NOT NULL,
            level VARCHAR(16) NOT NULL,
            message TEXT NOT NULL,
            context JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            job_id VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """).format(TABLE_AGENT_LOGS),
        _index("idx_agent_logs_agent", TABLE_AGENT_LOGS, "agent_type, created_at"),
        _index("idx_agent_logs_job", TABLE_AGENT_LOGS, "job_id", "job_id IS NOT NULL"),

        # Journal
        sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            id VARCHAR(64) PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            content TEXT NOT NULL,
            entry_date DATE NOT NULL,
            source VARCHAR(32) NOT NULL DEFAULT 'journal',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """).format(TABLE_ENTRIES),
        _index("idx_fd_entry_user", TABLE_ENTRIES, "user_id, entry_date"),
        sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            id VARCHAR(64) PRIMARY KEY,
            code VARCHAR(64) NOT NULL UNIQUE,
            name VARCHAR(256) NOT NULL
        )
        """).format(TABLE_AREAS),
        sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            id BIGSERIAL PRIMARY KEY,
            entry_id VARCHAR(64) NOT NULL REFERENCES {}(id) ON DELETE CASCADE,
            area_id VARCHAR(64) NOT NULL REFERENCES {}(id),
            dimension_code VARCHAR(64),
            strength DOUBLE PRECISION NOT NULL,
            source VARCHAR(16) NOT NULL DEFAULT 'agent'
        )
        """).format(TABLE_ENTRY_LINKS, TABLE_ENTRIES, TABLE_AREAS),
        _index("idx_fd_entry_link_entry", TABLE_ENTRY_LINKS, "entry_id"),

        # Commitments
        sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            id VARCHAR(64) PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            statement TEXT NOT NULL,
            confidence DOUBLE PRECISION NOT NULL,
            intent_verbs TEXT[] NOT NULL DEFAULT '{{}}',
            entities JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            source VARCHAR(32) NOT NULL DEFAULT 'journal',
            status VARCHAR(16) NOT NULL DEFAULT 'active',
            detected_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """).format(TABLE_COMMITMENTS),
        _index("idx_fd_commitment_user", TABLE_COMMITMENTS, "user_id, status"),
        sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            commitment_id VARCHAR(64) NOT NULL REFERENCES {}(id) ON DELETE CASCADE,
            entry_id VARCHAR(64) NOT NULL,
            PRIMARY KEY (commitment_id, entry_id)
        )
        """).format(TABLE_COMMITMENT_LINKS, TABLE_COMMITMENTS),
        _index("idx_fd_commitment_link_entry", TABLE_COMMITMENT_LINKS, "entry_id"),
    ]


def deploy_schema(connection_string: Optional[str] = None, dry_run: bool = False) -> int:
    """
    Create the schema.

    Args:
        connection_string: Override connection string (defaults to env)
        dry_run: Build statements without connecting

    Returns:
        Number of statements executed (or that would be executed)
    """
    statements = build_statements()
    if dry_run:
        return len(statements)

    conninfo = connection_string or get_connection_string()
    with psycopg.connect(conninfo) as conn:
        with conn.transaction():
            for stmt in statements:
                conn.execute(stmt)

    logger.info(f"Deployed {len(statements)} statements to schema {SCHEMA}")
    return len(statements)


__all__ = ["build_statements", "deploy_schema"]
