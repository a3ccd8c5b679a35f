# ============================================================================
# CONFIG AND LOGGING TESTS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Tests - Environment configuration, log context, connection info
# PURPOSE: Verify the ambient layers every component relies on
# CREATED: 19 OCT 2026
# ============================================================================
"""
Config and Logging Tests

Run with:
    pytest tests/test_config_logging.py -v
"""

import json
import logging

from core.config import Defaults, StorageBackend, get_defaults, reset_defaults
from core.contracts import BackoffStrategy, LogLevel
from core.logging import StructuredFormatter, get_current_context, log_context
from repositories.database import get_connection_string, mask_conninfo
from repositories.schema import build_statements, deploy_schema


class TestDefaults:

    def test_builtin_defaults(self):
        defaults = Defaults()
        assert defaults.orchestrator.poll_interval_ms == 5000
        assert defaults.orchestrator.poll_interval_seconds == 5.0
        assert defaults.orchestrator.batch_size == 10
        assert defaults.jobs.ttl_sec == 600
        assert defaults.jobs.max_attempts == 3
        assert defaults.agents.rate_limit_per_min == 60
        assert defaults.agents.max_concurrent == 5
        assert defaults.storage.backend == StorageBackend.POSTGRES

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ORCHESTRATOR_POLL_INTERVAL_MS", "250")
        monkeypatch.setenv("ORCHESTRATOR_BATCH_SIZE", "4")
        monkeypatch.setenv("JOB_BACKOFF_STRATEGY", "linear")
        monkeypatch.setenv("STORAGE_BACKEND", "memory")

        defaults = Defaults.from_env()
        assert defaults.orchestrator.poll_interval_seconds == 0.25
        assert defaults.orchestrator.batch_size == 4
        assert defaults.jobs.backoff_strategy == BackoffStrategy.LINEAR
        assert defaults.storage.backend == StorageBackend.MEMORY

    def test_get_defaults_cached_until_reset(self, monkeypatch):
        reset_defaults()
        monkeypatch.setenv("ORCHESTRATOR_BATCH_SIZE", "7")
        first = get_defaults()
        monkeypatch.setenv("ORCHESTRATOR_BATCH_SIZE", "8")
        assert get_defaults() is first
        reset_defaults()
        assert get_defaults().orchestrator.batch_size == 8
        reset_defaults()


class TestLogContext:

    def test_nested_context_inherits_and_restores(self):
        with log_context(job_id="job-1", agent_type="EntryClassifier"):
            with log_context(entry_id="e-1"):
                inner = get_current_context()
                assert inner.job_id == "job-1"
                assert inner.entry_id == "e-1"
            assert get_current_context().entry_id is None
        assert get_current_context().job_id is None

    def test_structured_formatter_includes_context(self):
        record = logging.LogRecord("agents.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        formatter = StructuredFormatter(include_source=False)

        with log_context(job_id="job-1", agent_type="CommitmentDetector"):
            output = json.loads(formatter.format(record))

        assert output["message"] == "hello world"
        assert output["level"] == "INFO"
        assert output["context"] == {"job_id": "job-1", "agent_type": "CommitmentDetector"}
        assert "source" not in output

    def test_log_level_mapping(self):
        assert LogLevel.WARN.to_logging_level() == logging.WARNING
        assert LogLevel.CRITICAL.to_logging_level() == logging.CRITICAL


class TestDatabaseSettings:

    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/app")
        monkeypatch.setenv("POSTGRES_HOST", "ignored")
        assert get_connection_string() == "postgresql://u:p@db:5432/app"

    def test_components(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("POSTGRES_HOST", "db")
        monkeypatch.setenv("POSTGRES_USER", "agent")
        monkeypatch.setenv("POSTGRES_PASSWORD", "secret")
        monkeypatch.setenv("POSTGRES_DB", "journal")
        monkeypatch.delenv("POSTGRES_PORT", raising=False)
        monkeypatch.delenv("POSTGRES_SSLMODE", raising=False)
        assert get_connection_string() == "postgresql://agent:secret@db:5432/journal?sslmode=prefer"

    def test_mask(self):
        assert mask_conninfo("postgresql://agent:secret@db:5432/journal") == "db:5432/journal"
        assert "secret" not in mask_conninfo("host=db password=secret")

    def test_schema_dry_run_counts_statements(self):
        statements = build_statements()
        assert len(statements) >= 8
        assert deploy_schema(dry_run=True) == len(statements)
