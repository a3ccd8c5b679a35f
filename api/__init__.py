# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for jobs, journal entries and logs
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the agent orchestrator.
"""

from .routes import router, set_services
from .schemas import (
    JobCreate,
    JobResponse,
    JournalEntrySubmit,
    LogResponse,
)

__all__ = [
    "router",
    "set_services",
    "JobCreate",
    "JobResponse",
    "JournalEntrySubmit",
    "LogResponse",
]
