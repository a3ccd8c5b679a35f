# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for jobs, journal entries, logs and status
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Routes

Mounted under /api/v1 by main.py. /health and /livez live on the app root.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from core.contracts import AgentType, LogLevel
from .schemas import (
    ErrorResponse,
    JobCreate,
    JobCreated,
    JobResponse,
    JournalEntryAccepted,
    JournalEntrySubmit,
    LogListResponse,
    LogResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Task names the journal producer enqueues
CLASSIFY_ENTRY_TASK = "classify_entry"
DETECT_COMMITMENTS_TASK = "detect_commitments"


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# Set by the main app at startup

_orchestrator = None


def set_services(orchestrator):
    """Set service instances for dependency injection."""
    global _orchestrator
    _orchestrator = orchestrator


def get_orchestrator():
    if _orchestrator is None:
        raise HTTPException(500, "Orchestrator not initialized")
    return _orchestrator


# ============================================================================
# ORCHESTRATOR STATUS
# ============================================================================

@router.get("/orchestrator/status", tags=["Orchestrator"])
async def get_orchestrator_status():
    """
    Orchestrator statistics: running state, uptime, cycles, dispatched,
    completed and failed jobs, loop errors.
    """
    stats = get_orchestrator().stats

    return {
        "status": "running" if stats["running"] else "stopped",
        "started_at": stats["started_at"],
        "uptime_seconds": stats["uptime_seconds"],
        "poll_interval_ms": stats["poll_interval_ms"],
        "batch_size": stats["batch_size"],
        "agents": stats["agents"],
        "metrics": {
            "cycles": stats["cycles"],
            "last_cycle_at": stats["last_cycle_at"],
            "jobs_dispatched": stats["jobs_dispatched"],
            "jobs_completed": stats["jobs_completed"],
            "jobs_failed": stats["jobs_failed"],
            "jobs_reclaimed": stats["jobs_reclaimed"],
            "errors": stats["errors"],
        },
    }


# ============================================================================
# JOBS
# ============================================================================

@router.post(
    "/jobs",
    response_model=JobCreated,
    status_code=202,
    tags=["Jobs"],
    responses={422: {"description": "Invalid request"}},
)
async def create_job(request: JobCreate):
    """
    Enqueue a job.

    Returns immediately with the message_id. Poll GET /jobs/{message_id}
    to follow it.
    """
    orchestrator = get_orchestrator()
    message_id = await orchestrator.create_job(
        request.agent_type,
        request.task,
        request.payload,
        **request.options(),
    )
    logger.info(f"Created job {message_id} for {request.agent_type.value}/{request.task}")
    return JobCreated(message_id=message_id)


@router.get(
    "/jobs/{message_id}",
    response_model=JobResponse,
    tags=["Jobs"],
    responses={404: {"model": ErrorResponse}},
)
async def get_job(message_id: str):
    job = await get_orchestrator().get_job_status(message_id)
    if job is None:
        raise HTTPException(404, f"Job not found: {message_id}")
    return JobResponse.from_job(job)


@router.post(
    "/jobs/{message_id}/cancel",
    response_model=JobResponse,
    tags=["Jobs"],
    responses={404: {"model": ErrorResponse}},
)
async def cancel_job(message_id: str):
    """
    Cancel a job.

    Jobs already completed, dead or cancelled are returned unchanged.
    """
    job = await get_orchestrator().cancel_job(message_id)
    if job is None:
        raise HTTPException(404, f"Job not found: {message_id}")
    return JobResponse.from_job(job)


# ============================================================================
# JOURNAL
# ============================================================================

@router.post(
    "/journal/entries",
    response_model=JournalEntryAccepted,
    status_code=202,
    tags=["Journal"],
)
async def submit_journal_entry(entry: JournalEntrySubmit):
    """
    Queue a journal entry for classification and commitment detection.

    Both jobs carry the same payload and run independently.
    """
    orchestrator = get_orchestrator()
    payload = entry.model_dump(mode="json")

    classifier_id = await orchestrator.create_job(
        AgentType.ENTRY_CLASSIFIER, CLASSIFY_ENTRY_TASK, payload
    )
    detector_id = await orchestrator.create_job(
        AgentType.COMMITMENT_DETECTOR, DETECT_COMMITMENTS_TASK, payload
    )
    logger.info(f"Queued entry {entry.entry_id}: {classifier_id}, {detector_id}")

    return JournalEntryAccepted(
        entry_id=entry.entry_id,
        jobs={
            AgentType.ENTRY_CLASSIFIER.value: classifier_id,
            AgentType.COMMITMENT_DETECTOR.value: detector_id,
        },
    )


# ============================================================================
# LOGS
# ============================================================================

@router.get("/logs", response_model=LogListResponse, tags=["Logs"])
async def get_logs(
    agent_type: Optional[AgentType] = Query(None, description="Filter by agent"),
    level: Optional[LogLevel] = Query(None, description="Filter by level"),
    limit: int = Query(100, ge=1, le=1000),
):
    """Persisted agent logs, newest first."""
    logs = await get_orchestrator().get_logs(agent_type=agent_type, level=level, limit=limit)
    return LogListResponse(
        logs=[LogResponse.from_log(record) for record in logs],
        total=len(logs),
    )
