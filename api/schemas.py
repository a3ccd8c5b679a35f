# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for API validation
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from core.contracts import AgentType, BackoffStrategy, JobStatus, LogLevel, MessageIntent
from core.models import AgentLog, Job, JournalEntryPayload


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class JobCreate(BaseModel):
    """Request to enqueue a job for an agent."""
    agent_type: AgentType
    task: str = Field(..., min_length=1, max_length=256)
    payload: Dict[str, Any] = Field(default_factory=dict)
    intent: Optional[MessageIntent] = None
    dependencies: List[str] = Field(
        default_factory=list,
        description="message_ids that must complete before this job runs"
    )
    run_at: Optional[datetime] = None
    ttl_sec: Optional[int] = Field(None, ge=0)
    max_attempts: Optional[int] = Field(None, ge=1)
    backoff_strategy: Optional[BackoffStrategy] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "agent_type": "CommitmentDetector",
                    "task": "detect_commitments",
                    "payload": {
                        "entry_id": "e-1",
                        "user_id": "u-1",
                        "content": "I will finish the Project by Friday.",
                    },
                }
            ]
        }
    }

    def options(self) -> Dict[str, Any]:
        """Job store options that were actually supplied."""
        return self.model_dump(
            exclude={"agent_type", "task", "payload"},
            exclude_none=True,
        )


class JournalEntrySubmit(JournalEntryPayload):
    """A journal entry to run through both journal agents."""
    pass


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class JobCreated(BaseModel):
    message_id: str


class JournalEntryAccepted(BaseModel):
    entry_id: str
    jobs: Dict[str, str] = Field(..., description="agent_type -> message_id")


class JobResponse(BaseModel):
    """Job as stored."""
    message_id: str
    agent_type: AgentType
    task: str
    intent: MessageIntent
    status: JobStatus
    payload: Dict[str, Any]
    dependencies: List[str]
    attempts: int
    max_attempts: int
    backoff_strategy: BackoffStrategy
    run_at: datetime
    result: Optional[Any] = None
    last_error: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls.model_validate(job.model_dump())


class LogResponse(BaseModel):
    id: Optional[int] = None
    agent_type: str
    level: LogLevel
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)
    job_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_log(cls, record: AgentLog) -> "LogResponse":
        return cls.model_validate(record.model_dump())


class LogListResponse(BaseModel):
    logs: List[LogResponse]
    total: int


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
