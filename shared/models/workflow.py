"""Pydantic models describing the state of an upload workflow."""

from enum import Enum

from pydantic import BaseModel


class WorkflowPhase(str, Enum):
    IDLE = "idle"
    FILES_SELECTED = "files_selected"
    SESSION_PENDING = "session_pending"
    SESSION_ACTIVE = "session_active"
    CONTENT_PENDING = "content_pending"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowStatus(BaseModel):
    """Read-only view of a workflow, rendered by the API and the CLI runner."""

    workflow_id: str
    phase: WorkflowPhase
    files: list[str] = []
    upload_id: str | None = None
    job_id: str | None = None
    error: str | None = None
