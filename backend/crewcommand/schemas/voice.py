"""Pydantic schemas for the voice command pipeline"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class IntentAction(str, Enum):
    """Actions the language model may emit"""
    REASSIGN_WORKER = "reassign_worker"
    CREATE_TASK = "create_task"
    QUERY_INFO = "query_info"
    UPDATE_TIMESHEET = "update_timesheet"
    APPROVE_REQUEST = "approve_request"
    CLARIFY = "clarify"


class Intent(BaseModel):
    """
    Structured interpretation of one spoken command.

    question/options are only meaningful for the clarify action, which must
    carry both so the user can pick an interpretation.
    """

    action: IntentAction
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    data: Dict[str, Any] = Field(default_factory=dict)
    summary: str = Field(default="", description="Human-readable description of the effect")
    needs_confirmation: bool = True
    question: Optional[str] = None
    options: Optional[List[str]] = None

    @model_validator(mode="after")
    def check_action_fields(self) -> "Intent":
        """Enforce the clarify/non-clarify field contract"""
        if self.action == IntentAction.CLARIFY:
            if not self.question or not self.question.strip():
                raise ValueError("clarify intent requires a question")
            if not self.options or not any(o.strip() for o in self.options):
                raise ValueError("clarify intent requires non-empty options")
            if not self.summary:
                self.summary = self.question
        else:
            if self.question or self.options:
                raise ValueError("question/options are only allowed for clarify")
            if not self.summary.strip():
                raise ValueError("summary is required")
        return self


# Action payloads. Names arrive as spoken, so they are kept as raw strings
# and resolved against the database at execution time.

class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ReassignWorkerData(_Payload):
    """Payload for reassign_worker"""
    worker_name: str = Field(..., min_length=1)
    to_task_name: str = Field(..., min_length=1)
    from_task_name: Optional[str] = None
    dates: Optional[List[str]] = None
    date: Optional[str] = None

    @field_validator("dates", mode="before")
    @classmethod
    def coerce_single_date(cls, v):
        """The model sometimes sends a bare string instead of a list"""
        if isinstance(v, str):
            return [v]
        return v


class CreateTaskData(_Payload):
    """Payload for create_task"""
    task_name: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    job_site_name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    required_operators: Optional[int] = Field(None, ge=0)
    required_laborers: Optional[int] = Field(None, ge=0)
    required_carpenters: Optional[int] = Field(None, ge=0)
    required_masons: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class QueryInfoData(_Payload):
    """Payload for query_info"""
    query_type: Optional[str] = None
    worker_name: Optional[str] = None
    date: Optional[str] = None


class UpdateTimesheetData(_Payload):
    """Payload for update_timesheet; only fields present are written"""
    worker_name: str = Field(..., min_length=1)
    date: Optional[str] = None
    hours: Optional[float] = Field(None, ge=0, le=24)
    status: Optional[str] = None


class ApproveRequestData(_Payload):
    """Payload for approve_request"""
    worker_name: str = Field(..., min_length=1)


class ParseRequest(BaseModel):
    """Voice parse request"""
    transcript: str = Field(..., min_length=1, description="Raw utterance text")
    client_date: date = Field(
        ...,
        alias="clientDate",
        description="Caller's local date (YYYY-MM-DD); relative dates are anchored here",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("transcript")
    @classmethod
    def validate_transcript(cls, v: str) -> str:
        """Reject whitespace-only transcripts"""
        if not v.strip():
            raise ValueError("No transcript provided")
        return v.strip()


class ExecuteRequest(BaseModel):
    """Voice execute request; sending it is the user's explicit confirmation"""
    intent: Intent
    client_date: date = Field(
        ...,
        alias="clientDate",
        description="Caller's local date; relative dates in the intent resolve against it",
    )
    job_site_id: Optional[UUID] = Field(
        None,
        description="Job site currently selected in the client; used as the default site for new tasks",
    )

    model_config = ConfigDict(populate_by_name=True)


class ExecuteResponse(BaseModel):
    """Successful execution envelope"""
    success: bool = True
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


class VoiceErrorResponse(BaseModel):
    """Failure envelope for voice endpoints"""
    success: Optional[bool] = None
    error: str
    details: Any = None


class TranscribeResponse(BaseModel):
    """Speech-to-text result"""
    transcript: str


# Payload schema for each executable action
PAYLOAD_MODELS = {
    IntentAction.REASSIGN_WORKER: ReassignWorkerData,
    IntentAction.CREATE_TASK: CreateTaskData,
    IntentAction.QUERY_INFO: QueryInfoData,
    IntentAction.UPDATE_TIMESHEET: UpdateTimesheetData,
    IntentAction.APPROVE_REQUEST: ApproveRequestData,
}
