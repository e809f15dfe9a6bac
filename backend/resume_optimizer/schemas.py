from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Optional, Union
from datetime import datetime

# ----- Job stream (shared by the SSE producer and the client tracker) -----

class JobRequest(BaseModel):
    """A resume (subject) to optimize against a job posting (target reference)."""
    model_config = ConfigDict(frozen=True)

    subject_id: Union[int, str]
    target_reference: str

    @field_validator("subject_id", "target_reference")
    @classmethod
    def _not_blank(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("must not be empty")
        return value

class ProgressEvent(BaseModel):
    step: str
    status: Optional[str] = None
    details: Any = None

class StreamFrame(BaseModel):
    """One JSON message on the job stream.

    ``step`` is a progress label, or one of the sentinels ``complete`` (payload
    in ``result``) and ``error`` (message in ``error``). Keep-alive frames carry
    ``type == "heartbeat"`` and no step.
    """
    model_config = ConfigDict(extra="allow")

    step: Optional[str] = None
    status: Optional[str] = None
    details: Any = None
    result: Any = None
    error: Any = None
    type: Optional[str] = None
    timestamp: Any = None

class TerminalResult(BaseModel):
    ok: bool
    result: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, result: Any) -> "TerminalResult":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, error: str) -> "TerminalResult":
        return cls(ok=False, error=error)

# ----- Uploaded resumes -----

class ResumeIn(BaseModel):
    content: str
    filename: Optional[str] = None

    @field_validator("content")
    @classmethod
    def _has_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("resume content is empty")
        return value

class ResumeOut(BaseModel):
    id: int
    filename: Optional[str] = None
    content: str
    created_at: datetime
