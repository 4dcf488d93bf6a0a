from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class SubjectRequest(BaseModel):
    name: Optional[str] = Field(None, description="Student name; blank means Unknown")
    roll_number: Optional[str] = Field(None, description="Roll number; blank means Unknown")


class SubjectResponse(BaseModel):
    name: str
    roll_number: str


class ScanRequest(BaseModel):
    notify: bool = Field(False, description="Send an alert if the verdict is positive")


class VerdictResponse(BaseModel):
    has_unauthorized_material: bool
    has_evidence: bool
    subject: SubjectResponse
    timestamp: str
    frames_scanned: int
    flagged_frames: List[int]
    result_text: str = Field(..., description="Operator-facing summary line")
    alert_sent: Optional[bool] = Field(None, description="None when no alert was requested")


class HealthResponse(BaseModel):
    model_ready: bool
    model_error: Optional[str]
    source_open: bool
    source_id: str
    scanning: bool
