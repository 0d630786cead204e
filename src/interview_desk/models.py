"""Pydantic models — rows read from the backend tables and request bodies."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ── Status labels ──────────────────────────────────────────────────────────
# Candidate status is free text owned by the ingestion pipeline; these are
# the labels this app reads or writes itself.

STATUS_CV_PROCESSED = "CV Processed"
STATUS_FOR_INTERVIEW = "For Interview"
STATUS_INTERVIEWED = "Interviewed"
STATUS_HIRED = "Hired"
STATUS_REJECTED = "Rejected"

BOOKABLE_STATUSES = (STATUS_CV_PROCESSED, STATUS_FOR_INTERVIEW)


# ── Candidate ──────────────────────────────────────────────────────────────

class Candidate(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    candidate_id: str
    first_name: str | None = ""
    last_name: str | None = ""
    email: str | None = ""
    mobile_num: str | None = None
    status: str | None = ""
    position_code: str | None = None
    vote: float | None = None

    years_experience: str | None = None
    availability: str | None = None
    asking_salary: str | None = None
    visa_status: str | None = None
    skills: str | None = None
    experience: str | None = None
    languages: str | None = None
    nationality: str | None = None
    qualifications: str | None = None
    ai_evaluation: str | None = None
    cv_filename: str | None = None
    answer_vids_folder_id: str | None = None

    application_date: str | None = None
    date_interviewed: str | None = None
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or "Unknown Candidate"


class CandidateFieldEdit(BaseModel):
    field: str
    value: Any = None


class PositionCode(BaseModel):
    position_code: str
    position_name: str | None = None


# ── Appointments ───────────────────────────────────────────────────────────

class Appointment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    candidate_id: str
    appointment_time: datetime | None = None
    position_code: str | None = None
    q_revision: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


class AppointmentForm(BaseModel):
    """Fields of the appointment form as the user typed them."""

    candidate_id: str = ""
    appointment_time: str = ""      # yyyy-MM-ddTHH:mm[:ss]
    position_code: str = ""
    q_revision: str = ""
    notes: str = ""


class BlockedDateRange(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    start_date: date
    end_date: date | None = None


class BlockDatesForm(BaseModel):
    start_date: str = ""
    end_date: str = ""


class SelectDateRequest(BaseModel):
    date: str


# ── Evaluations & execution logs ───────────────────────────────────────────

class AIEvaluation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    candidate_id: str
    answer_index: str | None = None
    technical_eval: float | None = None
    clarity_structure: float | None = None
    confidence_exp: float | None = None
    relevance: float | None = None
    total_score: float | None = None
    ai_textual_eval: str | None = None
    created_at: datetime | None = None


class ExecutionLog(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | int
    candidate_id: str | None = None
    execution_id: int | None = None
    current_status: str | None = ""
    created_at: datetime | None = None


# ── Auth / HR users ────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    company_email: str
    company_name: str = ""
    password: str


class HRUserProfile(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    company_email: str = ""
    company_name: str = ""


class Session(BaseModel):
    access_token: str
    refresh_token: str = ""
    user_id: str = ""
    email: str = ""
    expires_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.now)
