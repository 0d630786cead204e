"""Table helpers — one function per read or write the views need."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from interview_desk.models import (
    AIEvaluation,
    Appointment,
    BlockedDateRange,
    Candidate,
    ExecutionLog,
    HRUserProfile,
    PositionCode,
)
from interview_desk.store import Query, SupabaseStore

log = logging.getLogger(__name__)

CANDIDATES = "hrta_cd00-01_resume_extraction"
APPOINTMENTS = "hrta_cd00-03_appointment_info"
EVALUATIONS = "hrta_sd00-03_ai_evaluations"
EXECUTION_LOG = "hrta_sd00-09_execution_log"
POSITION_CODES = "hrta_sd00-01_position_codes"
BLOCKED_DATES = "hrta_blocked_dates"
HR_USERS = "hr_users"


async def ping(store: SupabaseStore) -> bool:
    """One-row read of the candidates table."""
    await store.select(Query(CANDIDATES, "candidate_id").limit(1))
    return True


# ── Candidates ─────────────────────────────────────────────────────────────

async def list_candidates(
    store: SupabaseStore,
    columns: str = "*",
    order_by: str = "created_at",
    ascending: bool = False,
    candidate_ids: list[str] | None = None,
    statuses: list[str] | None = None,
) -> list[Candidate]:
    q = Query(CANDIDATES, columns)
    if candidate_ids is not None:
        if not candidate_ids:
            return []
        q.in_("candidate_id", candidate_ids)
    if statuses:
        q.in_("status", statuses)
    q.order(order_by, ascending=ascending)
    return [Candidate.model_validate(r) for r in await store.select(q)]


async def search_candidates(store: SupabaseStore, name: str = "", position_code: str = "") -> list[Candidate]:
    """Name search restricted to candidates that have an answer-video folder."""
    q = Query(CANDIDATES, "candidate_id, first_name, last_name, position_code, answer_vids_folder_id")
    q.not_null("answer_vids_folder_id")
    if name.strip():
        q.ilike_any(["first_name", "last_name"], name.strip())
    if position_code.strip():
        q.eq("position_code", position_code.strip())
    return [Candidate.model_validate(r) for r in await store.select(q)]


async def update_candidate(store: SupabaseStore, candidate_id: str, updates: dict[str, Any]) -> None:
    await store.update(CANDIDATES, "candidate_id", candidate_id, updates)


async def list_position_codes(store: SupabaseStore) -> list[PositionCode]:
    q = Query(POSITION_CODES, "position_code, position_name").order("position_name")
    return [PositionCode.model_validate(r) for r in await store.select(q)]


# ── Appointments ───────────────────────────────────────────────────────────

async def list_appointments(
    store: SupabaseStore,
    start: datetime | None = None,
    end: datetime | None = None,
    candidate_ids: list[str] | None = None,
    columns: str = "*",
) -> list[Appointment]:
    q = Query(APPOINTMENTS, columns)
    if start is not None:
        q.gte("appointment_time", start)
    if end is not None:
        q.lte("appointment_time", end)
    if candidate_ids is not None:
        if not candidate_ids:
            return []
        q.in_("candidate_id", candidate_ids)
    q.order("appointment_time")
    return [Appointment.model_validate(r) for r in await store.select(q)]


async def insert_appointment(store: SupabaseStore, values: dict[str, Any]) -> list[dict]:
    return await store.insert(APPOINTMENTS, values)


async def update_appointment(store: SupabaseStore, appointment_id: int, values: dict[str, Any]) -> list[dict]:
    return await store.update(APPOINTMENTS, "id", appointment_id, values)


async def delete_appointment(store: SupabaseStore, appointment_id: int) -> None:
    await store.delete(APPOINTMENTS, "id", appointment_id)


# ── Blocked dates ──────────────────────────────────────────────────────────

async def list_blocked_ranges(store: SupabaseStore) -> list[BlockedDateRange]:
    q = Query(BLOCKED_DATES).order("start_date")
    return [BlockedDateRange.model_validate(r) for r in await store.select(q)]


async def insert_blocked_range(store: SupabaseStore, start_date: str, end_date: str) -> list[dict]:
    return await store.insert(BLOCKED_DATES, {"start_date": start_date, "end_date": end_date})


# ── Evaluations & logs ─────────────────────────────────────────────────────

async def list_evaluations(store: SupabaseStore, candidate_id: str | None = None, columns: str = "*") -> list[AIEvaluation]:
    q = Query(EVALUATIONS, columns)
    if candidate_id:
        q.eq("candidate_id", candidate_id).order("answer_index")
    return [AIEvaluation.model_validate(r) for r in await store.select(q)]


async def list_execution_logs(store: SupabaseStore, since: datetime | None = None) -> list[ExecutionLog]:
    q = Query(EXECUTION_LOG)
    if since is not None:
        q.gte("created_at", since)
    q.order("created_at", ascending=False)
    return [ExecutionLog.model_validate(r) for r in await store.select(q)]


# ── HR users ───────────────────────────────────────────────────────────────

async def insert_hr_user(store: SupabaseStore, profile: HRUserProfile) -> None:
    await store.insert(HR_USERS, profile.model_dump())
