"""Interview progress — recent execution logs grouped per candidate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from interview_desk import database as db
from interview_desk.errors import ConnectivityError, QueryError
from interview_desk.lookups import CandidateLookups
from interview_desk.models import ExecutionLog
from interview_desk.store import SupabaseStore

log = logging.getLogger(__name__)

PROGRESS_DAYS = 7

_STATUS_CATEGORIES = {
    "completed": ("completed", "finished", "done"),
    "in-progress": ("in-progress", "running", "active"),
    "failed": ("failed", "error"),
}


def status_category(status: str | None) -> str:
    value = (status or "").strip().lower()
    for category, aliases in _STATUS_CATEGORIES.items():
        if value in aliases:
            return category
    return "other"


def _sort_key(entry: ExecutionLog) -> datetime:
    if entry.created_at is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if entry.created_at.tzinfo is None:
        return entry.created_at.replace(tzinfo=timezone.utc)
    return entry.created_at


@dataclass
class CandidateProgress:
    candidate_id: str
    candidate_name: str
    interview_date: datetime | None = None
    logs: list[ExecutionLog] = field(default_factory=list)


def group_progress(logs: list[ExecutionLog], lookups: CandidateLookups) -> list[CandidateProgress]:
    """One group per candidate, each newest first; groups by most recent activity."""
    grouped: dict[str, list[ExecutionLog]] = {}
    for entry in logs:
        if entry.candidate_id:
            grouped.setdefault(entry.candidate_id, []).append(entry)

    groups = []
    for candidate_id, entries in grouped.items():
        appt = lookups.first_appointment(candidate_id)
        groups.append(CandidateProgress(
            candidate_id=candidate_id,
            candidate_name=lookups.name_of(candidate_id),
            interview_date=appt.appointment_time if appt else None,
            logs=sorted(entries, key=_sort_key, reverse=True),
        ))
    groups.sort(key=lambda g: _sort_key(g.logs[0]), reverse=True)
    return groups


class ProgressService:
    def __init__(self, store: SupabaseStore) -> None:
        self.store = store

    async def recent(self, now: datetime) -> list[CandidateProgress]:
        since = now - timedelta(days=PROGRESS_DAYS)
        rows = await db.list_execution_logs(self.store, since=since)
        logs = [e for e in rows if e.created_at is not None and _sort_key(e) > since]
        if not logs:
            return []

        ids = sorted({e.candidate_id for e in logs if e.candidate_id})
        candidates = await db.list_candidates(
            self.store, columns="candidate_id, first_name, last_name, email", candidate_ids=ids,
        )
        try:
            appointments = await db.list_appointments(
                self.store, candidate_ids=ids, columns="candidate_id, appointment_time",
            )
        except (QueryError, ConnectivityError) as e:
            log.warning("Could not fetch appointments: %s", e)
            appointments = []

        return group_progress(logs, CandidateLookups.build(candidates, appointments))
