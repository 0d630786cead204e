"""Dashboard aggregation — counts, trends and the recent-activity snapshot.

``pending_evaluations`` is an estimate: completed interviews minus the
number of distinct candidates with at least one evaluation row, floored at
zero. A candidate with partially scored answers counts as evaluated.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable

from interview_desk import database as db
from interview_desk.calendar import MONTH_VISIBLE_PER_DAY, build_month_view, month_bounds, to_local
from interview_desk.errors import ConnectivityError, QueryError
from interview_desk.lookups import CandidateLookups
from interview_desk.models import STATUS_INTERVIEWED, AIEvaluation, Appointment, Candidate, ExecutionLog
from interview_desk.store import SupabaseStore

log = logging.getLogger(__name__)

SNAPSHOT_DAYS = 7
SNAPSHOT_TOP = 3


def as_aware(instant: datetime, tz: tzinfo | None) -> datetime:
    if instant.tzinfo is not None:
        return instant
    return instant.replace(tzinfo=tz or timezone.utc)


# ── Pure aggregation ───────────────────────────────────────────────────────

def count_by_status(candidates: Iterable[Candidate]) -> dict[str, int]:
    return dict(Counter(c.status or "" for c in candidates))


def future_appointments(appointments: Iterable[Appointment], now: datetime, tz: tzinfo | None = None) -> list[Appointment]:
    return [
        a for a in appointments
        if a.appointment_time is not None and as_aware(a.appointment_time, tz) > now
    ]


def scheduled_interview_count(future: Iterable[Appointment], lookups: CandidateLookups) -> int:
    """Upcoming appointments whose candidate is not already interviewed."""
    return sum(1 for a in future if lookups.status_of(a.candidate_id) != STATUS_INTERVIEWED)


def monthly_trend(future: Iterable[Appointment], tz: tzinfo | None = None) -> list[dict]:
    counts = Counter(
        f"{to_local(a.appointment_time, tz):%Y-%m}" for a in future if a.appointment_time is not None
    )
    return [{"month": key, "count": counts[key]} for key in sorted(counts)]


def pending_evaluations(completed_interviews: int, evaluated_candidates: int) -> int:
    return max(0, completed_interviews - evaluated_candidates)


@dataclass
class DashboardStats:
    total_candidates: int = 0
    scheduled_interviews: int = 0
    completed_interviews: int = 0
    pending_evaluations: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    monthly_trend: list[dict] = field(default_factory=list)


def compute_stats(
    candidates: list[Candidate],
    appointments: list[Appointment],
    evaluations: list[AIEvaluation],
    now: datetime,
    tz: tzinfo | None = None,
) -> DashboardStats:
    lookups = CandidateLookups.build(candidates, appointments, evaluations)
    by_status = count_by_status(candidates)
    completed = by_status.get(STATUS_INTERVIEWED, 0)
    future = future_appointments(appointments, now, tz)
    return DashboardStats(
        total_candidates=len(candidates),
        scheduled_interviews=scheduled_interview_count(future, lookups),
        completed_interviews=completed,
        pending_evaluations=pending_evaluations(completed, len(lookups.evaluated_ids())),
        by_status=by_status,
        monthly_trend=monthly_trend(future, tz),
    )


@dataclass
class ProgressSnapshot:
    active_candidates: int = 0
    total_activities: int = 0
    latest_activity: datetime | None = None
    top_candidates: list[dict] = field(default_factory=list)


def progress_snapshot(logs: list[ExecutionLog], lookups: CandidateLookups) -> ProgressSnapshot:
    """Summarise recent execution logs; ``logs`` must be newest first."""
    if not logs:
        return ProgressSnapshot()
    latest_by_candidate: dict[str, datetime | None] = {}
    for entry in logs:
        if entry.candidate_id and entry.candidate_id not in latest_by_candidate:
            latest_by_candidate[entry.candidate_id] = entry.created_at

    floor = datetime.min.replace(tzinfo=timezone.utc)
    ranked = sorted(
        latest_by_candidate.items(),
        key=lambda item: as_aware(item[1], timezone.utc) if item[1] else floor,
        reverse=True,
    )
    return ProgressSnapshot(
        active_candidates=len(latest_by_candidate),
        total_activities=len(logs),
        latest_activity=logs[0].created_at,
        top_candidates=[
            {"candidate_id": cid, "name": lookups.name_of(cid), "time": when}
            for cid, when in ranked[:SNAPSHOT_TOP]
        ],
    )


# ── Service ────────────────────────────────────────────────────────────────

class DashboardService:
    def __init__(self, store: SupabaseStore, tz: tzinfo | None = None) -> None:
        self.store = store
        self.tz = tz

    async def stats(self, now: datetime) -> DashboardStats:
        candidates = await db.list_candidates(self.store, columns="candidate_id, first_name, last_name, status")

        try:
            appointments = await db.list_appointments(self.store, columns="candidate_id, appointment_time")
        except (QueryError, ConnectivityError) as e:
            log.warning("Appointment fetch for dashboard failed: %s", e)
            appointments = []
        try:
            evaluations = await db.list_evaluations(self.store, columns="candidate_id")
        except (QueryError, ConnectivityError) as e:
            log.warning("Evaluation fetch for dashboard failed: %s", e)
            evaluations = []

        return compute_stats(candidates, appointments, evaluations, now, self.tz)

    async def snapshot(self, now: datetime) -> ProgressSnapshot:
        try:
            logs = await db.list_execution_logs(self.store, since=now - timedelta(days=SNAPSHOT_DAYS))
            if not logs:
                return ProgressSnapshot()
            ids = sorted({entry.candidate_id for entry in logs if entry.candidate_id})
            candidates = await db.list_candidates(
                self.store, columns="candidate_id, first_name, last_name", candidate_ids=ids,
            )
        except (QueryError, ConnectivityError) as e:
            log.warning("Error fetching progress snapshot: %s", e)
            return ProgressSnapshot()
        return progress_snapshot(logs, CandidateLookups.build(candidates))

    async def month_view(self, month: date, today: date, selected: date | None = None) -> list[dict]:
        first, last = month_bounds(month)
        start = as_aware(datetime.combine(first, datetime.min.time()), self.tz)
        end = as_aware(datetime.combine(last, datetime.max.time()), self.tz)
        try:
            appointments = await db.list_appointments(self.store, start=start, end=end)
            candidates = await db.list_candidates(self.store, columns="candidate_id, first_name, last_name, email")
        except (QueryError, ConnectivityError) as e:
            log.warning("Error fetching appointments for the month calendar: %s", e)
            appointments, candidates = [], []
        lookups = CandidateLookups.build(candidates)

        days = build_month_view(month, appointments, today, selected, self.tz)
        return [
            {
                "date": d.day.isoformat(),
                "in_month": d.in_month,
                "today": d.is_today,
                "selected": d.is_selected,
                "appointments": [
                    {
                        "id": a.id,
                        "candidate_name": lookups.name_of(a.candidate_id),
                        "time": f"{to_local(a.appointment_time, self.tz):%H:%M}",
                    }
                    for a in d.appointments
                ],
                "overflow": d.overflow,
                "visible": MONTH_VISIBLE_PER_DAY,
            }
            for d in days
        ]
