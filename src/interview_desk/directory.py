"""Candidate directory — in-memory filtering, selection and inline edits."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable

from interview_desk import database as db
from interview_desk.errors import ConnectivityError, QueryError, ValidationError
from interview_desk.models import STATUS_FOR_INTERVIEW, Candidate, PositionCode
from interview_desk.store import SupabaseStore

log = logging.getLogger(__name__)

ALL = "all"

CREATED_FILTER_LABELS = {
    "today": "Today",
    "7days": "Last 7 Days",
    "30days": "Last 30 Days",
    "thismonth": "This Month",
    "lastmonth": "Last Month",
}

# Cleared to null instead of an empty string.
NULLABLE_FIELDS = ("mobile_num", "availability", "asking_salary")

EDITABLE_FIELDS = frozenset(Candidate.model_fields) - {"candidate_id", "created_at"}

_DRIVE_FILE_RE = re.compile(r"/d/(.*?)/")


# ── Filtering ──────────────────────────────────────────────────────────────

@dataclass
class DirectoryFilter:
    search: str = ""
    status: str = ALL
    position: str = ALL
    created: str = ALL


def matches_search(c: Candidate, term: str) -> bool:
    term = term.lower()
    return any(term in (value or "").lower() for value in (c.first_name, c.last_name, c.email, c.position_code))


def matches_status(c: Candidate, status: str) -> bool:
    return status == ALL or c.status == status


def matches_position(c: Candidate, position: str) -> bool:
    return position == ALL or c.position_code == position


def created_bounds(bucket: str, now: datetime) -> tuple[datetime, datetime | None]:
    """[start, end) of a creation-date bucket; ``end`` is None when open."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    first_of_month = midnight.replace(day=1)
    if bucket == "today":
        return midnight, None
    if bucket == "7days":
        return now - timedelta(days=7), None
    if bucket == "30days":
        return now - timedelta(days=30), None
    if bucket == "thismonth":
        return first_of_month, None
    if bucket == "lastmonth":
        first_of_last = (first_of_month - timedelta(days=1)).replace(day=1)
        return first_of_last, first_of_month
    raise ValidationError("created", f"Unknown creation filter: {bucket}")


def matches_created(c: Candidate, bucket: str, now: datetime) -> bool:
    if bucket == ALL:
        return True
    if c.created_at is None:
        return False
    created = c.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=now.tzinfo)
    elif now.tzinfo is not None:
        created = created.astimezone(now.tzinfo)
    start, end = created_bounds(bucket, now)
    return created >= start and (end is None or created < end)


def filter_candidates(candidates: Iterable[Candidate], flt: DirectoryFilter, now: datetime) -> list[Candidate]:
    if flt.created != ALL:
        created_bounds(flt.created, now)  # reject unknown buckets up front
    return [
        c for c in candidates
        if matches_search(c, flt.search)
        and matches_status(c, flt.status)
        and matches_position(c, flt.position)
        and matches_created(c, flt.created, now)
    ]


def unique_statuses(candidates: Iterable[Candidate]) -> list[str]:
    """Status labels present in the list, minus the per-video pipeline states."""
    statuses = {c.status for c in candidates if c.status and "answer video to" not in c.status.lower()}
    return sorted(statuses, key=str.lower)


def cv_preview_url(url: str | None) -> str | None:
    """Google Drive share links become embeddable preview links; others pass through."""
    if not url:
        return None
    if "drive.google.com" in url:
        m = _DRIVE_FILE_RE.search(url)
        if m and m.group(1):
            return f"https://drive.google.com/file/d/{m.group(1)}/preview"
    return url


def coerce_edit(field: str, raw: Any) -> Any:
    """Validate and convert an inline edit; raises before anything is sent."""
    if field not in EDITABLE_FIELDS:
        raise ValidationError(field, f"Field '{field}' cannot be edited")

    value = raw.strip() if isinstance(raw, str) else raw

    if field == "vote":
        if value in (None, ""):
            return None
        try:
            vote = float(value)
        except (TypeError, ValueError):
            raise ValidationError("vote", "Vote must be a number")
        if not 0 <= vote <= 10:
            raise ValidationError("vote", "Vote must be between 0 and 10")
        return vote

    if field == "email" and value and "@" not in value:
        raise ValidationError("email", "Please enter a valid email address")

    if value == "" and field in NULLABLE_FIELDS:
        return None
    return value


# ── View-model ─────────────────────────────────────────────────────────────

class CandidateDirectory:
    """Holds the full candidate list and the selected candidate.

    The selected candidate is always the same object as its row in
    ``candidates``; edits replace both at once.
    """

    def __init__(self, store: SupabaseStore) -> None:
        self.store = store
        self.candidates: list[Candidate] = []
        self.positions: list[PositionCode] = []
        self.selected: Candidate | None = None
        self._inflight: asyncio.Task | None = None
        self._generation = 0

    # -- Loading --------------------------------------------------------------

    async def refresh(self, force: bool = False) -> list[Candidate]:
        """Fetch candidates; only one fetch is ever outstanding.

        A plain refresh joins the fetch in progress. ``force`` (retry, reset)
        supersedes it, and the superseded result is dropped.
        """
        running = self._inflight is not None and not self._inflight.done()
        if running and not force:
            log.debug("Directory fetch already in progress, joining it")
        else:
            if running:
                self._inflight.cancel()
            self._generation += 1
            self._inflight = asyncio.create_task(self._fetch(self._generation))

        task = self._inflight
        while True:
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                # only follow a fetch that was superseded, never our own cancellation
                if not task.cancelled() or self._inflight is None or self._inflight is task:
                    raise
                task = self._inflight

    def clear(self) -> None:
        """Forget everything loaded; a fetch still running is dropped when it lands."""
        self._generation += 1
        self._inflight = None
        self.candidates = []
        self.positions = []
        self.selected = None

    async def _fetch(self, generation: int) -> list[Candidate]:
        rows = await db.list_candidates(self.store)
        if generation != self._generation:
            log.debug("Dropping superseded directory fetch #%d", generation)
            return self.candidates
        self._apply(rows)

        try:
            positions = await db.list_position_codes(self.store)
        except (QueryError, ConnectivityError) as e:
            log.warning("Position fetch failed, showing no positions: %s", e)
            positions = []
        if generation == self._generation:
            self.positions = positions

        log.info("Loaded %d candidates", len(self.candidates))
        return self.candidates

    def _apply(self, rows: list[Candidate]) -> None:
        self.candidates = rows
        if self.selected is not None:
            self.selected = self.find(self.selected.candidate_id)
        if self.selected is None and rows:
            self.selected = rows[0]

    # -- Selection ------------------------------------------------------------

    def find(self, candidate_id: str) -> Candidate | None:
        return next((c for c in self.candidates if c.candidate_id == candidate_id), None)

    def select(self, candidate_id: str | None) -> Candidate | None:
        """Select by id (deep link); unknown ids leave the selection alone."""
        if candidate_id:
            match = self.find(candidate_id)
            if match is not None:
                self.selected = match
        return self.selected

    def view(self, flt: DirectoryFilter, now: datetime) -> dict:
        selected = self.selected
        return {
            "candidates": filter_candidates(self.candidates, flt, now),
            "total": len(self.candidates),
            "selected": selected,
            "cv_preview_url": cv_preview_url(selected.cv_filename) if selected else None,
            "statuses": unique_statuses(self.candidates),
            "positions": self.positions,
            "created_filters": CREATED_FILTER_LABELS,
        }

    # -- Mutations ------------------------------------------------------------

    async def edit_field(self, field: str, raw_value: Any, candidate_id: str | None = None) -> Candidate:
        target = self.find(candidate_id) if candidate_id else self.selected
        if target is None:
            raise ValidationError("candidate_id", "No candidate selected")
        value = coerce_edit(field, raw_value)
        await db.update_candidate(self.store, target.candidate_id, {field: value})
        return self._echo(target.candidate_id, {field: value})

    async def move_to_for_interview(self, candidate_id: str | None = None) -> Candidate:
        target = self.find(candidate_id) if candidate_id else self.selected
        if target is None:
            raise ValidationError("candidate_id", "No candidate selected")
        await db.update_candidate(self.store, target.candidate_id, {"status": STATUS_FOR_INTERVIEW})
        return self._echo(target.candidate_id, {"status": STATUS_FOR_INTERVIEW})

    def _echo(self, candidate_id: str, updates: dict[str, Any]) -> Candidate:
        current = self.find(candidate_id)
        if current is None:
            raise ValidationError("candidate_id", f"Candidate {candidate_id} is not loaded")
        updated = current.model_copy(update=updates)
        self.candidates = [updated if c.candidate_id == candidate_id else c for c in self.candidates]
        if self.selected is not None and self.selected.candidate_id == candidate_id:
            self.selected = updated
        return updated
