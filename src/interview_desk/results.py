"""Interview results — AI evaluation scores per candidate."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from interview_desk import database as db
from interview_desk.errors import ConnectivityError, QueryError
from interview_desk.lookups import CandidateLookups
from interview_desk.models import AIEvaluation, Candidate
from interview_desk.store import SupabaseStore

log = logging.getLogger(__name__)

CANDIDATE_COLUMNS = "candidate_id, first_name, last_name, email, mobile_num, position_code, status, created_at"


@dataclass
class ScoreTotals:
    technical: float = 0.0
    clarity: float = 0.0
    confidence: float = 0.0
    relevance: float = 0.0
    total: float = 0.0


def score_totals(evaluations: list[AIEvaluation]) -> ScoreTotals:
    totals = ScoreTotals()
    for e in evaluations:
        totals.technical += e.technical_eval or 0
        totals.clarity += e.clarity_structure or 0
        totals.confidence += e.confidence_exp or 0
        totals.relevance += e.relevance or 0
        totals.total += e.total_score or 0
    return totals


def grade(total_score: float) -> str:
    if total_score >= 9:
        return "Excellent"
    if total_score >= 7:
        return "Good"
    if total_score >= 6:
        return "Satisfactory"
    return "Poor"


def evaluated_candidates(candidates: list[Candidate], evaluated_ids: set[str]) -> list[Candidate]:
    """Candidates with at least one evaluation, in the order given."""
    return [c for c in candidates if c.candidate_id in evaluated_ids]


class ResultsService:
    def __init__(self, store: SupabaseStore) -> None:
        self.store = store

    async def candidates(self) -> list[Candidate]:
        rows = await db.list_candidates(self.store, columns=CANDIDATE_COLUMNS, order_by="first_name", ascending=True)
        evals = await db.list_evaluations(self.store, columns="candidate_id")
        return evaluated_candidates(rows, {e.candidate_id for e in evals})

    async def candidate_results(self, candidate_id: str) -> dict:
        evaluations = await db.list_evaluations(self.store, candidate_id=candidate_id)
        try:
            appointments = await db.list_appointments(
                self.store, candidate_ids=[candidate_id], columns="id, candidate_id, appointment_time, position_code",
            )
        except (QueryError, ConnectivityError) as e:
            log.error("Error fetching appointments: %s", e)
            appointments = []

        appt = CandidateLookups.build(appointments=appointments).first_appointment(candidate_id)
        totals = score_totals(evaluations)
        return {
            "candidate_id": candidate_id,
            "evaluations": evaluations,
            "totals": totals,
            "grade": grade(totals.total),
            "interview_date": appt.appointment_time if appt else None,
        }
