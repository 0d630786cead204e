"""Candidate-keyed lookup maps, built once per fetch cycle."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from interview_desk.models import AIEvaluation, Appointment, Candidate


@dataclass
class CandidateLookups:
    candidates: dict[str, Candidate] = field(default_factory=dict)
    appointments: dict[str, list[Appointment]] = field(default_factory=dict)
    evaluations: dict[str, list[AIEvaluation]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        candidates: Iterable[Candidate] = (),
        appointments: Iterable[Appointment] = (),
        evaluations: Iterable[AIEvaluation] = (),
    ) -> CandidateLookups:
        appts: dict[str, list[Appointment]] = defaultdict(list)
        for a in appointments:
            appts[a.candidate_id].append(a)
        evals: dict[str, list[AIEvaluation]] = defaultdict(list)
        for e in evaluations:
            evals[e.candidate_id].append(e)
        return cls(
            candidates={c.candidate_id: c for c in candidates},
            appointments=dict(appts),
            evaluations=dict(evals),
        )

    def candidate(self, candidate_id: str) -> Candidate | None:
        return self.candidates.get(candidate_id)

    def name_of(self, candidate_id: str) -> str:
        c = self.candidates.get(candidate_id)
        return c.full_name if c else "Unknown Candidate"

    def status_of(self, candidate_id: str) -> str | None:
        c = self.candidates.get(candidate_id)
        return c.status if c else None

    def first_appointment(self, candidate_id: str) -> Appointment | None:
        appts = self.appointments.get(candidate_id)
        return appts[0] if appts else None

    def evaluated_ids(self) -> set[str]:
        return set(self.evaluations)
