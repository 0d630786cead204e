"""Progress routes — last week's pipeline activity per candidate."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from interview_desk.progress import status_category
from interview_desk.state import DeskState, get_state

router = APIRouter()


@router.get("")
async def recent_progress(state: DeskState = Depends(get_state)):
    groups = await state.progress.recent(state.now())
    return [
        {
            "candidate_id": g.candidate_id,
            "candidate_name": g.candidate_name,
            "interview_date": g.interview_date,
            "logs": [
                {**entry.model_dump(), "category": status_category(entry.current_status)}
                for entry in g.logs
            ],
        }
        for g in groups
    ]
