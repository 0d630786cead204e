"""Results routes — evaluated candidates and their scores."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from interview_desk.state import DeskState, get_state

router = APIRouter()


@router.get("")
async def evaluated_candidates(state: DeskState = Depends(get_state)):
    return await state.results.candidates()


@router.get("/{candidate_id}")
async def candidate_results(candidate_id: str, state: DeskState = Depends(get_state)):
    result = await state.results.candidate_results(candidate_id)
    if not result["evaluations"]:
        raise HTTPException(status_code=404, detail="No evaluations for this candidate")
    return result
