"""Candidate routes — directory listing, filters, inline edits and quick search."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from interview_desk import database as db
from interview_desk.directory import ALL, CandidateDirectory, DirectoryFilter
from interview_desk.models import CandidateFieldEdit
from interview_desk.state import DeskState, get_state

router = APIRouter()


async def _loaded(directory: CandidateDirectory) -> CandidateDirectory:
    if not directory.candidates:
        await directory.refresh()
    return directory


@router.get("")
async def list_candidates_route(
    search: str | None = Query(None, description="Candidate id to select (deep link)"),
    q: str = Query(""),
    status: str = Query(ALL),
    position: str = Query(ALL),
    created: str = Query(ALL),
    state: DeskState = Depends(get_state),
):
    directory = await _loaded(state.directory)
    directory.select(search)
    return directory.view(DirectoryFilter(search=q, status=status, position=position, created=created), state.now())


@router.post("/refresh")
async def refresh_candidates(state: DeskState = Depends(get_state)):
    rows = await state.directory.refresh(force=True)
    return {"total": len(rows)}


@router.get("/quick-search")
async def quick_search(
    name: str = Query(""),
    position_code: str = Query(""),
    state: DeskState = Depends(get_state),
):
    return await db.search_candidates(state.store, name=name, position_code=position_code)


@router.get("/positions")
async def list_positions(state: DeskState = Depends(get_state)):
    return await db.list_position_codes(state.store)


@router.get("/{candidate_id}")
async def get_candidate(candidate_id: str, state: DeskState = Depends(get_state)):
    directory = await _loaded(state.directory)
    candidate = directory.find(candidate_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Candidate not found")
    directory.select(candidate_id)
    return candidate


@router.patch("/{candidate_id}")
async def edit_candidate(candidate_id: str, req: CandidateFieldEdit, state: DeskState = Depends(get_state)):
    directory = await _loaded(state.directory)
    if directory.find(candidate_id) is None:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return await directory.edit_field(req.field, req.value, candidate_id)


@router.post("/{candidate_id}/for-interview")
async def move_to_for_interview(candidate_id: str, state: DeskState = Depends(get_state)):
    directory = await _loaded(state.directory)
    if directory.find(candidate_id) is None:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return await directory.move_to_for_interview(candidate_id)
