"""Dashboard routes — stat cards, trend, activity snapshot and month calendar."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from interview_desk.calendar import parse_route_date, shift_month
from interview_desk.state import DeskState, get_state

router = APIRouter()

MAX_MONTH_OFFSET = 120


@router.get("/stats")
async def stats(state: DeskState = Depends(get_state)):
    return await state.dashboard.stats(state.now())


@router.get("/snapshot")
async def snapshot(state: DeskState = Depends(get_state)):
    return await state.dashboard.snapshot(state.now())


@router.get("/calendar")
async def month_calendar(
    month: str | None = Query(None, description="Any day of the month, yyyy-MM-dd"),
    offset: int = Query(0, ge=-MAX_MONTH_OFFSET, le=MAX_MONTH_OFFSET, description="Months to move from `month`"),
    selected: str | None = Query(None),
    state: DeskState = Depends(get_state),
):
    today = state.today()
    shown = shift_month(parse_route_date(month, today), offset)
    picked: date | None = parse_route_date(selected, today) if selected else None
    return {
        "month": f"{shown:%B %Y}",
        "days": await state.dashboard.month_view(shown, today, picked),
    }
