"""Booking routes — week schedule, appointment CRUD and blocked dates."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from interview_desk import database as db
from interview_desk.models import AppointmentForm, BlockDatesForm, SelectDateRequest
from interview_desk.state import DeskState, get_state

router = APIRouter()

# about ten years either way
MAX_WEEK_OFFSET = 520


@router.get("/week")
async def week_view(
    date: str | None = Query(None, description="Selected day, yyyy-MM-dd"),
    week_offset: int = Query(0, ge=-MAX_WEEK_OFFSET, le=MAX_WEEK_OFFSET),
    state: DeskState = Depends(get_state),
):
    return await state.booking.week_view(date, state.today(), week_offset)


@router.post("/select")
async def select_date(req: SelectDateRequest, state: DeskState = Depends(get_state)):
    route = await state.booking.select_date(req.date, state.today())
    return {"selected": route is not None, "route": route}


@router.get("/form-options")
async def form_options(state: DeskState = Depends(get_state)):
    return state.booking.form_options(state.today())


@router.get("/candidates")
async def bookable_candidates(state: DeskState = Depends(get_state)):
    return await state.booking.bookable_candidates()


@router.post("/appointments")
async def create_appointment(req: AppointmentForm, state: DeskState = Depends(get_state)):
    return await state.booking.save_appointment(req)


@router.get("/appointments/{appointment_id}")
async def get_appointment(appointment_id: int, state: DeskState = Depends(get_state)):
    details = await state.booking.details(appointment_id)
    if details is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return details


@router.put("/appointments/{appointment_id}")
async def update_appointment(appointment_id: int, req: AppointmentForm, state: DeskState = Depends(get_state)):
    return await state.booking.save_appointment(req, appointment_id)


@router.delete("/appointments/{appointment_id}")
async def delete_appointment(appointment_id: int, state: DeskState = Depends(get_state)):
    await state.booking.delete_appointment(appointment_id)
    return {"status": "deleted"}


@router.get("/blocked")
async def list_blocked(state: DeskState = Depends(get_state)):
    return await db.list_blocked_ranges(state.store)


@router.post("/blocked")
async def block_dates(req: BlockDatesForm, state: DeskState = Depends(get_state)):
    return await state.booking.block_dates(req)
