"""Tests for the booking service: week view, appointment form and blocked dates."""

from __future__ import annotations

from datetime import date, timezone

import pytest

from interview_desk import database as db
from interview_desk.booking import BookingService, appointment_details
from interview_desk.errors import ConnectivityError, QueryError, ValidationError
from interview_desk.lookups import CandidateLookups
from interview_desk.models import Appointment, AppointmentForm, BlockDatesForm

UTC = timezone.utc
TODAY = date(2025, 1, 6)


@pytest.fixture
def booking(store) -> BookingService:
    store.tables[db.APPOINTMENTS] = [
        {"id": 1, "candidate_id": "c-1", "appointment_time": "2025-01-06T10:15:00+00:00", "position_code": "DEV01"},
        {"id": 2, "candidate_id": "c-2", "appointment_time": "2025-01-06T10:45:00+00:00", "position_code": "OPS02"},
    ]
    return BookingService(store, UTC)


def cell(view: dict, slot: str, day: str) -> dict:
    row = next(r for r in view["rows"] if r["slot"] == slot)
    return next(c for c in row["cells"] if c["date"] == day)


# ---------------------------------------------------------------------------
# Week view
# ---------------------------------------------------------------------------

async def test_week_view_places_shared_cell(booking):
    view = await booking.week_view("2025-01-06", TODAY)

    assert view["selected_date"] == "2025-01-06"
    assert view["week_start"] == "2025-01-06"
    assert len(view["days"]) == 7
    names = [a["candidate_name"] for a in cell(view, "10:00", "2025-01-06")["appointments"]]
    assert names == ["Alice Santos", "Ben Okafor"]
    assert cell(view, "11:00", "2025-01-06")["appointments"] == []


async def test_week_view_blocks_every_cell_in_range(booking, store):
    store.tables[db.BLOCKED_DATES] = [{"id": 1, "start_date": "2025-01-01", "end_date": "2025-01-10"}]
    view = await booking.week_view("2025-01-06", TODAY)

    blocked_days = {d["date"] for d in view["days"] if d["blocked"]}
    assert blocked_days == {"2025-01-06", "2025-01-07", "2025-01-08", "2025-01-09", "2025-01-10"}
    assert all(not d["selectable"] for d in view["days"] if d["blocked"])
    for row in view["rows"]:
        for c in row["cells"]:
            assert c["blocked"] == (c["date"] in blocked_days)

    assert await booking.select_date("2025-01-06", TODAY) is None
    assert await booking.select_date("2025-01-11", TODAY) == {"date": "2025-01-11"}


async def test_week_view_bad_route_date_falls_back_to_today(booking):
    view = await booking.week_view("06/01/2025", TODAY)
    assert view["selected_date"] == "2025-01-06"


async def test_week_offset_moves_the_grid(booking):
    view = await booking.week_view("2025-01-06", TODAY, week_offset=-1)
    assert view["week_start"] == "2024-12-30"
    assert view["selected_date"] == "2025-01-06"


@pytest.mark.parametrize("offset", [10**6, -10**6, 10**12])
async def test_week_offset_beyond_the_calendar_keeps_the_reference_week(booking, offset):
    view = await booking.week_view("2025-01-06", TODAY, week_offset=offset)
    assert view["week_start"] == "2025-01-06"
    assert len(view["days"]) == 7


async def test_week_view_fails_open(booking, store):
    store.fail[db.APPOINTMENTS] = ConnectivityError("timed out")
    store.fail[db.BLOCKED_DATES] = QueryError("relation does not exist")

    view = await booking.week_view("2025-01-06", TODAY)

    assert all(not d["blocked"] for d in view["days"])
    assert all(c["appointments"] == [] for r in view["rows"] for c in r["cells"])


async def test_select_date_rejects_garbage(booking):
    with pytest.raises(ValidationError):
        await booking.select_date("tomorrow", TODAY)


# ---------------------------------------------------------------------------
# Appointment form
# ---------------------------------------------------------------------------

def test_form_options(booking):
    options = booking.form_options(TODAY)
    assert len(options["dates"]) == 30
    assert options["dates"][0] == {"value": "2025-01-06", "label": "Jan 6, 2025", "day_name": "Monday"}
    assert options["times"][0] == "08:00"
    assert options["times"][-1] == "22:00"


@pytest.mark.parametrize("form,field", [
    (AppointmentForm(appointment_time="2025-01-07T09:00", position_code="DEV01"), "candidate_id"),
    (AppointmentForm(candidate_id="c-1", position_code="DEV01"), "appointment_time"),
    (AppointmentForm(candidate_id="c-1", appointment_time="next tuesday", position_code="DEV01"), "appointment_time"),
    (AppointmentForm(candidate_id="c-1", appointment_time="2025-01-07T09:00"), "position_code"),
])
async def test_invalid_form_never_reaches_backend(booking, store, form, field):
    with pytest.raises(ValidationError) as exc:
        await booking.save_appointment(form)
    assert exc.value.field == field
    assert store.writes() == []


async def test_save_appointment_sets_candidate_for_interview(booking, store):
    result = await booking.save_appointment(AppointmentForm(
        candidate_id="c-1", appointment_time="2025-01-07T09:30", position_code="DEV01", notes="  ",
    ))

    assert result["message"] == "Appointment scheduled successfully!"
    assert result["conflicts"] == []
    inserted = store.tables[db.APPOINTMENTS][-1]
    assert inserted["candidate_id"] == "c-1"
    assert inserted["appointment_time"] == "2025-01-07T09:30:00+00:00"
    assert inserted["notes"] is None
    assert store.tables[db.CANDIDATES][0]["status"] == "For Interview"


async def test_double_booking_is_allowed_but_reported(booking, store):
    result = await booking.save_appointment(AppointmentForm(
        candidate_id="c-3", appointment_time="2025-01-06T10:30", position_code="DEV01",
    ))
    assert sorted(c["id"] for c in result["conflicts"]) == [1, 2]
    assert len(store.tables[db.APPOINTMENTS]) == 3


async def test_update_appointment_excludes_itself_from_conflicts(booking, store):
    result = await booking.save_appointment(
        AppointmentForm(candidate_id="c-1", appointment_time="2025-01-06T10:20", position_code="DEV01"),
        appointment_id=1,
    )
    assert result["message"] == "Appointment updated successfully!"
    assert [c["id"] for c in result["conflicts"]] == [2]
    assert store.tables[db.APPOINTMENTS][0]["appointment_time"] == "2025-01-06T10:20:00+00:00"


async def test_booking_on_blocked_day_is_rejected(booking, store):
    store.tables[db.BLOCKED_DATES] = [{"id": 1, "start_date": "2025-01-07", "end_date": None}]
    with pytest.raises(ValidationError) as exc:
        await booking.save_appointment(AppointmentForm(
            candidate_id="c-1", appointment_time="2025-02-01T09:00", position_code="DEV01",
        ))
    assert exc.value.field == "appointment_time"
    assert store.writes() == []


async def test_blocked_day_message_names_the_local_day(booking, store):
    store.tables[db.BLOCKED_DATES] = [{"id": 1, "start_date": "2025-01-07", "end_date": "2025-01-07"}]
    # 07:00 at +08:00 is 23:00 the previous day in UTC
    with pytest.raises(ValidationError) as exc:
        await booking.save_appointment(AppointmentForm(
            candidate_id="c-1", appointment_time="2025-01-08T07:00+08:00", position_code="DEV01",
        ))
    assert "2025-01-07 is blocked" in exc.value.message
    assert store.writes() == []


async def test_bookable_candidates_are_cv_processed_or_for_interview(booking):
    names = [c.first_name for c in await booking.bookable_candidates()]
    assert names == ["Alice", "Carla"]


async def test_delete_and_details(booking, store):
    details = await booking.details(1)
    assert details["candidate_name"] == "Alice Santos"
    assert details["email"] == "alice@example.com"
    assert details["phone"] == "No phone"

    await booking.delete_appointment(1)
    assert [a["id"] for a in store.tables[db.APPOINTMENTS]] == [2]
    assert await booking.details(1) is None


def test_details_for_unknown_candidate():
    appt = Appointment(id=9, candidate_id="ghost", position_code="QA01")
    details = appointment_details(appt, CandidateLookups())
    assert details["candidate_name"] == "Unknown Candidate"
    assert details["email"] == "No email"
    assert details["position_code"] == "QA01"


# ---------------------------------------------------------------------------
# Blocked dates
# ---------------------------------------------------------------------------

async def test_block_dates_inserts_range(booking, store):
    row = await booking.block_dates(BlockDatesForm(start_date="2025-02-01", end_date="2025-02-03"))
    assert row["start_date"] == "2025-02-01"
    assert store.tables[db.BLOCKED_DATES][-1]["end_date"] == "2025-02-03"


@pytest.mark.parametrize("form", [
    BlockDatesForm(start_date="", end_date="2025-02-03"),
    BlockDatesForm(start_date="2025-02-03", end_date="2025-02-01"),
    BlockDatesForm(start_date="Feb 1", end_date="2025-02-03"),
])
async def test_block_dates_validation(booking, store, form):
    with pytest.raises(ValidationError):
        await booking.block_dates(form)
    assert store.writes() == []
