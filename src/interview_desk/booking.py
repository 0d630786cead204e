"""Interview booking — weekly schedule view, appointment form and blocked dates."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, tzinfo

from interview_desk import database as db
from interview_desk.calendar import (
    DEFAULT_SLOTS,
    MONDAY,
    WEEK_VISIBLE_PER_CELL,
    BookingCalendar,
    WeekGrid,
    build_week_grid,
    find_conflicts,
    format_route_date,
    half_hour_slots,
    is_blocked,
    to_local,
)
from interview_desk.errors import ConnectivityError, QueryError, ValidationError
from interview_desk.lookups import CandidateLookups
from interview_desk.models import (
    BOOKABLE_STATUSES,
    STATUS_FOR_INTERVIEW,
    Appointment,
    AppointmentForm,
    BlockDatesForm,
    BlockedDateRange,
    Candidate,
)
from interview_desk.store import SupabaseStore

log = logging.getLogger(__name__)

FORM_DATE_WINDOW = 30
CANDIDATE_COLUMNS = "candidate_id, first_name, last_name, email, mobile_num, position_code, status, vote, ai_evaluation"


class BookingService:
    def __init__(
        self,
        store: SupabaseStore,
        tz: tzinfo | None = None,
        first_weekday: int = MONDAY,
        slots: list[str] | None = None,
    ) -> None:
        self.store = store
        self.tz = tz
        self.first_weekday = first_weekday
        self.slots = list(slots or DEFAULT_SLOTS)

    # -- Reads (fail open) ----------------------------------------------------

    async def _appointments(self) -> list[Appointment]:
        try:
            return await db.list_appointments(self.store)
        except (QueryError, ConnectivityError) as e:
            log.warning("Appointment fetch failed, showing an empty schedule: %s", e)
            return []

    async def _blocked_ranges(self) -> list[BlockedDateRange]:
        try:
            return await db.list_blocked_ranges(self.store)
        except (QueryError, ConnectivityError) as e:
            log.warning("Blocked-date fetch failed, treating every day as open: %s", e)
            return []

    async def _candidates(self) -> list[Candidate]:
        try:
            return await db.list_candidates(self.store, columns=CANDIDATE_COLUMNS)
        except (QueryError, ConnectivityError) as e:
            log.warning("Candidate fetch for the schedule failed: %s", e)
            return []

    # -- Week view ------------------------------------------------------------

    async def week_view(self, route_date: str | None, today: date, week_offset: int = 0) -> dict:
        blocked = await self._blocked_ranges()
        appointments = await self._appointments()
        lookups = CandidateLookups.build(await self._candidates(), appointments)

        cal = BookingCalendar.from_route(route_date, today, blocked, self.first_weekday)
        cal.shift_weeks(week_offset)

        grid = build_week_grid(cal.current_week, appointments, blocked, self.slots, self.first_weekday, self.tz)
        return self._week_payload(cal, grid, lookups, blocked, today)

    async def select_date(self, value: str, today: date) -> dict | None:
        """Route parameters for the chosen day, or None when it is blocked."""
        if not _is_iso_date(value):
            raise ValidationError("date", f"Not a yyyy-MM-dd date: {value!r}")
        day = date.fromisoformat(value.strip())
        cal = BookingCalendar(today, await self._blocked_ranges(), self.first_weekday)
        return cal.select_day(day)

    def _week_payload(
        self,
        cal: BookingCalendar,
        grid: WeekGrid,
        lookups: CandidateLookups,
        blocked: list[BlockedDateRange],
        today: date,
    ) -> dict:
        def appt_entry(a: Appointment) -> dict:
            local = to_local(a.appointment_time, self.tz) if a.appointment_time else None
            return {
                "id": a.id,
                "candidate_id": a.candidate_id,
                "candidate_name": lookups.name_of(a.candidate_id) if lookups.candidate(a.candidate_id) else "Unknown",
                "time": local.strftime("%H:%M") if local else None,
            }

        return {
            "selected_date": format_route_date(cal.selected_date),
            "week_start": format_route_date(cal.current_week),
            "label": grid.label,
            "days": [
                {
                    "date": format_route_date(d),
                    "weekday": d.strftime("%a"),
                    "blocked": d in grid.blocked_days,
                    "selectable": d not in grid.blocked_days,
                    "selected": d == cal.selected_date,
                    "today": d == today,
                }
                for d in grid.days
            ],
            "slots": grid.slots,
            "rows": [
                {
                    "slot": slot,
                    "cells": [
                        {
                            "date": format_route_date(cell.day),
                            "blocked": cell.blocked,
                            "appointments": [appt_entry(a) for a in cell.appointments],
                            "overflow": cell.overflow(WEEK_VISIBLE_PER_CELL),
                        }
                        for cell in grid.row(slot)
                    ],
                }
                for slot in grid.slots
            ],
            "blocked_ranges": [r.model_dump(mode="json") for r in blocked],
        }

    # -- Appointment form -----------------------------------------------------

    async def bookable_candidates(self) -> list[Candidate]:
        return await db.list_candidates(
            self.store,
            columns="candidate_id, first_name, last_name, email, mobile_num, position_code, status",
            order_by="first_name",
            ascending=True,
            statuses=list(BOOKABLE_STATUSES),
        )

    def form_options(self, today: date) -> dict:
        dates = []
        for i in range(FORM_DATE_WINDOW):
            d = today + timedelta(days=i)
            dates.append({"value": format_route_date(d), "label": f"{d:%b} {d.day}, {d.year}", "day_name": f"{d:%A}"})
        return {"dates": dates, "times": half_hour_slots()}

    def validate_form(self, form: AppointmentForm) -> dict:
        if not form.candidate_id.strip():
            raise ValidationError("candidate_id", "Please select a candidate")
        if not form.appointment_time.strip():
            raise ValidationError("appointment_time", "Please select appointment date and time")
        try:
            when = datetime.fromisoformat(form.appointment_time.strip())
        except ValueError:
            raise ValidationError("appointment_time", "Appointment time must look like yyyy-MM-ddTHH:mm")
        if not form.position_code.strip():
            raise ValidationError("position_code", "Please specify the position code")

        if when.tzinfo is None and self.tz is not None:
            when = when.replace(tzinfo=self.tz)
        return {
            "candidate_id": form.candidate_id.strip(),
            "appointment_time": when,
            "position_code": form.position_code.strip(),
            "q_revision": form.q_revision.strip() or None,
            "notes": form.notes.strip() or None,
        }

    async def save_appointment(self, form: AppointmentForm, appointment_id: int | None = None) -> dict:
        values = self.validate_form(form)
        when: datetime = values["appointment_time"]

        local_day = to_local(when, self.tz).date()
        if is_blocked(local_day, await self._blocked_ranges()):
            raise ValidationError("appointment_time", f"{format_route_date(local_day)} is blocked for interviews")

        conflicts = find_conflicts(
            await self._appointments(), when, values["candidate_id"], self.tz, exclude_id=appointment_id,
        )
        if conflicts:
            log.warning(
                "Booking %s at %s overlaps %d existing appointment(s)",
                values["candidate_id"], when.isoformat(), len(conflicts),
            )

        payload = {**values, "appointment_time": when.isoformat()}
        if appointment_id is None:
            rows = await db.insert_appointment(self.store, payload)
            message = "Appointment scheduled successfully!"
        else:
            rows = await db.update_appointment(self.store, appointment_id, payload)
            message = "Appointment updated successfully!"

        await db.update_candidate(self.store, values["candidate_id"], {"status": STATUS_FOR_INTERVIEW})
        log.info("%s (candidate %s, %s)", message, values["candidate_id"], payload["appointment_time"])

        return {
            "message": message,
            "appointment": rows[0] if rows else payload,
            "conflicts": [c.model_dump(mode="json") for c in conflicts],
        }

    async def details(self, appointment_id: int) -> dict | None:
        appointments = await db.list_appointments(self.store)
        match = next((a for a in appointments if a.id == appointment_id), None)
        if match is None:
            return None
        candidates = await db.list_candidates(
            self.store, columns=CANDIDATE_COLUMNS, candidate_ids=[match.candidate_id],
        )
        return appointment_details(match, CandidateLookups.build(candidates), self.tz)

    async def delete_appointment(self, appointment_id: int) -> None:
        await db.delete_appointment(self.store, appointment_id)
        log.info("Deleted appointment %s", appointment_id)

    # -- Blocked dates --------------------------------------------------------

    async def block_dates(self, form: BlockDatesForm) -> dict:
        if not form.start_date.strip() or not form.end_date.strip():
            raise ValidationError("start_date", "Select dates")
        if not (_is_iso_date(form.start_date) and _is_iso_date(form.end_date)):
            raise ValidationError("start_date", "Dates must look like yyyy-MM-dd")
        start = date.fromisoformat(form.start_date.strip())
        end = date.fromisoformat(form.end_date.strip())
        if end < start:
            raise ValidationError("end_date", "End date must not be before the start date")

        rows = await db.insert_blocked_range(self.store, format_route_date(start), format_route_date(end))
        log.info("Blocked %s to %s", start, end)
        return rows[0] if rows else {"start_date": format_route_date(start), "end_date": format_route_date(end)}


def appointment_details(appointment: Appointment, lookups: CandidateLookups, tz: tzinfo | None = None) -> dict:
    """Contents of the appointment details panel."""
    c = lookups.candidate(appointment.candidate_id)
    local = to_local(appointment.appointment_time, tz) if appointment.appointment_time else None
    return {
        "id": appointment.id,
        "candidate_name": c.full_name if c else "Unknown Candidate",
        "email": (c.email if c else None) or "No email",
        "phone": (c.mobile_num if c else None) or "No phone",
        "position_code": c.position_code if c else appointment.position_code,
        "appointment_time": f"{local:%b} {local.day}, {local.year} — {local:%H:%M}" if local else None,
        "q_revision": appointment.q_revision,
        "notes": appointment.notes,
    }


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True
