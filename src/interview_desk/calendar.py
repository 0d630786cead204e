"""Booking calendar engine — week grid, hour buckets and blocked dates.

Everything here is pure date arithmetic over rows that were already
fetched. Bucketing is by *local calendar date* and *hour of day*: an
appointment at 10:17 belongs to the "10:00" slot of its day. Blocked ranges
are inclusive on both ends and compared as calendar dates; a range with no
end date blocks every day from its start onward.

Nothing here prevents two appointments from sharing a cell.
:func:`find_conflicts` only reports them.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable

from interview_desk.models import Appointment, BlockedDateRange

WEEK_VISIBLE_PER_CELL = 3
MONTH_VISIBLE_PER_DAY = 2

MONDAY = 0
SUNDAY = 6


def hourly_slots(start_hour: int = 8, end_hour: int = 22) -> list[str]:
    return [f"{h:02d}:00" for h in range(start_hour, end_hour + 1)]


def half_hour_slots(start_hour: int = 8, end_hour: int = 22) -> list[str]:
    slots = []
    for h in range(start_hour, end_hour + 1):
        slots.append(f"{h:02d}:00")
        if h < end_hour:
            slots.append(f"{h:02d}:30")
    return slots


DEFAULT_SLOTS = hourly_slots()


# ── Dates ──────────────────────────────────────────────────────────────────

def week_start(day: date, first_weekday: int = MONDAY) -> date:
    return day - timedelta(days=(day.weekday() - first_weekday) % 7)


def week_days(day: date, first_weekday: int = MONDAY) -> list[date]:
    start = week_start(day, first_weekday)
    return [start + timedelta(days=i) for i in range(7)]


def parse_route_date(value: str | None, today: date) -> date:
    """Parse a ``yyyy-MM-dd`` route parameter, falling back to ``today``."""
    if not value:
        return today
    try:
        year, month, day = (int(part) for part in value.strip().split("-"))
        return date(year, month, day)
    except ValueError:
        return today


def format_route_date(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def to_local(instant: datetime, tz: tzinfo | None) -> datetime:
    """Naive instants are already local wall-clock times."""
    if instant.tzinfo is None or tz is None:
        return instant
    return instant.astimezone(tz)


def slot_of(instant: datetime, tz: tzinfo | None = None) -> tuple[date, str]:
    """The (calendar day, hour bucket) an instant falls into."""
    local = to_local(instant, tz)
    return local.date(), f"{local.hour:02d}:00"


# ── Blocked dates ──────────────────────────────────────────────────────────

def range_contains(blocked: BlockedDateRange, day: date) -> bool:
    end = blocked.end_date if blocked.end_date is not None else date.max
    return blocked.start_date <= day <= end


def is_blocked(day: date, ranges: Iterable[BlockedDateRange]) -> bool:
    return any(range_contains(r, day) for r in ranges)


# ── Slot assignment ────────────────────────────────────────────────────────

def find_conflicts(
    appointments: Iterable[Appointment],
    when: datetime,
    candidate_id: str,
    tz: tzinfo | None = None,
    exclude_id: int | None = None,
) -> list[Appointment]:
    """Existing appointments in the same cell, or for the same candidate on the same day."""
    day, slot = slot_of(when, tz)
    conflicts = []
    for a in appointments:
        if a.appointment_time is None or (exclude_id is not None and a.id == exclude_id):
            continue
        a_day, a_slot = slot_of(a.appointment_time, tz)
        if a_day != day:
            continue
        if a_slot == slot or a.candidate_id == candidate_id:
            conflicts.append(a)
    return conflicts


# ── Week grid ──────────────────────────────────────────────────────────────

@dataclass
class SlotCell:
    day: date
    slot: str
    blocked: bool = False
    appointments: list[Appointment] = field(default_factory=list)

    def visible(self, limit: int = WEEK_VISIBLE_PER_CELL) -> list[Appointment]:
        return self.appointments[:limit]

    def overflow(self, limit: int = WEEK_VISIBLE_PER_CELL) -> int:
        return max(0, len(self.appointments) - limit)


@dataclass
class WeekGrid:
    days: list[date]
    slots: list[str]
    cells: dict[tuple[date, str], SlotCell]
    blocked_days: set[date] = field(default_factory=set)

    def cell(self, day: date, slot: str) -> SlotCell:
        return self.cells[(day, slot)]

    def row(self, slot: str) -> list[SlotCell]:
        return [self.cells[(d, slot)] for d in self.days]

    @property
    def label(self) -> str:
        first, last = self.days[0], self.days[-1]
        return f"{first:%b} {first.day} — {last:%b} {last.day}, {last.year}"


def build_week_grid(
    reference: date,
    appointments: Iterable[Appointment],
    blocked_ranges: Iterable[BlockedDateRange],
    slots: list[str] | None = None,
    first_weekday: int = MONDAY,
    tz: tzinfo | None = None,
) -> WeekGrid:
    slots = list(slots or DEFAULT_SLOTS)
    days = week_days(reference, first_weekday)
    ranges = list(blocked_ranges)
    blocked_days = {d for d in days if is_blocked(d, ranges)}

    buckets: dict[tuple[date, str], list[Appointment]] = defaultdict(list)
    for a in appointments:
        if a.appointment_time is not None:
            buckets[slot_of(a.appointment_time, tz)].append(a)

    cells = {
        (d, s): SlotCell(day=d, slot=s, blocked=d in blocked_days, appointments=list(buckets.get((d, s), [])))
        for d in days
        for s in slots
    }
    return WeekGrid(days=days, slots=slots, cells=cells, blocked_days=blocked_days)


# ── Selection state ────────────────────────────────────────────────────────

class BookingCalendar:
    """Selected date and displayed week of the booking view.

    ``select_day`` returns the route parameter to navigate to, or ``None``
    when the day is blocked (in which case nothing changes).
    """

    def __init__(
        self,
        reference: date,
        blocked_ranges: Iterable[BlockedDateRange] = (),
        first_weekday: int = MONDAY,
    ) -> None:
        self.first_weekday = first_weekday
        self.blocked_ranges = list(blocked_ranges)
        self.selected_date = reference
        self.current_week = week_start(reference, first_weekday)

    @classmethod
    def from_route(
        cls,
        value: str | None,
        today: date,
        blocked_ranges: Iterable[BlockedDateRange] = (),
        first_weekday: int = MONDAY,
    ) -> BookingCalendar:
        return cls(parse_route_date(value, today), blocked_ranges, first_weekday)

    @property
    def days(self) -> list[date]:
        return week_days(self.current_week, self.first_weekday)

    def next_week(self) -> None:
        self.current_week += timedelta(days=7)

    def previous_week(self) -> None:
        self.current_week -= timedelta(days=7)

    def shift_weeks(self, count: int) -> None:
        """Move the displayed week by ``count`` weeks; out of range leaves it unchanged."""
        try:
            self.current_week += timedelta(weeks=count)
        except OverflowError:
            pass

    def is_blocked(self, day: date) -> bool:
        return is_blocked(day, self.blocked_ranges)

    def select_day(self, day: date) -> dict[str, str] | None:
        if self.is_blocked(day):
            return None
        self.selected_date = day
        return {"date": format_route_date(day)}


# ── Month calendar ─────────────────────────────────────────────────────────

@dataclass
class MonthDay:
    day: date
    in_month: bool
    is_today: bool
    is_selected: bool
    appointments: list[Appointment]

    @property
    def overflow(self) -> int:
        return max(0, len(self.appointments) - MONTH_VISIBLE_PER_DAY)


def month_days(month: date, first_weekday: int = SUNDAY) -> list[date]:
    """Whole weeks covering the month of ``month``."""
    first = month.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    last = next_month - timedelta(days=1)
    start = week_start(first, first_weekday)
    end = week_start(last, first_weekday) + timedelta(days=6)
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def month_bounds(month: date) -> tuple[date, date]:
    first = month.replace(day=1)
    last = (first + timedelta(days=32)).replace(day=1) - timedelta(days=1)
    return first, last


def shift_month(month: date, delta: int) -> date:
    """First of the month ``delta`` months away; out of range stays on ``month``."""
    index = month.year * 12 + (month.month - 1) + delta
    try:
        return date(index // 12, index % 12 + 1, 1)
    except ValueError:
        return month.replace(day=1)


def build_month_view(
    month: date,
    appointments: Iterable[Appointment],
    today: date,
    selected: date | None = None,
    tz: tzinfo | None = None,
    first_weekday: int = SUNDAY,
) -> list[MonthDay]:
    by_day: dict[date, list[Appointment]] = defaultdict(list)
    for a in appointments:
        if a.appointment_time is not None:
            by_day[to_local(a.appointment_time, tz).date()].append(a)
    return [
        MonthDay(
            day=d,
            in_month=d.month == month.month,
            is_today=d == today,
            is_selected=d == selected,
            appointments=by_day.get(d, []),
        )
        for d in month_days(month, first_weekday)
    ]
