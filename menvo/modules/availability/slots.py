"""
Expands a mentor's weekly recurring availability into concrete bookable slots.

Pure functions only: callers fetch availability and existing appointments first
and pass "now" explicitly, so the same inputs always produce the same output.
Days of the week follow the stored convention 0 = Sunday .. 6 = Saturday.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class WeeklyWindow:
    day_of_week: int
    start_time: time
    end_time: time
    timezone: str = "UTC"
    is_active: bool = True


@dataclass(frozen=True)
class BusyInterval:
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end and end > self.start


@dataclass(frozen=True)
class BookableSlot:
    date: date
    start_time: time
    end_time: time
    full_datetime: datetime
    end_datetime: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "full_datetime": self.full_datetime.isoformat(),
        }


@dataclass
class DaySlots:
    date: date
    day_of_week: int
    slots: List[BookableSlot] = field(default_factory=list)


def day_of_week(d: date) -> int:
    """0 = Sunday, matching the availability rows."""
    return (d.weekday() + 1) % 7


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return _aware(value)
    return _aware(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


def busy_from_appointments(rows: Iterable[Mapping[str, Any]], default_duration: int = 60) -> List[BusyInterval]:
    """Appointment rows (scheduled_at, duration_minutes) to busy intervals."""
    busy = []
    for row in rows:
        start = parse_datetime(row["scheduled_at"])
        minutes = row.get("duration_minutes") or default_duration
        busy.append(BusyInterval(start=start, end=start + timedelta(minutes=minutes)))
    return busy


def _date_range(start_date: date, end_date: date):
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def _window_bounds(current: date, window: WeeklyWindow) -> Tuple[datetime, datetime]:
    # Wall times that fall in a DST gap resolve with fold=0, i.e. past the gap.
    tz = ZoneInfo(window.timezone)
    start = datetime.combine(current, window.start_time, tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(current, window.end_time, tzinfo=tz).astimezone(timezone.utc)
    return start, end


def generate_slots(
    windows: Sequence[WeeklyWindow],
    start_date: date,
    end_date: date,
    booked: Sequence[BusyInterval] = (),
    duration_minutes: int = 60,
    now: Optional[datetime] = None,
) -> List[BookableSlot]:
    """
    Subdivide every active window into back-to-back duration-long slots for each
    matching date in [start_date, end_date]. A trailing piece shorter than the
    duration is dropped. Slots starting at or before `now`, or overlapping a
    booked interval, are left out. Sorted by date, start time, then instant.

    Stepping happens in UTC so every slot lasts exactly `duration_minutes` of
    elapsed time, including on days the window's zone changes offset.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    now = _aware(now) if now is not None else datetime.now(timezone.utc)
    step = timedelta(minutes=duration_minutes)

    seen = set()
    slots: List[BookableSlot] = []
    for current in _date_range(start_date, end_date):
        dow = day_of_week(current)
        for window in windows:
            if not window.is_active or window.day_of_week != dow:
                continue
            tz = ZoneInfo(window.timezone)
            cursor, window_end = _window_bounds(current, window)
            while cursor + step <= window_end:
                slot_end = cursor + step
                if (
                    cursor > now
                    and cursor not in seen
                    and not any(b.overlaps(cursor, slot_end) for b in booked)
                ):
                    seen.add(cursor)
                    local_start = cursor.astimezone(tz)
                    local_end = slot_end.astimezone(tz)
                    slots.append(BookableSlot(
                        date=current,
                        start_time=local_start.time(),
                        end_time=local_end.time(),
                        full_datetime=local_start,
                        end_datetime=local_end,
                    ))
                cursor = slot_end

    slots.sort(key=lambda s: (s.date, s.start_time, s.full_datetime.astimezone(timezone.utc)))
    return slots


def group_by_date(slots: Iterable[BookableSlot]) -> List[DaySlots]:
    days: Dict[date, DaySlots] = {}
    for slot in slots:
        if slot.date not in days:
            days[slot.date] = DaySlots(date=slot.date, day_of_week=day_of_week(slot.date))
        days[slot.date].slots.append(slot)
    return [days[d] for d in sorted(days)]


def windows_overlap(a: WeeklyWindow, b: WeeklyWindow) -> bool:
    return (
        a.day_of_week == b.day_of_week
        and a.start_time < b.end_time
        and b.start_time < a.end_time
    )


def find_overlaps(windows: Sequence[WeeklyWindow]) -> List[Tuple[int, int]]:
    """Index pairs of active windows that overlap on the same weekday."""
    active = [(i, w) for i, w in enumerate(windows) if w.is_active]
    pairs = []
    for pos, (i, a) in enumerate(active):
        for j, b in active[pos + 1:]:
            if windows_overlap(a, b):
                pairs.append((i, j))
    return pairs
