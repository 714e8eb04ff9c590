"""
Display helpers for bookings: status timeline, event countdown, constraint
warnings, hours and labor cost. Pure functions over rows already fetched.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import TypeAdapter

BOOKING_STATUSES = ["pending", "confirmed", "in_progress", "completed", "cancelled"]
TERMINAL_STATUSES = {"completed", "cancelled"}

# Allowed forward moves; cancellation is possible from any non-terminal status
STATUS_TRANSITIONS: Dict[str, List[str]] = {
    "pending": ["confirmed", "cancelled"],
    "confirmed": ["in_progress", "cancelled"],
    "in_progress": ["completed", "cancelled"],
    "completed": [],
    "cancelled": [],
}

# Column stamped when a booking enters the status
STATUS_TIMESTAMP_FIELDS = {
    "confirmed": "confirmed_at",
    "completed": "completed_at",
    "cancelled": "cancelled_at",
}

SECONDS_PER_DAY = 86400

# Postgres trims trailing zeros from fractional seconds; pydantic accepts any precision
_TIMESTAMP = TypeAdapter(datetime)
_TIME = TypeAdapter(time)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return _TIMESTAMP.validate_python(str(value))


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def can_transition(current: str, new: str) -> bool:
    return new in STATUS_TRANSITIONS.get(current, [])


def calculate_hours(start: Union[str, datetime, None], end: Union[str, datetime, None]) -> float:
    """Hours between two timestamps, 0 when either is missing or end is not after start."""
    start_dt = parse_timestamp(start)
    end_dt = parse_timestamp(end)
    if start_dt is None or end_dt is None:
        return 0.0
    seconds = (end_dt - start_dt).total_seconds()
    return max(seconds, 0) / 3600


def summarize_shift_hours(shifts: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Counts per shift state plus scheduled and worked hours for a booking."""
    total = scheduled = checked_in = completed = 0
    estimated_hours = actual_hours = 0.0
    for shift in shifts:
        total += 1
        if shift.get("actual_end"):
            completed += 1
        elif shift.get("actual_start"):
            checked_in += 1
        elif shift.get("status") != "cancelled":
            scheduled += 1
        estimated_hours += calculate_hours(shift.get("scheduled_start"), shift.get("scheduled_end"))
        actual_hours += calculate_hours(shift.get("actual_start"), shift.get("actual_end"))
    return {
        "total_shifts": total,
        "scheduled_shifts": scheduled,
        "checked_in_shifts": checked_in,
        "completed_shifts": completed,
        "estimated_hours": round(estimated_hours, 2),
        "actual_hours": round(actual_hours, 2),
    }


def calculate_labor_cost(estimated_hours: float, average_hourly_rate: float = 150) -> float:
    return estimated_hours * average_hourly_rate


def format_currency(amount: Optional[float]) -> str:
    if amount is None:
        return "—"
    sign = "-" if amount < 0 else ""
    return f"{sign}₱{abs(amount):,.2f}"


def format_status(status: str) -> str:
    return status.replace("_", " ", 1)


def status_badge_variant(status: str) -> str:
    return {
        "confirmed": "default",
        "in_progress": "secondary",
        "completed": "outline",
        "cancelled": "destructive",
    }.get(status, "outline")


def build_status_timeline(booking: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Created -> Confirmed -> In progress -> Completed, or Created -> Cancelled."""
    current = booking.get("status")
    confirmed_at = booking.get("confirmed_at")
    completed_at = booking.get("completed_at")
    cancelled_at = booking.get("cancelled_at")

    created = {
        "label": "Created",
        "timestamp": booking.get("created_at"),
        "status": "completed",
        "description": "Booking request received",
    }

    if cancelled_at or current == "cancelled":
        return [
            created,
            {
                "label": "Cancelled",
                "timestamp": cancelled_at,
                "status": "completed",
                "description": "Booking was cancelled",
            },
        ]

    if confirmed_at:
        confirmed_state = "completed"
    elif current in ("confirmed", "in_progress", "completed"):
        confirmed_state = "current"
    else:
        confirmed_state = "pending"

    if current == "in_progress":
        in_progress_state = "current"
    elif current == "completed":
        in_progress_state = "completed"
    else:
        in_progress_state = "pending"

    if completed_at:
        completed_state = "completed"
    elif current == "completed":
        completed_state = "current"
    else:
        completed_state = "pending"

    return [
        created,
        {
            "label": "Confirmed",
            "timestamp": confirmed_at,
            "status": confirmed_state,
            "description": "Booking confirmed by provider",
        },
        {
            "label": "In progress",
            "timestamp": None,
            "status": in_progress_state,
            "description": "Event is currently happening",
        },
        {
            "label": "Completed",
            "timestamp": completed_at,
            "status": completed_state,
            "description": "Event successfully completed",
        },
    ]


def calculate_event_countdown(
    event_date: Union[str, date],
    event_time: Union[str, time, None] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Relative label for the event start ("Tomorrow", "In 3 hours", "2 days ago")."""
    day = parse_date(event_date)
    if isinstance(event_time, str) and event_time:
        event_time = _TIME.validate_python(event_time)
    event_dt = datetime.combine(day, event_time or time(0, 0))
    now = now or datetime.now()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)

    if event_dt < now:
        days_since = int((now - event_dt).total_seconds() // SECONDS_PER_DAY)
        if days_since == 0:
            label = "Today"
        elif days_since == 1:
            label = "Yesterday"
        else:
            label = f"{days_since} days ago"
        return {"is_past": True, "is_future": False, "days": days_since, "hours": 0, "minutes": 0, "label": label}

    seconds = int((event_dt - now).total_seconds())
    days_until = seconds // SECONDS_PER_DAY
    hours_until = (seconds // 3600) % 24
    minutes_until = (seconds // 60) % 60
    if days_until == 0:
        label = f"In {minutes_until} minutes" if hours_until == 0 else f"In {hours_until} hours"
    elif days_until == 1:
        label = "Tomorrow"
    else:
        label = f"In {days_until} days"
    return {
        "is_past": False,
        "is_future": True,
        "days": days_until,
        "hours": hours_until,
        "minutes": minutes_until,
        "label": label,
    }


def can_reassign_booking(can_assign: bool, status: str) -> bool:
    return can_assign and status not in TERMINAL_STATUSES


def can_edit_logistics(can_edit: bool, status: str) -> bool:
    return can_edit and status not in TERMINAL_STATUSES


def check_constraint_violations(
    event_date: Union[str, date],
    created_at: Union[str, datetime],
    advance_booking_days: Optional[int],
) -> List[Dict[str, str]]:
    violations = []
    if advance_booking_days:
        created = parse_timestamp(created_at)
        days_in_advance = (parse_date(event_date) - created.date()).days
        if days_in_advance < advance_booking_days:
            violations.append({
                "type": "advance_booking",
                "severity": "warning",
                "message": (
                    f"Booking made with {days_in_advance} days notice. "
                    f"Minimum required: {advance_booking_days} days."
                ),
            })
    return violations
