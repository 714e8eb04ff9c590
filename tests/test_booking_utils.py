"""
tests/test_booking_utils.py
Tests for the booking display helpers: hours, labor cost, currency,
status timeline, countdown and constraint warnings.
"""

from datetime import datetime

import pytest

from cateringhub.modules.bookings import utils


# ── Hours and cost ─────────────────────────────────────────────────────────────

def test_calculate_hours_between_timestamps():
    assert utils.calculate_hours("2026-05-01T08:00:00+00:00", "2026-05-01T14:30:00+00:00") == 6.5


@pytest.mark.parametrize("start,end", [
    (None, "2026-05-01T14:00:00+00:00"),
    ("2026-05-01T08:00:00+00:00", None),
    ("2026-05-01T14:00:00+00:00", "2026-05-01T08:00:00+00:00"),
])
def test_calculate_hours_is_zero_when_incomplete_or_reversed(start, end):
    assert utils.calculate_hours(start, end) == 0.0


def test_timestamps_with_trimmed_fraction_are_parsed():
    # Postgres drops trailing zeros: .123450 is sent as .12345
    parsed = utils.parse_timestamp("2026-05-01T08:00:30.12345+00:00")
    assert parsed.microsecond == 123450
    assert parsed.utcoffset().total_seconds() == 0
    assert utils.calculate_hours("2026-05-01T08:00:00.1+00:00", "2026-05-01T10:00:00.1Z") == 2.0


def test_summarize_shift_hours_counts_each_state_once():
    shifts = [
        {"status": "scheduled", "scheduled_start": "2026-05-01T08:00:00Z", "scheduled_end": "2026-05-01T12:00:00Z"},
        {"status": "checked_in", "actual_start": "2026-05-01T08:05:00Z",
         "scheduled_start": "2026-05-01T08:00:00Z", "scheduled_end": "2026-05-01T10:00:00Z"},
        {"status": "checked_out", "actual_start": "2026-05-01T08:00:00Z", "actual_end": "2026-05-01T11:00:00Z"},
        {"status": "cancelled"},
    ]
    summary = utils.summarize_shift_hours(shifts)
    assert summary["total_shifts"] == 4
    assert summary["scheduled_shifts"] == 1
    assert summary["checked_in_shifts"] == 1
    assert summary["completed_shifts"] == 1
    assert summary["estimated_hours"] == 6.0
    assert summary["actual_hours"] == 3.0


def test_labor_cost_uses_default_rate():
    assert utils.calculate_labor_cost(8) == 1200


def test_format_currency():
    assert utils.format_currency(1234.5) == "₱1,234.50"
    assert utils.format_currency(0) == "₱0.00"
    assert utils.format_currency(None) == "—"


# ── Status lifecycle ───────────────────────────────────────────────────────────

def test_status_transitions():
    assert utils.can_transition("pending", "confirmed")
    assert utils.can_transition("confirmed", "cancelled")
    assert not utils.can_transition("completed", "pending")
    assert not utils.can_transition("pending", "completed")


def test_timeline_for_cancelled_booking_has_two_steps():
    timeline = utils.build_status_timeline({
        "status": "cancelled",
        "created_at": "2026-04-01T00:00:00Z",
        "cancelled_at": "2026-04-02T00:00:00Z",
    })
    assert [step["label"] for step in timeline] == ["Created", "Cancelled"]


def test_timeline_marks_current_step():
    timeline = utils.build_status_timeline({"status": "in_progress", "confirmed_at": "2026-04-02T00:00:00Z"})
    states = {step["label"]: step["status"] for step in timeline}
    assert states == {
        "Created": "completed",
        "Confirmed": "completed",
        "In progress": "current",
        "Completed": "pending",
    }


def test_reassign_and_logistics_frozen_on_terminal_statuses():
    assert utils.can_reassign_booking(True, "confirmed")
    assert not utils.can_reassign_booking(True, "completed")
    assert not utils.can_reassign_booking(False, "pending")
    assert not utils.can_edit_logistics(True, "cancelled")


# ── Countdown ──────────────────────────────────────────────────────────────────

NOW = datetime(2026, 5, 10, 12, 0, 0)


@pytest.mark.parametrize("event_date,event_time,label", [
    ("2026-05-10", "12:30:00", "In 30 minutes"),
    ("2026-05-10", "17:00:00", "In 5 hours"),
    ("2026-05-11", "13:00:00", "Tomorrow"),
    ("2026-05-20", None, "In 9 days"),
    ("2026-05-10", "08:00:00", "Today"),
    ("2026-05-09", "08:00:00", "Yesterday"),
    ("2026-05-01", None, "9 days ago"),
])
def test_event_countdown_labels(event_date, event_time, label):
    assert utils.calculate_event_countdown(event_date, event_time, now=NOW)["label"] == label


# ── Constraint warnings ────────────────────────────────────────────────────────

def test_short_notice_booking_is_flagged():
    violations = utils.check_constraint_violations("2026-05-05", "2026-05-01T09:00:00Z", 7)
    assert len(violations) == 1
    assert violations[0]["type"] == "advance_booking"
    assert violations[0]["message"] == "Booking made with 4 days notice. Minimum required: 7 days."


def test_no_warning_without_advance_requirement():
    assert utils.check_constraint_violations("2026-05-02", "2026-05-01T09:00:00Z", None) == []
