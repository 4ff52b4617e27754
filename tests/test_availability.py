from datetime import date, datetime, timezone

import pytest

from mentorhub.exceptions import AuthorizationError
from mentorhub.models import Booking, SessionStatus
from mentorhub.schemas import AvailabilitySlotCreate, BlockedDateCreate
from mentorhub.services.availability_service import AvailabilityService
from mentorhub.services.session_service import SessionService
from mentorhub.utils.time_utils import day_of_week

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


def _at(day, hour, minute=0):
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def _weekly(day, start, end):
    return AvailabilitySlotCreate(day_of_week=day_of_week(day), start_time=start, end_time=end)


def _one_off(day, start, end):
    return AvailabilitySlotCreate(is_recurring=False, specific_date=day, start_time=start, end_time=end)


def _times(slots):
    return [(s.time, s.available) for s in slots]


def test_day_of_week_counts_from_sunday():
    assert day_of_week(date(2030, 1, 6)) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2030, 1, 12)) == 6


def test_slots_every_half_hour_with_bookings_marked(db, mentor, student, make_booking):
    service = AvailabilityService(db)
    service.add_slot(mentor.id, _weekly(MONDAY, "09:00", "11:00"))
    make_booking(mentor, student, session_time=_at(MONDAY, 9, 30), duration=30)
    make_booking(mentor, student, session_time=_at(MONDAY, 10, 0), duration=60, status=SessionStatus.CANCELLED)

    slots = service.get_available_time_slots(mentor.id, MONDAY, duration=60)

    assert _times(slots) == [("09:00", False), ("09:30", False), ("10:00", True)]
    assert service.get_available_time_slots(mentor.id, TUESDAY) == []


def test_one_off_and_weekly_slots_merge_without_duplicates(db, mentor):
    service = AvailabilityService(db)
    service.add_slot(mentor.id, _weekly(MONDAY, "09:00", "11:00"))
    service.add_slot(mentor.id, _one_off(MONDAY, "10:00", "12:00"))

    slots = service.get_available_time_slots(mentor.id, MONDAY, duration=60)

    assert [s.time for s in slots] == ["09:00", "09:30", "10:00", "10:30", "11:00"]
    assert all(s.available for s in slots)


def test_availability_range_lists_each_kind(db, mentor):
    service = AvailabilityService(db)
    service.add_slot(mentor.id, _weekly(MONDAY, "09:00", "11:00"))
    service.add_slot(mentor.id, _one_off(TUESDAY, "14:00", "15:00"))
    service.add_slot(mentor.id, _one_off(date(2030, 3, 1), "14:00", "15:00"))
    service.block_date(mentor.id, BlockedDateCreate(date=MONDAY, reason="Holiday"))

    availability = service.get_mentor_availability(mentor.id, MONDAY, date(2030, 1, 31))

    assert len(availability.recurring_slots) == 1
    assert [s.specific_date for s in availability.specific_slots] == [TUESDAY]
    assert [(b.date, b.reason) for b in availability.blocked_dates] == [(MONDAY, "Holiday")]


def test_blocked_date_has_no_slots_and_refuses_sessions(db, mentor):
    service = AvailabilityService(db)
    service.add_slot(mentor.id, _weekly(MONDAY, "09:00", "17:00"))
    service.block_date(mentor.id, BlockedDateCreate(date=MONDAY))

    assert service.get_available_time_slots(mentor.id, MONDAY) == []
    assert service.is_within_availability(mentor.id, _at(MONDAY, 10), 60) is False


def test_blocked_date_applies_without_declared_slots(db, mentor):
    service = AvailabilityService(db)
    assert service.is_within_availability(mentor.id, _at(MONDAY, 3), 60) is True

    service.block_date(mentor.id, BlockedDateCreate(date=MONDAY))
    assert service.is_within_availability(mentor.id, _at(MONDAY, 3), 60) is False
    assert SessionService(db).is_mentor_available(mentor.id, _at(MONDAY, 3), 60) is False


@pytest.mark.parametrize("start,duration,ok", [
    (_at(MONDAY, 9), 60, True),
    (_at(MONDAY, 16), 60, True),
    (_at(MONDAY, 16, 30), 60, False),
    (_at(MONDAY, 8, 30), 60, False),
    (_at(TUESDAY, 10), 60, False),
])
def test_declared_slots_bound_sessions(db, mentor, start, duration, ok):
    service = AvailabilityService(db)
    service.add_slot(mentor.id, _weekly(MONDAY, "09:00", "17:00"))
    assert service.is_within_availability(mentor.id, start, duration) is ok


def test_delete_slot_only_by_owner(db, mentor, make_mentor):
    service = AvailabilityService(db)
    other = make_mentor("other_mentor")
    slot = service.add_slot(mentor.id, _weekly(MONDAY, "09:00", "11:00"))

    with pytest.raises(AuthorizationError, match="Unauthorized"):
        service.delete_slot(other.id, slot.id)
    service.delete_slot(mentor.id, slot.id)
    assert service.get_available_time_slots(mentor.id, MONDAY) == []


# --- HTTP ---

def _book(client, headers, mentor_id, session_time):
    return client.post("/functions/book-session", json={
        "mentor_id": mentor_id,
        "session_time": session_time.isoformat(),
        "duration": 60,
        "session_type": "oneOnOneSession",
    }, headers=headers)


def test_mentor_manages_calendar_and_bookings_follow_it(client, db, mentor, student, auth_headers):
    response = client.post(
        f"/api/mentors/{mentor.id}/availability",
        json={"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
        headers=auth_headers(mentor),
    )
    assert response.status_code == 201
    assert response.json()["data"]["is_recurring"] is True

    outside = _book(client, auth_headers(student), mentor.id, _at(MONDAY, 13))
    assert outside.status_code == 409
    assert outside.json()["error"] == "Mentor is not available at this time. Please choose another time slot."

    assert _book(client, auth_headers(student), mentor.id, _at(MONDAY, 10)).status_code == 201

    response = client.get(f"/api/mentors/{mentor.id}/available-slots", params={"date": "2030-01-07", "duration": 60})
    assert response.status_code == 200
    assert [(s["time"], s["available"]) for s in response.json()["data"]] == [
        ("09:00", True), ("09:30", False), ("10:00", False), ("10:30", False), ("11:00", True),
    ]


def test_blocking_a_date_over_http(client, db, mentor, student, auth_headers):
    headers = auth_headers(mentor)
    response = client.post(f"/api/mentors/{mentor.id}/blocked-dates", json={"date": "2030-01-07"}, headers=headers)
    assert response.status_code == 201

    again = client.post(f"/api/mentors/{mentor.id}/blocked-dates", json={"date": "2030-01-07"}, headers=headers)
    assert again.status_code == 409
    assert again.json()["error"] == "Date is already blocked"

    assert _book(client, auth_headers(student), mentor.id, _at(MONDAY, 10)).status_code == 409
    assert db.query(Booking).count() == 0

    response = client.get(f"/api/mentors/{mentor.id}/availability", params={
        "start_date": "2030-01-01", "end_date": "2030-01-31",
    })
    assert [b["date"] for b in response.json()["data"]["blocked_dates"]] == ["2030-01-07"]

    assert client.delete(f"/api/mentors/{mentor.id}/blocked-dates/2030-01-07", headers=headers).status_code == 200
    assert _book(client, auth_headers(student), mentor.id, _at(MONDAY, 10)).status_code == 201


def test_only_the_mentor_edits_their_calendar(client, mentor, student, auth_headers):
    response = client.post(
        f"/api/mentors/{mentor.id}/availability",
        json={"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
        headers=auth_headers(student),
    )
    assert response.status_code == 403


@pytest.mark.parametrize("payload,error", [
    ({"start_time": "09:00", "end_time": "12:00"}, "Recurring slots need a day_of_week"),
    ({"is_recurring": False, "start_time": "09:00", "end_time": "12:00"}, "One-off slots need a specific_date"),
    ({"day_of_week": 1, "start_time": "12:00", "end_time": "09:00"}, "End time must be after start time"),
    ({"day_of_week": 1, "start_time": "9am", "end_time": "12:00"}, "Time must be in HH:MM format"),
])
def test_invalid_slots_are_rejected(client, mentor, auth_headers, payload, error):
    response = client.post(f"/api/mentors/{mentor.id}/availability", json=payload, headers=auth_headers(mentor))
    assert response.status_code == 400
    assert response.json()["error"] == error
