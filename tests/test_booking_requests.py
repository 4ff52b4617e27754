from datetime import date, timedelta
from unittest.mock import patch

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import OperationalError

from mentorhub.exceptions import (
    AuthorizationError, InvalidStatusTransitionError, NotFoundError, UpstreamError, ValidationError,
)
from mentorhub.models import BookingRequest, BookingRequestStatus
from mentorhub.schemas import BookingRequestCreate, BookingRequestRespond
from mentorhub.services.booking_request_service import BookingRequestService
from mentorhub.utils.response_enricher import ResponseEnricher

TODAY = date(2025, 1, 1)


def _request(mentor_id, start="09:00", end="09:20", requested_date=date(2025, 1, 10), message=None):
    return BookingRequestCreate(
        mentor_id=mentor_id,
        requested_date=requested_date,
        requested_start_time=start,
        requested_end_time=end,
        message=message,
    )


def _count(db):
    return db.query(BookingRequest).count()


@pytest.mark.parametrize("start,end", [("10:00", "10:00"), ("10:00", "09:30")])
def test_end_not_after_start_is_rejected_without_persisting(db, mentor, student, start, end):
    service = BookingRequestService(db)
    with pytest.raises(ValidationError, match="End time must be after start time"):
        service.create_request(student.id, _request(mentor.id, start, end), today=TODAY)
    assert _count(db) == 0


@pytest.mark.parametrize("end,ok", [("09:14", False), ("09:15", True), ("13:00", True), ("13:01", False)])
def test_duration_bounds(db, mentor, student, end, ok):
    service = BookingRequestService(db)
    if ok:
        request = service.create_request(student.id, _request(mentor.id, "09:00", end), today=TODAY)
        assert request.status == BookingRequestStatus.PENDING.value
    else:
        with pytest.raises(ValidationError):
            service.create_request(student.id, _request(mentor.id, "09:00", end), today=TODAY)
        assert _count(db) == 0


def test_past_date_is_rejected_whatever_the_time(db, mentor, student):
    service = BookingRequestService(db)
    with pytest.raises(ValidationError, match="Cannot request sessions in the past"):
        service.create_request(
            student.id, _request(mentor.id, "23:00", "23:30", requested_date=date(2024, 12, 31)), today=TODAY
        )
    # Today itself is fine
    service.create_request(student.id, _request(mentor.id, requested_date=TODAY), today=TODAY)
    assert _count(db) == 1


def test_unknown_mentor_is_not_found(db, student):
    service = BookingRequestService(db)
    with pytest.raises(NotFoundError):
        service.create_request(student.id, _request(9999), today=TODAY)


def test_requests_can_only_target_mentors(db, student, make_user):
    classmate = make_user("classmate")
    service = BookingRequestService(db)
    with pytest.raises(NotFoundError, match="Mentor not found"):
        service.create_request(student.id, _request(classmate.id), today=TODAY)
    assert _count(db) == 0


def test_store_failure_keeps_driver_message(db, mentor, student):
    service = BookingRequestService(db)
    failure = OperationalError("INSERT INTO booking_requests", {}, Exception("disk full"))
    with patch.object(db, "commit", side_effect=failure):
        with pytest.raises(UpstreamError) as exc_info:
            service.create_request(student.id, _request(mentor.id), today=TODAY)
    assert exc_info.value.message == "Failed to create time request: disk full"
    assert exc_info.value.status_code == 500
    assert _count(db) == 0


def test_request_then_decline_scenario(db, mentor, student):
    service = BookingRequestService(db)
    request = service.create_request(student.id, _request(mentor.id, message="Career chat"), today=TODAY)
    assert request.status == "pending"
    assert request.mentor_profile.full_name == "Maria Mentor"

    # Declining without a reason never reaches the service
    with pytest.raises(PydanticValidationError):
        BookingRequestRespond(status="declined", mentor_response="  ")
    db.refresh(request)
    assert request.status == "pending"

    respond = BookingRequestRespond(status="declined", mentor_response="not available")
    updated = service.respond_to_request(mentor.id, request.id, respond.status, respond.mentor_response)
    assert updated.status == "declined"
    assert updated.mentor_response == "not available"
    assert updated.responded_at is not None


def test_only_pending_requests_can_be_answered(db, mentor, student):
    service = BookingRequestService(db)
    request = service.create_request(student.id, _request(mentor.id), today=TODAY)
    service.respond_to_request(mentor.id, request.id, BookingRequestStatus.APPROVED)

    with pytest.raises(InvalidStatusTransitionError, match="Request is already approved"):
        service.respond_to_request(mentor.id, request.id, BookingRequestStatus.DECLINED, "changed my mind")


def test_only_the_addressed_mentor_can_respond(db, mentor, student, make_mentor):
    other_mentor = make_mentor("other_mentor")
    service = BookingRequestService(db)
    request = service.create_request(student.id, _request(mentor.id), today=TODAY)

    with pytest.raises(AuthorizationError):
        service.respond_to_request(other_mentor.id, request.id, BookingRequestStatus.APPROVED)
    db.refresh(request)
    assert request.status == "pending"


def test_approval_hooks_run_only_on_approval(db, mentor, student):
    approved = []
    service = BookingRequestService(db, approval_hooks=[approved.append])

    first = service.create_request(student.id, _request(mentor.id), today=TODAY)
    second = service.create_request(student.id, _request(mentor.id, "10:00", "11:00"), today=TODAY)
    service.respond_to_request(mentor.id, first.id, BookingRequestStatus.APPROVED)
    service.respond_to_request(mentor.id, second.id, BookingRequestStatus.DECLINED, "busy")

    assert [r.id for r in approved] == [first.id]


def test_delete_rules(db, mentor, student, make_user):
    service = BookingRequestService(db)
    stranger = make_user("stranger")

    pending = service.create_request(student.id, _request(mentor.id), today=TODAY)
    answered = service.create_request(student.id, _request(mentor.id, "10:00", "10:30"), today=TODAY)
    service.respond_to_request(mentor.id, answered.id, BookingRequestStatus.APPROVED)

    with pytest.raises(AuthorizationError, match="Unauthorized"):
        service.delete_request(stranger.id, pending.id)
    with pytest.raises(ValidationError, match="Only pending requests can be deleted"):
        service.delete_request(student.id, answered.id)
    with pytest.raises(NotFoundError, match="Request not found"):
        service.delete_request(student.id, "missing-id")

    pending_id = pending.id
    service.delete_request(student.id, pending_id)
    assert db.query(BookingRequest).filter(BookingRequest.id == pending_id).first() is None
    assert _count(db) == 1


def test_legacy_rejected_status_reads_as_declined(db, mentor, student):
    db.add(BookingRequest(
        mentee_id=student.id,
        mentor_id=mentor.id,
        requested_date=TODAY,
        requested_start_time="09:00",
        requested_end_time="10:00",
        status="rejected",
    ))
    db.commit()
    service = BookingRequestService(db)

    declined = service.get_requests_for_mentor(mentor.id, BookingRequestStatus.DECLINED)
    assert len(declined) == 1

    assert ResponseEnricher.enrich_requests(declined)[0]["status"] == "declined"


def test_available_mentors_come_from_past_bookings(db, mentor, student, make_mentor, make_booking):
    unrelated = make_mentor("unrelated")
    make_booking(mentor, student)
    make_booking(mentor, student, session_time=None)

    mentors = BookingRequestService(db).get_available_mentors(student.id)
    assert [m.id for m in mentors] == [mentor.id]
    assert unrelated.id not in [m.id for m in mentors]


# --- HTTP surface ---

def _payload(mentor_id, start="09:00", end="10:00", days_ahead=7):
    return {
        "mentor_id": mentor_id,
        "requested_date": (date.today() + timedelta(days=days_ahead)).isoformat(),
        "requested_start_time": start,
        "requested_end_time": end,
        "message": "Can we talk about interviews?",
    }


def test_create_request_endpoint(client, mentor, student, auth_headers):
    response = client.post("/api/booking-requests", json=_payload(mentor.id), headers=auth_headers(student))
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "pending"
    assert body["data"]["mentor"]["full_name"] == "Maria Mentor"
    assert body["data"]["mentor"]["expertise"] == ["python", "career"]


def test_create_request_requires_auth(client, mentor):
    response = client.post("/api/booking-requests", json=_payload(mentor.id))
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Unauthorized"}


def test_create_request_missing_fields(client, student, auth_headers):
    response = client.post("/api/booking-requests", json={"message": "hi"}, headers=auth_headers(student))
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"


def test_create_request_bad_time_format(client, mentor, student, auth_headers):
    response = client.post(
        "/api/booking-requests", json=_payload(mentor.id, start="9am"), headers=auth_headers(student)
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Time must be in HH:MM format"


def test_decline_without_reason_is_rejected_over_http(client, db, mentor, student, auth_headers):
    created = client.post("/api/booking-requests", json=_payload(mentor.id), headers=auth_headers(student)).json()
    request_id = created["data"]["id"]

    response = client.put(
        f"/api/booking-requests/{request_id}/respond",
        json={"status": "declined", "mentor_response": ""},
        headers=auth_headers(mentor),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Please provide a reason when declining a request"
    assert db.query(BookingRequest).filter(BookingRequest.id == request_id).one().status == "pending"


def test_mentor_and_mentee_listings(client, mentor, student, auth_headers):
    client.post("/api/booking-requests", json=_payload(mentor.id), headers=auth_headers(student))

    mine = client.get("/api/booking-requests/mine", headers=auth_headers(student)).json()
    incoming = client.get("/api/booking-requests/incoming", headers=auth_headers(mentor)).json()
    approved = client.get(
        "/api/booking-requests/incoming", params={"status": "approved"}, headers=auth_headers(mentor)
    ).json()

    assert len(mine["data"]) == 1
    assert len(incoming["data"]) == 1
    assert approved["data"] == []


def test_delete_by_stranger_is_forbidden(client, mentor, student, make_user, auth_headers):
    created = client.post("/api/booking-requests", json=_payload(mentor.id), headers=auth_headers(student)).json()
    stranger = make_user("stranger")

    response = client.delete(f"/api/booking-requests/{created['data']['id']}", headers=auth_headers(stranger))
    assert response.status_code == 403
    assert response.json()["error"] == "Unauthorized"

    response = client.delete(f"/api/booking-requests/{created['data']['id']}", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["success"] is True
