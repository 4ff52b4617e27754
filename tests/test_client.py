import json
from datetime import date, datetime, timezone

import httpx
import respx

from mentorhub.client import MentorHubClient
from mentorhub.utils.client_rate_limiter import ClientRateLimiter

BASE_URL = "https://api.mentorhub.test"


@respx.mock
def test_book_session_sends_payload_and_token():
    route = respx.post(f"{BASE_URL}/functions/book-session").respond(
        201, json={"success": True, "data": {"id": "abc", "status": "pending"}}
    )
    with MentorHubClient(BASE_URL, access_token="token-123") as client:
        result = client.book_session(7, datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc), 60, "oneOnOneSession")

    assert result == {"success": True, "data": {"id": "abc", "status": "pending"}}
    request = route.calls[0].request
    assert request.headers["Authorization"] == "Bearer token-123"
    assert json.loads(request.content) == {
        "mentor_id": 7,
        "session_time": "2025-01-10T09:00:00+00:00",
        "duration": 60,
        "session_type": "oneOnOneSession",
        "message": None,
    }


@respx.mock
def test_error_envelope_is_returned_as_is():
    respx.post(f"{BASE_URL}/functions/manage-session").respond(
        403, json={"success": False, "error": "Only mentors can confirm sessions"}
    )
    with MentorHubClient(BASE_URL) as client:
        result = client.manage_session("abc", "confirm")
    assert result == {"success": False, "error": "Only mentors can confirm sessions"}


@respx.mock
def test_locally_throttled_calls_never_hit_the_network():
    route = respx.post(f"{BASE_URL}/api/reviews").respond(201, json={"success": True})
    with MentorHubClient(BASE_URL) as client:
        results = [client.submit_review("abc", 5) for _ in range(4)]

    # review_create allows three per window
    assert [r["success"] for r in results] == [True, True, True, False]
    assert results[-1]["error"] == "Too many requests. Please slow down."
    assert route.call_count == 3


@respx.mock
def test_each_client_has_its_own_limiter():
    respx.post(f"{BASE_URL}/api/reviews").respond(201, json={"success": True})
    first, second = MentorHubClient(BASE_URL), MentorHubClient(BASE_URL)
    for _ in range(3):
        first.submit_review("abc", 5)

    assert first.submit_review("abc", 5)["success"] is False
    assert second.submit_review("abc", 5)["success"] is True
    assert first.rate_limiter is not second.rate_limiter
    first.close()
    second.close()


@respx.mock
def test_shared_limiter_can_be_passed_in():
    respx.post(f"{BASE_URL}/api/booking-requests").respond(201, json={"success": True})
    limiter = ClientRateLimiter()
    with MentorHubClient(BASE_URL, rate_limiter=limiter) as client:
        client.create_booking_request(7, date(2025, 1, 10), "09:00", "09:20")
    assert limiter.check("booking_request", 1, 60) is False


@respx.mock
def test_reads_are_not_throttled():
    route = respx.get(f"{BASE_URL}/api/booking-requests/incoming").respond(200, json={"success": True, "data": []})
    with MentorHubClient(BASE_URL) as client:
        for _ in range(100):
            client.list_incoming_requests(status="pending")
    assert route.call_count == 100
    assert route.calls[0].request.url.params["status"] == "pending"


@respx.mock
def test_non_json_failure():
    respx.delete(f"{BASE_URL}/api/booking-requests/abc").respond(502, text="Bad gateway")
    with MentorHubClient(BASE_URL) as client:
        result = client.delete_request("abc")
    assert result == {"success": False, "error": "Bad gateway"}


@respx.mock
def test_transport_error_is_reported_not_raised():
    respx.put(f"{BASE_URL}/api/booking-requests/abc/respond").mock(side_effect=httpx.ConnectError("refused"))
    with MentorHubClient(BASE_URL) as client:
        result = client.respond_to_request("abc", "approved")
    assert result["success"] is False
    assert "refused" in result["error"]
