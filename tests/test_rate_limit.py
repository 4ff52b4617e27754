from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from mentorhub.config import Settings
from mentorhub.exceptions import RateLimitExceededError, ValidationError
from mentorhub.services.rate_limit_service import RateLimitService, rate_limit_identity
from mentorhub.utils.client_rate_limiter import ClientRateLimiter

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_identity_prefers_user_over_ip():
    assert rate_limit_identity(7, "10.0.0.1") == "user:7"
    assert rate_limit_identity(None, "10.0.0.1") == "ip:10.0.0.1"


def test_call_after_budget_is_rejected_until_window_elapses(db, student):
    service = RateLimitService(db)
    # review_create allows 3 per 60 minutes
    results = [service.check("review_create", user_id=student.id, now=NOW + timedelta(minutes=i)) for i in range(3)]
    assert all(r.allowed for r in results)
    assert [r.remaining for r in results] == [2, 1, 0]

    blocked = service.check("review_create", user_id=student.id, now=NOW + timedelta(minutes=10))
    assert blocked.allowed is False
    assert blocked.current_count == 3
    assert blocked.retry_after_seconds == 50 * 60
    assert blocked.message == "Rate limit exceeded. Please try again in 50 minutes."

    after_window = service.check("review_create", user_id=student.id, now=NOW + timedelta(minutes=60))
    assert after_window.allowed is True
    assert after_window.current_count == 1


def test_budgets_are_per_identity_and_action(db, student, make_user):
    other = make_user("other")
    service = RateLimitService(db)
    for _ in range(3):
        service.check("review_create", user_id=student.id, now=NOW)

    assert service.check("review_create", user_id=student.id, now=NOW).allowed is False
    assert service.check("review_create", user_id=other.id, now=NOW).allowed is True
    assert service.check("booking_create", user_id=student.id, now=NOW).allowed is True
    assert service.check("review_create", ip_address="10.0.0.1", now=NOW).allowed is True


def test_enforce_raises_when_exhausted(db, student):
    service = RateLimitService(db)
    for _ in range(3):
        service.enforce("review_create", user_id=student.id, now=NOW)
    with pytest.raises(RateLimitExceededError) as exc_info:
        service.enforce("review_create", user_id=student.id, now=NOW)
    assert exc_info.value.retry_after_seconds == 3600


def test_unknown_action(db):
    with pytest.raises(ValidationError):
        RateLimitService(db).check("teleport", user_id=1)


def test_status_does_not_count(db, student):
    service = RateLimitService(db)
    service.check("booking_create", user_id=student.id, now=NOW)

    status = service.get_status("booking_create", student.id, now=NOW + timedelta(minutes=5))
    again = service.get_status("booking_create", student.id, now=NOW + timedelta(minutes=5))
    assert status.current_count == again.current_count == 1
    assert status.remaining == 4
    assert status.resets_at == NOW + timedelta(minutes=60)

    expired = service.get_status("booking_create", student.id, now=NOW + timedelta(minutes=61))
    assert expired.current_count == 0


def _broken_db():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
    return db


def test_store_failure_allows_by_default():
    result = RateLimitService(_broken_db(), settings=Settings(RATE_LIMIT_ON_UPSTREAM_ERROR="allow")).check(
        "booking_create", user_id=1
    )
    assert result.allowed is True
    assert result.remaining == 5


def test_store_failure_denies_when_configured():
    db = _broken_db()
    result = RateLimitService(db, settings=Settings(RATE_LIMIT_ON_UPSTREAM_ERROR="deny")).check(
        "booking_create", user_id=1
    )
    assert result.allowed is False
    assert result.retry_after_seconds == 60
    db.rollback.assert_called_once()


def test_check_endpoint_for_anonymous_caller(client):
    headers = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}
    for _ in range(3):
        response = client.post("/api/rate-limit/check", json={"action": "review_create"}, headers=headers)
        assert response.json()["data"]["allowed"] is True

    response = client.post("/api/rate-limit/check", json={"action": "review_create"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["allowed"] is False

    response = client.post("/api/rate-limit/check", json={"action": "teleport"}, headers=headers)
    assert response.status_code == 400


def test_status_endpoint(client, student, auth_headers):
    client.post("/api/rate-limit/check", json={"action": "message_send"}, headers=auth_headers(student))
    response = client.get("/api/rate-limit/status/message_send", headers=auth_headers(student))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["current_count"] == 1
    assert data["max_requests"] == 30
    assert data["remaining"] == 29


# --- client side ---

class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_client_limiter_blocks_then_resets_lazily():
    clock = FakeClock()
    limiter = ClientRateLimiter(clock=clock)

    assert [limiter.check("booking_create", 2, 60) for _ in range(3)] == [True, True, False]

    clock.now += 61
    assert limiter.check("booking_create", 2, 60) is True


def test_client_limiters_are_independent():
    first, second = ClientRateLimiter(), ClientRateLimiter()
    assert first.check("review_create", 1, 60) is True
    assert first.check("review_create", 1, 60) is False
    assert second.check("review_create", 1, 60) is True


def test_client_limiter_reset():
    limiter = ClientRateLimiter()
    limiter.check("api_call", 1, 60)
    limiter.reset("api_call")
    assert limiter.check("api_call", 1, 60) is True
