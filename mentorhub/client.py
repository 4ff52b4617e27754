# mentorhub/client.py
"""
HTTP client for the MentorHub API.

Every call returns the API envelope as a dict (`success`, `message`, `error`,
`data`). Mutating calls are first checked against the client's own
ClientRateLimiter; a call it throttles returns a failed envelope without
touching the network. The server still enforces the real budgets.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

import httpx

from .constants import ErrorMessages, RATE_LIMITS, RateLimitAction
from .utils.client_rate_limiter import ClientRateLimiter

logger = logging.getLogger(__name__)


class MentorHubClient:
    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        rate_limiter: Optional[ClientRateLimiter] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.access_token = access_token
        self.rate_limiter = rate_limiter or ClientRateLimiter()
        self.http = http or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "MentorHubClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def call(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        action: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Sends one request; `action` names the rate limit budget it spends locally."""
        if action is not None:
            max_requests, window_minutes = RATE_LIMITS[action]
            if not self.rate_limiter.check(action, max_requests, window_minutes * 60):
                logger.info(f"Throttled {method} {path} locally ({action})")
                return {"success": False, "error": ErrorMessages.CLIENT_THROTTLED}

        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            response = self.http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            return {"success": False, "error": f"Request failed: {e}"}

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            if response.is_success:
                return {"success": True, "data": body}
            return {"success": False, "error": response.text or response.reason_phrase}
        return body

    # --- Booking requests ---

    def create_booking_request(
        self,
        mentor_id: int,
        requested_date: date,
        start_time: str,
        end_time: str,
        message: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "mentor_id": mentor_id,
            "requested_date": requested_date.isoformat(),
            "requested_start_time": start_time,
            "requested_end_time": end_time,
            "message": message,
        }
        return self.call("POST", "/api/booking-requests", json=payload, action=RateLimitAction.BOOKING_REQUEST)

    def list_my_requests(self) -> Dict[str, Any]:
        return self.call("GET", "/api/booking-requests/mine")

    def list_incoming_requests(self, status: Optional[str] = None) -> Dict[str, Any]:
        params = {"status": status} if status else None
        return self.call("GET", "/api/booking-requests/incoming", params=params)

    def respond_to_request(self, request_id: str, status: str, mentor_response: Optional[str] = None) -> Dict[str, Any]:
        return self.call(
            "PUT",
            f"/api/booking-requests/{request_id}/respond",
            json={"status": status, "mentor_response": mentor_response},
            action=RateLimitAction.API_CALL,
        )

    def delete_request(self, request_id: str) -> Dict[str, Any]:
        return self.call("DELETE", f"/api/booking-requests/{request_id}", action=RateLimitAction.API_CALL)

    # --- Sessions ---

    def book_session(
        self,
        mentor_id: int,
        session_time: datetime,
        duration: int,
        session_type: str,
        message: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "mentor_id": mentor_id,
            "session_time": session_time.isoformat(),
            "duration": duration,
            "session_type": session_type,
            "message": message,
        }
        return self.call("POST", "/functions/book-session", json=payload, action=RateLimitAction.BOOKING_CREATE)

    def manage_session(self, session_id: str, action: str, payment_status: Optional[str] = None) -> Dict[str, Any]:
        payload = {"session_id": session_id, "action": action}
        if payment_status is not None:
            payload["payment_status"] = payment_status
        return self.call("POST", "/functions/manage-session", json=payload, action=RateLimitAction.API_CALL)

    # --- Reviews ---

    def submit_review(self, booking_id: str, rating: int, comment: Optional[str] = None) -> Dict[str, Any]:
        return self.call(
            "POST",
            "/api/reviews",
            json={"booking_id": booking_id, "rating": rating, "comment": comment},
            action=RateLimitAction.REVIEW_CREATE,
        )
