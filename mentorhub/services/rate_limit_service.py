# mentorhub/services/rate_limit_service.py
"""
Server-side rate limiting.

Fixed window counters per (identity, action) kept in the `rate_limit_counters`
table. The identity is the user id for signed-in callers and the client IP
otherwise. When the counter store fails, the answer comes from the
RATE_LIMIT_ON_UPSTREAM_ERROR setting instead of an exception.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..constants import ErrorMessages, RATE_LIMITS
from ..exceptions import RateLimitExceededError, ValidationError
from ..models import RateLimitCounter
from ..schemas import RateLimitResult, RateLimitStatus
from ..utils.time_utils import as_utc, utcnow

logger = logging.getLogger(__name__)


def rate_limit_identity(user_id: Optional[int] = None, ip_address: Optional[str] = None) -> str:
    if user_id is not None:
        return f"user:{user_id}"
    return f"ip:{ip_address or 'unknown'}"


class RateLimitService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def _budget(self, action: str) -> Tuple[int, int]:
        budget = RATE_LIMITS.get(action)
        if budget is None:
            raise ValidationError(f"Unknown rate limit action: {action}")
        return budget

    def check(
        self,
        action: str,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RateLimitResult:
        """Counts one call of `action` and says whether it is allowed."""
        max_requests, window_minutes = self._budget(action)
        identity = rate_limit_identity(user_id, ip_address)
        now = as_utc(now) if now else utcnow()

        try:
            return self._consume(identity, action, max_requests, window_minutes, now)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Rate limit check failed for {identity} / {action}: {e}")
            return self._upstream_error_result(max_requests, window_minutes)

    def enforce(
        self,
        action: str,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RateLimitResult:
        """Like check, but raises RateLimitExceededError when the call is not allowed."""
        result = self.check(action, user_id, ip_address, now)
        if not result.allowed:
            retry_after = result.retry_after_seconds or 60
            raise RateLimitExceededError(
                result.message or ErrorMessages.RATE_LIMITED.format(minutes=math.ceil(retry_after / 60)),
                retry_after_seconds=retry_after,
            )
        return result

    def get_status(self, action: str, user_id: int, now: Optional[datetime] = None) -> RateLimitStatus:
        """Current usage of an action without counting a call."""
        max_requests, window_minutes = self._budget(action)
        now = as_utc(now) if now else utcnow()
        window = timedelta(minutes=window_minutes)

        row = self.db.query(RateLimitCounter).filter(
            RateLimitCounter.identity == rate_limit_identity(user_id),
            RateLimitCounter.action_type == action,
        ).first()

        if row is None or now >= as_utc(row.window_start) + window:
            current, resets_at = 0, now + window
        else:
            current, resets_at = row.count, as_utc(row.window_start) + window

        return RateLimitStatus(
            action_type=action,
            current_count=current,
            max_requests=max_requests,
            remaining=max(max_requests - current, 0),
            time_window_minutes=window_minutes,
            resets_at=resets_at,
        )

    def _consume(self, identity: str, action: str, max_requests: int, window_minutes: int, now: datetime) -> RateLimitResult:
        window = timedelta(minutes=window_minutes)

        row = self.db.query(RateLimitCounter).filter(
            RateLimitCounter.identity == identity,
            RateLimitCounter.action_type == action,
        ).with_for_update().first()
        if row is None:
            row = RateLimitCounter(identity=identity, action_type=action, window_start=now, count=0)
            self.db.add(row)

        window_end = as_utc(row.window_start) + window
        # Reset window if expired
        if now >= window_end:
            row.window_start = now
            row.count = 0
            window_end = now + window

        if row.count >= max_requests:
            self.db.commit()
            retry_after = max(int((window_end - now).total_seconds()), 1)
            return RateLimitResult(
                allowed=False,
                current_count=row.count,
                max_requests=max_requests,
                time_window_minutes=window_minutes,
                remaining=0,
                retry_after_seconds=retry_after,
                message=ErrorMessages.RATE_LIMITED.format(minutes=math.ceil(retry_after / 60)),
            )

        row.count += 1
        self.db.commit()
        return RateLimitResult(
            allowed=True,
            current_count=row.count,
            max_requests=max_requests,
            time_window_minutes=window_minutes,
            remaining=max_requests - row.count,
        )

    def _upstream_error_result(self, max_requests: int, window_minutes: int) -> RateLimitResult:
        if self.settings.RATE_LIMIT_ON_UPSTREAM_ERROR == "allow":
            return RateLimitResult(
                allowed=True,
                current_count=0,
                max_requests=max_requests,
                time_window_minutes=window_minutes,
                remaining=max_requests,
            )
        return RateLimitResult(
            allowed=False,
            current_count=0,
            max_requests=max_requests,
            time_window_minutes=window_minutes,
            remaining=0,
            retry_after_seconds=60,
            message=ErrorMessages.RATE_LIMIT_UNAVAILABLE,
        )
