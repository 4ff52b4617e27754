# mentorhub/utils/client_rate_limiter.py
import time
from typing import Callable, Dict, Tuple


class ClientRateLimiter:
    """
    Advisory, in-memory throttle for repeated calls from one client.

    Keeps action -> (count, reset_at) and resets an entry lazily once its
    window has passed. It only saves obviously repeated round trips; the
    server-side limiter is what actually enforces budgets. Create one per
    client session, never share it between users.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[int, float]] = {}

    def check(self, action: str, max_requests: int, window_seconds: float) -> bool:
        now = self._clock()
        entry = self._entries.get(action)

        if entry is None or now > entry[1]:
            self._entries[action] = (1, now + window_seconds)
            return True

        count, reset_at = entry
        if count >= max_requests:
            return False

        self._entries[action] = (count + 1, reset_at)
        return True

    def reset(self, action: str) -> None:
        self._entries.pop(action, None)
