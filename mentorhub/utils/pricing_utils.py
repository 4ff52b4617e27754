# mentorhub/utils/pricing_utils.py
from typing import Any, Dict, Optional, Tuple


def resolve_session_price(services: Optional[Dict[str, Any]], session_type: str) -> Tuple[float, Optional[str]]:
    """
    Picks the price of a session from a mentor's service table.

    The enabled service keyed by `session_type` wins; otherwise the cheapest
    enabled service is used. A mentor with no enabled services is free.
    Returns (price, service name).
    """
    enabled = {
        key: service for key, service in (services or {}).items()
        if isinstance(service, dict) and service.get("enabled", True)
    }
    if not enabled:
        return 0.0, None

    match = enabled.get(session_type)
    if match is None:
        match = min(enabled.values(), key=lambda s: float(s.get("price") or 0))
    return float(match.get("price") or 0), match.get("name")
