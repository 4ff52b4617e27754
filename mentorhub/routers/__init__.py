# mentorhub/routers/__init__.py
from . import auth_router
from . import mentor_router
from . import booking_request_router
from . import session_router
from . import review_router
from . import admin_router
from . import jobs_router
from . import rate_limit_router
from . import availability_router

__all__ = [
    "auth_router",
    "mentor_router",
    "booking_request_router",
    "session_router",
    "review_router",
    "admin_router",
    "jobs_router",
    "rate_limit_router",
    "availability_router",
]
