# mentorhub/services/__init__.py
from .booking_request_service import BookingRequestService
from .session_service import SessionService
from .rate_limit_service import RateLimitService
from .review_service import ReviewService
from .admin_metrics_service import AdminMetricsService
from .mentor_profile_service import MentorProfileService
from .email_service import EmailService
from .notification_service import NotificationService
from .availability_service import AvailabilityService

__all__ = [
    "BookingRequestService",
    "SessionService",
    "RateLimitService",
    "ReviewService",
    "AdminMetricsService",
    "MentorProfileService",
    "EmailService",
    "NotificationService",
    "AvailabilityService",
]
