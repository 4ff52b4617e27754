# mentorhub/dependencies/service_dependencies.py
from fastapi import Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..services.booking_request_service import BookingRequestService
from ..services.session_service import SessionService
from ..services.rate_limit_service import RateLimitService
from ..services.review_service import ReviewService
from ..services.admin_metrics_service import AdminMetricsService
from ..services.mentor_profile_service import MentorProfileService
from ..services.email_service import EmailService
from ..services.notification_service import NotificationService
from ..services.availability_service import AvailabilityService

def get_booking_request_service(db: Session = Depends(get_db)) -> BookingRequestService:
    return BookingRequestService(db)

def get_session_service(db: Session = Depends(get_db)) -> SessionService:
    return SessionService(db)

def get_rate_limit_service(db: Session = Depends(get_db)) -> RateLimitService:
    return RateLimitService(db)

def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)

def get_admin_metrics_service(db: Session = Depends(get_db)) -> AdminMetricsService:
    return AdminMetricsService(db)

def get_mentor_profile_service(db: Session = Depends(get_db)) -> MentorProfileService:
    return MentorProfileService(db)

def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)

def get_email_service() -> EmailService:
    return EmailService()

def get_notification_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> NotificationService:
    return NotificationService(db, email_service)
