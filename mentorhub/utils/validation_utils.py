# mentorhub/utils/validation_utils.py
from sqlalchemy.orm import Session, joinedload
from ..models import MentorProfile, Booking, BookingRequest, Review
from ..constants import ErrorMessages
from ..exceptions import NotFoundError

class ValidationUtils:
    def __init__(self, db: Session):
        self.db = db

    def get_mentor_or_404(self, mentor_id: int) -> MentorProfile:
        mentor = self.db.query(MentorProfile).filter(
            MentorProfile.id == mentor_id,
            MentorProfile.is_active.is_(True)
        ).first()
        if not mentor:
            raise NotFoundError(ErrorMessages.MENTOR_NOT_FOUND)
        return mentor

    def get_booking_or_404(self, booking_id: str) -> Booking:
        booking = self.db.query(Booking).options(
            joinedload(Booking.mentor_profile)
        ).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError(ErrorMessages.SESSION_NOT_FOUND)
        return booking

    def get_request_or_404(self, request_id: str) -> BookingRequest:
        request = self.db.query(BookingRequest).filter(BookingRequest.id == request_id).first()
        if not request:
            raise NotFoundError(ErrorMessages.REQUEST_NOT_FOUND)
        return request

    def get_review_or_404(self, review_id: int) -> Review:
        review = self.db.query(Review).filter(Review.id == review_id).first()
        if not review:
            raise NotFoundError(ErrorMessages.REVIEW_NOT_FOUND)
        return review
