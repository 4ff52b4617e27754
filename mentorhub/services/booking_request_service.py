# mentorhub/services/booking_request_service.py
import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..config import Settings, get_settings
from ..constants import ErrorMessages
from ..exceptions import (
    AuthorizationError, BusinessLogicError, NotFoundError, UpstreamError, ValidationError,
)
from ..models import Booking, BookingRequest, BookingRequestStatus, MentorProfile
from ..schemas import BookingRequestCreate
from ..state_machine import ensure_booking_request_transition
from ..utils.time_utils import parse_time_to_minutes
from ..utils.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

# Called with the request after a mentor approves it. Nothing turns an approved
# request into a Booking on its own; register a hook to do that.
ApprovalHook = Callable[[BookingRequest], None]


class BookingRequestService:
    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        approval_hooks: Optional[Sequence[ApprovalHook]] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.validator = ValidationUtils(db)
        self.approval_hooks = list(approval_hooks or [])

    def validate_window(self, requested_date: date, start_time: str, end_time: str, today: Optional[date] = None) -> int:
        """Checks a requested slot and returns its length in minutes."""
        today = today or datetime.now(timezone.utc).date()
        if requested_date < today:
            raise ValidationError(ErrorMessages.PAST_DATE)

        start_minutes = parse_time_to_minutes(start_time)
        end_minutes = parse_time_to_minutes(end_time)
        if start_minutes >= end_minutes:
            raise ValidationError(ErrorMessages.END_BEFORE_START)

        duration = end_minutes - start_minutes
        if duration < self.settings.BOOKING_MIN_DURATION_MINUTES:
            raise ValidationError(ErrorMessages.TOO_SHORT.format(minutes=self.settings.BOOKING_MIN_DURATION_MINUTES))
        if duration > self.settings.BOOKING_MAX_DURATION_MINUTES:
            raise ValidationError(ErrorMessages.TOO_LONG.format(hours=self.settings.BOOKING_MAX_DURATION_MINUTES // 60))
        return duration

    def create_request(self, mentee_id: int, data: BookingRequestCreate, today: Optional[date] = None) -> BookingRequest:
        """Creates a pending time request after local validation of the requested window"""
        self.validate_window(data.requested_date, data.requested_start_time, data.requested_end_time, today)
        if data.mentor_id == mentee_id:
            raise ValidationError("You cannot request a session with yourself")
        self.validator.get_mentor_or_404(data.mentor_id)

        request = BookingRequest(
            mentee_id=mentee_id,
            mentor_id=data.mentor_id,
            requested_date=data.requested_date,
            requested_start_time=data.requested_start_time,
            requested_end_time=data.requested_end_time,
            message=data.message or "",
            status=BookingRequestStatus.PENDING.value,
        )
        try:
            self.db.add(request)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating booking request for mentee {mentee_id}: {e}")
            raise UpstreamError.from_store("Failed to create time request", e)

        logger.info(f"Booking request {request.id} created by mentee {mentee_id} for mentor {data.mentor_id}")
        return self._load(request.id)

    def respond_to_request(
        self,
        mentor_id: int,
        request_id: str,
        status: BookingRequestStatus,
        mentor_response: Optional[str] = None,
    ) -> BookingRequest:
        """Approves or declines a pending request addressed to this mentor"""
        try:
            updated = self.db.query(BookingRequest).filter(
                BookingRequest.id == request_id,
                BookingRequest.mentor_id == mentor_id,
                BookingRequest.status == BookingRequestStatus.PENDING.value,
            ).update(
                {
                    BookingRequest.status: status.value,
                    BookingRequest.mentor_response: mentor_response or None,
                    BookingRequest.responded_at: datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
            if updated:
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error responding to booking request {request_id}: {e}")
            raise UpstreamError.from_store("Failed to update request", e)

        if not updated:
            self.db.rollback()
            request = self.validator.get_request_or_404(request_id)
            if request.mentor_id != mentor_id:
                raise AuthorizationError(ErrorMessages.UNAUTHORIZED)
            ensure_booking_request_transition(request.status, status)
            # Row changed between the update and the re-read
            raise BusinessLogicError("Request could not be updated, please retry")

        request = self._load(request_id)
        logger.info(f"Booking request {request_id} {status.value} by mentor {mentor_id}")

        if status == BookingRequestStatus.APPROVED:
            for hook in self.approval_hooks:
                hook(request)
        return request

    def delete_request(self, mentee_id: int, request_id: str) -> None:
        """Deletes a request; only its mentee may, and only while it is pending"""
        try:
            deleted = self.db.query(BookingRequest).filter(
                BookingRequest.id == request_id,
                BookingRequest.mentee_id == mentee_id,
                BookingRequest.status == BookingRequestStatus.PENDING.value,
            ).delete(synchronize_session=False)
            if deleted:
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting booking request {request_id}: {e}")
            raise UpstreamError.from_store("Failed to delete request", e)

        if deleted:
            logger.info(f"Booking request {request_id} deleted by mentee {mentee_id}")
            return

        self.db.rollback()
        request = self.db.query(BookingRequest).filter(BookingRequest.id == request_id).first()
        if not request:
            raise NotFoundError(ErrorMessages.REQUEST_NOT_FOUND)
        if request.mentee_id != mentee_id:
            raise AuthorizationError(ErrorMessages.UNAUTHORIZED)
        raise ValidationError(ErrorMessages.ONLY_PENDING_DELETABLE)

    def get_requests_for_mentee(self, mentee_id: int) -> List[BookingRequest]:
        """All requests a mentee has made, newest first"""
        return self._query().filter(
            BookingRequest.mentee_id == mentee_id
        ).order_by(BookingRequest.created_at.desc()).all()

    def get_requests_for_mentor(self, mentor_id: int, status: Optional[BookingRequestStatus] = None) -> List[BookingRequest]:
        """Requests addressed to a mentor, optionally narrowed to one status"""
        query = self._query().filter(BookingRequest.mentor_id == mentor_id)
        if status == BookingRequestStatus.DECLINED:
            query = query.filter(BookingRequest.status.in_([status.value, "rejected"]))
        elif status is not None:
            query = query.filter(BookingRequest.status == status.value)
        return query.order_by(BookingRequest.created_at.desc()).all()

    def get_available_mentors(self, student_id: int) -> List[MentorProfile]:
        """Mentors the student has booked before, each listed once"""
        mentor_ids = [
            row[0] for row in self.db.query(Booking.mentor_id).filter(
                Booking.student_id == student_id
            ).distinct().all()
        ]
        if not mentor_ids:
            return []
        return self.db.query(MentorProfile).filter(
            MentorProfile.id.in_(mentor_ids)
        ).order_by(MentorProfile.full_name).all()

    def _query(self):
        return self.db.query(BookingRequest).options(
            joinedload(BookingRequest.mentor_profile),
            joinedload(BookingRequest.mentor),
        )

    def _load(self, request_id: str) -> BookingRequest:
        self.db.expire_all()
        request = self._query().filter(BookingRequest.id == request_id).first()
        if not request:
            raise NotFoundError(ErrorMessages.REQUEST_NOT_FOUND)
        return request
