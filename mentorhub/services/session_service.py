# mentorhub/services/session_service.py
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..config import Settings, get_settings
from ..constants import ErrorMessages
from ..exceptions import (
    AuthorizationError, BusinessLogicError, ConflictError, NotFoundError, UpstreamError, ValidationError,
)
from ..models import Booking, MentorProfile, PaymentStatus, SessionStatus
from ..schemas import BookSessionRequest, ManageSessionRequest
from ..state_machine import (
    SessionAction, get_session_transition, next_payment_status, resolve_session_role,
)
from ..utils.pricing_utils import resolve_session_price
from ..utils.time_utils import as_utc
from ..utils.validation_utils import ValidationUtils
from .availability_service import AvailabilityService

logger = logging.getLogger(__name__)

# Statuses that still occupy the mentor's calendar
ACTIVE_STATUSES = (SessionStatus.PENDING.value, SessionStatus.CONFIRMED.value)


class SessionService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.validator = ValidationUtils(db)
        self.availability = AvailabilityService(db)

    def is_mentor_available(self, mentor_id: int, session_time: datetime, duration: int) -> bool:
        """True when the slot fits the mentor's calendar and no pending or confirmed session overlaps it"""
        if not self.availability.is_within_availability(mentor_id, session_time, duration):
            return False

        start = as_utc(session_time)
        end = start + timedelta(minutes=duration)
        # Any overlapping session must start before `end` and no earlier than the longest allowed session before `start`
        earliest = start - timedelta(minutes=self.settings.BOOKING_MAX_DURATION_MINUTES)

        candidates = self.db.query(Booking).filter(
            Booking.mentor_id == mentor_id,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.session_time < end,
            Booking.session_time > earliest,
        ).all()
        for booking in candidates:
            other_start = as_utc(booking.session_time)
            other_end = other_start + timedelta(minutes=booking.duration)
            if other_start < end and start < other_end:
                return False
        return True

    def book_session(self, student_id: int, data: BookSessionRequest) -> Booking:
        """Books a pending session with a mentor, priced from the mentor's service table"""
        if data.mentor_id == student_id:
            raise ValidationError("You cannot book a session with yourself")
        if data.duration > self.settings.BOOKING_MAX_DURATION_MINUTES:
            raise ValidationError(ErrorMessages.TOO_LONG.format(hours=self.settings.BOOKING_MAX_DURATION_MINUTES // 60))

        session_time = as_utc(data.session_time)
        logger.info(f"Booking session: mentor={data.mentor_id} time={session_time.isoformat()} duration={data.duration} student={student_id}")

        try:
            # Lock the mentor row so concurrent bookings for the same mentor run one at a time
            mentor = self.db.query(MentorProfile).filter(
                MentorProfile.id == data.mentor_id,
                MentorProfile.is_active.is_(True),
            ).with_for_update().first()
            if not mentor:
                raise NotFoundError(ErrorMessages.MENTOR_NOT_FOUND)

            if not self.is_mentor_available(mentor.id, session_time, data.duration):
                raise ConflictError(ErrorMessages.SLOT_UNAVAILABLE)

            total_amount, service_name = resolve_session_price(mentor.services, data.session_type)
            booking = Booking(
                student_id=student_id,
                mentor_id=mentor.id,
                session_time=session_time,
                scheduled_date=session_time.date(),
                scheduled_time=session_time.strftime("%H:%M"),
                duration=data.duration,
                session_type=data.session_type,
                service_name=service_name,
                message=data.message,
                total_amount=total_amount,
                status=SessionStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
            )
            self.db.add(booking)
            self.db.commit()
        except BusinessLogicError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Booking error for mentor {data.mentor_id}: {e}")
            raise UpstreamError.from_store("Failed to create booking", e)

        logger.info(f"Booking created successfully: {booking.id}")
        return self._load(booking.id)

    def manage_session(self, user_id: int, data: ManageSessionRequest) -> Booking:
        """Moves a session through confirm / complete / cancel"""
        logger.info(f"Managing session: session={data.session_id} action={data.action.value} user={user_id}")
        booking = self.validator.get_booking_or_404(data.session_id)

        role = resolve_session_role(booking.mentor_id, booking.student_id, user_id)
        if role is None:
            raise AuthorizationError(ErrorMessages.NOT_SESSION_PARTY)

        transition = get_session_transition(data.action, role, booking.status)
        payment_status = next_payment_status(data.action, role, booking.payment_status, data.payment_status)

        values = {
            Booking.status: transition.to_status.value,
            Booking.payment_status: payment_status.value,
            Booking.updated_at: datetime.now(timezone.utc),
        }
        if data.action == SessionAction.CONFIRM:
            meet_link = self.build_meet_link(booking.id)
            values[Booking.meeting_link] = meet_link
            values[Booking.message] = (booking.message or "") + f"\n\nMeet Link: {meet_link}"

        try:
            # Conditional on the status we read, so two concurrent actions cannot both apply
            updated = self.db.query(Booking).filter(
                Booking.id == booking.id,
                Booking.status == booking.status,
            ).update(values, synchronize_session=False)
            if not updated:
                self.db.rollback()
                raise ConflictError("Session was changed by someone else, please reload and retry")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Update error for session {booking.id}: {e}")
            raise UpstreamError.from_store("Failed to update session", e)

        logger.info(f"Session {booking.id} {transition.to_status.value} by {role.value} {user_id}")
        return self._load(booking.id)

    def build_meet_link(self, booking_id: str) -> str:
        return f"{self.settings.MEET_LINK_BASE_URL.rstrip('/')}/{booking_id[:8]}"

    def get_session(self, user_id: int, session_id: str) -> Booking:
        """One session, visible only to its student and its mentor"""
        booking = self._load(session_id)
        if resolve_session_role(booking.mentor_id, booking.student_id, user_id) is None:
            raise AuthorizationError(ErrorMessages.NOT_SESSION_PARTY_VIEW)
        return booking

    def get_sessions_for_user(self, user_id: int, status: Optional[SessionStatus] = None) -> List[Booking]:
        """Sessions where the user is either the student or the mentor, newest first"""
        query = self.db.query(Booking).options(
            joinedload(Booking.mentor_profile),
            joinedload(Booking.mentor),
        ).filter(or_(Booking.student_id == user_id, Booking.mentor_id == user_id))
        if status is not None:
            query = query.filter(Booking.status == status.value)
        return query.order_by(Booking.session_time.desc()).all()

    def _load(self, booking_id: str) -> Booking:
        self.db.expire_all()
        booking = self.db.query(Booking).options(
            joinedload(Booking.mentor_profile),
            joinedload(Booking.mentor),
            joinedload(Booking.student),
        ).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError(ErrorMessages.SESSION_NOT_FOUND)
        return booking
