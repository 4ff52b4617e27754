# mentorhub/services/availability_service.py
import logging
from datetime import date, datetime
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import BusinessRules, ErrorMessages
from ..exceptions import AuthorizationError, ConflictError, NotFoundError, UpstreamError
from ..models import AvailabilitySlot, BlockedDate, Booking, SessionStatus
from ..schemas import (
    AvailabilitySlotCreate, AvailabilitySlotResponse, BlockedDateCreate, BlockedDateResponse,
    MentorAvailability, TimeSlot,
)
from ..utils.time_utils import as_utc, day_of_week, format_minutes, parse_time_to_minutes
from ..utils.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)


class AvailabilityService:
    def __init__(self, db: Session):
        self.db = db
        self.validator = ValidationUtils(db)

    # --- Mentor-managed calendar ---

    def add_slot(self, mentor_id: int, data: AvailabilitySlotCreate) -> AvailabilitySlot:
        self.validator.get_mentor_or_404(mentor_id)
        slot = AvailabilitySlot(
            mentor_id=mentor_id,
            day_of_week=data.day_of_week if data.is_recurring else None,
            start_time=data.start_time,
            end_time=data.end_time,
            is_recurring=data.is_recurring,
            specific_date=None if data.is_recurring else data.specific_date,
        )
        try:
            self.db.add(slot)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adding availability slot for mentor {mentor_id}: {e}")
            raise UpstreamError.from_store("Failed to save availability", e)
        self.db.refresh(slot)
        logger.info(f"Availability slot {slot.id} added for mentor {mentor_id}")
        return slot

    def delete_slot(self, mentor_id: int, slot_id: str) -> None:
        slot = self.db.query(AvailabilitySlot).filter(AvailabilitySlot.id == slot_id).first()
        if not slot:
            raise NotFoundError(ErrorMessages.SLOT_NOT_FOUND)
        if slot.mentor_id != mentor_id:
            raise AuthorizationError(ErrorMessages.UNAUTHORIZED)
        self.db.delete(slot)
        self.db.commit()

    def block_date(self, mentor_id: int, data: BlockedDateCreate) -> BlockedDate:
        self.validator.get_mentor_or_404(mentor_id)
        blocked = BlockedDate(mentor_id=mentor_id, date=data.date, reason=data.reason)
        try:
            self.db.add(blocked)
            self.db.commit()
        except IntegrityError:
            # uq_blocked_date_mentor
            self.db.rollback()
            raise ConflictError("Date is already blocked")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error blocking {data.date} for mentor {mentor_id}: {e}")
            raise UpstreamError.from_store("Failed to block date", e)
        self.db.refresh(blocked)
        return blocked

    def unblock_date(self, mentor_id: int, blocked_on: date) -> None:
        deleted = self.db.query(BlockedDate).filter(
            BlockedDate.mentor_id == mentor_id,
            BlockedDate.date == blocked_on,
        ).delete(synchronize_session=False)
        if not deleted:
            self.db.rollback()
            raise NotFoundError("Blocked date not found")
        self.db.commit()

    # --- Reading the calendar ---

    def get_mentor_availability(self, mentor_id: int, start_date: date, end_date: date) -> MentorAvailability:
        """Recurring slots, plus one-off slots and blocked dates inside [start_date, end_date]"""
        recurring = self.db.query(AvailabilitySlot).filter(
            AvailabilitySlot.mentor_id == mentor_id,
            AvailabilitySlot.is_recurring.is_(True),
        ).order_by(AvailabilitySlot.day_of_week, AvailabilitySlot.start_time).all()
        specific = self.db.query(AvailabilitySlot).filter(
            AvailabilitySlot.mentor_id == mentor_id,
            AvailabilitySlot.is_recurring.is_(False),
            AvailabilitySlot.specific_date >= start_date,
            AvailabilitySlot.specific_date <= end_date,
        ).order_by(AvailabilitySlot.specific_date, AvailabilitySlot.start_time).all()
        blocked = self.db.query(BlockedDate).filter(
            BlockedDate.mentor_id == mentor_id,
            BlockedDate.date >= start_date,
            BlockedDate.date <= end_date,
        ).order_by(BlockedDate.date).all()

        return MentorAvailability(
            recurring_slots=[AvailabilitySlotResponse.model_validate(s) for s in recurring],
            specific_slots=[AvailabilitySlotResponse.model_validate(s) for s in specific],
            blocked_dates=[BlockedDateResponse.model_validate(b) for b in blocked],
        )

    def get_booked_slots(self, mentor_id: int, day: date) -> List[Tuple[int, int]]:
        """(start minute, end minute) of the mentor's pending or confirmed sessions on `day`"""
        bookings = self.db.query(Booking).filter(
            Booking.mentor_id == mentor_id,
            Booking.scheduled_date == day,
            Booking.status.in_((SessionStatus.PENDING.value, SessionStatus.CONFIRMED.value)),
        ).all()
        booked = []
        for booking in bookings:
            start = parse_time_to_minutes(booking.scheduled_time)
            booked.append((start, start + booking.duration))
        return booked

    def get_available_time_slots(self, mentor_id: int, day: date, duration: int = 60) -> List[TimeSlot]:
        """Candidate start times every 30 minutes inside the day's availability, marking booked ones"""
        availability = self.get_mentor_availability(mentor_id, day, day)
        if availability.blocked_dates:
            return []

        windows = self._windows_for_day(availability, day)
        if not windows:
            return []

        booked = self.get_booked_slots(mentor_id, day)
        slots = {}
        for window_start, window_end in windows:
            current = window_start
            while current + duration <= window_end:
                is_booked = any(current < b_end and current + duration > b_start for b_start, b_end in booked)
                slots[current] = TimeSlot(time=format_minutes(current), available=not is_booked, booked=is_booked)
                current += BusinessRules.SLOT_INTERVAL_MINUTES
        return [slots[minute] for minute in sorted(slots)]

    def is_within_availability(self, mentor_id: int, session_time: datetime, duration: int) -> bool:
        """False on a blocked date, or outside the declared slots when the mentor has declared any"""
        start = as_utc(session_time)
        day = start.date()
        availability = self.get_mentor_availability(mentor_id, day, day)
        if availability.blocked_dates:
            return False

        # Mentors without any declared slots take bookings at any time
        has_calendar = self.db.query(AvailabilitySlot.id).filter(
            AvailabilitySlot.mentor_id == mentor_id,
        ).first() is not None
        if not has_calendar:
            return True

        start_minute = start.hour * 60 + start.minute
        end_minute = start_minute + duration
        return any(
            window_start <= start_minute and end_minute <= window_end
            for window_start, window_end in self._windows_for_day(availability, day)
        )

    def _windows_for_day(self, availability: MentorAvailability, day: date) -> List[Tuple[int, int]]:
        weekday = day_of_week(day)
        applicable = [s for s in availability.recurring_slots if s.day_of_week == weekday]
        applicable += [s for s in availability.specific_slots if s.specific_date == day]
        return [(parse_time_to_minutes(s.start_time), parse_time_to_minutes(s.end_time)) for s in applicable]
