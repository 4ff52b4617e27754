# mentorhub/services/notification_service.py
"""
Cron-driven notification jobs: session reminders and review requests.

Each job walks its candidate bookings one at a time. A failure for one booking
is logged and reported in the returned summary, and the loop moves on; nothing
is retried. Each reminder email is recorded as it goes out, and the booking
flag is only set once every recipient has been reached.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, exists, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..config import Settings, get_settings
from ..exceptions import BusinessLogicError
from ..models import Booking, ReminderDelivery, Review, SessionStatus, User
from ..schemas import JobError, ReminderSummary, ReviewRequestSummary
from ..utils.time_utils import as_utc, utcnow
from .email_service import EmailService, render_email

logger = logging.getLogger(__name__)


def _display_name(user: Optional[User], fallback: str) -> str:
    if user is None:
        return fallback
    return user.full_name or user.username or fallback


class NotificationService:
    def __init__(self, db: Session, email_service: Optional[EmailService] = None, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.email_service = email_service or EmailService(self.settings)

    # --- Session reminders ---

    def send_session_reminders(self, now: Optional[datetime] = None) -> ReminderSummary:
        now = as_utc(now) if now else utcnow()
        logger.info(f"Checking for reminders at: {now.isoformat()}")

        in_24h = now + timedelta(hours=24)
        in_1h = now + timedelta(hours=1)
        in_30m = now + timedelta(minutes=30)

        bookings = self._load_bookings().filter(
            Booking.status == SessionStatus.CONFIRMED.value,
            or_(Booking.reminder_24h_sent.is_(False), Booking.reminder_1h_sent.is_(False)),
        ).all()

        summary = ReminderSummary()
        for booking in bookings:
            start = as_utc(booking.session_time)
            if start < now:
                continue

            try:
                if not booking.reminder_24h_sent and in_1h < start <= in_24h:
                    logger.info(f"Sending 24h reminder for booking {booking.id}")
                    self._send_reminder(booking, "24h", "24 hours")
                    booking.reminder_24h_sent = True
                    self.db.commit()
                    summary.sent_24h += 1
                elif not booking.reminder_1h_sent and in_30m < start <= in_1h:
                    logger.info(f"Sending 1h reminder for booking {booking.id}")
                    self._send_reminder(booking, "1h", "1 hour")
                    booking.reminder_1h_sent = True
                    self.db.commit()
                    summary.sent_1h += 1
            except (BusinessLogicError, SQLAlchemyError) as e:
                self.db.rollback()
                logger.error(f"Reminder failed for booking {booking.id}: {e}")
                summary.errors.append(JobError(booking_id=booking.id, error=str(e)))

        logger.info(f"Reminders sent: 24h={summary.sent_24h}, 1h={summary.sent_1h}, errors={len(summary.errors)}")
        return summary

    def _send_reminder(self, booking: Booking, reminder: str, time_until: str) -> None:
        """Emails both parties, skipping anyone this reminder already reached on an earlier run"""
        mentor_name = _display_name(booking.mentor, "your mentor")
        if booking.mentor_profile is not None and booking.mentor_profile.full_name:
            mentor_name = booking.mentor_profile.full_name
        student_name = _display_name(booking.student, "Student")
        start = as_utc(booking.session_time)
        session_type = booking.service_name or booking.session_type or "Session"

        context = {
            "session_type": session_type,
            "session_date": start.strftime("%A, %B %d, %Y"),
            "session_time": start.strftime("%H:%M"),
            "duration": booking.duration,
            "time_until": time_until,
            "meeting_link": booking.meeting_link,
            "app_url": self.settings.APP_URL.rstrip("/"),
        }
        recipients = [
            ("student", booking.student, f"Reminder: {session_type} from {mentor_name} in {time_until}",
             student_name, mentor_name, False),
            ("mentor", booking.mentor, f"Reminder: {session_type} with {student_name} in {time_until}",
             mentor_name, student_name, True),
        ]

        delivered = {
            row.recipient for row in self.db.query(ReminderDelivery).filter(
                ReminderDelivery.booking_id == booking.id,
                ReminderDelivery.reminder == reminder,
            )
        }
        for recipient, user, subject, recipient_name, other_party_name, is_mentor in recipients:
            if recipient in delivered or user is None or not user.email:
                continue
            html = render_email(
                "reminder.html",
                recipient_name=recipient_name,
                other_party_name=other_party_name,
                is_mentor=is_mentor,
                **context,
            )
            self.email_service.send_email(user.email, subject, html)
            self.db.add(ReminderDelivery(booking_id=booking.id, reminder=reminder, recipient=recipient))
            self.db.commit()

    # --- Review requests ---

    def get_sessions_ready_for_review(self, now: Optional[datetime] = None) -> List[Booking]:
        """Completed sessions that ended long enough ago, not yet asked about and not yet reviewed by the student"""
        now = as_utc(now) if now else utcnow()
        cutoff = now - timedelta(minutes=self.settings.REVIEW_REQUEST_DELAY_MINUTES)

        already_reviewed = exists().where(and_(
            Review.booking_id == Booking.id,
            Review.user_id == Booking.student_id,
        ))
        candidates = self._load_bookings().filter(
            Booking.status == SessionStatus.COMPLETED.value,
            Booking.review_requested.is_(False),
            Booking.session_time <= cutoff,
            ~already_reviewed,
        ).order_by(Booking.session_time).all()

        return [
            b for b in candidates
            if as_utc(b.session_time) + timedelta(minutes=b.duration) <= cutoff
        ]

    def send_review_requests(self, now: Optional[datetime] = None) -> ReviewRequestSummary:
        sessions = self.get_sessions_ready_for_review(now)
        logger.info(f"Found {len(sessions)} sessions ready for review requests")

        summary = ReviewRequestSummary(total_found=len(sessions))
        for booking in sessions:
            try:
                self._send_review_request(booking)
                self.mark_review_requested(booking)
                summary.emails_sent += 1
            except (BusinessLogicError, SQLAlchemyError) as e:
                self.db.rollback()
                logger.error(f"Review request failed for booking {booking.id}: {e}")
                summary.errors.append(JobError(booking_id=booking.id, error=str(e)))

        logger.info(f"Review requests sent: {summary.emails_sent}/{summary.total_found}")
        return summary

    def mark_review_requested(self, booking: Booking) -> None:
        booking.review_requested = True
        self.db.commit()

    def _send_review_request(self, booking: Booking) -> None:
        if booking.student is None or not booking.student.email:
            raise BusinessLogicError("Student has no email address")

        mentor_name = _display_name(booking.mentor, "your mentor")
        if booking.mentor_profile is not None and booking.mentor_profile.full_name:
            mentor_name = booking.mentor_profile.full_name
        app_url = self.settings.APP_URL.rstrip("/")

        html = render_email(
            "review_request.html",
            student_name=_display_name(booking.student, "there"),
            mentor_name=mentor_name,
            service_name=booking.service_name or booking.session_type,
            session_date=as_utc(booking.session_time).strftime("%A, %B %d, %Y"),
            duration=booking.duration,
            review_link=f"{app_url}/dashboard?action=review&booking={booking.id}",
            book_again_link=f"{app_url}/mentor/{booking.mentor_id}",
        )
        self.email_service.send_email(booking.student.email, f"How was your session with {mentor_name}?", html)

    def _load_bookings(self):
        return self.db.query(Booking).options(
            joinedload(Booking.student),
            joinedload(Booking.mentor),
            joinedload(Booking.mentor_profile),
        )
