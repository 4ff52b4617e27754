# mentorhub/models.py
import uuid
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Date, Float, JSON, Boolean, ForeignKey, Sequence, UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from .database import Base

# JSONB on Postgres, plain JSON everywhere else
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid.uuid4())


class UserRoleName(str, Enum):
    STUDENT = "student"
    MENTOR = "mentor"
    ADMIN = "admin"


class BookingRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"

    @classmethod
    def parse(cls, value: str) -> "BookingRequestStatus":
        """Reads a stored status; the legacy "rejected" value means declined."""
        if value == "rejected":
            return cls.DECLINED
        return cls(value)


class SessionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, Sequence('user_id_seq'), primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    full_name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")
    mentor_profile = relationship("MentorProfile", back_populates="user", uselist=False)

    def has_role(self, role: UserRoleName) -> bool:
        return any(r.role == role.value for r in self.roles)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, Sequence('user_role_id_seq'), primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False)

    user = relationship("User", back_populates="roles")

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_role"),
    )


class MentorProfile(Base):
    __tablename__ = "mentor_profiles"

    # A mentor profile shares its id with the owning user
    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String, nullable=False, index=True)
    username = Column(String, unique=True, index=True, nullable=True)
    profile_picture_url = Column(String, nullable=True)
    headline = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    expertise = Column(JSONType, nullable=True)
    # {service_key: {"name": str, "price": number, "enabled": bool, "duration": int}}
    services = Column(JSONType, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    user = relationship("User", back_populates="mentor_profile")

    def __repr__(self):
        return f"<MentorProfile(id={self.id}, full_name='{self.full_name}')>"


class BookingRequest(Base):
    __tablename__ = "booking_requests"

    id = Column(String(36), primary_key=True, default=_new_id)
    mentee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    requested_date = Column(Date, nullable=False)
    requested_start_time = Column(String(8), nullable=False)
    requested_end_time = Column(String(8), nullable=False)

    status = Column(String, default=BookingRequestStatus.PENDING.value, nullable=False, index=True)
    message = Column(Text, nullable=True)
    mentor_response = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    responded_at = Column(DateTime(timezone=True), nullable=True)

    mentee = relationship("User", foreign_keys=[mentee_id], viewonly=True)
    mentor = relationship("User", foreign_keys=[mentor_id], viewonly=True)
    mentor_profile = relationship(
        "MentorProfile",
        primaryjoin="foreign(BookingRequest.mentor_id) == MentorProfile.id",
        viewonly=True,
    )

    def __repr__(self):
        return f"<BookingRequest(id={self.id}, mentee_id={self.mentee_id}, mentor_id={self.mentor_id}, status='{self.status}')>"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_new_id)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    session_time = Column(DateTime(timezone=True), nullable=False, index=True)
    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(String(8), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    session_type = Column(String, nullable=False)
    service_name = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    meeting_link = Column(String, nullable=True)

    total_amount = Column(Float, nullable=False, default=0)
    status = Column(String, default=SessionStatus.PENDING.value, nullable=False, index=True)
    payment_status = Column(String, default=PaymentStatus.PENDING.value, nullable=False)

    reminder_24h_sent = Column(Boolean, default=False, nullable=False)
    reminder_1h_sent = Column(Boolean, default=False, nullable=False)
    review_requested = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    student = relationship("User", foreign_keys=[student_id], viewonly=True)
    mentor = relationship("User", foreign_keys=[mentor_id], viewonly=True)
    mentor_profile = relationship(
        "MentorProfile",
        primaryjoin="foreign(Booking.mentor_id) == MentorProfile.id",
        viewonly=True,
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, mentor_id={self.mentor_id}, student_id={self.student_id}, status='{self.status}')>"


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, Sequence('review_id_seq'), primary_key=True, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    user = relationship("User", foreign_keys=[user_id], viewonly=True)

    __table_args__ = (
        # One review per session per reviewer
        UniqueConstraint("booking_id", "user_id", name="uq_review_booking_user"),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, booking_id={self.booking_id}, rating={self.rating})>"


class RateLimitCounter(Base):
    __tablename__ = "rate_limit_counters"

    id = Column(Integer, Sequence('rate_limit_counter_id_seq'), primary_key=True, index=True)
    identity = Column(String, nullable=False)  # "user:<id>" or "ip:<addr>"
    action_type = Column(String, nullable=False)
    window_start = Column(DateTime(timezone=True), nullable=False)
    count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("identity", "action_type", name="uq_rate_limit_identity_action"),
    )


class ReminderDelivery(Base):
    """One reminder email that went out, so a retried job skips recipients already reached."""
    __tablename__ = "reminder_deliveries"

    id = Column(Integer, Sequence('reminder_delivery_id_seq'), primary_key=True, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    reminder = Column(String, nullable=False)  # "24h" or "1h"
    recipient = Column(String, nullable=False)  # "student" or "mentor"
    sent_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("booking_id", "reminder", "recipient", name="uq_reminder_delivery"),
    )


class AvailabilitySlot(Base):
    __tablename__ = "availability_slots"

    id = Column(String(36), primary_key=True, default=_new_id)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # 0 = Sunday ... 6 = Saturday; used by recurring slots
    day_of_week = Column(Integer, nullable=True)
    start_time = Column(String(8), nullable=False)
    end_time = Column(String(8), nullable=False)
    is_recurring = Column(Boolean, default=True, nullable=False)
    specific_date = Column(Date, nullable=True)  # one-off slots only
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AvailabilitySlot(id={self.id}, mentor_id={self.mentor_id}, {self.start_time}-{self.end_time})>"


class BlockedDate(Base):
    __tablename__ = "blocked_dates"

    id = Column(Integer, Sequence('blocked_date_id_seq'), primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("mentor_id", "date", name="uq_blocked_date_mentor"),
    )
