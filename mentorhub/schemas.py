import re
from datetime import date, datetime
from typing import List, Dict, Any, Optional, Literal
from pydantic import BaseModel, Field, field_validator, model_validator
from .models import BookingRequestStatus, SessionStatus, PaymentStatus
from .state_machine import SessionAction
from .constants import ErrorMessages, BusinessRules

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

def _check_hhmm(value: str) -> str:
    match = _TIME_PATTERN.match(value.strip())
    if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
        raise ValueError("Time must be in HH:MM format")
    return value.strip()

def _minutes(value: str) -> int:
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)

# --- Envelope shared by every JSON endpoint ---
class ApiResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    data: Optional[Any] = None

# --- Authentication Schemas ---
class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=BusinessRules.MAX_USERNAME_LENGTH)

class UserCreate(UserBase):
    password: str = Field(..., min_length=BusinessRules.MIN_PASSWORD_LENGTH)
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Literal["student", "mentor"] = "student"

class UserResponse(UserBase):
    id: int
    email: Optional[str] = None
    full_name: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    roles: List[str] = []
    has_mentor_profile: bool = False

class Token(BaseModel):
    access_token: str
    token_type: str

class TokenData(BaseModel):
    username: Optional[str] = None

# --- Mentor profiles ---

class ServiceOffering(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    enabled: bool = True
    duration: Optional[int] = Field(None, gt=0, description="Default length in minutes.")

class MentorProfileCreate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    username: Optional[str] = Field(None, min_length=3, max_length=BusinessRules.MAX_USERNAME_LENGTH)
    headline: Optional[str] = None
    bio: Optional[str] = None
    category: Optional[str] = None
    profile_picture_url: Optional[str] = None
    expertise: Optional[List[str]] = None
    services: Optional[Dict[str, ServiceOffering]] = Field(
        None, description="Pricing table keyed by service type (e.g. {'oneOnOneSession': {...}})."
    )

class MentorProfileUpdate(MentorProfileCreate):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)

class MentorProfileResponse(BaseModel):
    id: int
    full_name: str
    username: Optional[str]
    headline: Optional[str]
    bio: Optional[str]
    category: Optional[str]
    profile_picture_url: Optional[str]
    expertise: Optional[List[str]]
    services: Optional[Dict[str, Any]]
    is_active: bool

    model_config = {
        "from_attributes": True,
    }

class MentorSummary(BaseModel):
    id: int
    full_name: Optional[str] = None
    username: Optional[str] = None
    profile_picture_url: Optional[str] = None
    headline: Optional[str] = None
    expertise: Optional[List[str]] = None

    model_config = {
        "from_attributes": True,
    }

class StudentSummary(BaseModel):
    id: int
    full_name: Optional[str] = None
    username: str
    email: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }

# --- Booking requests ---

class BookingRequestCreate(BaseModel):
    mentor_id: int
    requested_date: date
    requested_start_time: str = Field(..., description="HH:MM")
    requested_end_time: str = Field(..., description="HH:MM")
    message: Optional[str] = None

    @field_validator("requested_start_time", "requested_end_time")
    @classmethod
    def check_time_format(cls, value: str) -> str:
        return _check_hhmm(value)

class BookingRequestRespond(BaseModel):
    status: BookingRequestStatus
    mentor_response: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_response_status(cls, value: BookingRequestStatus) -> BookingRequestStatus:
        if value == BookingRequestStatus.PENDING:
            raise ValueError("Status must be approved or declined")
        return value

    @model_validator(mode="after")
    def decline_needs_response(self):
        if self.status == BookingRequestStatus.DECLINED and not (self.mentor_response or "").strip():
            raise ValueError(ErrorMessages.DECLINE_NEEDS_RESPONSE)
        return self

class BookingRequestResponse(BaseModel):
    id: str
    mentee_id: int
    mentor_id: int
    requested_date: date
    requested_start_time: str
    requested_end_time: str
    message: Optional[str] = None
    status: BookingRequestStatus
    mentor_response: Optional[str] = None
    created_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    mentor: Optional[MentorSummary] = None

    model_config = {
        "from_attributes": True,
    }

    @field_validator("status", mode="before")
    @classmethod
    def normalize_legacy_status(cls, value):
        if isinstance(value, str):
            return BookingRequestStatus.parse(value)
        return value

# --- Sessions ---

class BookSessionRequest(BaseModel):
    mentor_id: int
    session_time: datetime
    duration: int = Field(..., gt=0, description="Length in minutes.")
    session_type: str = Field(..., min_length=1)
    message: Optional[str] = None

class ManageSessionRequest(BaseModel):
    session_id: str = Field(..., min_length=1)
    action: SessionAction
    payment_status: Optional[PaymentStatus] = None

    @field_validator("action", mode="before")
    @classmethod
    def check_action(cls, value):
        if not isinstance(value, str) or value not in {a.value for a in SessionAction}:
            raise ValueError("Invalid action")
        return value

class BookingResponse(BaseModel):
    id: str
    student_id: int
    mentor_id: int
    session_time: datetime
    scheduled_date: date
    scheduled_time: str
    duration: int
    session_type: str
    service_name: Optional[str] = None
    message: Optional[str] = None
    meeting_link: Optional[str] = None
    total_amount: float
    status: SessionStatus
    payment_status: PaymentStatus
    reminder_24h_sent: bool
    reminder_1h_sent: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    mentor: Optional[MentorSummary] = None

    model_config = {
        "from_attributes": True,
    }

# --- Mentor availability ---

class AvailabilitySlotCreate(BaseModel):
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0 = Sunday ... 6 = Saturday.")
    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")
    is_recurring: bool = True
    specific_date: Optional[date] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time_format(cls, value: str) -> str:
        return _check_hhmm(value)

    @model_validator(mode="after")
    def check_slot(self):
        if _minutes(self.start_time) >= _minutes(self.end_time):
            raise ValueError(ErrorMessages.END_BEFORE_START)
        if self.is_recurring and self.day_of_week is None:
            raise ValueError("Recurring slots need a day_of_week")
        if not self.is_recurring and self.specific_date is None:
            raise ValueError("One-off slots need a specific_date")
        return self

class AvailabilitySlotResponse(BaseModel):
    id: str
    mentor_id: int
    day_of_week: Optional[int] = None
    start_time: str
    end_time: str
    is_recurring: bool
    specific_date: Optional[date] = None

    model_config = {
        "from_attributes": True,
    }

class BlockedDateCreate(BaseModel):
    date: date
    reason: Optional[str] = None

class BlockedDateResponse(BaseModel):
    id: int
    mentor_id: int
    date: date
    reason: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }

class MentorAvailability(BaseModel):
    recurring_slots: List[AvailabilitySlotResponse] = []
    specific_slots: List[AvailabilitySlotResponse] = []
    blocked_dates: List[BlockedDateResponse] = []

class TimeSlot(BaseModel):
    time: str
    available: bool
    booked: bool

# --- Reviews ---

class ReviewCreate(BaseModel):
    booking_id: str
    rating: int = Field(..., ge=BusinessRules.MIN_RATING, le=BusinessRules.MAX_RATING, description="Rating of the session (1-5).")
    comment: Optional[str] = None

class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=BusinessRules.MIN_RATING, le=BusinessRules.MAX_RATING)
    comment: Optional[str] = None

class ReviewResponse(BaseModel):
    id: int
    booking_id: str
    user_id: int
    mentor_id: int
    rating: int
    comment: Optional[str]
    created_at: Optional[datetime]
    reviewer_name: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

class ReviewPage(BaseModel):
    items: List[ReviewResponse]
    pagination: Pagination

class MentorRating(BaseModel):
    mentor_id: int
    average_rating: float
    total_reviews: int

# --- Rate limiting ---

class RateLimitCheck(BaseModel):
    action: str

class RateLimitResult(BaseModel):
    allowed: bool
    current_count: int
    max_requests: int
    time_window_minutes: int
    remaining: Optional[int] = None
    retry_after_seconds: Optional[int] = None
    message: Optional[str] = None

class RateLimitStatus(BaseModel):
    action_type: str
    current_count: int
    max_requests: int
    remaining: int
    time_window_minutes: int
    resets_at: datetime

# --- Admin metrics ---

class AdminOverview(BaseModel):
    total_mentors: int
    total_students: int
    total_bookings: int
    total_revenue: float
    platform_commission: float

class DailyMetric(BaseModel):
    date: date
    bookings: int
    revenue: float

class TopMentor(BaseModel):
    mentor: Optional[MentorSummary]
    revenue: float
    bookings: int

class AdminMetrics(BaseModel):
    overview: AdminOverview
    recent_bookings: List[BookingResponse]
    daily_metrics: List[DailyMetric]
    top_mentors: List[TopMentor]

# --- Scheduled jobs ---

class JobError(BaseModel):
    booking_id: str
    error: str

class ReminderSummary(BaseModel):
    sent_24h: int = 0
    sent_1h: int = 0
    errors: List[JobError] = []

class ReviewRequestSummary(BaseModel):
    total_found: int = 0
    emails_sent: int = 0
    errors: List[JobError] = []
