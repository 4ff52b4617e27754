# mentorhub/constants.py
class ErrorMessages:
    MENTOR_NOT_FOUND = "Mentor not found"
    SESSION_NOT_FOUND = "Session not found"
    REQUEST_NOT_FOUND = "Request not found"
    REVIEW_NOT_FOUND = "Review not found"
    SLOT_NOT_FOUND = "Availability slot not found"
    UNAUTHORIZED = "Unauthorized"
    UNAUTHORIZED_MENTOR = "Not authorized to access this mentor profile"
    NOT_SESSION_PARTY = "You are not authorized to manage this session"
    NOT_SESSION_PARTY_VIEW = "You are not authorized to view this session"
    ONLY_PENDING_DELETABLE = "Only pending requests can be deleted"
    PAST_DATE = "Cannot request sessions in the past"
    END_BEFORE_START = "End time must be after start time"
    TOO_SHORT = "Session must be at least {minutes} minutes"
    TOO_LONG = "Session cannot exceed {hours} hours"
    SLOT_UNAVAILABLE = "Mentor is not available at this time. Please choose another time slot."
    DUPLICATE_REVIEW = "You have already submitted a review for this session"
    DUPLICATE_PROFILE = "You already have a mentor profile"
    DECLINE_NEEDS_RESPONSE = "Please provide a reason when declining a request"
    ADMIN_REQUIRED = "Admin access required"
    RATE_LIMITED = "Rate limit exceeded. Please try again in {minutes} minutes."
    RATE_LIMIT_UNAVAILABLE = "Rate limiting is temporarily unavailable. Please try again later."
    CLIENT_THROTTLED = "Too many requests. Please slow down."
    INVALID_CRON_SECRET = "Invalid cron secret"

class BusinessRules:
    MIN_RATING = 1
    MAX_RATING = 5
    MIN_PASSWORD_LENGTH = 6
    MAX_USERNAME_LENGTH = 50
    RECENT_BOOKINGS_LIMIT = 10
    TOP_MENTORS_LIMIT = 5
    DAILY_METRICS_DAYS = 30
    SLOT_INTERVAL_MINUTES = 30

class RateLimitAction:
    BOOKING_CREATE = "booking_create"
    BOOKING_REQUEST = "booking_request"
    MESSAGE_SEND = "message_send"
    REVIEW_CREATE = "review_create"
    SEARCH_QUERY = "search_query"
    PROFILE_UPDATE = "profile_update"
    API_CALL = "api_call"

# action -> (max requests, window in minutes)
RATE_LIMITS = {
    RateLimitAction.BOOKING_CREATE: (5, 60),
    RateLimitAction.BOOKING_REQUEST: (10, 60),
    RateLimitAction.MESSAGE_SEND: (30, 60),
    RateLimitAction.REVIEW_CREATE: (3, 60),
    RateLimitAction.SEARCH_QUERY: (100, 1),
    RateLimitAction.PROFILE_UPDATE: (10, 60),
    RateLimitAction.API_CALL: (60, 1),
}
