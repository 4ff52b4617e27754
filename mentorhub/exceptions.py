# mentorhub/exceptions.py
class BusinessLogicError(Exception):
    """Base exception for business logic errors"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationError(BusinessLogicError):
    """Raised when input fails a business rule before any mutation"""
    status_code = 400

class AuthorizationError(BusinessLogicError):
    """Raised when the caller's role or ownership does not permit the action"""
    status_code = 403

class NotFoundError(BusinessLogicError):
    """Raised when a resource is not found"""
    status_code = 404

class ConflictError(BusinessLogicError):
    """Raised when the action collides with existing state"""
    status_code = 409

class RateLimitExceededError(BusinessLogicError):
    """Raised when the caller has used up the budget for an action"""
    status_code = 429

    def __init__(self, message: str, retry_after_seconds: int = 60):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds

class UpstreamError(BusinessLogicError):
    """Raised when the store or an external API fails"""
    status_code = 500

    @classmethod
    def from_store(cls, summary: str, exc: Exception) -> "UpstreamError":
        """Keeps the driver message of a failed store call, e.g. "Failed to create booking: disk full"."""
        detail = getattr(exc, "orig", None) or exc
        return cls(f"{summary}: {detail}")

class InvalidStatusTransitionError(ValidationError):
    """Raised when invalid status transition is attempted"""
    pass

class DuplicateReviewError(ConflictError):
    """Raised when a reviewer rates the same session twice"""
    pass
