# mentorhub/dependencies/auth_dependencies.py
import secrets
from typing import TypeVar, Type, Callable, Optional
from fastapi import Depends, HTTPException, Header, Path, Request
from sqlalchemy.orm import Session
from ..models import User, MentorProfile, UserRoleName
from ..database import get_db
from ..security import get_current_user, get_optional_user
from ..config import get_settings
from ..constants import ErrorMessages
from ..exceptions import RateLimitExceededError, ValidationError
from ..schemas import RateLimitResult
from ..services.rate_limit_service import RateLimitService
from .service_dependencies import get_rate_limit_service

T = TypeVar('T')

def create_ownership_dependency(model_class: Type[T], owner_attr: str, error_message: str) -> Callable:
    """
    Factory to create ownership verification dependencies.
    The dependency declares the path parameter itself, so FastAPI parses and
    documents it; the router only has to name the same path variable.
    """
    def dependency(
        entity_id: int = Path(..., alias="mentor_id", description=f"The ID of the {model_class.__name__}"),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ) -> T:
        entity = db.query(model_class).filter(model_class.id == entity_id).first()
        if not entity:
            raise HTTPException(status_code=404, detail=ErrorMessages.MENTOR_NOT_FOUND)
        if getattr(entity, owner_attr) != current_user.id:
            raise HTTPException(status_code=403, detail=error_message)
        return entity

    return dependency

# A mentor profile shares its id with the owning user
get_owned_mentor_profile = create_ownership_dependency(MentorProfile, "id", ErrorMessages.UNAUTHORIZED_MENTOR)

def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Only callers holding an admin role record get through"""
    if not current_user.has_role(UserRoleName.ADMIN):
        raise HTTPException(status_code=403, detail=ErrorMessages.ADMIN_REQUIRED)
    return current_user

def require_cron_secret(x_cron_secret: Optional[str] = Header(None)) -> None:
    """Guards the scheduled job endpoints; they are called by a cron trigger, not by users"""
    expected = get_settings().CRON_SECRET
    if not expected or not x_cron_secret or not secrets.compare_digest(x_cron_secret, expected):
        raise HTTPException(status_code=401, detail=ErrorMessages.INVALID_CRON_SECRET)

def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None

def rate_limited(action: str) -> Callable:
    """
    Factory for a dependency that spends one call of `action` from the
    caller's budget and answers 429 once it is used up.
    """
    def dependency(
        request: Request,
        current_user: Optional[User] = Depends(get_optional_user),
        rate_limit_service: RateLimitService = Depends(get_rate_limit_service),
    ) -> RateLimitResult:
        try:
            return rate_limit_service.enforce(
                action,
                user_id=current_user.id if current_user else None,
                ip_address=get_client_ip(request),
            )
        except RateLimitExceededError as e:
            raise HTTPException(
                status_code=429,
                detail=e.message,
                headers={"Retry-After": str(e.retry_after_seconds)},
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=e.message)

    return dependency
