# mentorhub/routers/rate_limit_router.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Path, Request

from ..services import RateLimitService
from ..dependencies.auth_dependencies import get_client_ip
from ..dependencies.service_dependencies import get_rate_limit_service
from ..schemas import ApiResponse, RateLimitCheck
from ..models import User
from ..security import get_current_user, get_optional_user
from ..exceptions import BusinessLogicError

router = APIRouter(prefix="/api/rate-limit", tags=["rate limiting"])

@router.post("/check", response_model=ApiResponse)
async def check_rate_limit(
    request: Request,
    check_data: RateLimitCheck,
    current_user: Optional[User] = Depends(get_optional_user),
    rate_limit_service: RateLimitService = Depends(get_rate_limit_service)
):
    """Spend one call of an action and report whether it was allowed"""
    try:
        result = rate_limit_service.check(
            check_data.action,
            user_id=current_user.id if current_user else None,
            ip_address=get_client_ip(request),
        )
        return ApiResponse(success=True, message=result.message, data=result.model_dump())
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.get("/status/{action}", response_model=ApiResponse)
async def get_rate_limit_status(
    action: str = Path(..., description="Rate limited action, e.g. booking_create"),
    current_user: User = Depends(get_current_user),
    rate_limit_service: RateLimitService = Depends(get_rate_limit_service)
):
    """Current usage of an action, without counting a call"""
    try:
        status = rate_limit_service.get_status(action, current_user.id)
        return ApiResponse(success=True, data=status.model_dump(mode="json"))
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
