# mentorhub/routers/session_router.py
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ..services import SessionService
from ..dependencies.auth_dependencies import rate_limited
from ..dependencies.service_dependencies import get_session_service
from ..utils.response_enricher import ResponseEnricher
from ..schemas import ApiResponse, BookSessionRequest, ManageSessionRequest
from ..models import SessionStatus, User
from ..security import get_current_user
from ..constants import RateLimitAction
from ..exceptions import BusinessLogicError

router = APIRouter(tags=["sessions"])

@router.post("/functions/book-session", response_model=ApiResponse, status_code=201)
async def book_session(
    booking_data: BookSessionRequest,
    current_user: User = Depends(get_current_user),
    _rate_limit=Depends(rate_limited(RateLimitAction.BOOKING_CREATE)),
    session_service: SessionService = Depends(get_session_service)
):
    """Book a session with a mentor; it starts pending until the mentor confirms"""
    try:
        booking = session_service.book_session(current_user.id, booking_data)
        return ApiResponse(
            success=True,
            message="Session booked successfully",
            data=ResponseEnricher.enrich_single_booking(booking),
        )
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.post("/functions/manage-session", response_model=ApiResponse)
async def manage_session(
    action_data: ManageSessionRequest,
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service)
):
    """Confirm, complete or cancel a session"""
    try:
        booking = session_service.manage_session(current_user.id, action_data)
        return ApiResponse(
            success=True,
            message=f"Session {booking.status} successfully",
            data=ResponseEnricher.enrich_single_booking(booking),
        )
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.get("/api/sessions/me", response_model=ApiResponse)
async def get_my_sessions(
    status: Optional[SessionStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service)
):
    """Sessions where the caller is the student or the mentor"""
    bookings = session_service.get_sessions_for_user(current_user.id, status)
    return ApiResponse(success=True, data=ResponseEnricher.enrich_bookings(bookings))

@router.get("/api/sessions/{session_id}", response_model=ApiResponse)
async def get_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service)
):
    """One session with the mentor card and student contact; only its two parties may read it"""
    try:
        booking = session_service.get_session(current_user.id, session_id)
        return ApiResponse(success=True, data=ResponseEnricher.enrich_session_detail(booking))
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
