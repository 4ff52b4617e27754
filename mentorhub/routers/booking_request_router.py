# mentorhub/routers/booking_request_router.py
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from typing import Optional

from ..services import BookingRequestService
from ..dependencies.auth_dependencies import rate_limited
from ..dependencies.service_dependencies import get_booking_request_service
from ..utils.response_enricher import ResponseEnricher
from ..schemas import ApiResponse, BookingRequestCreate, BookingRequestRespond, MentorSummary
from ..models import BookingRequestStatus, User
from ..security import get_current_user
from ..constants import RateLimitAction
from ..exceptions import BusinessLogicError

router = APIRouter(prefix="/api/booking-requests", tags=["booking requests"])

@router.post("", response_model=ApiResponse, status_code=201)
async def create_booking_request(
    request_data: BookingRequestCreate,
    current_user: User = Depends(get_current_user),
    _rate_limit=Depends(rate_limited(RateLimitAction.BOOKING_REQUEST)),
    booking_request_service: BookingRequestService = Depends(get_booking_request_service)
):
    """Ask a mentor for a specific date and time slot"""
    try:
        request = booking_request_service.create_request(current_user.id, request_data)
        return ApiResponse(
            success=True,
            message="Time request sent",
            data=ResponseEnricher.enrich_single_request(request),
        )
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.get("/mine", response_model=ApiResponse)
async def get_my_requests(
    current_user: User = Depends(get_current_user),
    booking_request_service: BookingRequestService = Depends(get_booking_request_service)
):
    """Requests the caller has made as a mentee"""
    requests = booking_request_service.get_requests_for_mentee(current_user.id)
    return ApiResponse(success=True, data=ResponseEnricher.enrich_requests(requests))

@router.get("/incoming", response_model=ApiResponse)
async def get_incoming_requests(
    status: Optional[BookingRequestStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    booking_request_service: BookingRequestService = Depends(get_booking_request_service)
):
    """Requests addressed to the caller as a mentor"""
    requests = booking_request_service.get_requests_for_mentor(current_user.id, status)
    return ApiResponse(success=True, data=ResponseEnricher.enrich_requests(requests))

@router.get("/available-mentors", response_model=ApiResponse)
async def get_available_mentors(
    current_user: User = Depends(get_current_user),
    booking_request_service: BookingRequestService = Depends(get_booking_request_service)
):
    """Mentors the caller has booked before and can send a time request to"""
    mentors = booking_request_service.get_available_mentors(current_user.id)
    return ApiResponse(
        success=True,
        data=[MentorSummary.model_validate(m).model_dump(mode="json") for m in mentors],
    )

@router.put("/{request_id}/respond", response_model=ApiResponse)
async def respond_to_request(
    request_id: str = Path(..., description="The ID of the booking request"),
    response_data: BookingRequestRespond = ...,
    current_user: User = Depends(get_current_user),
    booking_request_service: BookingRequestService = Depends(get_booking_request_service)
):
    """Approve or decline a pending request"""
    try:
        request = booking_request_service.respond_to_request(
            current_user.id, request_id, response_data.status, response_data.mentor_response
        )
        return ApiResponse(
            success=True,
            message=f"Request {response_data.status.value}",
            data=ResponseEnricher.enrich_single_request(request),
        )
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.delete("/{request_id}", response_model=ApiResponse)
async def delete_request(
    request_id: str = Path(..., description="The ID of the booking request"),
    current_user: User = Depends(get_current_user),
    booking_request_service: BookingRequestService = Depends(get_booking_request_service)
):
    """Withdraw a request that is still pending"""
    try:
        booking_request_service.delete_request(current_user.id, request_id)
        return ApiResponse(success=True, message="Request deleted")
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
