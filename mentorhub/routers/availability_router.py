# mentorhub/routers/availability_router.py
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from ..services import AvailabilityService
from ..dependencies.auth_dependencies import get_owned_mentor_profile
from ..dependencies.service_dependencies import get_availability_service
from ..schemas import (
    ApiResponse, AvailabilitySlotCreate, AvailabilitySlotResponse, BlockedDateCreate, BlockedDateResponse,
)
from ..models import MentorProfile
from ..utils.time_utils import utcnow
from ..exceptions import BusinessLogicError

router = APIRouter(prefix="/api/mentors", tags=["availability"])

@router.get("/{mentor_id}/availability", response_model=ApiResponse)
async def get_mentor_availability(
    mentor_id: int = Path(..., description="The ID of the mentor"),
    start_date: Optional[date] = Query(None, description="Defaults to today (UTC)"),
    end_date: Optional[date] = Query(None, description="Defaults to 30 days after start_date"),
    availability_service: AvailabilityService = Depends(get_availability_service)
):
    """Recurring slots, one-off slots and blocked dates of a mentor"""
    start_date = start_date or utcnow().date()
    end_date = end_date or start_date + timedelta(days=30)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    availability = availability_service.get_mentor_availability(mentor_id, start_date, end_date)
    return ApiResponse(success=True, data=availability.model_dump(mode="json"))

@router.get("/{mentor_id}/available-slots", response_model=ApiResponse)
async def get_available_slots(
    mentor_id: int = Path(..., description="The ID of the mentor"),
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    duration: int = Query(60, gt=0, le=240, description="Session length in minutes"),
    availability_service: AvailabilityService = Depends(get_availability_service)
):
    """Start times on a day, every 30 minutes, flagged as free or booked"""
    slots = availability_service.get_available_time_slots(mentor_id, day, duration)
    return ApiResponse(success=True, data=[slot.model_dump() for slot in slots])

@router.post("/{mentor_id}/availability", response_model=ApiResponse, status_code=201)
async def add_availability_slot(
    slot_data: AvailabilitySlotCreate,
    owned_profile: MentorProfile = Depends(get_owned_mentor_profile),
    availability_service: AvailabilityService = Depends(get_availability_service)
):
    """Add a recurring or one-off slot to the caller's calendar"""
    try:
        slot = availability_service.add_slot(owned_profile.id, slot_data)
        return ApiResponse(
            success=True,
            message="Availability added",
            data=AvailabilitySlotResponse.model_validate(slot).model_dump(mode="json"),
        )
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.delete("/{mentor_id}/availability/{slot_id}", response_model=ApiResponse)
async def delete_availability_slot(
    slot_id: str,
    owned_profile: MentorProfile = Depends(get_owned_mentor_profile),
    availability_service: AvailabilityService = Depends(get_availability_service)
):
    try:
        availability_service.delete_slot(owned_profile.id, slot_id)
        return ApiResponse(success=True, message="Availability removed")
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.post("/{mentor_id}/blocked-dates", response_model=ApiResponse, status_code=201)
async def block_date(
    blocked_data: BlockedDateCreate,
    owned_profile: MentorProfile = Depends(get_owned_mentor_profile),
    availability_service: AvailabilityService = Depends(get_availability_service)
):
    """Block a whole day; no session can be booked on it"""
    try:
        blocked = availability_service.block_date(owned_profile.id, blocked_data)
        return ApiResponse(
            success=True,
            message="Date blocked",
            data=BlockedDateResponse.model_validate(blocked).model_dump(mode="json"),
        )
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.delete("/{mentor_id}/blocked-dates/{blocked_on}", response_model=ApiResponse)
async def unblock_date(
    blocked_on: date,
    owned_profile: MentorProfile = Depends(get_owned_mentor_profile),
    availability_service: AvailabilityService = Depends(get_availability_service)
):
    try:
        availability_service.unblock_date(owned_profile.id, blocked_on)
        return ApiResponse(success=True, message="Date unblocked")
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
