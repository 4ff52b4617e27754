# mentorhub/routers/mentor_router.py
from fastapi import APIRouter, Depends, HTTPException, Path

from ..services import MentorProfileService
from ..dependencies.auth_dependencies import get_owned_mentor_profile
from ..dependencies.service_dependencies import get_mentor_profile_service
from ..schemas import ApiResponse, MentorProfileCreate, MentorProfileResponse, MentorProfileUpdate
from ..models import MentorProfile, User
from ..security import get_current_user
from ..exceptions import BusinessLogicError

router = APIRouter(prefix="/api", tags=["mentors"])

def _profile_data(profile: MentorProfile) -> dict:
    return MentorProfileResponse.model_validate(profile).model_dump(mode="json")

@router.post("/mentors", response_model=ApiResponse, status_code=201)
async def create_mentor_profile(
    profile_data: MentorProfileCreate,
    current_user: User = Depends(get_current_user),
    profile_service: MentorProfileService = Depends(get_mentor_profile_service)
):
    """Create the caller's mentor profile"""
    try:
        profile = profile_service.create_profile(current_user, profile_data.model_dump())
        return ApiResponse(success=True, message="Mentor profile created", data=_profile_data(profile))
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.put("/mentors/{mentor_id}", response_model=ApiResponse)
async def update_mentor_profile(
    mentor_id: int = Path(..., description="The ID of the mentor to update"),
    profile_data: MentorProfileUpdate = ...,
    owned_profile: MentorProfile = Depends(get_owned_mentor_profile),
    profile_service: MentorProfileService = Depends(get_mentor_profile_service)
):
    """Update a mentor profile"""
    try:
        profile = profile_service.update_profile(owned_profile.id, profile_data.model_dump(exclude_unset=True))
        return ApiResponse(success=True, message="Mentor profile updated", data=_profile_data(profile))
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.get("/mentors/{mentor_id}", response_model=ApiResponse)
async def get_mentor_profile(
    mentor_id: int = Path(..., description="The ID of the mentor"),
    profile_service: MentorProfileService = Depends(get_mentor_profile_service)
):
    """Public mentor profile"""
    try:
        return ApiResponse(success=True, data=_profile_data(profile_service.get_profile(mentor_id)))
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
