# mentorhub/routers/review_router.py
from fastapi import APIRouter, Depends, HTTPException, Path, Query

from ..services import ReviewService
from ..dependencies.auth_dependencies import rate_limited
from ..dependencies.service_dependencies import get_review_service
from ..utils.response_enricher import ResponseEnricher
from ..schemas import ApiResponse, MentorRating, ReviewCreate, ReviewPage, ReviewResponse, ReviewUpdate
from ..models import User
from ..security import get_current_user
from ..constants import RateLimitAction
from ..exceptions import BusinessLogicError

router = APIRouter(prefix="/api", tags=["reviews"])

@router.post("/reviews", response_model=ApiResponse, status_code=201)
async def submit_review(
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    _rate_limit=Depends(rate_limited(RateLimitAction.REVIEW_CREATE)),
    review_service: ReviewService = Depends(get_review_service)
):
    """Rate a completed session"""
    try:
        review = review_service.submit_review(review_data, current_user.id)
        return ApiResponse(success=True, message="Review submitted", data=ResponseEnricher.enrich_review(review))
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.get("/mentors/{mentor_id}/reviews", response_model=ApiResponse)
async def get_mentor_reviews(
    mentor_id: int = Path(..., description="The ID of the mentor"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    review_service: ReviewService = Depends(get_review_service)
):
    reviews, pagination = review_service.get_mentor_reviews(mentor_id, page, limit)
    review_page = ReviewPage(
        items=[ReviewResponse(**ResponseEnricher.enrich_review(r)) for r in reviews],
        pagination=pagination,
    )
    return ApiResponse(success=True, data=review_page.model_dump(mode="json"))

@router.get("/mentors/{mentor_id}/rating", response_model=ApiResponse)
async def get_mentor_rating(
    mentor_id: int = Path(..., description="The ID of the mentor"),
    review_service: ReviewService = Depends(get_review_service)
):
    average, total = review_service.get_mentor_average_rating(mentor_id)
    rating = MentorRating(mentor_id=mentor_id, average_rating=average, total_reviews=total)
    return ApiResponse(success=True, data=rating.model_dump())

@router.put("/reviews/{review_id}", response_model=ApiResponse)
async def update_review(
    review_id: int = Path(..., description="The ID of the review"),
    review_data: ReviewUpdate = ...,
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service)
):
    try:
        review = review_service.update_review(review_id, review_data, current_user.id)
        return ApiResponse(success=True, message="Review updated", data=ResponseEnricher.enrich_review(review))
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

@router.delete("/reviews/{review_id}", response_model=ApiResponse)
async def delete_review(
    review_id: int = Path(..., description="The ID of the review"),
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service)
):
    try:
        review_service.delete_review(review_id, current_user.id)
        return ApiResponse(success=True, message="Review deleted")
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
