# mentorhub/services/review_service.py
import logging
import math
from typing import Tuple, List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..constants import ErrorMessages
from ..exceptions import AuthorizationError, DuplicateReviewError, UpstreamError, ValidationError
from ..models import Review, SessionStatus
from ..schemas import ReviewCreate, ReviewUpdate, Pagination
from ..utils.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

class ReviewService:
    def __init__(self, db: Session):
        self.db = db
        self.validator = ValidationUtils(db)

    def submit_review(self, review_data: ReviewCreate, current_user_id: int) -> Review:
        """Submits a review for a completed session the caller attended as student"""
        booking = self.validator.get_booking_or_404(review_data.booking_id)
        if booking.student_id != current_user_id:
            raise AuthorizationError("Only the student of a session can review it")
        if booking.status != SessionStatus.COMPLETED.value:
            raise ValidationError("Reviews can only be left for completed sessions")

        review = Review(
            booking_id=booking.id,
            user_id=current_user_id,
            mentor_id=booking.mentor_id,
            rating=review_data.rating,
            comment=review_data.comment
        )
        self.db.add(review)
        try:
            self.db.commit()
        except IntegrityError:
            # uq_review_booking_user
            self.db.rollback()
            raise DuplicateReviewError(ErrorMessages.DUPLICATE_REVIEW)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error submitting review for booking {booking.id}: {e}")
            raise UpstreamError.from_store("Failed to submit review", e)
        self.db.refresh(review)
        return review

    def get_mentor_reviews(self, mentor_id: int, page: int = 1, limit: int = 10) -> Tuple[List[Review], Pagination]:
        """Reviews of a mentor, newest first, one page at a time"""
        query = self.db.query(Review).filter(Review.mentor_id == mentor_id)
        total = query.count()
        reviews = query.options(joinedload(Review.user)).order_by(
            Review.created_at.desc(), Review.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()
        return reviews, Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        )

    def update_review(self, review_id: int, data: ReviewUpdate, current_user_id: int) -> Review:
        review = self.validator.get_review_or_404(review_id)
        if review.user_id != current_user_id:
            raise AuthorizationError(ErrorMessages.UNAUTHORIZED)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(review, key, value)
        self.db.commit()
        self.db.refresh(review)
        return review

    def delete_review(self, review_id: int, current_user_id: int) -> None:
        review = self.validator.get_review_or_404(review_id)
        if review.user_id != current_user_id:
            raise AuthorizationError(ErrorMessages.UNAUTHORIZED)
        self.db.delete(review)
        self.db.commit()

    def get_mentor_average_rating(self, mentor_id: int) -> Tuple[float, int]:
        """(average rounded to one decimal, number of reviews)"""
        average, total = self.db.query(
            func.avg(Review.rating), func.count(Review.id)
        ).filter(Review.mentor_id == mentor_id).one()
        if not total:
            return 0.0, 0
        return round(float(average), 1), total
