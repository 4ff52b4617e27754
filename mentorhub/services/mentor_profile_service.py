# mentorhub/services/mentor_profile_service.py
from typing import Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from datetime import datetime, timezone

from ..constants import ErrorMessages
from ..models import MentorProfile, User, UserRole, UserRoleName
from ..utils.validation_utils import ValidationUtils
from ..exceptions import ConflictError, UpstreamError
import logging

logger = logging.getLogger(__name__)

class MentorProfileService:
    def __init__(self, db: Session):
        self.db = db
        self.validator = ValidationUtils(db)

    def create_profile(self, user: User, data: Dict[str, Any]) -> MentorProfile:
        """Creates the caller's mentor profile and grants the mentor role"""
        existing = self.db.query(MentorProfile).filter(MentorProfile.id == user.id).first()
        if existing:
            raise ConflictError(ErrorMessages.DUPLICATE_PROFILE)

        try:
            profile = MentorProfile(id=user.id, **self._prepare_profile_data(data))
            self.db.add(profile)
            if not user.has_role(UserRoleName.MENTOR):
                self.db.add(UserRole(user_id=user.id, role=UserRoleName.MENTOR.value))
            self.db.commit()
            self.db.refresh(profile)
            logger.info(f"Mentor profile {profile.id} ({profile.full_name}) created")
            return profile
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Database integrity error creating mentor profile: {e}")
            raise ConflictError(ErrorMessages.DUPLICATE_PROFILE)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error creating mentor profile: {e}")
            raise UpstreamError.from_store("Database error occurred while creating mentor profile", e)

    def update_profile(self, mentor_id: int, data: Dict[str, Any]) -> MentorProfile:
        """Updates the provided fields of a mentor profile"""
        profile = self.validator.get_mentor_or_404(mentor_id)
        try:
            for key, value in self._prepare_profile_data(data).items():
                if hasattr(profile, key) and value is not None:
                    setattr(profile, key, value)

            profile.updated_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(profile)
            logger.info(f"Mentor profile {profile.id} updated")
            return profile
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Database integrity error updating mentor profile {mentor_id}: {e}")
            raise ConflictError("Username is already taken")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error updating mentor profile {mentor_id}: {e}")
            raise UpstreamError.from_store("Database error occurred while updating mentor profile", e)

    def get_profile(self, mentor_id: int) -> MentorProfile:
        return self.validator.get_mentor_or_404(mentor_id)

    def _prepare_profile_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        prepared = {}
        for key, value in data.items():
            # Nested pydantic models are stored as plain JSON
            if key == 'services' and value:
                value = {
                    service_key: offering.model_dump(mode='json') if hasattr(offering, 'model_dump') else offering
                    for service_key, offering in value.items()
                }
            prepared[key] = value
        return prepared
