# mentorhub/utils/response_enricher.py
from typing import Dict, Any, List, Optional
from ..models import BookingRequest, Booking, MentorProfile, User, Review
from ..schemas import BookingRequestResponse, BookingResponse, MentorSummary, ReviewResponse, StudentSummary

class ResponseEnricher:
    @staticmethod
    def mentor_summary(profile: Optional[MentorProfile], user: Optional[User], mentor_id: int) -> MentorSummary:
        """Public mentor card, falling back to the user record when there is no mentor profile"""
        if profile is not None:
            return MentorSummary.model_validate(profile)
        return MentorSummary(
            id=mentor_id,
            full_name=(user.full_name or user.username) if user else f"Mentor {mentor_id}",
        )

    @staticmethod
    def enrich_requests(requests: List[BookingRequest]) -> List[Dict[str, Any]]:
        """Enriches booking requests with the mentor's public profile"""
        enriched = []
        for req in requests:
            req_dict = BookingRequestResponse.model_validate(req).model_dump(mode="json")
            req_dict['mentor'] = ResponseEnricher.mentor_summary(
                req.mentor_profile, req.mentor, req.mentor_id
            ).model_dump(mode="json")
            enriched.append(req_dict)
        return enriched

    @staticmethod
    def enrich_single_request(request: BookingRequest) -> Dict[str, Any]:
        """Enriches a single booking request"""
        return ResponseEnricher.enrich_requests([request])[0]

    @staticmethod
    def enrich_bookings(bookings: List[Booking]) -> List[Dict[str, Any]]:
        enriched = []
        for booking in bookings:
            booking_dict = BookingResponse.model_validate(booking).model_dump(mode="json")
            booking_dict['mentor'] = ResponseEnricher.mentor_summary(
                booking.mentor_profile, booking.mentor, booking.mentor_id
            ).model_dump(mode="json")
            enriched.append(booking_dict)
        return enriched

    @staticmethod
    def enrich_single_booking(booking: Booking) -> Dict[str, Any]:
        return ResponseEnricher.enrich_bookings([booking])[0]

    @staticmethod
    def enrich_session_detail(booking: Booking) -> Dict[str, Any]:
        """A single session with both the mentor card and the student contact"""
        booking_dict = ResponseEnricher.enrich_single_booking(booking)
        if booking.student is not None:
            booking_dict["student"] = StudentSummary.model_validate(booking.student).model_dump(mode="json")
        return booking_dict

    @staticmethod
    def enrich_review(review: Review) -> Dict[str, Any]:
        review_dict = ReviewResponse.model_validate(review).model_dump(mode="json")
        if review.user is not None:
            review_dict['reviewer_name'] = review.user.full_name or review.user.username
        return review_dict
