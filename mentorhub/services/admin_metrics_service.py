# mentorhub/services/admin_metrics_service.py
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..config import Settings, get_settings
from ..constants import BusinessRules
from ..models import Booking, MentorProfile, PaymentStatus, UserRole, UserRoleName
from ..schemas import AdminMetrics, AdminOverview, DailyMetric, TopMentor
from ..utils.response_enricher import ResponseEnricher
from ..utils.time_utils import as_utc, utcnow

logger = logging.getLogger(__name__)


class AdminMetricsService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def get_metrics(self, now: Optional[datetime] = None) -> AdminMetrics:
        now = as_utc(now) if now else utcnow()
        logger.info("Fetching admin metrics...")

        total_mentors = self.db.query(func.count(MentorProfile.id)).scalar() or 0
        total_students = self.db.query(func.count(UserRole.id)).filter(
            UserRole.role == UserRoleName.STUDENT.value
        ).scalar() or 0
        total_bookings = self.db.query(func.count(Booking.id)).scalar() or 0

        paid = self.db.query(Booking).options(
            joinedload(Booking.mentor_profile),
            joinedload(Booking.mentor),
        ).filter(Booking.payment_status == PaymentStatus.PAID.value).all()
        total_revenue = sum(float(b.total_amount or 0) for b in paid)

        recent = self.db.query(Booking).options(
            joinedload(Booking.mentor_profile),
            joinedload(Booking.mentor),
        ).order_by(Booking.created_at.desc()).limit(BusinessRules.RECENT_BOOKINGS_LIMIT).all()

        metrics = AdminMetrics(
            overview=AdminOverview(
                total_mentors=total_mentors,
                total_students=total_students,
                total_bookings=total_bookings,
                total_revenue=total_revenue,
                platform_commission=round(total_revenue * self.settings.PLATFORM_COMMISSION_RATE, 2),
            ),
            recent_bookings=ResponseEnricher.enrich_bookings(recent),
            daily_metrics=self._daily_metrics(now.date()),
            top_mentors=self._top_mentors(paid),
        )
        logger.info("Metrics fetched successfully")
        return metrics

    def _daily_metrics(self, today: date):
        since = today - timedelta(days=BusinessRules.DAILY_METRICS_DAYS)
        rows = self.db.query(Booking).filter(Booking.scheduled_date >= since).all()

        per_day: Dict[date, Dict[str, float]] = defaultdict(lambda: {"bookings": 0, "revenue": 0.0})
        for booking in rows:
            day = per_day[booking.scheduled_date]
            day["bookings"] += 1
            if booking.payment_status == PaymentStatus.PAID.value:
                day["revenue"] += float(booking.total_amount or 0)

        return [
            DailyMetric(date=day, bookings=int(values["bookings"]), revenue=values["revenue"])
            for day, values in sorted(per_day.items(), reverse=True)
        ]

    def _top_mentors(self, paid_bookings):
        per_mentor = {}
        for booking in paid_bookings:
            entry = per_mentor.setdefault(booking.mentor_id, {
                "mentor": ResponseEnricher.mentor_summary(booking.mentor_profile, booking.mentor, booking.mentor_id),
                "revenue": 0.0,
                "bookings": 0,
            })
            entry["revenue"] += float(booking.total_amount or 0)
            entry["bookings"] += 1

        ranked = sorted(per_mentor.values(), key=lambda e: e["revenue"], reverse=True)
        return [TopMentor(**entry) for entry in ranked[:BusinessRules.TOP_MENTORS_LIMIT]]
