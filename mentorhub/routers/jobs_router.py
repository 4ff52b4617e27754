# mentorhub/routers/jobs_router.py
from fastapi import APIRouter, Depends

from ..services import NotificationService
from ..dependencies.auth_dependencies import require_cron_secret
from ..dependencies.service_dependencies import get_notification_service
from ..schemas import ApiResponse

# Triggered by a scheduler every few minutes, never by end users
router = APIRouter(prefix="/functions", tags=["jobs"], dependencies=[Depends(require_cron_secret)])

@router.post("/send-reminders", response_model=ApiResponse)
async def send_reminders(notification_service: NotificationService = Depends(get_notification_service)):
    summary = notification_service.send_session_reminders()
    return ApiResponse(
        success=True,
        message=f"Sent {summary.sent_24h} 24h reminders and {summary.sent_1h} 1h reminders",
        data=summary.model_dump(),
    )

@router.post("/send-review-requests", response_model=ApiResponse)
async def send_review_requests(notification_service: NotificationService = Depends(get_notification_service)):
    summary = notification_service.send_review_requests()
    return ApiResponse(
        success=True,
        message=f"Sent {summary.emails_sent} review request emails",
        data=summary.model_dump(),
    )
