# mentorhub/routers/admin_router.py
from fastapi import APIRouter, Depends, HTTPException

from ..services import AdminMetricsService
from ..dependencies.auth_dependencies import require_admin
from ..dependencies.service_dependencies import get_admin_metrics_service
from ..schemas import ApiResponse
from ..models import User
from ..exceptions import BusinessLogicError

router = APIRouter(prefix="/functions", tags=["admin"])

@router.get("/admin-metrics", response_model=ApiResponse)
async def admin_metrics(
    admin_user: User = Depends(require_admin),
    metrics_service: AdminMetricsService = Depends(get_admin_metrics_service)
):
    """Platform totals, recent bookings, daily numbers and top mentors"""
    try:
        metrics = metrics_service.get_metrics()
        return ApiResponse(success=True, data=metrics.model_dump(mode="json"))
    except BusinessLogicError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
