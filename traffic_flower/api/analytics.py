"""Analytics endpoints for the system-wide dashboard."""

from typing import Annotated

from fastapi import APIRouter, Depends

from traffic_flower.api.dependencies import get_current_user_id, get_days, get_report_service
from traffic_flower.schemas.report import DailyDelays, DailyTraffic, DashboardResponse
from traffic_flower.services.reports import ReportService

router = APIRouter(
    prefix="/api/analytics",
    tags=["analytics"],
    dependencies=[Depends(get_current_user_id)],
)

Reports = Annotated[ReportService, Depends(get_report_service)]
Days = Annotated[int, Depends(get_days)]


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(service: Reports, days: Days):
    """Headline numbers: intersections, delays, average delay, violations."""
    return service.dashboard(days)


@router.get("/traffic-flow", response_model=list[DailyTraffic])
async def get_traffic_flow(service: Reports, days: Days):
    """Daily crossing counts per vehicle class."""
    return service.traffic_flow(days)


@router.get("/congestion-trends", response_model=list[DailyDelays])
async def get_congestion_trends(service: Reports, days: Days):
    """Daily number of delayed stops."""
    return service.congestion_trends(days)
