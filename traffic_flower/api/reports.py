"""Congestion and violation report endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from traffic_flower.api.dependencies import (
    get_current_user_id,
    get_days,
    get_limit,
    get_report_service,
)
from traffic_flower.schemas.report import CongestionEntry, ViolationEntry
from traffic_flower.services.reports import ReportService

router = APIRouter(
    prefix="/api/reports",
    tags=["reports"],
    dependencies=[Depends(get_current_user_id)],
)


@router.get("/congestion", response_model=list[CongestionEntry])
async def get_congestion_report(
    service: Annotated[ReportService, Depends(get_report_service)],
    days: Annotated[int, Depends(get_days)],
    limit: Annotated[int, Depends(get_limit)],
):
    """Delayed public transport stops, most delayed first."""
    return service.congestion_report(days, limit)


@router.get("/violations", response_model=list[ViolationEntry])
async def get_violations_report(
    service: Annotated[ReportService, Depends(get_report_service)],
    days: Annotated[int, Depends(get_days)],
    limit: Annotated[int, Depends(get_limit)],
):
    """Red-light crossings, newest first."""
    return service.violations_report(days, limit)
