"""Intersection endpoints backing the map and the intersection tabs."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from traffic_flower.api.dependencies import (
    get_current_user_id,
    get_days,
    get_minutes,
    get_traffic_stats_service,
    parse_intersection_id,
)
from traffic_flower.exceptions import ValidationError
from traffic_flower.schemas.intersection import (
    FlowPoint,
    HistoryResponse,
    IntersectionDetail,
    IntersectionResponse,
    ScheduleEntry,
    SemaphoreStatus,
    VolumeStats,
)
from traffic_flower.services.traffic_stats import TrafficStatsService

router = APIRouter(
    prefix="/api/intersections",
    tags=["intersections"],
    dependencies=[Depends(get_current_user_id)],
)

IntersectionId = Annotated[int, Depends(parse_intersection_id)]
Stats = Annotated[TrafficStatsService, Depends(get_traffic_stats_service)]


@router.get("", response_model=list[IntersectionResponse])
async def list_intersections(service: Stats):
    """Get all intersections ordered by name."""
    return service.list_intersections()


@router.get("/{intersection_id}", response_model=IntersectionDetail)
async def get_intersection(intersection_id: IntersectionId, service: Stats):
    """Get an intersection with its semaphores and stations."""
    return service.get_intersection_detail(intersection_id)


@router.get("/{intersection_id}/stats/volume", response_model=VolumeStats)
async def get_volume_stats(
    intersection_id: IntersectionId,
    service: Stats,
    days: Annotated[int, Depends(get_days)],
):
    """Crossing counts per vehicle class over the last ``days`` days."""
    return service.volume_stats(intersection_id, days)


@router.get("/{intersection_id}/stats/flow", response_model=list[FlowPoint])
async def get_flow_stats(
    intersection_id: IntersectionId,
    service: Stats,
    minutes: Annotated[int, Depends(get_minutes)],
):
    """Per-minute vehicle counts for the last ``minutes`` minutes."""
    return service.flow_stats(intersection_id, minutes)


@router.get("/{intersection_id}/semaphores/current", response_model=list[SemaphoreStatus])
async def get_semaphore_status(intersection_id: IntersectionId, service: Stats):
    """Current light color of every semaphore at the intersection."""
    return service.current_semaphore_status(intersection_id)


@router.get("/{intersection_id}/schedule", response_model=list[ScheduleEntry])
async def get_schedule(
    intersection_id: IntersectionId,
    service: Stats,
    days: Annotated[int, Depends(get_days)],
):
    """Public transport stops at the intersection's stations."""
    return service.schedule(intersection_id, days)


@router.get("/{intersection_id}/history", response_model=HistoryResponse)
async def get_history(
    intersection_id: IntersectionId,
    service: Stats,
    day: Annotated[str | None, Query(alias="date")] = None,
):
    """Daily summary for one calendar day (``YYYY-MM-DD``)."""
    if not day:
        raise ValidationError("Date parameter is required (YYYY-MM-DD)")
    try:
        parsed = date.fromisoformat(day)
    except ValueError:
        raise ValidationError("Date parameter must be formatted YYYY-MM-DD") from None
    return service.history(intersection_id, parsed)
