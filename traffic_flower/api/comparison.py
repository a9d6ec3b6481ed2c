"""Side-by-side intersection comparison endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from traffic_flower.api.dependencies import get_current_user_id, get_traffic_stats_service
from traffic_flower.exceptions import ValidationError
from traffic_flower.schemas.intersection import IntersectionComparison
from traffic_flower.services.traffic_stats import TrafficStatsService

router = APIRouter(
    prefix="/api/comparison",
    tags=["comparison"],
    dependencies=[Depends(get_current_user_id)],
)


def parse_id_list(ids: str | None = None) -> list[int]:
    """Parse ``1,2,3``; unparseable entries are dropped."""
    if not ids:
        raise ValidationError("Intersection IDs required (comma-separated)")

    parsed = []
    for raw in ids.split(","):
        try:
            parsed.append(int(raw.strip()))
        except ValueError:
            continue

    if not parsed:
        raise ValidationError("No valid intersection IDs provided")
    return parsed


@router.get("/intersections", response_model=list[IntersectionComparison])
async def compare_intersections(
    intersection_ids: Annotated[list[int], Depends(parse_id_list)],
    service: Annotated[TrafficStatsService, Depends(get_traffic_stats_service)],
):
    """Car, bus and tram counts for each requested intersection."""
    return service.compare_intersections(intersection_ids)
