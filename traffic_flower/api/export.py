"""CSV export endpoints."""

from datetime import UTC, date, datetime, time
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from traffic_flower.api.dependencies import get_current_user_id, get_export_service
from traffic_flower.exceptions import ValidationError
from traffic_flower.services.export import ExportService

router = APIRouter(
    prefix="/api/export",
    tags=["export"],
    dependencies=[Depends(get_current_user_id)],
)


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _parse_datetime(value: str | None, name: str, end_of_day: bool = False) -> datetime | None:
    """Parse an ISO date or datetime as UTC.

    A bare date means the start of that day, or its end when ``end_of_day``.
    """
    if not value:
        return None
    try:
        day = date.fromisoformat(value)
    except ValueError:
        pass
    else:
        return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=UTC)

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date or datetime") from None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


@router.get("/intersections/csv")
async def export_intersections(
    service: Annotated[ExportService, Depends(get_export_service)],
):
    """Download all intersections with semaphore and station counts."""
    return _csv_response(service.intersections_csv(), "intersections.csv")


@router.get("/traffic/csv")
async def export_traffic(
    service: Annotated[ExportService, Depends(get_export_service)],
    start_date: str | None = None,
    end_date: str | None = None,
):
    """Download crossings in a date range (default: the last seven days)."""
    start = _parse_datetime(start_date, "start_date")
    end = _parse_datetime(end_date, "end_date", end_of_day=True)
    return _csv_response(service.traffic_csv(start, end), "traffic-data.csv")
