from datetime import date

from fastapi import APIRouter, Query

from courtbook.models import Court, CourtAvailability, Site
from courtbook.services import availability
from courtbook.services.registry import registry

router = APIRouter(prefix="/api/courts", tags=["courts"])


@router.get(
    "",
    response_model=list[Court],
    operation_id="listCourts",
    summary="List courts, optionally for one site",
)
async def list_courts(site: Site | None = Query(None)) -> list[Court]:
    return registry.list_courts(site)


@router.get(
    "/{court_id}",
    response_model=Court,
    operation_id="getCourt",
    summary="Get details of a specific court",
)
async def get_court(court_id: int) -> Court:
    return registry.get_court(court_id)


@router.get(
    "/{court_id}/availability",
    response_model=CourtAvailability,
    operation_id="getCourtAvailability",
    summary="Bookable hours of a court on an operating day, marked free or taken",
)
async def get_court_availability(
    court_id: int,
    day: date = Query(..., description="Operating day (YYYY-MM-DD)"),
) -> CourtAvailability:
    return await availability.court_availability(court_id, day)
