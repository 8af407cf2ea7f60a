"""
Site endpoints: opening hours, the raw hour window and linked groups.
"""

from datetime import date

from fastapi import APIRouter, Query

from courtbook.dependencies import CurrentUser
from courtbook.models import HourSlot, LinkedGroup, ScheduleConfig, ScheduleUpdate, Site
from courtbook.services import availability
from courtbook.services.registry import registry

router = APIRouter(prefix="/api/sites", tags=["sites"])


@router.get(
    "/schedules",
    response_model=list[ScheduleConfig],
    operation_id="listSchedules",
    summary="Opening hours of every site",
)
async def list_schedules() -> list[ScheduleConfig]:
    return registry.list_schedules()


@router.put(
    "/{site}/schedule",
    response_model=ScheduleConfig,
    operation_id="updateSchedule",
    summary="Change a site's opening hours",
)
async def update_schedule(site: Site, body: ScheduleUpdate, current_user: CurrentUser) -> ScheduleConfig:
    return await registry.update_schedule(site, body.opening_hour, body.closing_hour)


@router.get(
    "/{site}/hours",
    response_model=list[HourSlot],
    operation_id="listSiteHours",
    summary="Hours of an operating day that have not started yet",
)
async def list_site_hours(
    site: Site,
    day: date = Query(..., description="Operating day (YYYY-MM-DD)"),
) -> list[HourSlot]:
    return availability.available_hours(site, day)


@router.get(
    "/linked-groups",
    response_model=list[LinkedGroup],
    operation_id="listLinkedGroups",
    summary="Courts that share one slot pool",
)
async def list_linked_groups() -> list[LinkedGroup]:
    return registry.list_groups()
