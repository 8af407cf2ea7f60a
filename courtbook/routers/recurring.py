"""
Weekly recurring bookings (staff only).
"""

from uuid import UUID

from fastapi import APIRouter, status

from courtbook.dependencies import CurrentUser
from courtbook.models import RecurringBooking, RecurringCreate, RecurringDeleteResult, RecurringResult
from courtbook.services import bookings

router = APIRouter(prefix="/api/recurring-bookings", tags=["recurring"])


@router.get(
    "",
    response_model=list[RecurringBooking],
    operation_id="listRecurringBookings",
    summary="List weekly recurring bookings",
)
async def list_recurring(current_user: CurrentUser) -> list[RecurringBooking]:
    return await bookings.list_recurring()


@router.post(
    "",
    response_model=RecurringResult,
    status_code=status.HTTP_201_CREATED,
    operation_id="createRecurringBooking",
    summary="Create a weekly booking and its next occurrences",
)
async def create_recurring(body: RecurringCreate, current_user: CurrentUser) -> RecurringResult:
    return await bookings.create_recurring(body)


@router.delete(
    "/{recurring_id}",
    response_model=RecurringDeleteResult,
    operation_id="deleteRecurringBooking",
    summary="Remove a series; paid occurrences are kept",
)
async def delete_recurring(recurring_id: UUID, current_user: CurrentUser) -> RecurringDeleteResult:
    deleted, kept = await bookings.delete_recurring(recurring_id)
    return RecurringDeleteResult(deleted=deleted, kept=kept)
