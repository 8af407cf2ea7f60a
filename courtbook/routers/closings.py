"""
Closing endpoints (staff only).
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from courtbook.dependencies import CurrentUser, PaginationParams, paginate
from courtbook.models import ClosingCreate, ClosingListResponse, ClosingReport
from courtbook.services import closing

router = APIRouter(prefix="/api/closings", tags=["closings"])


@router.get(
    "",
    response_model=ClosingListResponse,
    operation_id="listClosings",
    summary="List closings, newest first",
)
async def list_closings(
    current_user: CurrentUser,
    pagination: PaginationParams = Depends(PaginationParams),
) -> ClosingListResponse:
    return paginate(await closing.list_closings(), pagination, ClosingListResponse)


@router.post(
    "",
    response_model=ClosingReport,
    status_code=status.HTTP_201_CREATED,
    operation_id="createClosing",
    summary="Reconcile a set of days and store the closing",
)
async def create_closing(body: ClosingCreate, current_user: CurrentUser) -> ClosingReport:
    return await closing.generate_closing(body.dates, body.note, current_user.email)


@router.get(
    "/{closing_id}",
    response_model=ClosingReport,
    operation_id="getClosing",
    summary="Get one closing",
)
async def get_closing(closing_id: UUID, current_user: CurrentUser) -> ClosingReport:
    return await closing.get_closing(closing_id)


@router.delete(
    "/{closing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteClosing",
    summary="Delete a closing and its document",
)
async def delete_closing(closing_id: UUID, current_user: CurrentUser) -> None:
    await closing.delete_closing(closing_id)
