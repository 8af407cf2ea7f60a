"""
Booking endpoints.

Creating a booking, the "today" board, the booking summary and proof
upload are public; the rest is for staff (session cookie).
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from courtbook.dependencies import CurrentUser, PaginationParams, paginate
from courtbook.models import (
    BookingCreate,
    BookingListResponse,
    BookingSummary,
    BookingUpdate,
    BookingView,
    CheckedToggle,
    DepositConfirmation,
    PaymentStatus,
    ProofAttach,
    Site,
    TodayBoardEntry,
)
from courtbook.rate_limit import PUBLIC_READ, PUBLIC_WRITE, limiter
from courtbook.services import bookings, payments

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


# ── Public ────────────────────────────────────────────────────────────────


@router.post(
    "",
    response_model=BookingView,
    status_code=status.HTTP_201_CREATED,
    operation_id="createBooking",
    summary="Book one hour on a court",
)
@limiter.limit(PUBLIC_WRITE)
async def create_booking(request: Request, body: BookingCreate) -> BookingView:
    return await bookings.create_booking(body)


@router.get(
    "/today",
    response_model=list[TodayBoardEntry],
    operation_id="getTodayBoard",
    summary="Today's bookings with first names only",
)
async def get_today_board(site: Site | None = Query(None)) -> list[TodayBoardEntry]:
    return await bookings.today_board(site)


@router.get(
    "/{booking_id}/summary",
    response_model=BookingSummary,
    operation_id="getBookingSummary",
    summary="Customer view of a booking: slot, price and deposit deadline",
)
@limiter.limit(PUBLIC_READ)
async def get_booking_summary(request: Request, booking_id: UUID) -> BookingSummary:
    return await bookings.booking_summary(booking_id)


@router.post(
    "/{booking_id}/proof",
    response_model=BookingSummary,
    operation_id="attachProof",
    summary="Attach the reference of an uploaded deposit receipt",
)
@limiter.limit(PUBLIC_WRITE)
async def attach_proof(request: Request, booking_id: UUID, body: ProofAttach) -> BookingSummary:
    await bookings.attach_proof(booking_id, body.proof_ref)
    return await bookings.booking_summary(booking_id)


# ── Staff ─────────────────────────────────────────────────────────────────


@router.get(
    "",
    response_model=BookingListResponse,
    operation_id="listBookings",
    summary="List bookings by date range, court, site and payment status",
)
async def list_bookings(
    current_user: CurrentUser,
    pagination: PaginationParams = Depends(PaginationParams),
    date_from: date | None = Query(None, description="First slot date (inclusive)"),
    date_to: date | None = Query(None, description="Last slot date (inclusive)"),
    court_id: int | None = Query(None),
    site: Site | None = Query(None),
    payment_status: PaymentStatus | None = Query(None),
) -> BookingListResponse:
    found = await bookings.list_bookings(
        date_from=date_from,
        date_to=date_to,
        court_id=court_id,
        site=site,
        status=payment_status,
    )
    return paginate(found, pagination, BookingListResponse)


@router.get(
    "/{booking_id}",
    response_model=BookingView,
    operation_id="getBooking",
    summary="Get one booking",
)
async def get_booking(booking_id: UUID, current_user: CurrentUser) -> BookingView:
    return await bookings.get_booking(booking_id)


@router.patch(
    "/{booking_id}",
    response_model=BookingView,
    operation_id="updateBooking",
    summary="Edit a booking (moving it re-checks the new slot)",
)
async def update_booking(
    booking_id: UUID, body: BookingUpdate, current_user: CurrentUser
) -> BookingView:
    return await bookings.update_booking(booking_id, body)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="cancelBooking",
    summary="Cancel a booking that has no payments",
)
async def cancel_booking(booking_id: UUID, current_user: CurrentUser) -> None:
    await bookings.cancel_booking(booking_id)


@router.post(
    "/{booking_id}/deposit/confirm",
    response_model=DepositConfirmation,
    operation_id="confirmDeposit",
    summary="Confirm the SINPE deposit and record it as a payment",
)
async def confirm_deposit(booking_id: UUID, current_user: CurrentUser) -> DepositConfirmation:
    booking, payment = await bookings.confirm_deposit(booking_id, current_user.email)
    return DepositConfirmation(booking=booking, payment=payment)


@router.put(
    "/{booking_id}/checked",
    response_model=BookingView,
    operation_id="setBookingChecked",
    summary="Mark a booking's money as physically accounted for",
)
async def set_checked(
    booking_id: UUID, body: CheckedToggle, current_user: CurrentUser
) -> BookingView:
    await payments.set_checked(booking_id, body.checked)
    return await bookings.get_booking(booking_id)
