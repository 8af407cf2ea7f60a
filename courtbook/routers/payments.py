from uuid import UUID

from fastapi import APIRouter, status

from courtbook.dependencies import CurrentUser
from courtbook.models import Payment, PaymentCreate, PaymentLedger
from courtbook.services import payments

router = APIRouter(prefix="/api/bookings/{booking_id}/payments", tags=["payments"])


@router.get(
    "",
    response_model=PaymentLedger,
    operation_id="getPaymentLedger",
    summary="Payments, totals and outstanding balance of a booking",
)
async def get_ledger(booking_id: UUID, current_user: CurrentUser) -> PaymentLedger:
    return await payments.ledger(booking_id)


@router.post(
    "",
    response_model=Payment,
    status_code=status.HTTP_201_CREATED,
    operation_id="recordPayment",
    summary="Record a SINPE and/or cash payment",
)
async def record_payment(
    booking_id: UUID, body: PaymentCreate, current_user: CurrentUser
) -> Payment:
    return await payments.record_payment(
        booking_id,
        sinpe=body.sinpe,
        cash=body.cash,
        note=body.note,
        receipt_ref=body.receipt_ref,
        idempotency_key=body.idempotency_key,
        created_by=current_user.email,
    )
