"""Pydantic models for the Courtbook API and booking core."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

# Player-count tiers a tiered court can be booked at (players per team).
PLAYER_TIERS: tuple[int, ...] = (7, 8, 9)

SLOT_DURATION = timedelta(hours=1)


# ── Enumerations ──────────────────────────────────────────────────────────


class Site(StrEnum):
    SABANA = "sabana"
    GUADALUPE = "guadalupe"


class DepositState(StrEnum):
    PENDING_PROOF = "pending_proof"
    NO_DEPOSIT_REQUIRED = "no_deposit_required"
    CONFIRMED = "confirmed"


class PaymentStatus(StrEnum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    COMPLETE = "complete"


class ChallengeStatus(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


# ── Catalog ───────────────────────────────────────────────────────────────


class Court(BaseModel):
    """A bookable field, either fixed-capacity or tiered by player count."""
    id: int = Field(..., description="Court identifier")
    name: str = Field(..., description="Display name")
    site: Site = Field(..., description="Site the court belongs to")
    players: int | None = Field(None, description="Players per team on a fixed-capacity court")
    price: int | None = Field(None, ge=0, description="Price of a fixed-capacity court")
    tier_prices: dict[int, int] | None = Field(
        None, description="Player count → price, for tiered courts only"
    )
    linked_group_id: str | None = Field(None, description="Linked group sharing this court's slots")

    @model_validator(mode="after")
    def _check_capacity_model(self) -> Court:
        if self.tier_prices is None:
            if self.players is None or self.price is None:
                raise ValueError("fixed-capacity courts need both players and price")
            return self
        if self.price is not None:
            raise ValueError("tiered courts compute their price from tier_prices")
        if set(self.tier_prices) != set(PLAYER_TIERS):
            raise ValueError(f"tier_prices must cover exactly {PLAYER_TIERS}")
        if len(set(self.tier_prices.values())) != len(self.tier_prices):
            raise ValueError("tier prices must be distinct")
        return self

    @property
    def is_tiered(self) -> bool:
        return self.tier_prices is not None


class LinkedGroup(BaseModel):
    """Courts that share one slot pool."""
    id: str = Field(..., description="Group identifier")
    name: str = Field(..., description="Display name")
    court_ids: list[int] = Field(..., min_length=2, description="Member courts")


class ScheduleConfig(BaseModel):
    """Opening hours of one site, in site-local time."""
    site: Site
    opening_hour: int = Field(..., ge=0, le=23)
    closing_hour: int = Field(..., ge=0, le=23)

    @property
    def wraps(self) -> bool:
        """True when the schedule runs past midnight."""
        return self.closing_hour <= self.opening_hour


class ScheduleUpdate(BaseModel):
    opening_hour: int = Field(..., ge=0, le=23)
    closing_hour: int = Field(..., ge=0, le=23)


# ── Availability ──────────────────────────────────────────────────────────


class HourSlot(BaseModel):
    """One bookable hour of an operating day.

    ``hour`` counts from the start of the operating day and exceeds 23 for
    hours that fall after midnight.
    """
    model_config = ConfigDict(frozen=True)

    hour: int = Field(..., ge=0, le=47)
    display_hour: int = Field(..., ge=0, le=23)
    is_next_day: bool

    @classmethod
    def from_hour(cls, hour: int) -> HourSlot:
        return cls(hour=hour, display_hour=hour % 24, is_next_day=hour >= 24)

    def start_on(self, day: date) -> datetime:
        """Calendar start of this hour for the operating day *day*."""
        return datetime(day.year, day.month, day.day) + timedelta(hours=self.hour)


class AvailabilityHour(BaseModel):
    display_hour: int
    is_next_day: bool
    slot_start: datetime
    available: bool


class CourtAvailability(BaseModel):
    court_id: int
    court_name: str
    site: Site
    day: date
    hours: list[AvailabilityHour]


# ── Bookings ──────────────────────────────────────────────────────────────


class Booking(BaseModel):
    id: UUID
    court_id: int
    slot_start: datetime = Field(..., description="Site-local start of the one-hour slot")
    slot_end: datetime
    customer_name: str
    phone: str | None = None
    email: str | None = None
    price: int = Field(..., ge=0)
    referee: bool = False
    player_count: int = Field(..., description="Players per team")
    deposit_state: DepositState
    confirmed_by: str | None = None
    proof_ref: str | None = None
    checked: bool = Field(False, description="Funds confirmed as banked or in hand")
    recurring_id: UUID | None = None
    created_at: datetime


class BookingView(Booking):
    """A booking plus the fields derived at read time."""
    court_name: str
    site: Site
    deposit_amount: int | None = None
    deposit_deadline: datetime | None = None
    deposit_expired: bool = False


class BookingSummary(BaseModel):
    """What the customer sees through the booking link. No contact data."""
    id: UUID
    court_id: int
    court_name: str
    site: Site
    slot_start: datetime
    slot_end: datetime
    customer: str = Field(..., description="First name only")
    price: int
    referee: bool
    player_count: int
    deposit_state: DepositState
    deposit_amount: int | None = None
    deposit_deadline: datetime | None = None
    deposit_expired: bool = False
    proof_attached: bool = False


class BookingCreate(BaseModel):
    court_id: int
    day: date = Field(..., description="Operating day")
    hour: int = Field(..., ge=0, le=23, description="Display hour within the site's window")
    customer_name: str
    phone: str | None = None
    email: EmailStr | None = None
    player_count: int | None = Field(None, description="Required on tiered courts")
    referee: bool = False


class BookingUpdate(BaseModel):
    """Partial edit. Only fields present in the request are applied."""
    court_id: int | None = None
    day: date | None = None
    hour: int | None = Field(None, ge=0, le=23)
    price: int | None = Field(None, ge=0)
    customer_name: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    referee: bool | None = None
    player_count: int | None = None
    checked: bool | None = None


class ProofAttach(BaseModel):
    proof_ref: str = Field(..., min_length=1, description="Reference to the uploaded receipt")


class CheckedToggle(BaseModel):
    checked: bool


class DepositConfirmation(BaseModel):
    booking: BookingView
    payment: Payment


class TodayBoardEntry(BaseModel):
    court_id: int
    court_name: str
    site: Site
    slot_start: datetime
    customer: str = Field(..., description="First name only")


class BookingListResponse(BaseModel):
    items: list[BookingView]
    meta: PaginationMeta


# ── Recurring bookings ────────────────────────────────────────────────────


class RecurringBooking(BaseModel):
    id: UUID
    court_id: int
    weekday: int = Field(..., ge=1, le=7, description="1 = Monday … 7 = Sunday")
    hour: int = Field(..., ge=0, le=23)
    customer_name: str
    phone: str | None = None
    email: str | None = None
    price: int
    referee: bool = False
    player_count: int
    created_at: datetime


class RecurringCreate(BaseModel):
    court_id: int
    weekday: int = Field(..., ge=1, le=7)
    hour: int = Field(..., ge=0, le=23)
    customer_name: str
    phone: str | None = None
    email: EmailStr | None = None
    player_count: int | None = None
    referee: bool = False


class SkippedDate(BaseModel):
    day: date
    reason: str


class RecurringResult(BaseModel):
    recurring: RecurringBooking
    created: list[Booking]
    skipped: list[SkippedDate]


class RecurringDeleteResult(BaseModel):
    deleted: int = Field(..., description="Unpaid bookings removed with the series")
    kept: int = Field(..., description="Paid bookings detached from the series and kept")


# ── Challenges ────────────────────────────────────────────────────────────


class ChallengeListing(BaseModel):
    id: UUID
    site: Site
    court_id: int | None = None
    slot_start: datetime | None = None
    fut: int = Field(..., description="Players per team")
    referee: bool = False
    team1_name: str | None = None
    team1_contact: str
    team1_phone: str
    team1_email: str | None = None
    team2_name: str | None = None
    team2_contact: str | None = None
    team2_phone: str | None = None
    team2_email: str | None = None
    booking_id: UUID | None = None
    created_at: datetime

    @property
    def is_open(self) -> bool:
        return self.booking_id is None


class ChallengeView(ChallengeListing):
    status: ChallengeStatus
    team_price: int | None = Field(None, description="Informational per-team share")


class ChallengeCreate(BaseModel):
    site: Site
    court_id: int | None = None
    day: date | None = None
    hour: int | None = Field(None, ge=0, le=23)
    fut: int
    referee: bool = False
    team1_name: str | None = None
    team1_contact: str
    team1_phone: str
    team1_email: EmailStr | None = None


class ChallengeMatch(BaseModel):
    court_id: int
    day: date
    hour: int = Field(..., ge=0, le=23)
    fut: int
    referee: bool = False
    team2_name: str | None = None
    team2_contact: str
    team2_phone: str
    team2_email: EmailStr | None = None


class ChallengeMatchResult(BaseModel):
    challenge: ChallengeView
    booking: Booking


class ChallengeListResponse(BaseModel):
    items: list[ChallengeView]
    meta: PaginationMeta


# ── Payments ──────────────────────────────────────────────────────────────


class Payment(BaseModel):
    id: UUID
    booking_id: UUID
    sinpe: int = Field(..., ge=0, description="Amount paid by SINPE transfer")
    cash: int = Field(..., ge=0, description="Amount paid in cash")
    note: str | None = None
    complete: bool = Field(..., description="Booking fully paid as of this record (frozen)")
    created_by: str | None = None
    receipt_ref: str | None = None
    reason: str | None = None
    idempotency_key: str | None = None
    created_at: datetime

    @property
    def amount(self) -> int:
        return self.sinpe + self.cash


class PaymentCreate(BaseModel):
    sinpe: int = Field(0, ge=0)
    cash: int = Field(0, ge=0)
    note: str | None = None
    receipt_ref: str | None = None
    idempotency_key: str | None = Field(None, max_length=128)


class PaymentLedger(BaseModel):
    booking_id: UUID
    price: int
    paid: int
    sinpe: int
    cash: int
    outstanding: int
    status: PaymentStatus
    checked: bool
    payments: list[Payment]


# ── Closings ──────────────────────────────────────────────────────────────


class ClosingLine(BaseModel):
    booking_id: UUID
    slot_start: datetime
    court_id: int
    court_name: str
    customer_name: str
    price: int
    paid: int
    sinpe: int
    cash: int
    status: PaymentStatus
    checked: bool


class CourtTotals(BaseModel):
    court_id: int
    court_name: str
    count: int
    expected: int
    paid: int
    lines: list[ClosingLine]


class DayTotals(BaseModel):
    day: date
    count: int
    expected: int
    sinpe: int
    cash: int
    paid: int
    shortfall: int
    courts: list[CourtTotals]


class ClosingTotals(BaseModel):
    booking_count: int
    expected: int
    paid: int
    sinpe: int
    cash: int
    shortfall: int
    problem_count: int


class ClosingSnapshot(BaseModel):
    """Everything a closing shows, computed once and never recomputed."""
    dates: list[date]
    totals: ClosingTotals
    days: list[DayTotals]
    problems: list[DayTotals]


class ClosingReport(BaseModel):
    id: UUID
    start_date: date
    end_date: date
    note: str | None = None
    created_by: str
    created_at: datetime
    document_url: str
    snapshot: ClosingSnapshot


class ClosingCreate(BaseModel):
    dates: list[date] = Field(..., min_length=1)
    note: str | None = None


class ClosingListResponse(BaseModel):
    items: list[ClosingReport]
    meta: PaginationMeta


# ── Notifications ─────────────────────────────────────────────────────────


class NotificationPayload(BaseModel):
    """Booking confirmation handed to the notification sink (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    booking_id: UUID
    slot_start: datetime
    slot_end: datetime
    court_id: int
    court_name: str
    site_id: Site
    customer_name: str
    phone: str | None = None
    email: str | None = None
    price: int
    referee_included: bool
    player_count: int = Field(..., description="Players on the field (both teams)")
    booking_url: str


# ── Shared API shapes ─────────────────────────────────────────────────────


class PaginationMeta(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int


class UserInfo(BaseModel):
    email: str
    created_at: datetime


class Error(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict[str, Any] | None = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime


# Forward references to PaginationMeta
BookingListResponse.model_rebuild()
DepositConfirmation.model_rebuild()
ChallengeListResponse.model_rebuild()
ClosingListResponse.model_rebuild()
