"""Customer-facing HTML pages. The confirmation email links here."""

from __future__ import annotations

from pathlib import Path
from uuid import UUID

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from courtbook.rate_limit import PUBLIC_READ, limiter
from courtbook.services import bookings
from courtbook.services.documents import colones

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))
templates.env.filters["colones"] = colones

router = APIRouter(tags=["pages"], include_in_schema=False)


@router.get("/bookings/{booking_id}", response_class=HTMLResponse)
@limiter.limit(PUBLIC_READ)
async def booking_page(request: Request, booking_id: UUID):
    booking = await bookings.booking_summary(booking_id)
    return templates.TemplateResponse(
        request,
        "booking.html",
        {"booking": booking, "proof_url": f"/api/bookings/{booking.id}/proof"},
    )
