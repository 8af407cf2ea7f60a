"""
Booking confirmation notifications.

A booking that was saved stays saved no matter what happens here: every
send is best-effort and failures are logged as a partial success.

Two sinks are available:
  • WebhookNotificationSink – POSTs the camelCase payload to an external
    mailer (NOTIFY_WEBHOOK_URL)
  • EmailNotificationSink   – sends the confirmation over SMTP itself; in
    development (no SMTP configured) it is printed to the console instead
"""

from __future__ import annotations

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

import httpx

from courtbook.config import (
    NOTIFY_TIMEOUT,
    NOTIFY_WEBHOOK_URL,
    PUBLIC_BASE_URL,
    SMTP_FROM_EMAIL,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
    smtp_enabled,
)
from courtbook.errors import UpstreamFailure
from courtbook.models import Booking, Court, NotificationPayload

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    async def send(self, payload: NotificationPayload) -> None: ...

    async def close(self) -> None: ...


def build_payload(
    booking: Booking,
    court: Court,
    *,
    customer_name: str | None = None,
    phone: str | None = None,
    email: str | None = None,
) -> NotificationPayload:
    """Confirmation payload for *booking*; contact fields default to the booking's."""
    return NotificationPayload(
        booking_id=booking.id,
        slot_start=booking.slot_start,
        slot_end=booking.slot_end,
        court_id=court.id,
        court_name=court.name,
        site_id=court.site,
        customer_name=customer_name or booking.customer_name,
        phone=phone if phone is not None else booking.phone,
        email=email if email is not None else booking.email,
        price=booking.price,
        referee_included=booking.referee,
        # both teams are on the field
        player_count=booking.player_count * 2,
        booking_url=f"{PUBLIC_BASE_URL}/bookings/{booking.id}",
    )


def _build_summary(payload: NotificationPayload) -> str:
    """One-line human-readable summary of a booking."""
    day = payload.slot_start.strftime("%a %d %b")
    time = f"{payload.slot_start.strftime('%H:%M')}–{payload.slot_end.strftime('%H:%M')}"
    referee = " · con árbitro" if payload.referee_included else ""
    return f"{payload.court_name} · {day} {time} · ₡{payload.price:,}{referee}"


def _build_html_body(payload: NotificationPayload) -> str:
    return f"""
    <html>
    <body style="font-family:sans-serif;color:#333">
      <h2>⚽ Reserva confirmada — {payload.court_name}</h2>
      <p>Hola {payload.customer_name}, tu reserva quedó registrada:</p>
      <table border="0" cellpadding="6" cellspacing="0"
             style="border-collapse:collapse;border:1px solid #ddd">
        <tr><th align="left">Cancha</th><td>{payload.court_name}</td></tr>
        <tr><th align="left">Fecha</th><td>{payload.slot_start.strftime('%a %d %b')}</td></tr>
        <tr><th align="left">Hora</th>
            <td>{payload.slot_start.strftime('%H:%M')}–{payload.slot_end.strftime('%H:%M')}</td></tr>
        <tr><th align="left">Jugadores</th><td>{payload.player_count}</td></tr>
        <tr><th align="left">Árbitro</th><td>{'Sí' if payload.referee_included else 'No'}</td></tr>
        <tr><th align="left">Precio</th><td>₡{payload.price:,}</td></tr>
      </table>
      <p><a href="{payload.booking_url}">Ver reserva</a></p>
    </body>
    </html>
    """


# ── Sinks ─────────────────────────────────────────────────────────────────


class WebhookNotificationSink:
    """POSTs confirmation payloads as camelCase JSON."""

    def __init__(self, url: str, timeout: float = NOTIFY_TIMEOUT) -> None:
        self.url = url
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def send(self, payload: NotificationPayload) -> None:
        body = payload.model_dump(mode="json", by_alias=True)
        try:
            resp = await self._client.post(self.url, json=body)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamFailure(
                "Notification webhook failed", url=self.url, reason=str(exc)
            ) from exc
        logger.info("Notification for booking %s posted to webhook", payload.booking_id)


class EmailNotificationSink:
    """Sends the confirmation email directly (console output when SMTP is off)."""

    async def close(self) -> None:
        pass

    async def send(self, payload: NotificationPayload) -> None:
        if not payload.email:
            return
        subject = f"⚽ Reserva confirmada — {payload.court_name}"

        # ── Console fallback (dev mode) ───────────────────────────────
        if not smtp_enabled():
            logger.info(
                "📧 [DEV] Would send email to %s:\n  Subject: %s\n  %s",
                payload.email,
                subject,
                _build_summary(payload),
            )
            return

        # ── Real SMTP send ────────────────────────────────────────────
        import aiosmtplib

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = SMTP_FROM_EMAIL
        msg["To"] = payload.email
        msg.attach(MIMEText(f"Reserva confirmada:\n\n{_build_summary(payload)}\n", "plain"))
        msg.attach(MIMEText(_build_html_body(payload), "html"))

        try:
            await aiosmtplib.send(
                msg,
                hostname=SMTP_HOST,
                port=SMTP_PORT,
                username=SMTP_USERNAME,
                password=SMTP_PASSWORD,
                start_tls=SMTP_USE_TLS,
            )
        except aiosmtplib.SMTPException as exc:
            raise UpstreamFailure(
                "Confirmation email failed", email=payload.email, reason=str(exc)
            ) from exc
        logger.info("Email sent to %s for booking %s", payload.email, payload.booking_id)


def default_sink() -> NotificationSink:
    if NOTIFY_WEBHOOK_URL:
        return WebhookNotificationSink(NOTIFY_WEBHOOK_URL)
    return EmailNotificationSink()


# ── Process-wide sink ─────────────────────────────────────────────────────

_sink: NotificationSink | None = None


def get_sink() -> NotificationSink:
    global _sink
    if _sink is None:
        _sink = default_sink()
    return _sink


def set_sink(sink: NotificationSink | None) -> None:
    global _sink
    _sink = sink


async def close_sink() -> None:
    global _sink
    if _sink is not None:
        await _sink.close()
        _sink = None


async def dispatch(payloads: list[NotificationPayload]) -> int:
    """
    Send each payload that has a recipient email. Never raises.

    Returns how many were delivered to the sink.
    """
    sent = 0
    for payload in payloads:
        if not payload.email:
            logger.debug("Booking %s has no email, no confirmation sent", payload.booking_id)
            continue
        try:
            await get_sink().send(payload)
            sent += 1
        except Exception:
            logger.exception(
                "Partial success: booking %s saved but notification to %s failed",
                payload.booking_id,
                payload.email,
            )
    return sent
