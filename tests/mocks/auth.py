"""Session tokens shaped like the ones the club's login service issues."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt

from courtbook.config import JWT_ALGORITHM, JWT_SECRET


def session_token(
    email: str | None = "admin@courtbook.example.com",
    *,
    secret: str = JWT_SECRET,
    issued_at: datetime | None = None,
    lifetime: timedelta | None = timedelta(days=7),
    **claims,
) -> str:
    """Sign a staff session. ``email=None`` or ``lifetime=None`` leave out that claim."""
    now = issued_at or datetime.now(UTC)
    payload = {"iat": now, **claims}
    if email is not None:
        payload["sub"] = email
    if lifetime is not None:
        payload["exp"] = now + lifetime
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
