"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

API_VERSION = "0.1.0"

# ── Paths ─────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# SQLite database file
DB_PATH: str = os.getenv("DB_PATH", str(DATA_DIR / "courtbook.db"))

# Generated closing documents are written here and served at /documents
DOCUMENTS_DIR: str = os.getenv("DOCUMENTS_DIR", str(DATA_DIR / "documents"))

# Absolute base used when building links that leave the API (emails, webhooks)
PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")

# ── Booking rules ─────────────────────────────────────────────────────────

# Civil timezone of both sites. "Today" and "current hour" are always
# evaluated here, never in the server's or the client's locale.
SITE_TIMEZONE: str = os.getenv("SITE_TIMEZONE", "America/Costa_Rica")

# Flat referee surcharge (minor currency units) at sites that hire referees.
REFEREE_FEE: int = int(os.getenv("REFEREE_FEE", "5000"))

# Hours a deposit-site customer has to upload proof of the SINPE deposit.
DEPOSIT_WINDOW_HOURS: int = int(os.getenv("DEPOSIT_WINDOW_HOURS", "2"))

# How many weekly occurrences a recurring booking generates.
RECURRING_WEEKS: int = int(os.getenv("RECURRING_WEEKS", "4"))

# ── JWT ───────────────────────────────────────────────────────────────────

# Staff sessions are signed by the club's login service with a shared secret.
JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me-in-production")
JWT_ALGORITHM: str = "HS256"
# When set, tokens must carry this "iss" claim.
JWT_ISSUER: str | None = os.getenv("JWT_ISSUER") or None

# ── Notifications ─────────────────────────────────────────────────────────

# When set, booking confirmations are POSTed here as JSON instead of
# being emailed directly.
NOTIFY_WEBHOOK_URL: str = os.getenv("NOTIFY_WEBHOOK_URL", "")
NOTIFY_TIMEOUT: float = float(os.getenv("NOTIFY_TIMEOUT", "10"))

# ── SMTP ──────────────────────────────────────────────────────────────────

SMTP_HOST: str = os.getenv("SMTP_HOST", "")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", "reservas@courtbook.local")
SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

# Set to "false" to force console-only mode even when SMTP credentials are present.
_SMTP_ENABLED_OVERRIDE: str = os.getenv("SMTP_ENABLED", "auto")


def smtp_enabled() -> bool:
    """True when SMTP should actually send emails.

    Controlled by SMTP_ENABLED env var:
      • "auto" (default): send if credentials are configured
      • "true" : always send (will fail if credentials are missing)
      • "false": never send, print to console instead
    """
    if _SMTP_ENABLED_OVERRIDE.lower() == "false":
        return False
    if _SMTP_ENABLED_OVERRIDE.lower() == "true":
        return True
    return bool(SMTP_HOST and SMTP_USERNAME and SMTP_PASSWORD)
