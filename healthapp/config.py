"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value


def load_secret_key(production: bool) -> str:
    """
    Token signing secret. Production refuses to start without JWT_SECRET_KEY;
    development falls back to a fixed local key.
    """
    if production:
        return get_env("JWT_SECRET_KEY")
    return os.getenv("JWT_SECRET_KEY", DEV_SECRET_KEY)


# ── Roles / areas ────────────────────────────────────────────────────
ROLES = ("patient", "doctor", "admin", "pharmacist")

ROLE_AREAS = {
    "patient": "/patient",
    "doctor": "/doctor",
    "admin": "/admin",
    "pharmacist": "/pharmacist",
}

# Roles that staff accounts (created by an admin) may hold.
STAFF_ROLES = {"doctor", "pharmacist"}

# Roles a visitor may pick on the public registration form.
SELF_REGISTER_ROLES = {"patient", "doctor", "pharmacist"}

LOGIN_PATH = "/auth/login"
PUBLIC_PATHS = ("/auth/login", "/auth/register")
# Paths served outside the page gate (JSON API, assets, probes).
UNGATED_PREFIXES = ("/api", "/static", "/health", "/favicon.ico")

# ── Session ──────────────────────────────────────────────────────────
APP_ENV = os.getenv("APP_ENV", os.getenv("FLASK_ENV", "development"))
IS_PRODUCTION = APP_ENV == "production"

DEV_SECRET_KEY = "dev-secret-key-change-in-production"
SECRET_KEY_BYTES = 32
SECRET_KEY = load_secret_key(IS_PRODUCTION)
TOKEN_ALGORITHM = "HS256"
TOKEN_EXPIRY_DAYS = 7
AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "auth-token")

# ── Database ─────────────────────────────────────────────────────────
DB_URI = os.getenv("DB_URI", "sqlite:///healthapp.db")

# ── Collections ──────────────────────────────────────────────────────
APPOINTMENT_STATUSES = {"scheduled", "completed", "cancelled", "no-show"}
HOSPITAL_TYPES = {"government", "private", "clinic"}
DEFAULT_OPERATING_HOURS = {"open": "09:00", "close": "17:00"}
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))

# ── Query limits ─────────────────────────────────────────────────────
SCAN_RECORDS_LIMIT = 10
SCAN_PRESCRIPTIONS_LIMIT = 10
SCAN_APPOINTMENTS_LIMIT = 5
RECENT_APPOINTMENTS_LIMIT = 10

# ── Payments (simulated gateway) ─────────────────────────────────────
PAYMENT_DELAY_SECONDS = float(os.getenv("PAYMENT_DELAY_SECONDS", "1.0"))
PAYMENT_SUCCESS_RATE = float(os.getenv("PAYMENT_SUCCESS_RATE", "0.95"))
PAYMENT_METHODS = {"card", "cash", "insurance"}

QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/?size=300x300&data="

