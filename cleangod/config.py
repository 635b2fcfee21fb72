import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cleangod.db")

# Firebase Configuration (identity provider)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Key-value storage for carts and booking drafts: "redis" or "memory"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "redis").lower()

# Booking drafts live for one browsing session; expire abandoned ones
DRAFT_TTL_SECONDS = int(os.getenv("DRAFT_TTL_SECONDS", "7200"))
# In-flight guard for booking submission (released as soon as the call resolves)
SUBMIT_LOCK_TTL_SECONDS = int(os.getenv("SUBMIT_LOCK_TTL_SECONDS", "30"))

# Pricing
TAX_RATE = float(os.getenv("TAX_RATE", "0.18"))  # 18% GST
COUPON_CAP_FRACTION = float(os.getenv("COUPON_CAP_FRACTION", "0.20"))

# Booking wizard
BOOKING_WINDOW_DAYS = int(os.getenv("BOOKING_WINDOW_DAYS", "7"))
DEFAULT_BOOKING_DURATION = int(os.getenv("DEFAULT_BOOKING_DURATION", "60"))  # minutes

# Idempotent reads are retried with exponential backoff; writes never are
READ_RETRY_ATTEMPTS = int(os.getenv("READ_RETRY_ATTEMPTS", "3"))
READ_RETRY_BASE_DELAY = float(os.getenv("READ_RETRY_BASE_DELAY", "0.2"))

# Catalog cache TTL in seconds
CATALOG_CACHE_TTL = int(os.getenv("CATALOG_CACHE_TTL", "300"))

# Hosted checkout callback signing secret
PAYMENT_WEBHOOK_SECRET = os.getenv("PAYMENT_WEBHOOK_SECRET")

# Comma separated list of emails granted the admin dashboard
ADMIN_EMAILS = {
    email.strip().lower() for email in os.getenv("ADMIN_EMAILS", "").split(",") if email.strip()
}

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
