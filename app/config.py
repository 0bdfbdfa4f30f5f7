import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pet_hosting.db")

# Firebase Configuration (ID token audience / issuer)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Comma separated list of allowed origins, "*" for development
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Booking request throttle (per client IP)
BOOKING_RATE_LIMIT = int(os.getenv("BOOKING_RATE_LIMIT", "20"))
BOOKING_RATE_WINDOW_SECONDS = int(os.getenv("BOOKING_RATE_WINDOW_SECONDS", "3600"))

# Host search
DEFAULT_SEARCH_RADIUS_KM = float(os.getenv("DEFAULT_SEARCH_RADIUS_KM", "10"))
MAX_SEARCH_RADIUS_KM = 100.0

# Defaults applied to new host profiles that do not send their own tables
DEFAULT_BASE_DAILY_RATE = 30.00
DEFAULT_SIZE_PRICING_TIERS = {
    "tiny": 1.0,
    "small": 1.0,
    "medium": 1.2,
    "large": 1.5,
    "giant": 2.0,
}
DEFAULT_DURATION_DISCOUNTS = {
    "weekly": 0.1,
    "monthly": 0.2,
}
