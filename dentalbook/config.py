import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dentalbook.db")

# Frontend base URL used in email links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Google Maps Geocoding (postcode -> latitude/longitude)
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY")
GEOCODING_BASE_URL = os.getenv(
    "GEOCODING_BASE_URL", "https://maps.googleapis.com/maps/api/geocode/json"
)
GEOCODING_TIMEOUT_SECONDS = float(os.getenv("GEOCODING_TIMEOUT_SECONDS", "10"))
# Postcode coordinates rarely change - cache for a week
GEOCODE_CACHE_SECONDS = int(os.getenv("GEOCODE_CACHE_SECONDS", "604800"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "DentalBook <noreply@dentalbook.co.uk>")

# Practice calendar window (hours, local time)
CALENDAR_START_HOUR = int(os.getenv("CALENDAR_START_HOUR", "6"))
CALENDAR_END_HOUR = int(os.getenv("CALENDAR_END_HOUR", "22"))

# Search pagination
DEFAULT_SEARCH_LIMIT = int(os.getenv("DEFAULT_SEARCH_LIMIT", "10"))
MAX_SEARCH_LIMIT = int(os.getenv("MAX_SEARCH_LIMIT", "100"))

# Rate limiting - set RATE_LIMIT_ENABLED=false only for development/testing
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
SEARCH_RATE_LIMIT_RPM = int(os.getenv("SEARCH_RATE_LIMIT_RPM", "120"))
BOOKING_RATE_LIMIT_RPM = int(os.getenv("BOOKING_RATE_LIMIT_RPM", "20"))

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
