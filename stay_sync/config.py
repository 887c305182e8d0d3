import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

# json for aggregation, console for local runs
LOG_FORMAT = os.getenv("LOG_FORMAT", "console" if DEBUG else "json").lower()

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

SCHEMA = os.getenv("DB_SCHEMA", "stays")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS")
if not ALLOWED_ORIGINS_RAW:
    raise ValueError("ALLOWED_ORIGINS must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

# Dates on stays are local to the property
PROPERTY_TIMEZONE = os.getenv("PROPERTY_TIMEZONE", "America/Sao_Paulo")

# Key for pg_advisory_xact_lock; one property per deployment
PROPERTY_LOCK_KEY = int(os.getenv("PROPERTY_LOCK_KEY", "715001"))

CALENDAR_FEED_URL = os.getenv("CALENDAR_FEED_URL") or None
CALENDAR_FEED_NAME = os.getenv("CALENDAR_FEED_NAME", "airbnb")
CALENDAR_SYNC_INTERVAL_MINUTES = int(os.getenv("CALENDAR_SYNC_INTERVAL_MINUTES", "60"))
CALENDAR_FETCH_TIMEOUT = float(os.getenv("CALENDAR_FETCH_TIMEOUT", "10"))

STATUS_SWEEP_INTERVAL_MINUTES = int(os.getenv("STATUS_SWEEP_INTERVAL_MINUTES", "15"))
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"

# One-shot CLI: fetch and parse the feed without writing
DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"
