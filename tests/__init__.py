import os

# Settings must be in place before dentalbook.config is first imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("GOOGLE_MAPS_API_KEY", None)
