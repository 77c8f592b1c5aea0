"""
Runtime configuration for the Toggl ledger.

All settings come from environment variables and are read once at import.
"""
import os

# Toggl API
TOGGL_API_KEY = os.getenv("TOGGL_API_KEY")
TOGGL_API_URL = os.getenv("TOGGL_API_URL", "https://api.track.toggl.com/api/v8")
TOGGL_REPORTS_API_URL = os.getenv(
    "TOGGL_REPORTS_API_URL", "https://api.track.toggl.com/reports/api/v2/details"
)
TOGGL_USER_AGENT = os.getenv("TOGGL_USER_AGENT", "toggl-ledger")
TOGGL_TIMEOUT_SECONDS = float(os.getenv("TOGGL_TIMEOUT_SECONDS", "10"))

# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./toggl_ledger.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
