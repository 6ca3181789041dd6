"""
Configuration management for the attendance dashboard.

Loads environment variables and validates required settings.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Configuration class for the attendance dashboard."""

    # Supabase credentials (required for the Supabase fact source)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    # Source tables
    ATTENDANCE_TABLE: str = os.getenv("ATTENDANCE_TABLE", "attendances")
    EVENTS_TABLE: str = os.getenv("EVENTS_TABLE", "events")
    PAGE_SIZE: int = int(os.getenv("PAGE_SIZE", "1000"))  # Rows per Supabase range request

    # Report defaults
    DEFAULT_WINDOW_DAYS: int = int(os.getenv("DEFAULT_WINDOW_DAYS", "0"))  # 0 = all time
    DASHBOARD_BASE_PATH: str = os.getenv("DASHBOARD_BASE_PATH", "/api/dashboard")

    # Aggregation constants
    MAX_WINDOW_DAYS: int = 3650  # Upper clamp for trailing windows (~10 years)
    ROLLING_EVENT_DAYS: int = 7  # Moving average spans the last 7 event days
    DISTRIBUTION_CAP: int = 20  # People at or above this many events share one bucket

    @classmethod
    def validate(cls) -> None:
        """
        Validate that the Supabase configuration is present.

        Raises:
            ValueError: If required configuration is missing.
        """
        missing = []

        if not cls.SUPABASE_URL:
            missing.append("SUPABASE_URL")
        if not cls.SUPABASE_SERVICE_ROLE_KEY:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}. "
                f"Please create a .env file with these values (see .env.example)."
            )
