# marketplace/config/settings.py

"""Central configuration for the marketplace listing page."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the marketplace listing page."""

    # --- Backend ---
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "").rstrip("/")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_SERVICE_ROLE_KEY: str = os.getenv(
        "SUPABASE_SERVICE_ROLE_KEY", ""
    )
    REVIEWER_ID: str = os.getenv("REVIEWER_ID", "")

    # --- HTTP ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    SLOW_THRESHOLD_MS: float = 5000.0   # Health probes above this are "slow"
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
        "Content-Type": "application/json",
    }

    # --- Data ---
    CURRENCY: str = "GHS"
    REVIEW_TYPE: str = "product"
    LISTINGS_TABLE: str = "listings"
    REVIEWS_TABLE: str = "reviews"
    USERS_TABLE: str = "users"
    HEALTH_TABLE: str = "categories"
    HEALTH_RPC: str = "get_service_status"

    # SQL execution RPCs and the name of their single text parameter
    SQL_RPC_FUNCTIONS: dict[str, str] = {
        "exec_sql": "sql_query",
        "pg_execute": "sql_statement",
    }

    # --- Badges (rendered in this order) ---
    LISTING_BADGES: list[dict[str, str]] = [
        {
            "flag": "is_official_store",
            "label": "Official Store",
            "style": "bold white on #2E7D32",
        },
        {
            "flag": "is_deal",
            "label": "Ghana Fest Deal",
            "style": "bold white on #FF9800",
        },
        {
            "flag": "is_promoted",
            "label": "Featured",
            "style": "bold white on #1976D2",
        },
    ]

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"
