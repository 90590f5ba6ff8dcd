"""
Configuration loader for TrendSpotter.
Loads environment variables from .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv


# Load .env from the project root
PROJECT_ROOT = Path(__file__).parent.parent
ENV_PATH = PROJECT_ROOT / ".env"
load_dotenv(ENV_PATH)


class Config:
    """Application configuration."""
    # eBay application keyset (client-credentials grant)
    EBAY_APP_ID: str = os.getenv("EBAY_APP_ID", "")
    EBAY_CERT_ID: str = os.getenv("EBAY_CERT_ID", "")
    EBAY_MARKETPLACE: str = os.getenv("EBAY_MARKETPLACE", "EBAY_US")
    EBAY_ENV: str = os.getenv("EBAY_ENV", "PRODUCTION").upper()
    EBAY_API_BASE: str = os.getenv("EBAY_API_BASE", "")

    # Snapshot cache
    CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "file").lower()
    CACHE_DIR: str = os.getenv("CACHE_DIR", str(PROJECT_ROOT / "data"))
    CACHE_DURATION_HOURS: float = float(os.getenv("CACHE_DURATION_HOURS", os.getenv("CACHE_DURATION", "2")))

    # MongoDB (only used by the mongo cache backend)
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017/trendspotter")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "trendspotter")

    # Pipeline tuning
    DETAIL_WORKERS: int = int(os.getenv("DETAIL_WORKERS", "5"))
    SEARCH_LIMIT: int = int(os.getenv("SEARCH_LIMIT", "20"))
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "15"))
    TOKEN_SAFETY_MARGIN: float = float(os.getenv("TOKEN_SAFETY_MARGIN", "300"))
    RATE_LIMIT_COOLDOWN: int = int(os.getenv("RATE_LIMIT_COOLDOWN", "3600"))

    @property
    def api_base_url(self) -> str:
        """Browse API host for the configured environment."""
        if self.EBAY_API_BASE:
            return self.EBAY_API_BASE.rstrip("/")
        if self.EBAY_ENV == "SANDBOX":
            return "https://api.sandbox.ebay.com"
        return "https://api.ebay.com"

    @property
    def cache_ttl_seconds(self) -> float:
        return self.CACHE_DURATION_HOURS * 60 * 60


# Singleton instance
config = Config()
