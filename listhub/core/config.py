"""
Configuration Management
Loads and validates environment variables
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import secrets


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )
    # Required
    TOKEN_SALT: str = secrets.token_hex(32)
    BASE_URL: str = "http://localhost:8000"
    APP_VERSION: str = "1.0.0"

    # MDBList (list hosting)
    MDBLIST_API_URL: str = "https://api.mdblist.com"
    MDBLIST_API_KEY: Optional[str] = None

    # Trakt (social tracking, OAuth)
    TRAKT_API_URL: str = "https://api.trakt.tv"
    TRAKT_CLIENT_ID: str = ""
    TRAKT_CLIENT_SECRET: Optional[str] = None
    TRAKT_REDIRECT_URI: str = "urn:ietf:wg:oauth:2.0:oob"

    # Canonical metadata service
    CINEMETA_URL: str = "https://v3-cinemeta.strem.io"

    # Paging
    ITEMS_PER_PAGE: int = 100

    # Cache (seconds)
    CACHE_TTL_CATALOG: int = 300  # 5 minutes, mirrors cacheMaxAge sent to clients
    CACHE_SWEEP_INTERVAL_SECONDS: int = 300
    MANIFEST_DEBOUNCE_SECONDS: float = 5.0

    # Metadata enrichment
    ENRICH_BATCH_SIZE: int = 40
    ENRICH_MAX_CONCURRENT_BATCHES: int = 2
    ENRICH_MAX_CONCURRENT_LOOKUPS: int = 10
    ENRICH_ITEM_TIMEOUT: float = 5.0
    ENRICH_BATCH_TIMEOUT: float = 15.0
    ENRICH_SLOW_BATCH_SECONDS: float = 2.0
    ENRICH_DELAY_STEP: float = 0.25
    ENRICH_MAX_DELAY: float = 2.0

    # External addons
    IMPORT_TIMEOUT_SECONDS: int = 20

    # API Rate Limits (requests per second, 0 disables)
    MDBLIST_RATE_LIMIT: int = 10
    TRAKT_RATE_LIMIT: int = 5

    # Development
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    DISABLE_RATE_LIMITING: bool = False  # Set to True to disable rate limiting for local dev


settings = Settings()
