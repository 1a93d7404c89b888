"""
Settings for the StayHub Listing API, read from the environment and an optional .env file.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional, List, Tuple
from functools import lru_cache

ENVIRONMENTS = ("development", "testing", "staging", "production")
PLACEHOLDER_SECRET = "your-secret-key-change-in-production"

# Sync URL schemes rewritten to the async driver the engine needs
ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def _parse_bounds(raw: str) -> Tuple[float, float, float, float]:
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 4:
        raise ValueError("SERVICE_AREA_BOUNDS must be 'south,west,north,east'")
    try:
        south, west, north, east = (float(p) for p in parts)
    except ValueError:
        raise ValueError("SERVICE_AREA_BOUNDS values must be numbers")
    return south, west, north, east


class Settings(BaseSettings):
    app_name: str = "StayHub Listing API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/stayhub"

    # Tokens and passwords
    jwt_secret_key: str = PLACEHOLDER_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    min_password_length: int = 8

    # Image storage; each bucket is a directory under storage_dir served at storage_public_url
    storage_dir: str = "./storage"
    storage_public_url: str = "http://localhost:8000/storage"
    user_images_bucket: str = "user-images"
    listing_images_bucket: str = "hotels-images"
    max_file_size: int = 10 * 1024 * 1024
    allowed_file_types: List[str] = ["image/jpeg", "image/png", "image/webp"]

    # Nominatim
    geocoding_user_agent: str = "stayhub-listing-api/1.0"
    geocoding_domain: str = "nominatim.openstreetmap.org"
    geocoding_timeout: float = 10.0
    # "south,west,north,east"; unset means listings may be anywhere
    service_area_bounds: Optional[str] = None

    api_prefix: str = ""
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        for sync_prefix, async_prefix in ASYNC_DRIVERS.items():
            if v and v.startswith(sync_prefix):
                return async_prefix + v[len(sync_prefix):]
        return v

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Reject short secrets; the placeholder is tolerated for local runs."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if v != PLACEHOLDER_SECRET and len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        if v not in ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {list(ENVIRONMENTS)}")
        return v

    @field_validator("service_area_bounds")
    @classmethod
    def validate_service_area_bounds(cls, v):
        if v is None or not v.strip():
            return None
        south, west, north, east = _parse_bounds(v)
        if south > north or west > east:
            raise ValueError("SERVICE_AREA_BOUNDS must satisfy south <= north and west <= east")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def service_area(self) -> Optional[Tuple[float, float, float, float]]:
        """Configured bounding box as (south, west, north, east), or None."""
        return _parse_bounds(self.service_area_bounds) if self.service_area_bounds else None


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
