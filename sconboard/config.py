"""
SConboard — Configuration
==========================

What:  Centralized configuration management using Pydantic Settings.
How:   Values come from environment variables (or a .env file), are validated
       on load and exposed through the module-level `settings` singleton.
Who:   Imported by every service that talks to an external collaborator.
When:  Loaded once at import time.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Defaults target the public Nominatim instance and a backend running on
    localhost, which is enough for development. Deployments override
    GEOCODER_USER_AGENT (Nominatim's usage policy asks for an identifying
    agent) and API_BASE_URL.
    """

    # ── Reverse Geocoding ─────────────────────────────────────────────────
    # What: Nominatim /reverse endpoint; point at a self-hosted instance in production
    geocoder_url: str = Field(default="https://nominatim.openstreetmap.org/reverse")

    # What: User-Agent sent with every lookup
    # Nominatim rejects requests without an identifying agent
    geocoder_user_agent: str = Field(default="SConboard/1.0")

    # What: Address detail level; 10 resolves to city/district granularity
    geocoder_zoom: int = Field(default=10, ge=3, le=18)

    # What: accept-language for returned place names
    geocoder_language: str = Field(default="en")

    # What: Seconds before a lookup counts as failed (no retry follows)
    geocoder_timeout: float = Field(default=10.0, gt=0, le=120)

    # ── Device Location ───────────────────────────────────────────────────
    # What: Upper bound on one acquisition; past it the request fails with "Timed out"
    location_timeout_ms: int = Field(default=10_000, ge=1_000, le=120_000)

    # What: Ask the provider for GPS-grade accuracy rather than a coarse network fix
    location_high_accuracy: bool = Field(default=True)

    # What: Oldest cached fix the provider may return; 0 forces a fresh fix
    location_maximum_age_ms: int = Field(default=0, ge=0)

    # ── Addressing ────────────────────────────────────────────────────────
    # Single-country addressing scheme; the reverse geocoder's country is ignored
    default_country: str = Field(default="India")

    # ── Images ────────────────────────────────────────────────────────────
    # Default: 10MB = 10 * 1024 * 1024
    # Valid range: 1MB to 50MB
    max_image_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # ── Submission API ────────────────────────────────────────────────────
    # What: Scheme and host of the onboarding backend (trailing slash stripped)
    api_base_url: str = Field(default="http://localhost:5000")

    # What: Create-service-center route, joined onto api_base_url
    service_centers_path: str = Field(default="/api/service-centers")

    # What: Seconds for one multipart POST, images included
    api_timeout: float = Field(default=30.0, gt=0, le=300)

    # ── Logging ───────────────────────────────────────────────────────────
    # What: Root level applied by setup_logging() when no level is passed
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("service_centers_path")
    @classmethod
    def ensure_leading_slash(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    @property
    def service_centers_url(self) -> str:
        """Full URL ServiceCenterClient posts to."""
        """Full URL ServiceCenterClient posts to."""
        return f"{self.api_base_url}{self.service_centers_path}"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


settings = Settings()
