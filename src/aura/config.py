from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # e.g. mongodb://localhost:27017/aura
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    forwarded_allow_ips: str = "127.0.0.1"  # Proxies trusted for X-Forwarded-* headers
    otp_ttl_seconds: int = 10 * 60  # OTP codes expire after 10 minutes
    session_ttl_days: int = 30
    kick_removes_entry: bool = False  # Remove the chat from a kicked user's own document
    google_maps_api_key: str | None = None  # Places text search fallback (optional)
    places_api_url: str = "https://maps.googleapis.com/maps/api/place/textsearch/json"
    location_search_radius_km: float = 300
    location_min_results: int = 5

    model_config = {
        "env_file": [".env"],
        "env_prefix": "AURA_",
        "extra": "ignore",
    }
