from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Storage (Supabase Storage bucket for logos, banners and gallery images)
    storage_bucket: str = "provider-assets"
    gallery_max_images: int = 20
    gallery_max_file_size: int = 5 * 1024 * 1024  # bytes
    gallery_allowed_content_types: str = "image/jpeg,image/png,image/webp"

    # Geocoding (Nominatim-compatible search endpoint)
    geocoding_base_url: str = "https://nominatim.openstreetmap.org/search"
    geocoding_user_agent: str = "CateringHub/1.0 (contact@cateringhub.local)"
    geocoding_country: str = "Philippines"
    geocoding_min_interval_seconds: float = 1.0
    geocoding_timeout_seconds: float = 8.0

    # Bookings
    default_hourly_rate: float = 150.0  # PHP, used for labor cost estimates
    default_page_size: int = 10
    max_page_size: int = 100

    # App
    app_name: str = "cateringhub-provider-api"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_gallery_content_types(self) -> List[str]:
        return [t.strip() for t in self.gallery_allowed_content_types.split(",") if t.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
