"""Application configuration with startup validation.

All config is validated when Settings is constructed via pydantic-settings.
The settings object is built once at process start (get_settings) and
handed to create_app(), which stores it on app.state for the routes.
In production mode, the webhook secrets are required.
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "OURA_", "env_file": ".env", "extra": "ignore"}

    # Service
    service_name: str = "oura-service"
    environment: str = "development"  # development | production
    log_level: str = "INFO"
    port: int = 3011

    # Oura API
    api_base_url: str = "https://api.ouraring.com/v2"
    request_timeout_seconds: float = 10.0
    default_window_days: int = 7

    # Webhooks
    verification_token: str = ""
    client_secret: str = ""

    # Demo mode: patients linked with this key get generated data
    demo_api_key: str = "OURA_DEMO_KEY"
    demo_seed: int | None = None

    # Credential store
    redis_url: str = ""
    key_store_path: str = "data/oura-keys.json"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @model_validator(mode="after")
    def validate_production_secrets(self) -> "Settings":
        """Fail fast at startup if production mode is selected but webhook secrets are missing."""
        if self.is_production:
            missing = []
            if not self.verification_token:
                missing.append("OURA_VERIFICATION_TOKEN")
            if not self.client_secret:
                missing.append("OURA_CLIENT_SECRET")
            if missing:
                raise ValueError(
                    f"environment='production' requires webhook secrets. "
                    f"Missing: {', '.join(missing)}"
                )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
