"""Application configuration.

Loads settings from environment variables (prefix ``SALONSHOP_``) with
sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./salonshop.db"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Shop
    app_base_url: str = "http://localhost:3000"
    order_number_prefix: str = "SW"

    # Payment redirects, appended to app_base_url
    checkout_success_path: str = "/checkout/success"
    checkout_cancel_path: str = "/checkout/cancelled"

    model_config = {
        "env_prefix": "SALONSHOP_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def checkout_success_url(self) -> str:
        return f"{self.app_base_url.rstrip('/')}{self.checkout_success_path}"

    @property
    def checkout_cancel_url(self) -> str:
        return f"{self.app_base_url.rstrip('/')}{self.checkout_cancel_path}"


settings = Settings()
