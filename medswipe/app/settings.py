from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    # human-readable console logs instead of JSON
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SERVICE_NAME: str = "medswipe-billing"
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # RevenueCat (native shell). The host's own config slots take precedence.
    REVENUECAT_API_KEY: str | None = None

    # Stripe checkout (web)
    STRIPE_PUBLISHABLE_KEY: str | None = None
    # Cloud function that creates a Stripe checkout session and returns its id
    CHECKOUT_SESSION_URL: str | None = None
    CHECKOUT_TIMEOUT_SECONDS: float = 15.0
    CHECKOUT_CONNECT_TIMEOUT_SECONDS: float = 5.0
    CHECKOUT_CURRENCY: str = "USD"

    @property
    def checkout_configured(self) -> bool:
        return bool(
            (self.STRIPE_PUBLISHABLE_KEY or "").strip()
            and (self.CHECKOUT_SESSION_URL or "").strip()
        )


settings = Settings()
