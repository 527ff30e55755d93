# connection_bot/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"
    http_host: str = "0.0.0.0"
    http_port: int = 8099

    # Telegram
    telegram_bot_token: str | None = None  # Bot token from @BotFather
    # "polling" - getUpdates loop started on app startup (no public URL needed)
    # "webhook" - Telegram POSTs updates to /webhooks/telegram
    telegram_mode: Literal["polling", "webhook"] = "polling"
    telegram_webhook_url: str | None = None  # Public HTTPS URL registered via setWebhook on startup
    telegram_webhook_secret: str | None = None  # Checked against X-Telegram-Bot-Api-Secret-Token
    telegram_poll_timeout: int = 30  # Long-poll timeout for getUpdates (seconds)
    telegram_poll_error_pause: float = 5.0  # Fixed pause after a failed getUpdates call

    # Google Geocoding
    google_api_key: str | None = None
    geocoding_region: str = "il"  # Region bias (ccTLD)
    geocoding_language: str = "he"  # Language of returned address components
    geocoding_timeout_seconds: int = 10

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    def validate_required_for_production(self) -> list[str]:
        """Validate that required settings exist for production"""
        if not self.is_production:
            return []

        required_fields = [
            ("telegram_bot_token", self.telegram_bot_token),
            ("google_api_key", self.google_api_key),
        ]
        return [name for name, value in required_fields if not value]


def warn_on_risky_config(s: "Settings") -> list[str]:
    warnings: list[str] = []

    if not s.telegram_bot_token:
        warnings.append("telegram_bot_token is missing (the bot cannot receive or send messages).")

    if not s.google_api_key:
        warnings.append("google_api_key is missing (every address lookup will fail).")

    if s.telegram_mode == "webhook" and not s.telegram_webhook_url:
        warnings.append(
            "telegram_mode=webhook but telegram_webhook_url is not set "
            "(the webhook must be registered manually)."
        )

    if s.telegram_mode == "webhook" and not s.telegram_webhook_secret:
        warnings.append(
            "telegram_mode=webhook but telegram_webhook_secret is not set "
            "(anyone who knows the URL can post updates)."
        )

    return warnings


def validate_or_warn(s: "Settings") -> None:
    """
    In prod: enforce required settings (hard fail).
    In non-prod: warn only.
    """
    missing = s.validate_required_for_production()

    if missing:
        raise RuntimeError(f"Missing required settings for production: {', '.join(missing)}")

    for msg in warn_on_risky_config(s):
        print(f"[WARN][config] {msg}")


settings = Settings()
validate_or_warn(settings)
