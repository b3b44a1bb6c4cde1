"""Application configuration via environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

log = logging.getLogger("intake.config")

_PLACEHOLDERS = {"your-auth-token", "path/to/service-account.json"}


class Settings(BaseSettings):
    # Twilio
    twilio_auth_token: str = ""
    public_base_url: str = ""
    validate_signatures: bool = True

    # Voice rendering
    tts_voice: str = "Polly.Matthew-Neural"
    tts_language: str = "en-CA"
    gather_timeout_seconds: int = 12

    # Google Distance Matrix
    google_maps_api_key: str = ""
    yard_postal: str = "V6V 1M7"

    # Google Sheets lead sink
    google_service_account_json: str = ""
    google_sheet_id: str = ""
    google_sheet_tab: str = "Sheet1"

    # Conversation policy
    max_reprompts: int = 0              # 0 = ask again indefinitely
    postal_fallback_after: int = 2      # failed postal attempts before city-only
    early_offer_enabled: bool = True

    # Session housekeeping
    session_idle_ttl_seconds: int = 1800
    eviction_interval_seconds: int = 60

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def lead_sheet_enabled(self) -> bool:
        """True when leads should go to Google Sheets rather than the log."""
        return bool(
            self.google_sheet_id
            and self.google_service_account_json
            and self.google_service_account_json not in _PLACEHOLDERS
        )

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []

        if self.validate_signatures:
            if not self.twilio_auth_token or self.twilio_auth_token in _PLACEHOLDERS:
                raise ValueError(
                    "TWILIO_AUTH_TOKEN is missing or still a placeholder. "
                    "Set it in .env or disable VALIDATE_SIGNATURES for local testing."
                )
            if not self.public_base_url:
                raise ValueError(
                    "PUBLIC_BASE_URL is missing. Twilio signatures are computed "
                    "over the exact public URL Twilio calls."
                )
        else:
            warnings.append(
                "VALIDATE_SIGNATURES is off. Webhooks accept unsigned requests."
            )

        if not self.google_maps_api_key:
            warnings.append(
                "GOOGLE_MAPS_API_KEY not set. Distance lookups will fail and "
                "quotes will be priced without a distance adjustment."
            )

        if not self.google_sheet_id or not self.google_service_account_json:
            warnings.append(
                "Google Sheets not configured. Leads will only be written to the log."
            )
        elif self.google_service_account_json in _PLACEHOLDERS:
            warnings.append(
                "GOOGLE_SERVICE_ACCOUNT_JSON is a placeholder. Lead sheet disabled."
            )

        if self.max_reprompts < 0 or self.postal_fallback_after < 0:
            raise ValueError("MAX_REPROMPTS and POSTAL_FALLBACK_AFTER must be >= 0.")

        return warnings


settings = Settings()
