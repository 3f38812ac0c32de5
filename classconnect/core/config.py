"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Cross-field rules (service account, telemetry exporter)
are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings are optional with defaults. Without Firebase credentials the
    app still starts (health endpoints work); credential endpoints answer 503.
    """

    # App
    app_name: str = "classconnect-rep-auth"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS
    allowed_origins: str = "http://localhost:8081,http://localhost:19006"

    # Firebase: service account as key (env JSON) or path (file).
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    # Overrides project_id from the service account (e.g. emulator project).
    firebase_project_id: str | None = None
    # Web API key: required for email/password sign-in (Login Gate, password change).
    firebase_web_api_key: SecretStr | None = None
    identity_toolkit_base_url: str = "https://identitytoolkit.googleapis.com/v1"
    firestore_base_url: str = "https://firestore.googleapis.com/v1"
    firebase_http_timeout_seconds: float = 30.0

    # Password reset
    reset_token_ttl_seconds: int = 3600  # 1 hour
    reset_max_requests_per_day: int = 3
    reset_token_min_length: int = 32

    # Request / middleware
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"
    correlation_id_header: str = "X-Correlation-ID"

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def firebase_configured(self) -> bool:
        """True when a service account key or path is set."""
        has_key = (
            self.firebase_service_account_key is not None
            and bool(self.firebase_service_account_key.get_secret_value())
        )
        return has_key or bool(self.firebase_service_account_path)

    @model_validator(mode="after")
    def validate_firebase_and_telemetry(self) -> "Settings":
        """Validate cross-field settings.

        - Web API key without a service account is rejected (sign-in alone
          cannot run the admin operations).
        - Reset TTL and daily limit must be positive.
        - Telemetry exporter must be a known name.
        """
        if self.firebase_web_api_key and not self.firebase_configured:
            raise ValueError(
                "FIREBASE_WEB_API_KEY is set but no service account is configured. "
                "Set FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string) or "
                "FIREBASE_SERVICE_ACCOUNT_PATH (path to JSON file)."
            )
        if self.reset_token_ttl_seconds <= 0:
            raise ValueError("RESET_TOKEN_TTL_SECONDS must be positive")
        if self.reset_max_requests_per_day <= 0:
            raise ValueError("RESET_MAX_REQUESTS_PER_DAY must be positive")
        if self.telemetry_exporter not in ("console", "otlp", "none"):
            raise ValueError(
                f"Invalid telemetry_exporter '{self.telemetry_exporter}'. "
                "Must be one of: 'console', 'otlp', 'none'"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
