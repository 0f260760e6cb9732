from pathlib import Path
from typing import Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Reservation Hold Core'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Idempotency cache
    IDEMPOTENCY_TTL_SECONDS: int = 300  # 5 minutes
    IDEMPOTENCY_MAX_ENTRIES: int = 10_000
    IDEMPOTENCY_SWEEP_INTERVAL_SECONDS: float = 60.0

    # Bounded batch execution
    BATCH_CONCURRENCY: int = 5
    BATCH_JITTER_MAX_MS: int = 50  # 0 disables the inter-item jitter

    # Outbound HTTP (retryable fetch)
    HTTP_TIMEOUT_SECONDS: float = 10.0
    HTTP_RETRY_BACKOFF_MIN_MS: int = 200
    HTTP_RETRY_BACKOFF_MAX_MS: int = 400

    # Availability guard
    AVAILABILITY_FAIL_OPEN: bool = True
    HOLD_EXPIRY_BUFFER_SECONDS: int = 5

    # Supabase (PostgREST) reservation store
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[SecretStr] = None
    RESERVATIONS_TABLE: str = 'reservations'

    @field_validator('SUPABASE_URL', mode='before')
    @classmethod
    def strip_supabase_url(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            v = v.strip().rstrip('/')
            return v or None
        return v

    def missing_keys(self, *names: str) -> list[str]:
        """
        Return the setting names that are unset or blank.

        Example:
            settings.missing_keys('SUPABASE_URL', 'SUPABASE_SERVICE_ROLE_KEY')
        """
        missing: list[str] = []
        for name in names:
            value = getattr(self, name, None)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing


settings = Settings()  # type: ignore
