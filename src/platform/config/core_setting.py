from pathlib import Path
from typing import List, Literal

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

    PROJECT_NAME: str = 'Tiered Ticketing Service'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []  # add your frontend URL here

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # Persistence backend: 'postgres' for production, 'memory' for local runs and tests
    DATABASE_BACKEND: Literal['postgres', 'memory'] = 'postgres'

    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'ticketing'
    POSTGRES_PASSWORD: SecretStr = SecretStr('ticketing')
    POSTGRES_DB: str = 'ticketing'

    # Overrides the URL assembled from POSTGRES_* (e.g. sqlite+aiosqlite:// in tests)
    DATABASE_URL_OVERRIDE: str = ''

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@{self.POSTGRES_SERVER}:'
            f'{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Connection pool
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    # Booking policy
    MAX_TICKETS_PER_RESERVATION: int = 10
    BOOKING_CUTOFF_MINUTES: int = 30  # sales close this long before the event starts
    CANCELLATION_CUTOFF_HOURS: int = 24  # cancellations refused inside this window
    RECONCILE_INVENTORY_ON_STARTUP: bool = False

    # Payment gateway
    PAYMENT_GATEWAY: Literal['simulated', 'stripe'] = 'simulated'
    PAYMENT_GATEWAY_TIMEOUT_SECONDS: float = 15.0
    STRIPE_SECRET_KEY: SecretStr = SecretStr('')
    STRIPE_CURRENCY: str = 'eur'
    STRIPE_MAX_NETWORK_RETRIES: int = 2

    # Observability
    OTEL_EXPORTER_OTLP_ENDPOINT: str = ''
    OTEL_CONSOLE_EXPORTER: bool = False


settings = Settings()  # type: ignore
