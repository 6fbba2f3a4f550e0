from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    environment: Environment = Environment.LOCAL

    app_name: str = "cycle-ledger"
    debug: bool = False

    # Database Components
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "cycle_ledger"
    # NullPool suits one-shot jobs such as a nightly rollover sweep
    db_use_nullpool: bool = False
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def async_database_url(self) -> str:
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    # OpenTelemetry
    otel_service_name: str = "cycle-ledger"
    otel_service_version: str = "0.1.0"

    # Axiom (export is skipped when no token is configured)
    axiom_token: Optional[str] = None
    axiom_dataset: Optional[str] = None

    # Billing - late fees
    late_fee_grace_days: int = 3
    late_fee_daily_rate: Decimal = Decimal("0.02")
    late_fee_max_rate: Decimal = Decimal("0.30")

    # Billing - cycles
    default_cycle_days: int = 30


settings = Settings()
