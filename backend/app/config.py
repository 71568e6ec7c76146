from decimal import Decimal
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Desk"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://leave_desk:leave_desk@db:5432/leave_desk"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    min_reason_length: int = 5
    # Which year an approved request is charged against.
    balance_year_policy: Literal["start_date", "approval_date"] = "start_date"
    # "allow" keeps the legacy behaviour and only logs; "reject" refuses the approval.
    over_allocation_policy: Literal["allow", "reject"] = "allow"
    # Days allocated per leave type when balances are seeded or reset.
    default_allocations: dict[str, Decimal] = {
        "casual": Decimal(12),
        "sick": Decimal(10),
        "earned": Decimal(15),
        "study": Decimal(5),
        "work_from_home": Decimal(24),
        "loss_of_pay": Decimal(0),
    }


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
