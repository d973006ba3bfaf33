"""
Wallet service configuration using Pydantic Settings.
"""

from decimal import Decimal
from typing import List, NamedTuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Role


class RolePolicy(NamedTuple):
    daily_cap: int
    min_withdrawal: Decimal


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # Rewards
    REFERRAL_REWARD: Decimal = Field(default=Decimal("120.00"), gt=0, decimal_places=2)
    CURRENCY: str = "INR"

    # Withdrawal policy
    CUSTOMER_DAILY_WITHDRAWALS: int = Field(default=1, ge=0)
    VENDOR_DAILY_WITHDRAWALS: int = Field(default=3, ge=0)
    CUSTOMER_MIN_WITHDRAWAL: Decimal = Field(default=Decimal("120.00"), ge=0)
    VENDOR_MIN_WITHDRAWAL: Decimal = Field(default=Decimal("0.00"), ge=0)

    # Calendar day boundary for withdrawal limits
    LEDGER_TIMEZONE: str = "UTC"

    # 0 disables the in-process EOD sweep loop
    EOD_SWEEP_INTERVAL_MINUTES: int = 0

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    def role_policies(self) -> dict[Role, RolePolicy]:
        return {
            Role.CUSTOMER: RolePolicy(self.CUSTOMER_DAILY_WITHDRAWALS, self.CUSTOMER_MIN_WITHDRAWAL),
            Role.VENDOR: RolePolicy(self.VENDOR_DAILY_WITHDRAWALS, self.VENDOR_MIN_WITHDRAWAL),
        }


settings = Settings()
