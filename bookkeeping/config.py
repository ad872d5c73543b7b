"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class BookkeepingConfig(BaseSettings):
    """Bookkeeping engine configuration"""

    # Tax configuration
    tax_rate: Decimal = Decimal('0.13')
    tax_payable_code: str = "2103.01"    # IVA Debito Fiscal, credited on sales
    tax_receivable_code: str = "1103"    # IVA Credito Fiscal, debited on purchases
    tax_line_prefix: str = "IVA de: "

    # Numeric configuration
    amount_precision: int = 2
    entry_tolerance: Decimal = Decimal('0.001')      # journal entry validation
    statement_tolerance: Decimal = Decimal('0.01')   # statement tie-out

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    @field_validator('tax_rate')
    @classmethod
    def tax_rate_must_be_positive(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("tax_rate must be a positive fraction")
        return value

    class Config:
        env_prefix = "BOOKKEEPING_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = BookkeepingConfig()


def get_config() -> BookkeepingConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BookkeepingConfig:
    """Reload configuration from environment"""
    global config
    config = BookkeepingConfig()
    return config
