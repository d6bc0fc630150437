"""
Configuration Management Module

Centralized ledger configuration using pydantic-settings, overridable
through TOKEN_LEDGER_* environment variables or a .env file.
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Tiered burn ledger configuration"""
    
    # Fee policy
    default_burn_fee_bps: int = Field(10, ge=0, le=10000)  # 0.1% for accounts without an explicit tier
    default_tier_name: str = "default"
    
    # Blacklist policy: senders are always blocked, recipients only if enabled
    block_blacklisted_recipients: bool = False
    
    # Storage configuration
    storage_backend: str = "memory"  # memory or sqlite
    database_path: str = "token_ledger.db"
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    
    class Config:
        env_prefix = "TOKEN_LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
