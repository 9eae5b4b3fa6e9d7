"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


def _default_required_gl_mappings() -> Dict[str, List[str]]:
    return {
        "CURRENT_ACCOUNT": ["LIABILITY_ACCOUNT", "FEE_ACCOUNT"],
        "SAVINGS_ACCOUNT": ["LIABILITY_ACCOUNT", "INTEREST_ACCOUNT"],
        "TERM_DEPOSIT": ["LIABILITY_ACCOUNT", "INTEREST_ACCOUNT"],
        "LOAN": ["ASSET_ACCOUNT", "INTEREST_ACCOUNT", "FEE_ACCOUNT"],
        "CARD": ["ASSET_ACCOUNT", "FEE_ACCOUNT"],
    }


class ConsoleConfig(BaseSettings):
    """Back-office console configuration"""

    # Remote back-office service
    api_base_url: str = "http://localhost:8080"
    api_prefix: str = "/api"
    api_timeout: Optional[float] = None  # None = httpx defaults

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    # Sandbox service (in-memory stand-in for the remote service)
    sandbox_host: str = "127.0.0.1"
    sandbox_port: int = 8080

    # Business rules configuration
    chart_of_account_code_max_length: int = 20
    ledger_account_code_max_length: int = 50

    # GL mapping types a product category must hold, keyed by category
    required_gl_mappings: Dict[str, List[str]] = Field(
        default_factory=_default_required_gl_mappings
    )

    @field_validator("api_base_url")
    @classmethod
    def _ensure_scheme(cls, value: str) -> str:
        value = value.strip()
        if not value:
            return "http://localhost:8080"
        if value.startswith("http://") or value.startswith("https://"):
            return value.rstrip("/")
        return f"http://{value}".rstrip("/")

    class Config:
        env_prefix = "BACKOFFICE_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = ConsoleConfig()


def get_config() -> ConsoleConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> ConsoleConfig:
    """Reload configuration from environment"""
    global config
    config = ConsoleConfig()
    return config
