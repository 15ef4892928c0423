"""
StockLedger settings.

Each group reads its own environment prefix (``STORAGE_``, ``INVENTORY_``,
``API_``) from the process environment or a ``.env`` file; anything unset
keeps the default below.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = ".env"


class StorageSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STORAGE_", env_file=_ENV_FILE, extra="ignore"
    )

    data_dir: Path = Path("data")
    db_name: str = "stockledger.db"
    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0, description="SQLite busy timeout in ms")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class InventorySettings(BaseSettings):
    """Costing, reorder analytics and movement processing parameters."""

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_", env_file=_ENV_FILE, extra="ignore"
    )

    default_margin_percent: float = Field(default=40.0, ge=0)

    # Reorder analytics
    usage_window_days: int = Field(default=30, ge=1)
    purchase_lookback_days: int = Field(default=90, ge=1)
    default_lead_time_days: int = 7
    safety_stock_days: int = 7
    high_priority_days: int = 7
    approaching_factor: float = Field(default=1.2, ge=1.0)
    no_usage_days: int = 999
    minimum_reorder_quantity: int = 10

    max_bulk_rows: int = Field(default=1000, ge=1)

    # Retries after losing a version race on a product
    conflict_max_attempts: int = Field(default=3, ge=1)
    conflict_retry_delay: float = Field(default=0.05, ge=0, description="seconds")
    conflict_retry_max_delay: float = Field(default=1.0, ge=0, description="seconds")

    repository_timeout: float = Field(default=10.0, gt=0, description="seconds per store call")


class APISettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_", env_file=_ENV_FILE, extra="ignore")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]
    max_upload_size: int = Field(default=5 * 1024 * 1024, description="bytes")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_ENV_FILE, extra="ignore")

    app_name: str = "StockLedger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    inventory: InventorySettings = Field(default_factory=InventorySettings)
    api: APISettings = Field(default_factory=APISettings)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the loaded settings so the next call re-reads the environment."""
    global _settings
    _settings = None
