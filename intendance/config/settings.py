"""
Intendance settings.

Every value can be overridden from the environment or a `.env` file:
storage values use the STORAGE_ prefix, ledger values the LEDGER_ prefix.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the SQLite database lives and how connections behave."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "intendance.db"

    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0)  # ms to wait for the write lock

    # Copy the database aside before pending migrations run
    backup_before_migrate: bool = True

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class LedgerSettings(BaseSettings):
    """Stock status thresholds and audit labels."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # quantity / critical value below which each status applies
    critical_ratio: float = Field(default=1.0, gt=0)  # VIOLET
    alert_ratio: float = Field(default=1.2, gt=0)  # ROUGE
    attention_ratio: float = Field(default=1.5, gt=0)  # ORANGE

    default_actor: str = "Unknown"
    stock_table_label: str = "Stocks"

    @model_validator(mode="after")
    def check_ratio_order(self) -> "LedgerSettings":
        if not self.critical_ratio <= self.alert_ratio <= self.attention_ratio:
            raise ValueError(
                "status ratios must satisfy critical <= alert <= attention"
            )
        return self


class Settings(BaseSettings):
    """Top-level settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Intendance"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        storage = StorageSettings(**v) if isinstance(v, dict) else v or StorageSettings()
        storage.data_dir.mkdir(parents=True, exist_ok=True)
        return storage

    @property
    def json_logs(self) -> bool:
        return self.environment != "development"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the loaded settings (tests, CLI overrides)."""
    global _settings
    _settings = None
