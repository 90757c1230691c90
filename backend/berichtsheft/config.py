from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)
    """Application runtime configuration."""

    app_name: str = "Berichtsheft"
    environment: str = "development"
    host: str = os.getenv("BH_HOST", "127.0.0.1")
    port: int = int(os.getenv("BH_PORT", "8080"))

    sqlite_path: Path = Path(os.getenv("BH_SQLITE_PATH", "./data/berichtsheft.db"))

    token_secret: str = os.getenv("BH_TOKEN_SECRET", "change-me")
    token_ttl_days: int = int(os.getenv("BH_TOKEN_TTL_DAYS", "7"))
    password_rounds: int = int(os.getenv("BH_PASSWORD_ROUNDS", "12"))

    log_level: str = os.getenv("BH_LOG_LEVEL", "INFO")
    log_dir: Path = Path(os.getenv("BH_LOG_DIR", "./data/logs"))
    log_rotation_days: int = int(os.getenv("BH_LOG_ROTATION_DAYS", "30"))
    log_backup_count: int = int(os.getenv("BH_LOG_BACKUP_COUNT", "6"))

    report_company: str = os.getenv("BH_REPORT_COMPANY", "Ausbildungsbetrieb")
    report_default_department: str = os.getenv("BH_REPORT_DEPARTMENT", "EDV")
    report_default_profession: str = os.getenv("BH_REPORT_PROFESSION", "Fachinformatiker")
    vacation_marker: str = Field(default=os.getenv("BH_VACATION_MARKER", "Ferien (0h)"))

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return str(value or "INFO").strip().upper()


settings = Settings()

# Ensure essential directories exist
settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
settings.log_dir.mkdir(parents=True, exist_ok=True)
