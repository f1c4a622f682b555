"""Offline form service configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class OfflineFormSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///offline_forms.db"
    echo_sql: bool = False
    app_title: str = "Offline Form Sync"

    # Remote system of record
    remote_base_url: str = "https://services-uat.dbosuat.corp.alliancebg.com.my"
    remote_submit_path: str = "/dbob/scenter/protected/v1/biypa/form/advance/submit"
    remote_branches_path: str = "/dbob/product/protected/v1/branches"
    remote_connect_timeout_seconds: float = 10.0
    remote_read_timeout_seconds: float = 30.0
    remote_verify_tls: bool = True

    # Expiry sweep
    purge_enabled: bool = True
    purge_run_on_startup: bool = True
    purge_test_mode: bool = False
    purge_synced_days: int = 7
    purge_stale_days: int = 14

    log_level: str = "INFO"
    log_dir: str = "logs"
    log_backup_days: int = 14

    model_config = {"env_prefix": "OFFLINE_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def project_dir(self) -> Path:
        return self.base_dir.parent

    @property
    def log_path(self) -> Path:
        path = Path(self.log_dir)
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = OfflineFormSettings()
