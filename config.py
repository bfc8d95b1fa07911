import os
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings:
    def __init__(
        self,
        database_url: str,
        legacy_config_path: Optional[Path],
        log_level: str,
        month_data_workers: int,
    ) -> None:
        self.database_url = database_url
        self.legacy_config_path = legacy_config_path
        self.log_level = log_level
        self.month_data_workers = month_data_workers


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("BUDGET_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "budget.db"
    database_url = os.getenv("BUDGET_DATABASE_URL", f"sqlite:///{default_db}")
    legacy_path = os.getenv("BUDGET_LEGACY_CONFIG_PATH")
    log_level = os.getenv("BUDGET_LOG_LEVEL", "INFO").upper()
    month_data_workers = max(1, int(os.getenv("BUDGET_MONTH_DATA_WORKERS", "3")))
    return Settings(
        database_url=database_url,
        legacy_config_path=Path(legacy_path) if legacy_path else None,
        log_level=log_level,
        month_data_workers=month_data_workers,
    )
