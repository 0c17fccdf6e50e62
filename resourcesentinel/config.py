from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import json
import logging

logger = logging.getLogger(__name__)

APP_DIR = Path.home() / ".resourcesentinel"
DB_PATH = APP_DIR / "resourcesentinel.db"
CFG_PATH = APP_DIR / "config.json"

@dataclass
class AppConfig:
    sample_interval_ms: int = 30000
    analysis_interval_seconds: int = 60

    # Trend history fed to the diagnoser
    history_limit: int = 20
    history_window_seconds: int = 3600
    retention_days: int = 7

    # Entity key used for host-level threshold checks at ingestion
    host_entity_key: str = "System"

    # Root cause – score disks on observed usage instead of baseline only
    observed_disk_correlation: bool = False

    db_path: str = ""                      # "" → uses DB_PATH

    def resolved_db_path(self) -> str:
        return self.db_path or str(DB_PATH)

def ensure_dirs(app_dir: Path = APP_DIR) -> None:
    app_dir.mkdir(parents=True, exist_ok=True)

def load_config(path: Optional[Path] = None) -> AppConfig:
    path = path or CFG_PATH
    ensure_dirs(path.parent)
    if not path.exists():
        cfg = AppConfig()
        save_config(cfg, path)
        return cfg
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        known = {k: data[k] for k in data if k in AppConfig.__dataclass_fields__}
        return AppConfig(**known)
    except Exception as e:
        logger.warning("Unreadable config %s (%s), rewriting defaults", path, e)
        cfg = AppConfig()
        save_config(cfg, path)
        return cfg

def save_config(cfg: AppConfig, path: Optional[Path] = None) -> None:
    path = path or CFG_PATH
    ensure_dirs(path.parent)
    path.write_text(json.dumps(cfg.__dict__, indent=2), encoding="utf-8")
