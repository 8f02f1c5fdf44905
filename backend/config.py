from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_DEFAULT_CATALOG = Path(__file__).resolve().parent / "data" / "catalog.json"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AppConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "wedding-planner-secret-change-in-production")
    session_max_age: int = int(os.getenv("SESSION_MAX_AGE", str(2 * 60 * 60)))
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")
    seed_catalog: bool = _env_flag("SEED_CATALOG", "true")
    catalog_path: Path = Path(os.getenv("CATALOG_PATH", str(_DEFAULT_CATALOG)))
    upload_dir: Path = Path(os.getenv("UPLOAD_DIR", "uploads"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional bootstrap administrator, created at start-up when both are set.
    admin_email: str = os.getenv("ADMIN_EMAIL", "")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "")


DEFAULT_APP_CONFIG = AppConfig()


def configure_logging(level: str = DEFAULT_APP_CONFIG.log_level) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
