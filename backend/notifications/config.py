from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class EmailConfig:
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_username: str = os.getenv("SMTP_USERNAME", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    use_starttls: bool = os.getenv("SMTP_STARTTLS", "true").lower() in ("1", "true", "yes")
    sender: str = os.getenv("USER_EMAIL", "no-reply@wedding-planner.local")
    # Upper bound for a single send; a hanging transport would otherwise stall the queue.
    send_timeout: float = float(os.getenv("EMAIL_SEND_TIMEOUT", "30"))
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")
    brand_name: str = "Wedding Planner"


@dataclass(frozen=True)
class QueueConfig:
    max_attempts: int = 3
    retry_delay_ms: int = 2000
    pacing_ms: int = 500


DEFAULT_EMAIL_CONFIG = EmailConfig()
DEFAULT_QUEUE_CONFIG = QueueConfig()
