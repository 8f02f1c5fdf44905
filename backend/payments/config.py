from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")


@dataclass(frozen=True)
class StripeConfig:
    secret_key: str = os.getenv("STRIPE_SECRET_KEY", "")
    webhook_secret: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    currency: str = os.getenv("STRIPE_CURRENCY", "usd")
    success_url: str = os.getenv("STRIPE_SUCCESS_URL", f"{_FRONTEND_URL}/order-success")
    cancel_url: str = os.getenv("STRIPE_CANCEL_URL", f"{_FRONTEND_URL}/payment-cancel")
    product_name: str = "Wedding Planner Order"

    @property
    def configured(self) -> bool:
        return bool(self.secret_key and self.webhook_secret)


DEFAULT_STRIPE_CONFIG = StripeConfig()
