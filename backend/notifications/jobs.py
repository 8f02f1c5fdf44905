"""
Email job definitions.

Each job type carries its own payload model; ``Job`` refuses a payload that
does not belong to its type, so the worker never dispatches on a loosely
shaped bag of data.
"""
from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict

from ..orders.models import Order


class JobType(str, Enum):
    order_confirmation = "order-confirmation"
    password_reset = "password-reset"
    verification_otp = "verification-otp"


class JobStatus(str, Enum):
    waiting = "waiting"
    processing = "processing"
    completed = "completed"
    failed = "failed"
    retrying = "retrying"


class EmailPaymentType(str, Enum):
    full_payment = "full_payment"
    advance_payment = "25_percent"
    cash_payment = "cash_payment"


class OrderConfirmationPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    name: str
    order: Order
    payment_type: EmailPaymentType


class PasswordResetPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    reset_token: str


class VerificationOtpPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    name: str
    otp_code: str


JobPayload = Union[OrderConfirmationPayload, PasswordResetPayload, VerificationOtpPayload]

PAYLOAD_TYPES: dict[JobType, type] = {
    JobType.order_confirmation: OrderConfirmationPayload,
    JobType.password_reset: PasswordResetPayload,
    JobType.verification_otp: VerificationOtpPayload,
}


def new_job_id() -> str:
    """Millisecond timestamp plus a random suffix."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"


@dataclass
class Job:
    type: JobType
    payload: JobPayload
    priority: int = 5
    max_attempts: int = 3
    delay: int = 0  # milliseconds before the job is eligible
    id: str = field(default_factory=new_job_id)
    attempts: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: JobStatus = JobStatus.waiting

    def __post_init__(self) -> None:
        self.type = JobType(self.type)
        expected = PAYLOAD_TYPES[self.type]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.type.value} job requires {expected.__name__}, got {type(self.payload).__name__}"
            )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @property
    def recipient(self) -> str:
        return self.payload.email
