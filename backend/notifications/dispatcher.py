"""
Email dispatcher: turns queue jobs into delivered messages.

The queue calls one coroutine per job type; each renders its template and
hands the message to the transport on a worker thread. A failed or timed-out
send raises ``ExternalServiceError`` so the queue can retry it.
"""
from __future__ import annotations

import asyncio
import logging

from ..errors import ExternalServiceError
from .config import DEFAULT_EMAIL_CONFIG, EmailConfig
from .jobs import JobType, OrderConfirmationPayload, PasswordResetPayload, VerificationOtpPayload
from .templates import render_order_confirmation, render_password_reset, render_verification_otp
from .transport import EmailPort

logger = logging.getLogger(__name__)


class EmailDispatcher:
    def __init__(self, transport: EmailPort, config: EmailConfig = DEFAULT_EMAIL_CONFIG) -> None:
        self.transport = transport
        self.config = config

    def handlers(self) -> dict:
        """Job-type to handler mapping consumed by ``EmailQueue``."""
        return {
            JobType.order_confirmation: self.send_order_confirmation,
            JobType.password_reset: self.send_password_reset,
            JobType.verification_otp: self.send_verification_otp,
        }

    async def send_order_confirmation(self, payload: OrderConfirmationPayload) -> dict:
        message = render_order_confirmation(
            payload.name, payload.order, payload.payment_type, self.config
        )
        return await self._deliver(payload.email, message)

    async def send_password_reset(self, payload: PasswordResetPayload) -> dict:
        message = render_password_reset(payload.reset_token, self.config)
        return await self._deliver(payload.email, message)

    async def send_verification_otp(self, payload: VerificationOtpPayload) -> dict:
        message = render_verification_otp(payload.name, payload.otp_code, self.config)
        return await self._deliver(payload.email, message)

    async def _deliver(self, to: str, message: dict) -> dict:
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(
                    self.transport.send,
                    to,
                    message["subject"],
                    message["body"],
                    message.get("html_body"),
                ),
                timeout=self.config.send_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ExternalServiceError(
                f"Email to {to} timed out after {self.config.send_timeout}s"
            ) from exc

        if result.get("status") != "sent":
            raise ExternalServiceError(result.get("error") or f"Email to {to} was not sent")
        logger.debug("Delivered %r to %s (message_id=%s)", message["subject"], to, result["message_id"])
        return result
