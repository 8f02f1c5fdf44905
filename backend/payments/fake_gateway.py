"""Configurable fake checkout gateway for development and testing.

Sessions live in memory and start unpaid; ``complete_session`` plays the part
of the customer finishing checkout. Webhook payloads are signed with
HMAC-SHA256 over the raw body, so signature checks behave like the real thing.
"""
from __future__ import annotations

import hashlib
import hmac
import json
from dataclasses import replace
from uuid import uuid4

from ..errors import ExternalServiceError, ValidationError
from .gateway import CHECKOUT_COMPLETED, CheckoutSession, PaymentGateway, WebhookEvent


class FakeGateway(PaymentGateway):
    def __init__(self, webhook_secret: str = "whsec_test") -> None:
        self.webhook_secret = webhook_secret
        self.sessions: dict[str, CheckoutSession] = {}
        self.calls: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Payment processor unavailable"

    def configure(self, should_succeed: bool, failure_reason: str = "Payment processor unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_checkout_session(
        self,
        *,
        amount: int,
        description: str,
        customer_email: str | None,
        metadata: dict[str, str],
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "create_checkout_session",
                "amount": amount,
                "description": description,
                "customer_email": customer_email,
                "metadata": dict(metadata),
            }
        )
        if not self.should_succeed:
            raise ExternalServiceError(self.failure_reason)

        session_id = f"cs_test_{uuid4().hex[:16]}"
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.test/pay/{session_id}",
            payment_status="unpaid",
            amount_total=amount,
            metadata=dict(metadata),
        )
        self.sessions[session_id] = session
        return session

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession | None:
        self.calls.append({"method": "retrieve_checkout_session", "session_id": session_id})
        return self.sessions.get(session_id)

    def complete_session(self, session_id: str) -> CheckoutSession:
        session = replace(
            self.sessions[session_id],
            payment_status="paid",
            payment_intent=f"pi_test_{uuid4().hex[:16]}",
        )
        self.sessions[session_id] = session
        return session

    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    def webhook_payload(self, session_id: str, event_type: str = CHECKOUT_COMPLETED) -> tuple[bytes, str]:
        """Raw body and signature header for a webhook about ``session_id``."""
        session = self.sessions[session_id]
        body = json.dumps(
            {
                "type": event_type,
                "data": {
                    "object": {
                        "id": session.id,
                        "url": session.url,
                        "payment_status": session.payment_status,
                        "amount_total": session.amount_total,
                        "payment_intent": session.payment_intent,
                        "metadata": session.metadata,
                    }
                },
            }
        ).encode()
        return body, self.sign(body)

    def construct_event(self, payload: bytes, signature: str | None) -> WebhookEvent:
        if not signature or not hmac.compare_digest(self.sign(payload), signature):
            raise ValidationError("Webhook Error: signature verification failed")
        try:
            data = json.loads(payload)
            event_type = data["type"]
            obj = data["data"]["object"]
            session = CheckoutSession(
                id=obj["id"],
                url=obj.get("url"),
                payment_status=obj["payment_status"],
                amount_total=int(obj["amount_total"]),
                payment_intent=obj.get("payment_intent"),
                metadata=dict(obj.get("metadata") or {}),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise ValidationError(f"Webhook Error: malformed payload ({exc})") from exc
        return WebhookEvent(type=event_type, session=session)
