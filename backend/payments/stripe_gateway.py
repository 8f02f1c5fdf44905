"""Stripe Checkout adapter built on the stripe-python SDK."""
from __future__ import annotations

import logging
from typing import Any

import stripe

from ..errors import ExternalServiceError, ValidationError
from .config import DEFAULT_STRIPE_CONFIG, StripeConfig
from .gateway import CheckoutSession, PaymentGateway, WebhookEvent

logger = logging.getLogger(__name__)


def _plain(obj: Any) -> dict:
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict", None)
    return dict(to_dict() if to_dict else obj)


def _to_session(obj: Any) -> CheckoutSession:
    intent = getattr(obj, "payment_intent", None)
    if intent is not None and not isinstance(intent, str):
        intent = intent.id
    return CheckoutSession(
        id=obj.id,
        url=getattr(obj, "url", None),
        payment_status=obj.payment_status,
        amount_total=int(obj.amount_total or 0),
        payment_intent=intent,
        metadata={k: str(v) for k, v in _plain(getattr(obj, "metadata", None)).items()},
    )


class StripeGateway(PaymentGateway):
    def __init__(self, config: StripeConfig = DEFAULT_STRIPE_CONFIG) -> None:
        self.config = config

    def _require_key(self) -> str:
        if not self.config.secret_key:
            raise ExternalServiceError("Payment processor is not configured")
        return self.config.secret_key

    def create_checkout_session(
        self,
        *,
        amount: int,
        description: str,
        customer_email: str | None,
        metadata: dict[str, str],
    ) -> CheckoutSession:
        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": self.config.currency,
                        "product_data": {
                            "name": self.config.product_name,
                            "description": description,
                        },
                        "unit_amount": amount,
                    },
                    "quantity": 1,
                }
            ],
            "success_url": self.config.success_url,
            "cancel_url": self.config.cancel_url,
            "metadata": metadata,
        }
        if customer_email:
            params["customer_email"] = customer_email
        try:
            session = stripe.checkout.Session.create(api_key=self._require_key(), **params)
        except stripe.StripeError as exc:
            logger.error("Stripe checkout creation failed: %s", exc)
            raise ExternalServiceError("Could not create payment session") from exc
        return _to_session(session)

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession | None:
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self._require_key())
        except stripe.InvalidRequestError:
            return None
        except stripe.StripeError as exc:
            logger.error("Stripe session lookup failed for %s: %s", session_id, exc)
            raise ExternalServiceError("Could not retrieve payment session") from exc
        return _to_session(session)

    def construct_event(self, payload: bytes, signature: str | None) -> WebhookEvent:
        if not self.config.webhook_secret:
            raise ExternalServiceError("Payment webhook secret is not configured")
        try:
            event = stripe.Webhook.construct_event(
                payload, signature or "", self.config.webhook_secret
            )
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            raise ValidationError(f"Webhook Error: {exc}") from exc

        session = None
        if event.type.startswith("checkout.session."):
            session = _to_session(event.data.object)
        return WebhookEvent(type=event.type, session=session)
