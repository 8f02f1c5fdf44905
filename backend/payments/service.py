"""
Payment orchestration.

Responsibilities:
- Start a payment: cash after service, or a hosted checkout for 25% or the
  full order total.
- Reconcile an order from a paid checkout session, whether the customer's
  status poll or the processor's webhook gets there first.
- Queue the order confirmation email exactly once per effective change.

Gateway calls block, so they run on the threadpool. Finalisation itself is
synchronous on the event loop, which keeps a webhook and a poll for the same
session from interleaving.
"""
from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from ..errors import AuthorizationError, NotFoundError
from ..notifications.jobs import EmailPaymentType
from ..notifications.queue import EmailQueue, queue_order_confirmation_email
from ..orders.models import Order, PaymentAmount, PaymentType
from ..orders.workflow import (
    charge_amount,
    confirm_cash_after_service,
    ensure_payable,
    finalize_payment,
    parse_payment_amount,
)
from ..storage.document_store import DocumentStore
from .gateway import CHECKOUT_COMPLETED, CheckoutSession, PaymentGateway

logger = logging.getLogger(__name__)

EMAIL_PAYMENT_TYPES = {
    PaymentAmount.quarter: EmailPaymentType.advance_payment,
    PaymentAmount.full: EmailPaymentType.full_payment,
}


def order_summary(order: Order) -> dict:
    return order.model_dump(
        by_alias=True,
        mode="json",
        include={
            "id", "status", "total_amount", "paid_amount", "remaining_amount",
            "payment_status", "payment_type", "items",
        },
    )


class PaymentService:
    def __init__(self, store: DocumentStore, gateway: PaymentGateway, queue: EmailQueue) -> None:
        self.store = store
        self.gateway = gateway
        self.queue = queue

    def _get_order(self, order_id: str) -> Order:
        order = self.store.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def _queue_confirmation(self, order: Order, payment_type: EmailPaymentType) -> None:
        user = self.store.users.get(order.user_id)
        if user is None:
            logger.warning("No user %s for order %s; confirmation email skipped", order.user_id, order.id)
            return
        try:
            queue_order_confirmation_email(self.queue, user.email, user.name, order, payment_type)
        except Exception:
            logger.exception("Could not queue confirmation email for order %s", order.id)

    async def start_payment(self, user: dict, order_id: str, payment_amount: str | None) -> dict:
        order = self._get_order(order_id)
        if order.user_id != user["id"]:
            raise AuthorizationError("You can only make payments for your own orders")
        amount_type = parse_payment_amount(payment_amount)
        ensure_payable(order)

        if amount_type is None:
            confirm_cash_after_service(order)
            self.store.orders.save(order)
            self._queue_confirmation(order, EmailPaymentType.cash_payment)
            return {
                "success": True,
                "message": "Order confirmed for cash payment after service",
                "sessionUrl": None,
                "sessionId": None,
                "order": order_summary(order),
            }

        amount = charge_amount(order.total_amount, amount_type)
        customer = self.store.users.get(order.user_id)
        label = "25% Advance Payment" if amount_type == PaymentAmount.quarter else "Full Payment"
        session = await run_in_threadpool(
            self.gateway.create_checkout_session,
            amount=amount,
            description=f"Payment for order {order.id} containing {len(order.items)} items ({label})",
            customer_email=customer.email if customer else None,
            metadata={
                "orderId": order.id,
                "userId": order.user_id,
                "paymentAmountType": amount_type.value,
            },
        )
        order.payment_type = PaymentType.advance_payment
        order.stripe_session_id = session.id
        self.store.orders.save(order)
        logger.info("Checkout session %s opened for order %s (%d minor units)", session.id, order.id, amount)
        return {
            "success": True,
            "message": "Payment session created successfully",
            "sessionUrl": session.url,
            "sessionId": session.id,
        }

    def apply_session(self, session: CheckoutSession) -> Order | None:
        """Finalise the order a paid session belongs to; safe to repeat."""
        order = self.store.orders.get(session.metadata.get("orderId", ""))
        if order is None:
            logger.error("Order not found for checkout session %s", session.id)
            return None
        if not session.paid:
            return order
        try:
            amount_type = PaymentAmount(session.metadata.get("paymentAmountType", ""))
        except ValueError:
            logger.error(
                "Checkout session %s has unknown payment type %r",
                session.id, session.metadata.get("paymentAmountType"),
            )
            return order

        changed = finalize_payment(
            order,
            payment_amount=amount_type,
            amount_total=session.amount_total,
            session_id=session.id,
            payment_intent=session.payment_intent,
        )
        if changed:
            self.store.orders.save(order)
            self._queue_confirmation(order, EMAIL_PAYMENT_TYPES[amount_type])
        return order

    async def check_status(self, user: dict, session_id: str) -> dict:
        session = await run_in_threadpool(self.gateway.retrieve_checkout_session, session_id)
        if session is None:
            raise NotFoundError("Payment session not found")
        if session.metadata.get("userId") != user["id"]:
            raise AuthorizationError("You can only check your own payment status")

        order = self.apply_session(session)
        if order is None:
            raise NotFoundError("Order not found")
        return {
            "success": True,
            "paymentStatus": session.payment_status,
            "orderStatus": order.status.value,
            "order": order_summary(order),
        }

    def handle_webhook(self, payload: bytes, signature: str | None) -> dict:
        """Verify and apply a processor event.

        Only a bad signature reaches the caller (as ``ValidationError``);
        processing failures are logged so the processor does not retry.
        """
        event = self.gateway.construct_event(payload, signature)
        if event.type != CHECKOUT_COMPLETED or event.session is None:
            logger.debug("Ignoring webhook event %s", event.type)
            return {"received": True}
        try:
            self.apply_session(event.session)
        except Exception:
            logger.exception("Error updating order after webhook for session %s", event.session.id)
        return {"received": True}

