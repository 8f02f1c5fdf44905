"""
Order and payment state machine.

Order status moves along ``TRANSITIONS``; payment status moves from pending
to partial (25% advance) or completed (full payment). Payment finalisation
re-derives every amount from the processor session, so applying it twice
leaves the order unchanged.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from ..errors import NotFoundError, ValidationError
from ..storage.document_store import DocumentStore
from .models import (
    BOOKABLE_TYPES,
    BookedDate,
    BookingStatus,
    ItemType,
    Order,
    OrderItem,
    OrderStatus,
    PaymentAmount,
    PaymentStatus,
    PaymentType,
)

logger = logging.getLogger(__name__)

MIN_CHARGE_MINOR_UNITS = 50

PAYMENT_FRACTIONS: dict[PaymentAmount, Decimal] = {
    PaymentAmount.quarter: Decimal("0.25"),
    PaymentAmount.full: Decimal("1"),
}

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.draft: frozenset({OrderStatus.pending, OrderStatus.cancelled}),
    OrderStatus.pending: frozenset(
        {OrderStatus.processing, OrderStatus.confirmed, OrderStatus.cancelled}
    ),
    OrderStatus.processing: frozenset({OrderStatus.confirmed, OrderStatus.cancelled}),
    OrderStatus.confirmed: frozenset({OrderStatus.completed, OrderStatus.cancelled}),
    OrderStatus.completed: frozenset(),
    OrderStatus.cancelled: frozenset(),
}

# Only reachable through an administrative override.
OVERRIDE_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.completed: frozenset({OrderStatus.cancelled}),
}

CLOSED_STATUSES = frozenset({OrderStatus.completed, OrderStatus.cancelled})

BOOKING_ORDER_STATUSES = frozenset(
    {OrderStatus.confirmed, OrderStatus.processing, OrderStatus.completed}
)


def _round2(value: float | Decimal) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def create_order_from_cart(store: DocumentStore, user_id: str) -> Order:
    """Turn the caller's cart into a pending order and empty the cart."""
    cart = store.cart_items.find(lambda c: c.user_id == user_id)
    if not cart:
        raise NotFoundError("Your cart is empty")

    items = [
        OrderItem(
            item_id=c.item_id,
            item_type=c.item_type,
            name=c.name,
            price=c.price,
            quantity=c.quantity,
            booked_from=c.booked_from,
            booked_till=c.booked_till,
        )
        for c in cart
    ]
    total = _round2(sum(Decimal(str(i.price)) * i.quantity for i in items))
    order = Order(
        user_id=user_id,
        status=OrderStatus.pending,
        items=items,
        total_amount=total,
        remaining_amount=total,
        payment_status=PaymentStatus.pending,
    )
    store.orders.insert(order)
    store.cart_items.delete_many(lambda c: c.user_id == user_id)
    logger.info("Order %s created for user %s (%d items, total %.2f)", order.id, user_id, len(items), total)
    return order


def ensure_payable(order: Order) -> None:
    if order.status in CLOSED_STATUSES:
        raise ValidationError(f"Cannot start a payment for a {order.status.value} order")
    if order.payment_status != PaymentStatus.pending:
        raise ValidationError("This order has already been paid")


def parse_payment_amount(raw: str | None) -> PaymentAmount | None:
    """``None`` means cash after service."""
    if not raw:
        return None
    try:
        return PaymentAmount(raw)
    except ValueError:
        raise ValidationError(
            "Invalid paymentAmount. Use '25_percent' or 'full_payment'"
        ) from None


def charge_amount(total_amount: float, payment_amount: PaymentAmount) -> int:
    """Amount to charge in minor units (cents), rounded half up."""
    fraction = PAYMENT_FRACTIONS[payment_amount]
    minor = (Decimal(str(total_amount)) * fraction * 100).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    if minor < MIN_CHARGE_MINOR_UNITS:
        raise ValidationError("Payment amount must be at least $0.50")
    return int(minor)


def _confirm_bookings(order: Order) -> None:
    for item in order.items:
        if item.item_type in BOOKABLE_TYPES:
            item.booking_status = BookingStatus.confirmed


def confirm_cash_after_service(order: Order) -> Order:
    ensure_payable(order)
    if order.payment_type == PaymentType.cash_after_service:
        raise ValidationError("This order is already confirmed for cash payment after service")
    order.payment_type = PaymentType.cash_after_service
    order.status = OrderStatus.confirmed
    order.payment_status = PaymentStatus.pending
    _confirm_bookings(order)
    logger.info("Order %s confirmed for cash payment after service", order.id)
    return order


def _snapshot(order: Order) -> tuple:
    return (
        order.status,
        order.payment_status,
        order.payment_type,
        order.paid_amount,
        order.remaining_amount,
        order.stripe_payment_intent_id,
        order.stripe_session_id,
        tuple(i.booking_status for i in order.items),
    )


def finalize_payment(
    order: Order,
    *,
    payment_amount: PaymentAmount,
    amount_total: int,
    session_id: str | None = None,
    payment_intent: str | None = None,
) -> bool:
    """Apply a paid processor session to ``order``.

    ``amount_total`` is the charged amount in minor units. Returns ``True``
    when the order changed; reapplying the same session returns ``False``.
    Completed or cancelled orders are left alone.
    """
    if order.status in CLOSED_STATUSES:
        logger.warning(
            "Ignoring payment for %s order %s (session %s)", order.status.value, order.id, session_id
        )
        return False

    before = _snapshot(order)
    if payment_amount == PaymentAmount.quarter:
        order.paid_amount = _round2(Decimal(amount_total) / 100)
        order.remaining_amount = _round2(
            max(Decimal(str(order.total_amount)) - Decimal(str(order.paid_amount)), Decimal(0))
        )
        order.payment_status = PaymentStatus.partial
    else:
        order.paid_amount = order.total_amount
        order.remaining_amount = 0.0
        order.payment_status = PaymentStatus.completed

    order.payment_type = PaymentType.advance_payment
    order.status = OrderStatus.confirmed
    order.stripe_payment_intent_id = payment_intent or order.stripe_payment_intent_id
    order.stripe_session_id = session_id or order.stripe_session_id
    _confirm_bookings(order)

    changed = _snapshot(order) != before
    if changed:
        logger.info(
            "Order %s finalized: %s paid %.2f, remaining %.2f",
            order.id, order.payment_status.value, order.paid_amount, order.remaining_amount,
        )
    return changed


def update_status(order: Order, new_status: OrderStatus, *, override: bool = False) -> Order:
    allowed = TRANSITIONS[order.status]
    if override:
        allowed = allowed | OVERRIDE_TRANSITIONS.get(order.status, frozenset())
    if new_status not in allowed:
        raise ValidationError(
            f"Cannot change order status from {order.status.value} to {new_status.value}"
        )

    order.status = new_status
    if new_status == OrderStatus.cancelled:
        for item in order.items:
            item.booking_status = BookingStatus.cancelled
    logger.info("Order %s moved to %s", order.id, new_status.value)
    return order


def confirmed_bookings(store: DocumentStore, item_type: ItemType, item_id: str) -> list[BookedDate]:
    """Booking windows already held for a venue or studio."""
    orders = store.orders.find(lambda o: o.status in BOOKING_ORDER_STATUSES)
    return [
        BookedDate(booked_from=item.booked_from, booked_till=item.booked_till, order_id=order.id)
        for order in orders
        for item in order.items
        if item.item_id == item_id
        and item.item_type == item_type
        and item.booking_status == BookingStatus.confirmed
    ]
