from datetime import date

import pytest

from backend.errors import NotFoundError, ValidationError
from backend.orders.models import (
    BookingStatus,
    CartItem,
    ItemType,
    Order,
    OrderItem,
    OrderStatus,
    PaymentAmount,
    PaymentStatus,
    PaymentType,
)
from backend.orders.workflow import (
    charge_amount,
    confirm_cash_after_service,
    create_order_from_cart,
    ensure_payable,
    finalize_payment,
    parse_payment_amount,
    update_status,
)


def _order(total=1000.0, **kwargs) -> Order:
    items = [
        OrderItem(
            item_id="v1", item_type=ItemType.venue, name="Hall", price=total - 100,
            booked_from=date(2026, 12, 1), booked_till=date(2026, 12, 2),
        ),
        OrderItem(item_id="d1", item_type=ItemType.dish, name="Momo", price=100.0),
    ]
    return Order(user_id="u1", items=items, total_amount=total, remaining_amount=total, **kwargs)


# ── Checkout ─────────────────────────────────────────────────────────────


def test_checkout_builds_pending_order_and_empties_cart(store):
    store.cart_items.insert(CartItem(
        user_id="u1", item_id="v1", item_type=ItemType.venue, name="Hall", price=500.0,
        booked_from=date(2026, 12, 1), booked_till=date(2026, 12, 1),
    ))
    store.cart_items.insert(CartItem(
        user_id="u1", item_id="d1", item_type=ItemType.dish, name="Momo", price=12.5, quantity=4,
    ))
    store.cart_items.insert(CartItem(
        user_id="u2", item_id="d1", item_type=ItemType.dish, name="Momo", price=12.5,
    ))

    order = create_order_from_cart(store, "u1")

    assert order.status == OrderStatus.pending
    assert order.payment_status == PaymentStatus.pending
    assert order.total_amount == 550.0
    assert order.remaining_amount == 550.0
    assert order.paid_amount == 0
    assert [i.booking_status for i in order.items] == [BookingStatus.pending] * 2
    assert store.orders.get(order.id) is order
    assert [c.user_id for c in store.cart_items.find()] == ["u2"]


def test_checkout_with_empty_cart_is_not_found(store):
    with pytest.raises(NotFoundError):
        create_order_from_cart(store, "u1")


def test_booking_window_required_for_venue_and_studio():
    with pytest.raises(ValueError):
        OrderItem(item_id="s1", item_type=ItemType.studio, price=10.0)
    with pytest.raises(ValueError):
        OrderItem(
            item_id="v1", item_type=ItemType.venue, price=10.0,
            booked_from=date(2026, 12, 2), booked_till=date(2026, 12, 1),
        )
    with pytest.raises(ValueError):
        OrderItem(item_id="d1", item_type=ItemType.dish, price=10.0, booked_from=date(2026, 12, 1))


# ── Payment amounts ──────────────────────────────────────────────────────


def test_charge_amount_in_minor_units():
    assert charge_amount(1000.0, PaymentAmount.full) == 100_000
    assert charge_amount(1000.0, PaymentAmount.quarter) == 25_000
    # 10.10 * 0.25 = 2.525 -> 253 cents
    assert charge_amount(10.10, PaymentAmount.quarter) == 253


def test_charge_amount_enforces_fifty_cent_minimum():
    with pytest.raises(ValidationError, match=r"\$0\.50"):
        charge_amount(0.30, PaymentAmount.full)
    with pytest.raises(ValidationError):
        charge_amount(1.95, PaymentAmount.quarter)
    assert charge_amount(2.00, PaymentAmount.quarter) == 50


def test_parse_payment_amount():
    assert parse_payment_amount(None) is None
    assert parse_payment_amount("") is None
    assert parse_payment_amount("25_percent") == PaymentAmount.quarter
    with pytest.raises(ValidationError):
        parse_payment_amount("half")


def test_ensure_payable_rejects_closed_or_paid_orders():
    with pytest.raises(ValidationError):
        ensure_payable(_order(status=OrderStatus.cancelled))
    with pytest.raises(ValidationError):
        ensure_payable(_order(status=OrderStatus.completed))
    with pytest.raises(ValidationError):
        ensure_payable(_order(payment_status=PaymentStatus.partial))
    ensure_payable(_order())


# ── Cash and online confirmation ─────────────────────────────────────────


def test_cash_after_service_confirms_bookings():
    order = confirm_cash_after_service(_order())
    assert order.payment_type == PaymentType.cash_after_service
    assert order.status == OrderStatus.confirmed
    assert order.payment_status == PaymentStatus.pending
    assert order.items[0].booking_status == BookingStatus.confirmed
    # Dishes are not booked.
    assert order.items[1].booking_status == BookingStatus.pending


def test_cash_after_service_only_once():
    order = confirm_cash_after_service(_order())
    with pytest.raises(ValidationError, match="already confirmed"):
        confirm_cash_after_service(order)
    assert order.status == OrderStatus.confirmed


def test_finalize_advance_payment():
    order = _order(total=1000.0)
    changed = finalize_payment(
        order, payment_amount=PaymentAmount.quarter, amount_total=25_000,
        session_id="cs_1", payment_intent="pi_1",
    )
    assert changed is True
    assert order.paid_amount == 250.0
    assert order.remaining_amount == 750.0
    assert order.paid_amount + order.remaining_amount == order.total_amount
    assert order.payment_status == PaymentStatus.partial
    assert order.payment_type == PaymentType.advance_payment
    assert order.status == OrderStatus.confirmed
    assert order.stripe_payment_intent_id == "pi_1"
    assert order.items[0].booking_status == BookingStatus.confirmed


def test_finalize_full_payment():
    order = _order(total=1000.0)
    finalize_payment(order, payment_amount=PaymentAmount.full, amount_total=100_000)
    assert order.paid_amount == 1000.0
    assert order.remaining_amount == 0
    assert order.payment_status == PaymentStatus.completed


def test_finalize_is_idempotent():
    order = _order(total=1000.0)
    kwargs = {
        "payment_amount": PaymentAmount.quarter, "amount_total": 25_000,
        "session_id": "cs_1", "payment_intent": "pi_1",
    }
    assert finalize_payment(order, **kwargs) is True
    snapshot = order.model_dump()

    assert finalize_payment(order, **kwargs) is False
    assert order.model_dump() == snapshot
    assert order.paid_amount == 250.0


def test_finalize_leaves_cancelled_orders_alone():
    order = _order(status=OrderStatus.cancelled)
    assert finalize_payment(order, payment_amount=PaymentAmount.full, amount_total=100_000) is False
    assert order.paid_amount == 0
    assert order.status == OrderStatus.cancelled


# ── Status transitions ───────────────────────────────────────────────────


@pytest.mark.parametrize(
    "start, target",
    [
        (OrderStatus.draft, OrderStatus.pending),
        (OrderStatus.pending, OrderStatus.processing),
        (OrderStatus.processing, OrderStatus.confirmed),
        (OrderStatus.confirmed, OrderStatus.completed),
    ],
)
def test_forward_transitions(start, target):
    order = update_status(_order(status=start), target)
    assert order.status == target


@pytest.mark.parametrize(
    "start, target",
    [
        (OrderStatus.pending, OrderStatus.completed),
        (OrderStatus.cancelled, OrderStatus.pending),
        (OrderStatus.completed, OrderStatus.confirmed),
        (OrderStatus.confirmed, OrderStatus.confirmed),
    ],
)
def test_invalid_transitions(start, target):
    with pytest.raises(ValidationError):
        update_status(_order(status=start), target)


def test_cancelling_completed_order_needs_override():
    with pytest.raises(ValidationError):
        update_status(_order(status=OrderStatus.completed), OrderStatus.cancelled)

    order = update_status(_order(status=OrderStatus.completed), OrderStatus.cancelled, override=True)
    assert order.status == OrderStatus.cancelled
    assert {i.booking_status for i in order.items} == {BookingStatus.cancelled}
