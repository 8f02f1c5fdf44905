"""Transactional email templates.

Every ``render_*`` function returns ``{"subject", "body", "html_body"}``.
"""
from __future__ import annotations

from html import escape

from ..orders.models import ItemType, Order
from .config import DEFAULT_EMAIL_CONFIG, EmailConfig
from .jobs import EmailPaymentType

PAYMENT_LABELS: dict[EmailPaymentType, str] = {
    EmailPaymentType.full_payment: "Full Payment Completed",
    EmailPaymentType.advance_payment: "Advance Payment (25%) Completed",
    EmailPaymentType.cash_payment: "Cash Payment After Service",
}

TOKEN_LIFETIME_TEXT = "1 hour"


def _money(amount: float) -> str:
    return f"${amount:,.2f}"


def _item_lines(order: Order) -> list[str]:
    lines = []
    for item in order.items:
        line = (
            f"- {item.name} ({item.item_type.value}) x{item.quantity}: "
            f"{_money(item.line_total)}"
        )
        if item.item_type in (ItemType.venue, ItemType.studio) and item.booked_from:
            line += f" [booked {item.booked_from:%b %d, %Y} to {item.booked_till:%b %d, %Y}]"
        lines.append(line)
    return lines


def render_order_confirmation(
    name: str,
    order: Order,
    payment_type: EmailPaymentType,
    config: EmailConfig = DEFAULT_EMAIL_CONFIG,
) -> dict:
    label = PAYMENT_LABELS[EmailPaymentType(payment_type)]
    summary = [f"Total order amount: {_money(order.total_amount)}"]
    if payment_type == EmailPaymentType.cash_payment:
        summary.append("Payment method: Cash After Service")
    else:
        summary.append(f"Amount paid: {_money(order.paid_amount)}")
        if order.remaining_amount > 0:
            summary.append(f"Remaining amount: {_money(order.remaining_amount)}")
    summary.append(f"Payment status: {label}")

    body = "\n".join(
        [
            f"Hi {name},",
            "",
            f"Thank you for booking with {config.brand_name}. Your order is confirmed.",
            "",
            f"Order ID: {order.id}",
            f"Placed on: {order.created_at:%B %d, %Y %H:%M} UTC",
            f"Order status: {order.status.value}",
            "",
            "Items:",
            *_item_lines(order),
            "",
            *summary,
            "",
            f"View your orders at {config.frontend_url}/orders",
        ]
    )
    rows = "".join(f"<li>{escape(line[2:])}</li>" for line in _item_lines(order))
    html_body = (
        f"<h2>Order confirmed</h2>"
        f"<p>Hi {escape(name)}, thank you for booking with {escape(config.brand_name)}.</p>"
        f"<p><strong>Order ID:</strong> {escape(order.id)}</p>"
        f"<ul>{rows}</ul>"
        + "".join(f"<p>{escape(line)}</p>" for line in summary)
    )
    return {
        "subject": f"Order Confirmation #{order.id} - {label}",
        "body": body,
        "html_body": html_body,
    }


def render_password_reset(
    reset_token: str, config: EmailConfig = DEFAULT_EMAIL_CONFIG
) -> dict:
    link = f"{config.frontend_url}/reset-password/{reset_token}"
    body = (
        "You requested a password reset.\n\n"
        f"Open the link below to choose a new password:\n{link}\n\n"
        f"The link expires in {TOKEN_LIFETIME_TEXT}. "
        "If you did not request this, you can ignore this email."
    )
    html_body = (
        "<p>You requested a password reset.</p>"
        f'<p><a href="{escape(link)}">Reset your password</a></p>'
        f"<p>The link expires in {TOKEN_LIFETIME_TEXT}.</p>"
    )
    return {
        "subject": f"{config.brand_name} password reset",
        "body": body,
        "html_body": html_body,
    }


def render_verification_otp(
    name: str, otp_code: str, config: EmailConfig = DEFAULT_EMAIL_CONFIG
) -> dict:
    body = (
        f"Hi {name},\n\n"
        f"Your verification code is {otp_code}.\n\n"
        f"It expires in {TOKEN_LIFETIME_TEXT}."
    )
    html_body = (
        f"<p>Hi {escape(name)},</p>"
        f"<p>Your verification code is <strong>{escape(otp_code)}</strong>.</p>"
        f"<p>It expires in {TOKEN_LIFETIME_TEXT}.</p>"
    )
    return {
        "subject": f"Verify your {config.brand_name} account",
        "body": body,
        "html_body": html_body,
    }
