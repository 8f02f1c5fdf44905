from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Request
from pydantic import Field

from ..auth.dependencies import require_user
from ..dependencies import get_payment_service
from ..schemas import CamelModel
from .service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


class StartPaymentRequest(CamelModel):
    order_id: str = Field(..., min_length=1)
    # Omitted for cash after service, else "25_percent" or "full_payment".
    payment_amount: str | None = None


@router.post("/start-payment")
async def start_payment(
    body: StartPaymentRequest,
    user: dict = Depends(require_user),
    payments: PaymentService = Depends(get_payment_service),
) -> dict:
    return await payments.start_payment(user, body.order_id, body.payment_amount)


@router.get("/status/{session_id}")
async def payment_status(
    session_id: str,
    user: dict = Depends(require_user),
    payments: PaymentService = Depends(get_payment_service),
) -> dict:
    return await payments.check_status(user, session_id)


@router.post("/webhook")
async def webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="stripe-signature"),
    payments: PaymentService = Depends(get_payment_service),
) -> dict:
    payload = await request.body()
    return payments.handle_webhook(payload, stripe_signature)
