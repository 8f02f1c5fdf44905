from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import Field, model_validator

from ..schemas import CamelModel
from ..storage.document_store import Document


class OrderStatus(str, Enum):
    draft = "draft"
    pending = "pending"
    processing = "processing"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    pending = "pending"
    partial = "partial"
    completed = "completed"


class PaymentType(str, Enum):
    cash_after_service = "cash_after_service"
    advance_payment = "advance_payment"


class PaymentAmount(str, Enum):
    """Online payment choices a customer can make at checkout."""

    quarter = "25_percent"
    full = "full_payment"


class ItemType(str, Enum):
    venue = "venue"
    dish = "dish"
    studio = "studio"


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


BOOKABLE_TYPES = frozenset({ItemType.venue, ItemType.studio})


class _Booking(CamelModel):
    item_id: str = Field(..., min_length=1)
    item_type: ItemType
    quantity: int = Field(default=1, ge=1)
    booked_from: date | None = None
    booked_till: date | None = None

    @model_validator(mode="after")
    def _check_booking_window(self):
        if self.item_type in BOOKABLE_TYPES:
            if self.booked_from is None or self.booked_till is None:
                raise ValueError(
                    f"bookedFrom and bookedTill are required for {self.item_type.value} items"
                )
            if self.booked_from > self.booked_till:
                raise ValueError("bookedFrom must not be after bookedTill")
        elif self.booked_from is not None or self.booked_till is not None:
            raise ValueError("Only venue and studio items carry a booking window")
        return self


class _BookedLine(_Booking):
    name: str = ""
    price: float = Field(..., ge=0)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class OrderItem(_BookedLine):
    booking_status: BookingStatus = BookingStatus.pending


class CartItemCreate(_Booking):
    """Name and price come from the catalog, never from the client."""


class CartItem(Document, _BookedLine):
    user_id: str


class Order(Document):
    user_id: str
    status: OrderStatus = OrderStatus.pending
    items: list[OrderItem] = Field(default_factory=list)
    total_amount: float = Field(..., ge=0)
    payment_type: PaymentType | None = None
    paid_amount: float = Field(default=0.0, ge=0)
    remaining_amount: float = Field(default=0.0, ge=0)
    payment_status: PaymentStatus = PaymentStatus.pending
    stripe_payment_intent_id: str | None = None
    stripe_session_id: str | None = None


class StatusUpdate(CamelModel):
    status: OrderStatus


class BookedDate(CamelModel):
    booked_from: date
    booked_till: date
    order_id: str
