from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth.dependencies import require_admin, require_user
from ..catalog.models import Dish, Studio, Venue
from ..catalog.search import find_dish
from ..dependencies import get_store
from ..errors import AuthorizationError, NotFoundError
from ..storage.document_store import DocumentStore
from .models import CartItem, CartItemCreate, ItemType, Order, StatusUpdate
from .workflow import create_order_from_cart, update_status

router = APIRouter(tags=["orders"])


def _catalog_entry(store: DocumentStore, item_type: ItemType, item_id: str) -> Venue | Studio | Dish:
    if item_type == ItemType.venue:
        entry = store.venues.get(item_id)
    elif item_type == ItemType.studio:
        entry = store.studios.get(item_id)
    else:
        entry = find_dish(store, item_id)
    if entry is None:
        raise NotFoundError(f"{item_type.value.capitalize()} not found")
    return entry


def _owned_order(store: DocumentStore, order_id: str, user: dict) -> Order:
    order = store.orders.get(order_id)
    if order is None:
        raise NotFoundError("Order not found")
    if order.user_id != user["id"] and user.get("role") != "admin":
        raise AuthorizationError("You can only view your own orders")
    return order


# ── Cart ─────────────────────────────────────────────────────────────────


@router.post("/cart", status_code=201, response_model=CartItem)
def add_to_cart(
    body: CartItemCreate,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> CartItem:
    entry = _catalog_entry(store, body.item_type, body.item_id)
    item = CartItem(user_id=user["id"], name=entry.name, price=entry.price, **body.model_dump())
    return store.cart_items.insert(item)


@router.get("/cart", response_model=list[CartItem])
def get_cart(
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> list[CartItem]:
    return store.cart_items.find(lambda c: c.user_id == user["id"])


@router.delete("/cart/{cart_item_id}")
def remove_from_cart(
    cart_item_id: str,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    item = store.cart_items.get(cart_item_id)
    if item is None or item.user_id != user["id"]:
        raise NotFoundError("Cart item not found")
    store.cart_items.delete(cart_item_id)
    return {"status": "ok", "message": "Item removed from cart"}


# ── Orders ───────────────────────────────────────────────────────────────


@router.post("/orders", status_code=201, response_model=Order)
def checkout(
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Order:
    return create_order_from_cart(store, user["id"])


@router.get("/orders/mine", response_model=list[Order])
def my_orders(
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> list[Order]:
    return store.orders.find(lambda o: o.user_id == user["id"])


@router.get("/orders", response_model=list[Order])
def all_orders(
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> list[Order]:
    return store.orders.find()


@router.get("/orders/{order_id}", response_model=Order)
def get_order(
    order_id: str,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Order:
    return _owned_order(store, order_id, user)


@router.patch("/orders/{order_id}/status", response_model=Order)
def change_order_status(
    order_id: str,
    body: StatusUpdate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> Order:
    order = store.orders.get(order_id)
    if order is None:
        raise NotFoundError("Order not found")
    update_status(order, body.status, override=True)
    return store.orders.save(order)


@router.delete("/orders/{order_id}")
def delete_order(
    order_id: str,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> dict:
    if store.orders.delete(order_id) is None:
        raise NotFoundError("Order not found")
    return {"status": "ok", "message": "Order deleted"}
