"""
In-process document store.

Responsibilities:
- Hold one named collection per document type (users, catalog, cart, orders).
- Keep insertion order, which the recommender relies on for tie-breaking.
- Hand out list snapshots so readers never observe a collection mid-update.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Generic, TypeVar
from uuid import uuid4

from pydantic import Field

from ..schemas import CamelModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class Document(CamelModel):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


T = TypeVar("T", bound=Document)


class Collection(Generic[T]):
    def __init__(self, name: str) -> None:
        self.name = name
        self._docs: dict[str, T] = {}

    def __len__(self) -> int:
        return len(self._docs)

    def insert(self, doc: T) -> T:
        if doc.id in self._docs:
            raise KeyError(f"{self.name}: duplicate id {doc.id}")
        self._docs[doc.id] = doc
        return doc

    def save(self, doc: T) -> T:
        doc.updated_at = utcnow()
        self._docs[doc.id] = doc
        return doc

    def get(self, doc_id: str) -> T | None:
        return self._docs.get(doc_id)

    def find(self, predicate: Callable[[T], bool] | None = None) -> list[T]:
        if predicate is None:
            return list(self._docs.values())
        return [d for d in self._docs.values() if predicate(d)]

    def find_one(self, predicate: Callable[[T], bool]) -> T | None:
        for doc in self._docs.values():
            if predicate(doc):
                return doc
        return None

    def delete(self, doc_id: str) -> T | None:
        return self._docs.pop(doc_id, None)

    def delete_many(self, predicate: Callable[[T], bool]) -> int:
        doomed = [doc_id for doc_id, d in self._docs.items() if predicate(d)]
        for doc_id in doomed:
            del self._docs[doc_id]
        return len(doomed)

    def clear(self) -> None:
        self._docs.clear()


class DocumentStore:
    """All collections used by the application."""

    def __init__(self) -> None:
        # Imported here so model modules can import Document from this one.
        from ..auth.models import User
        from ..catalog.models import Cuisine, Decoration, Studio, Venue
        from ..orders.models import CartItem, Order

        self.users: Collection[User] = Collection("users")
        self.venues: Collection[Venue] = Collection("venues")
        self.studios: Collection[Studio] = Collection("studios")
        self.cuisines: Collection[Cuisine] = Collection("cuisines")
        self.decorations: Collection[Decoration] = Collection("decorations")
        self.cart_items: Collection[CartItem] = Collection("cart_items")
        self.orders: Collection[Order] = Collection("orders")
