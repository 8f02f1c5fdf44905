"""
Catalog lookups and filtered search.

Search runs over a DataFrame snapshot of the collection, combining boolean
masks the same way the recommender narrows candidates. Results are newest
first and paginated.
"""
from __future__ import annotations

import math
from typing import Sequence, TypeVar

import pandas as pd

from ..storage.document_store import Document, DocumentStore
from .data_store import to_frame
from .models import Cuisine, Dish, Pagination, Studio, Venue

T = TypeVar("T", bound=Document)


def locate_dish(store: DocumentStore, dish_id: str) -> tuple[Cuisine, Dish] | None:
    """Find a dish and the cuisine that holds it."""
    for cuisine in store.cuisines.find():
        for dish in cuisine.dishes:
            if dish.id == dish_id:
                return cuisine, dish
    return None


def find_dish(store: DocumentStore, dish_id: str) -> Dish | None:
    found = locate_dish(store, dish_id)
    return found[1] if found else None


def _contains(df: pd.DataFrame, column: str, needle: str) -> pd.Series:
    return df[column].astype(str).str.contains(needle, case=False, regex=False, na=False)


def _price_mask(df: pd.DataFrame, min_price: float | None, max_price: float | None) -> pd.Series:
    mask = pd.Series(True, index=df.index)
    if min_price is not None:
        mask &= df["price"] >= min_price
    if max_price is not None:
        mask &= df["price"] <= max_price
    return mask


def _paginate(
    items: Sequence[T], df: pd.DataFrame, mask: pd.Series, page: int, limit: int
) -> tuple[list[T], Pagination]:
    matches = df.loc[mask].copy()
    matches["_created"] = [items[label].created_at for label in matches.index]
    matches = matches.sort_values("_created", ascending=False, kind="stable")

    total = len(matches)
    start = (page - 1) * limit
    labels = matches.index[start:start + limit]
    pagination = Pagination(
        total=total,
        current_page=page,
        total_pages=math.ceil(total / limit),
        limit=limit,
    )
    return [items[label] for label in labels], pagination


def _empty(page: int, limit: int) -> tuple[list, Pagination]:
    return [], Pagination(total=0, current_page=page, total_pages=0, limit=limit)


def search_venues(
    venues: Sequence[Venue],
    *,
    q: str | None = None,
    location: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    min_capacity: int | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Venue], Pagination]:
    """Match ``q`` against name or description, ``location`` as a substring."""
    if not venues:
        return _empty(page, limit)

    df = to_frame(venues)
    mask = _price_mask(df, min_price, max_price)
    if q:
        mask &= _contains(df, "name", q) | _contains(df, "description", q)
    if location:
        mask &= _contains(df, "location", location)
    if min_capacity is not None:
        mask &= df["capacity"] >= min_capacity
    return _paginate(venues, df, mask, page, limit)


def search_studios(
    studios: Sequence[Studio],
    *,
    q: str | None = None,
    services: Sequence[str] = (),
    location: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Studio], Pagination]:
    """A studio matches ``services`` when it offers any of them."""
    if not studios:
        return _empty(page, limit)

    df = to_frame(studios)
    mask = _price_mask(df, min_price, max_price)
    if q:
        mask &= _contains(df, "name", q) | _contains(df, "description", q)
    if location:
        mask &= _contains(df, "location", location)
    wanted = {s.strip().lower() for s in services if s.strip()}
    if wanted:
        mask &= df["services"].apply(lambda offered: any(s.lower() in wanted for s in offered))
    return _paginate(studios, df, mask, page, limit)
