from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request

from ..auth.dependencies import require_admin, require_role
from ..dependencies import get_object_store, get_store
from ..errors import NotFoundError, ValidationError
from ..orders.models import ItemType
from ..orders.workflow import confirmed_bookings
from ..storage.document_store import Collection, Document, DocumentStore
from ..storage.object_store import ObjectStore, delete_objects_best_effort
from .models import (
    Cuisine,
    CuisineCreate,
    Decoration,
    DecorationCreate,
    Dish,
    DishCreate,
    DishUpdate,
    RatingRequest,
    Studio,
    StudioCreate,
    StudioDetail,
    StudioSearchPage,
    StudioUpdate,
    Venue,
    VenueCreate,
    VenueDetail,
    VenueSearchPage,
    VenueUpdate,
)
from .search import locate_dish, search_studios, search_venues

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


def _get_or_404(collection: Collection, doc_id: str, label: str):
    doc = collection.get(doc_id)
    if doc is None:
        raise NotFoundError(f"{label} not found")
    return doc


def _delete_with_images(
    collection: Collection, doc_id: str, label: str, objects: ObjectStore, image_ids: list
) -> dict:
    collection.delete(doc_id)
    cleaned = delete_objects_best_effort(objects, image_ids)
    logger.info("Deleted %s %s (%d images removed)", label.lower(), doc_id, cleaned)
    return {"status": "ok", "message": f"{label} deleted"}


def _apply_update(target, body, objects: ObjectStore) -> None:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update")
    old_image = target.image_id
    for field, value in changes.items():
        setattr(target, field, value)
    if old_image and old_image != target.image_id:
        delete_objects_best_effort(objects, [old_image])


def _with_bookings(detail_model, doc: Document, item_type: ItemType, store: DocumentStore):
    booked = confirmed_bookings(store, item_type, doc.id)
    return detail_model(**doc.model_dump(), booked_dates=booked, total_bookings=len(booked))


# ── Uploads ──────────────────────────────────────────────────────────────


@router.post("/uploads", status_code=201)
async def upload(
    request: Request,
    admin: dict = Depends(require_admin),
    objects: ObjectStore = Depends(get_object_store),
) -> dict:
    data = await request.body()
    if not data:
        raise ValidationError("Upload body is empty")
    object_id = objects.put(data, request.headers.get("content-type"))
    return {"id": object_id}


# ── Venues ───────────────────────────────────────────────────────────────


@router.get("/venues", response_model=list[Venue])
def list_venues(store: DocumentStore = Depends(get_store)) -> list[Venue]:
    return store.venues.find()


@router.get("/venues/search", response_model=VenueSearchPage)
def search_venue_catalog(
    q: str | None = None,
    location: str | None = None,
    min_price: float | None = Query(default=None, alias="minPrice", ge=0),
    max_price: float | None = Query(default=None, alias="maxPrice", ge=0),
    min_capacity: int | None = Query(default=None, alias="minCapacity", ge=1),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    store: DocumentStore = Depends(get_store),
) -> VenueSearchPage:
    venues, pagination = search_venues(
        store.venues.find(), q=q, location=location, min_price=min_price,
        max_price=max_price, min_capacity=min_capacity, page=page, limit=limit,
    )
    return VenueSearchPage(venues=venues, pagination=pagination)


@router.get("/venues/{venue_id}", response_model=VenueDetail)
def get_venue(venue_id: str, store: DocumentStore = Depends(get_store)) -> VenueDetail:
    venue = _get_or_404(store.venues, venue_id, "Venue")
    return _with_bookings(VenueDetail, venue, ItemType.venue, store)


@router.post("/venues", status_code=201, response_model=Venue)
def create_venue(
    body: VenueCreate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> Venue:
    return store.venues.insert(Venue(**body.model_dump()))


@router.patch("/venues/{venue_id}", response_model=Venue)
def update_venue(
    venue_id: str,
    body: VenueUpdate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    objects: ObjectStore = Depends(get_object_store),
) -> Venue:
    venue = _get_or_404(store.venues, venue_id, "Venue")
    _apply_update(venue, body, objects)
    logger.info("Updated venue %s", venue_id)
    return store.venues.save(venue)


@router.delete("/venues/{venue_id}")
def delete_venue(
    venue_id: str,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    objects: ObjectStore = Depends(get_object_store),
) -> dict:
    venue = _get_or_404(store.venues, venue_id, "Venue")
    return _delete_with_images(store.venues, venue_id, "Venue", objects, [venue.image_id])


# ── Studios ──────────────────────────────────────────────────────────────


@router.get("/studios", response_model=list[Studio])
def list_studios(store: DocumentStore = Depends(get_store)) -> list[Studio]:
    return store.studios.find()


@router.get("/studios/search", response_model=StudioSearchPage)
def search_studio_catalog(
    q: str | None = None,
    services: str | None = Query(default=None, description="Comma-separated service names"),
    location: str | None = None,
    min_price: float | None = Query(default=None, alias="minPrice", ge=0),
    max_price: float | None = Query(default=None, alias="maxPrice", ge=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    store: DocumentStore = Depends(get_store),
) -> StudioSearchPage:
    studios, pagination = search_studios(
        store.studios.find(), q=q, services=(services or "").split(","), location=location,
        min_price=min_price, max_price=max_price, page=page, limit=limit,
    )
    return StudioSearchPage(studios=studios, pagination=pagination)


@router.get("/studios/{studio_id}", response_model=StudioDetail)
def get_studio(studio_id: str, store: DocumentStore = Depends(get_store)) -> StudioDetail:
    studio = _get_or_404(store.studios, studio_id, "Studio")
    return _with_bookings(StudioDetail, studio, ItemType.studio, store)


@router.post("/studios", status_code=201, response_model=Studio)
def create_studio(
    body: StudioCreate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> Studio:
    return store.studios.insert(Studio(**body.model_dump()))


@router.patch("/studios/{studio_id}", response_model=Studio)
def update_studio(
    studio_id: str,
    body: StudioUpdate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    objects: ObjectStore = Depends(get_object_store),
) -> Studio:
    studio = _get_or_404(store.studios, studio_id, "Studio")
    _apply_update(studio, body, objects)
    logger.info("Updated studio %s", studio_id)
    return store.studios.save(studio)


@router.delete("/studios/{studio_id}")
def delete_studio(
    studio_id: str,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    objects: ObjectStore = Depends(get_object_store),
) -> dict:
    studio = _get_or_404(store.studios, studio_id, "Studio")
    return _delete_with_images(
        store.studios, studio_id, "Studio", objects, [studio.image_id, *studio.photo_ids]
    )


# ── Cuisines and dishes ──────────────────────────────────────────────────


@router.get("/cuisines", response_model=list[Cuisine])
def list_cuisines(store: DocumentStore = Depends(get_store)) -> list[Cuisine]:
    return store.cuisines.find()


@router.get("/cuisines/{cuisine_id}", response_model=Cuisine)
def get_cuisine(cuisine_id: str, store: DocumentStore = Depends(get_store)) -> Cuisine:
    return _get_or_404(store.cuisines, cuisine_id, "Cuisine")


@router.post("/cuisines", status_code=201, response_model=Cuisine)
def create_cuisine(
    body: CuisineCreate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> Cuisine:
    category = body.category.strip()
    if store.cuisines.find_one(lambda c: c.category.lower() == category.lower()):
        raise ValidationError(f"Cuisine category {category!r} already exists")
    cuisine = Cuisine(
        category=category,
        dishes=[Dish(**d.model_dump()) for d in body.dishes],
    )
    return store.cuisines.insert(cuisine)


@router.delete("/cuisines/{cuisine_id}")
def delete_cuisine(
    cuisine_id: str,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    objects: ObjectStore = Depends(get_object_store),
) -> dict:
    cuisine = _get_or_404(store.cuisines, cuisine_id, "Cuisine")
    return _delete_with_images(
        store.cuisines, cuisine_id, "Cuisine", objects, [d.image_id for d in cuisine.dishes]
    )


@router.post("/cuisines/{cuisine_id}/dishes", status_code=201, response_model=Cuisine)
def add_dish(
    cuisine_id: str,
    body: DishCreate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> Cuisine:
    cuisine = _get_or_404(store.cuisines, cuisine_id, "Cuisine")
    cuisine.dishes.append(Dish(**body.model_dump()))
    return store.cuisines.save(cuisine)


@router.delete("/cuisines/{cuisine_id}/dishes/{dish_id}", response_model=Cuisine)
def delete_dish(
    cuisine_id: str,
    dish_id: str,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    objects: ObjectStore = Depends(get_object_store),
) -> Cuisine:
    cuisine = _get_or_404(store.cuisines, cuisine_id, "Cuisine")
    dish = next((d for d in cuisine.dishes if d.id == dish_id), None)
    if dish is None:
        raise NotFoundError("Dish not found")
    cuisine.dishes = [d for d in cuisine.dishes if d.id != dish_id]
    store.cuisines.save(cuisine)
    delete_objects_best_effort(objects, [dish.image_id])
    return cuisine


@router.patch("/cuisines/{cuisine_id}/dishes/{dish_id}", response_model=Dish)
def update_dish(
    cuisine_id: str,
    dish_id: str,
    body: DishUpdate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    objects: ObjectStore = Depends(get_object_store),
) -> Dish:
    cuisine = _get_or_404(store.cuisines, cuisine_id, "Cuisine")
    dish = next((d for d in cuisine.dishes if d.id == dish_id), None)
    if dish is None:
        raise NotFoundError("Dish not found")
    _apply_update(dish, body, objects)
    store.cuisines.save(cuisine)
    logger.info("Updated dish %s in cuisine %s", dish_id, cuisine_id)
    return dish


@router.post("/cuisines/dishes/{dish_id}/rate")
def rate_dish(
    dish_id: str,
    body: RatingRequest,
    user: dict = Depends(require_role("customer")),
    store: DocumentStore = Depends(get_store),
) -> dict:
    found = locate_dish(store, dish_id)
    if found is None:
        raise NotFoundError("Dish not found")
    cuisine, dish = found
    old_rating = dish.record_rating(user["id"], body.rating)
    store.cuisines.save(cuisine)

    is_update = old_rating is not None
    return {
        "status": "ok",
        "message": "Rating updated successfully" if is_update else "Rating added successfully",
        "dishId": dish.id,
        "dishName": dish.name,
        "userRating": body.rating,
        "oldRating": old_rating,
        "averageRating": dish.rating,
        "totalRatings": dish.total_ratings,
        "isUpdate": is_update,
    }


# ── Decorations ──────────────────────────────────────────────────────────


@router.get("/decorations", response_model=list[Decoration])
def list_decorations(store: DocumentStore = Depends(get_store)) -> list[Decoration]:
    return store.decorations.find()


@router.get("/decorations/{decoration_id}", response_model=Decoration)
def get_decoration(decoration_id: str, store: DocumentStore = Depends(get_store)) -> Decoration:
    return _get_or_404(store.decorations, decoration_id, "Decoration")


@router.post("/decorations", status_code=201, response_model=Decoration)
def create_decoration(
    body: DecorationCreate,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> Decoration:
    return store.decorations.insert(Decoration(**body.model_dump()))


@router.delete("/decorations/{decoration_id}")
def delete_decoration(
    decoration_id: str,
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    objects: ObjectStore = Depends(get_object_store),
) -> dict:
    decoration = _get_or_404(store.decorations, decoration_id, "Decoration")
    return _delete_with_images(
        store.decorations, decoration_id, "Decoration", objects, [decoration.image_id]
    )
