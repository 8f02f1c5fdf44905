from __future__ import annotations

import pytest

from datetime import date

from backend.catalog.models import Dish
from backend.errors import NotFoundError
from backend.orders.models import BookingStatus, ItemType, Order, OrderItem, OrderStatus
from backend.storage.object_store import LocalObjectStore, delete_objects_best_effort

VENUE = {"name": "River Bank Hall", "location": "Chitwan", "price": 40000, "capacity": 200, "rating": 4.0}


def _upload(client, data=b"\x89PNG fake image") -> str:
    resp = client.post("/uploads", content=data, headers={"content-type": "image/png"})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


# ── Public reads ─────────────────────────────────────────────────────────


def test_list_seeded_catalog(client, catalog_store):
    assert len(client.get("/venues").json()) == 5
    assert len(client.get("/studios").json()) == 4
    assert {c["category"] for c in client.get("/cuisines").json()} == {
        "Nepali", "Newari", "Indian", "Desserts",
    }
    assert len(client.get("/decorations").json()) == 2


def test_get_single_items(client, catalog_store):
    venue = catalog_store.venues.find()[0]
    body = client.get(f"/venues/{venue.id}").json()
    assert body["name"] == venue.name
    assert body["orderedCount"] == venue.ordered_count

    studio = catalog_store.studios.find()[1]
    assert "Drone Photography" in client.get(f"/studios/{studio.id}").json()["services"]


@pytest.mark.parametrize("path", ["/venues", "/studios", "/cuisines", "/decorations"])
def test_get_unknown_item(client, path):
    assert client.get(f"{path}/missing").status_code == 404


# ── Admin writes ─────────────────────────────────────────────────────────


def test_create_requires_admin(client, login):
    assert client.post("/venues", json=VENUE).status_code == 401
    login()
    assert client.post("/venues", json=VENUE).status_code == 403


def test_admin_creates_and_deletes_venue(client, login):
    login("admin")
    resp = client.post("/venues", json=VENUE)
    assert resp.status_code == 201
    venue_id = resp.json()["id"]
    assert client.get(f"/venues/{venue_id}").status_code == 200

    assert client.delete(f"/venues/{venue_id}").status_code == 200
    assert client.get(f"/venues/{venue_id}").status_code == 404


def test_create_rejects_invalid_body(client, login):
    login("admin")
    assert client.post("/venues", json={**VENUE, "capacity": 0}).status_code == 400
    assert client.post("/studios", json={
        "name": "X", "location": "Y", "price": 1, "services": ["Catering"],
    }).status_code == 400


def test_duplicate_cuisine_category(client, login, catalog_store):
    login("admin")
    resp = client.post("/cuisines", json={"category": " nepali "})
    assert resp.status_code == 400


def test_add_and_remove_dish(client, login):
    login("admin")
    cuisine = client.post("/cuisines", json={
        "category": "Tibetan", "dishes": [{"name": "Thukpa", "price": 800}],
    }).json()

    resp = client.post(f"/cuisines/{cuisine['id']}/dishes", json={"name": "Shapta", "price": 1200, "rating": 4.4})
    assert resp.status_code == 201
    dishes = resp.json()["dishes"]
    assert [d["name"] for d in dishes] == ["Thukpa", "Shapta"]

    resp = client.delete(f"/cuisines/{cuisine['id']}/dishes/{dishes[0]['id']}")
    assert [d["name"] for d in resp.json()["dishes"]] == ["Shapta"]
    assert client.delete(f"/cuisines/{cuisine['id']}/dishes/{dishes[0]['id']}").status_code == 404


def test_decoration_crud(client, login):
    login("admin")
    created = client.post("/decorations", json={"name": "Rose Arch", "price": 9000}).json()
    assert client.get(f"/decorations/{created['id']}").json()["name"] == "Rose Arch"
    assert client.delete(f"/decorations/{created['id']}").status_code == 200
    assert client.delete(f"/decorations/{created['id']}").status_code == 404


# ── Uploads and image cleanup ────────────────────────────────────────────


def test_upload_requires_admin(client, login):
    login()
    assert client.post("/uploads", content=b"x").status_code == 403


def test_empty_upload(client, login):
    login("admin")
    assert client.post("/uploads", content=b"").status_code == 400


def test_deleting_studio_removes_its_images(client, login, app):
    login("admin")
    upload_dir = app.state.config.upload_dir
    cover = _upload(client)
    photos = [_upload(client), _upload(client)]
    assert (upload_dir / cover).exists()

    studio = client.post("/studios", json={
        "name": "Snap Studio", "location": "Kathmandu", "price": 20000,
        "imageId": cover, "photoIds": photos,
    }).json()
    client.delete(f"/studios/{studio['id']}")

    assert not any((upload_dir / oid).exists() for oid in [cover, *photos])


def test_delete_succeeds_when_image_is_already_gone(client, login):
    login("admin")
    venue = client.post("/venues", json={**VENUE, "imageId": "not-there"}).json()
    assert client.delete(f"/venues/{venue['id']}").status_code == 200


def test_best_effort_cleanup_counts_deletions(tmp_path):
    objects = LocalObjectStore(tmp_path)
    kept = objects.put(b"a")
    assert delete_objects_best_effort(objects, [kept, None, "missing", "../etc"]) == 1
    with pytest.raises(NotFoundError):
        objects.delete(kept)


# ── Search ───────────────────────────────────────────────────────────────


def test_search_venues_by_text_and_location(client, catalog_store):
    body = client.get("/venues/search", params={"q": "RESORT"}).json()
    assert {v["name"] for v in body["venues"]} == {"Lakeside Garden Resort", "Godavari Village Resort"}
    assert body["pagination"]["total"] == 2

    body = client.get("/venues/search", params={"location": "kathmandu"}).json()
    assert {v["name"] for v in body["venues"]} == {"Hotel Yak & Yeti Banquet", "Thamel Party Palace"}


def test_search_venues_price_and_capacity_bounds(client, catalog_store):
    params = {"minPrice": 45000, "maxPrice": 95000, "minCapacity": 300}
    body = client.get("/venues/search", params=params).json()
    assert {v["name"] for v in body["venues"]} == {"Hotel Yak & Yeti Banquet", "Lakeside Garden Resort"}


def test_search_venues_paginates_newest_first(client, login):
    login("admin")
    for n in range(3):
        client.post("/venues", json={**VENUE, "name": f"Hall {n}"})

    first = client.get("/venues/search", params={"limit": 2}).json()
    assert [v["name"] for v in first["venues"]] == ["Hall 2", "Hall 1"]
    assert first["pagination"] == {"total": 3, "currentPage": 1, "totalPages": 2, "limit": 2}

    second = client.get("/venues/search", params={"limit": 2, "page": 2}).json()
    assert [v["name"] for v in second["venues"]] == ["Hall 0"]


def test_search_studios_by_service(client, catalog_store):
    body = client.get("/studios/search", params={"services": "Drone Photography"}).json()
    assert {s["name"] for s in body["studios"]} == {"Himalayan Lens", "Cinematic Knots"}

    body = client.get("/studios/search", params={"services": "album design,drone photography", "maxPrice": 40000}).json()
    assert {s["name"] for s in body["studios"]} == {"Himalayan Lens", "Patan Photo House"}


def test_search_empty_catalog(client):
    body = client.get("/studios/search", params={"q": "anything"}).json()
    assert body == {"studios": [], "pagination": {"total": 0, "currentPage": 1, "totalPages": 0, "limit": 10}}


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 101}, {"minPrice": -1}])
def test_search_rejects_bad_paging(client, params):
    assert client.get("/venues/search", params=params).status_code == 400


# ── Booked dates ─────────────────────────────────────────────────────────


def _venue_order(venue_id: str, status: OrderStatus, booking: BookingStatus) -> Order:
    item = OrderItem(
        item_id=venue_id, item_type=ItemType.venue, name="Hall", price=1000,
        booked_from=date(2026, 12, 1), booked_till=date(2026, 12, 2), booking_status=booking,
    )
    return Order(user_id="u1", status=status, items=[item], total_amount=1000)


def test_venue_detail_lists_confirmed_bookings(client, catalog_store):
    venue = catalog_store.venues.find()[0]
    held = catalog_store.orders.insert(_venue_order(venue.id, OrderStatus.confirmed, BookingStatus.confirmed))
    catalog_store.orders.insert(_venue_order(venue.id, OrderStatus.pending, BookingStatus.pending))
    catalog_store.orders.insert(_venue_order(venue.id, OrderStatus.cancelled, BookingStatus.cancelled))

    body = client.get(f"/venues/{venue.id}").json()
    assert body["totalBookings"] == 1
    assert body["bookedDates"] == [
        {"bookedFrom": "2026-12-01", "bookedTill": "2026-12-02", "orderId": held.id},
    ]


def test_studio_detail_without_bookings(client, catalog_store):
    studio = catalog_store.studios.find()[0]
    body = client.get(f"/studios/{studio.id}").json()
    assert body["bookedDates"] == []
    assert body["totalBookings"] == 0


# ── Partial updates ──────────────────────────────────────────────────────


def test_admin_updates_venue_fields(client, login):
    login("admin")
    venue = client.post("/venues", json=VENUE).json()

    resp = client.patch(f"/venues/{venue['id']}", json={"price": 42000, "capacity": 250})
    assert resp.status_code == 200
    body = resp.json()
    assert (body["price"], body["capacity"], body["name"]) == (42000, 250, VENUE["name"])


def test_update_requires_admin(client, login, catalog_store):
    venue = catalog_store.venues.find()[0]
    assert client.patch(f"/venues/{venue.id}", json={"price": 1}).status_code == 401
    login()
    assert client.patch(f"/venues/{venue.id}", json={"price": 1}).status_code == 403
    assert venue.price == 95000


def test_update_rejects_empty_and_invalid_bodies(client, login, catalog_store):
    login("admin")
    studio = catalog_store.studios.find()[0]
    assert client.patch(f"/studios/{studio.id}", json={}).status_code == 400
    assert client.patch(f"/studios/{studio.id}", json={"services": ["Catering"]}).status_code == 400
    assert client.patch("/studios/missing", json={"price": 1}).status_code == 404


def test_replacing_studio_image_removes_old_file(client, login, app):
    login("admin")
    upload_dir = app.state.config.upload_dir
    old, new = _upload(client), _upload(client)
    studio = client.post("/studios", json={
        "name": "Snap Studio", "location": "Kathmandu", "price": 20000, "imageId": old,
    }).json()

    body = client.patch(f"/studios/{studio['id']}", json={"imageId": new, "services": ["Album Design"]}).json()
    assert body["imageId"] == new
    assert body["services"] == ["Album Design"]
    assert not (upload_dir / old).exists()
    assert (upload_dir / new).exists()


def test_admin_updates_dish(client, login, catalog_store):
    login("admin")
    cuisine = catalog_store.cuisines.find()[0]
    dish = cuisine.dishes[0]

    resp = client.patch(f"/cuisines/{cuisine.id}/dishes/{dish.id}", json={"price": 4800})
    assert resp.status_code == 200
    assert resp.json()["price"] == 4800
    assert catalog_store.cuisines.get(cuisine.id).dishes[0].price == 4800
    assert client.patch(f"/cuisines/{cuisine.id}/dishes/missing", json={"price": 1}).status_code == 404


# ── Dish ratings ─────────────────────────────────────────────────────────


def test_customer_rates_dish(client, login, catalog_store):
    login()
    dish = catalog_store.cuisines.find()[0].dishes[0]

    first = client.post(f"/cuisines/dishes/{dish.id}/rate", json={"rating": 4})
    assert first.status_code == 200
    assert first.json()["message"] == "Rating added successfully"
    assert first.json()["averageRating"] == 4.0
    assert first.json()["isUpdate"] is False

    second = client.post(f"/cuisines/dishes/{dish.id}/rate", json={"rating": 2}).json()
    assert second["message"] == "Rating updated successfully"
    assert (second["oldRating"], second["userRating"], second["totalRatings"]) == (4, 2, 1)
    assert dish.rating == 2.0


def test_rating_is_customer_only(client, login, catalog_store):
    dish = catalog_store.cuisines.find()[0].dishes[0]
    assert client.post(f"/cuisines/dishes/{dish.id}/rate", json={"rating": 5}).status_code == 401
    login("admin")
    assert client.post(f"/cuisines/dishes/{dish.id}/rate", json={"rating": 5}).status_code == 403


@pytest.mark.parametrize("rating", [0, 6, "great"])
def test_rating_out_of_range(client, login, catalog_store, rating):
    login()
    dish = catalog_store.cuisines.find()[0].dishes[0]
    assert client.post(f"/cuisines/dishes/{dish.id}/rate", json={"rating": rating}).status_code == 400


def test_rate_unknown_dish(client, login):
    login()
    assert client.post("/cuisines/dishes/missing/rate", json={"rating": 3}).status_code == 404


def test_average_rounds_half_up():
    dish = Dish(name="Momo", price=300)
    dish.record_rating("a", 5)
    dish.record_rating("b", 4)
    dish.record_rating("c", 4)
    dish.record_rating("d", 4)
    assert dish.rating == 4.3
    assert dish.total_ratings == 4
    assert "ratings" not in dish.model_dump(by_alias=True)
