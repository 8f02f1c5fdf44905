from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

BUDGETS = {"venueBudget": "100000", "studioBudget": "50000", "foodBudget": "20000"}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@patch("backend.recommendations.routes.recommend_package", side_effect=RuntimeError("db exploded"))
def test_unexpected_error_is_a_generic_500(mock_recommend, app):
    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/wedding-package", params=BUDGETS)
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error"}
    assert "db exploded" not in resp.text


def test_wedding_package_returns_full_response(client, catalog_store):
    resp = client.get("/wedding-package", params=BUDGETS)
    assert resp.status_code == 200
    body = resp.json()

    package = body["package"]
    assert package["venue"]["name"] == "Hotel Yak & Yeti Banquet"
    assert package["venue"]["score"] > 0
    assert package["studio"]["name"] == "Patan Photo House"
    assert package["dishesCount"] == len(package["dishes"]) == 4
    assert set(package["categoriesIncluded"]) == {"Nepali", "Newari", "Indian", "Desserts"}
    assert sum(d["price"] for d in package["dishes"]) <= 20000

    analysis = body["budgetAnalysis"]
    assert analysis["totalBudget"] == 170000
    assert analysis["packageTotal"] == package["totalPrice"]
    assert set(analysis["breakdown"]) == {"venue", "studio", "food"}
    assert 0 <= body["insights"]["packageScore"] <= 100
    assert body["searchCriteria"]["location"] == "Any"


def test_wedding_package_is_deterministic(client, catalog_store):
    params = {**BUDGETS, "location": "Kathmandu", "guestCount": "120"}
    first = client.get("/wedding-package", params=params).json()
    second = client.get("/wedding-package", params=params).json()
    assert first == second


def test_wedding_package_preferred_services(client, catalog_store):
    params = {**BUDGETS, "preferredServices": "Drone Photography, Video Recording"}
    body = client.get("/wedding-package", params=params).json()
    assert body["package"]["studio"]["name"] == "Himalayan Lens"
    assert body["searchCriteria"]["preferredServices"] == ["Drone Photography", "Video Recording"]


def test_wedding_package_without_matches_is_not_an_error(client, catalog_store):
    params = {**BUDGETS, "location": "Nowhere"}
    resp = client.get("/wedding-package", params=params)
    assert resp.status_code == 200
    body = resp.json()
    assert body["package"]["venue"] is None
    assert body["package"]["studio"] is None
    assert len(body["insights"]["recommendations"]) >= 2


def test_wedding_package_on_empty_catalog(client):
    body = client.get("/wedding-package", params=BUDGETS).json()
    assert body["package"]["venue"] is None
    assert body["package"]["dishes"] == []
    assert body["budgetAnalysis"]["savings"] == 170000


@pytest.mark.parametrize(
    "override",
    [
        {"venueBudget": None},
        {"studioBudget": "0"},
        {"foodBudget": "-5"},
        {"foodBudget": "abc"},
        {"venueBudget": "nan"},
        {"guestCount": "0"},
        {"guestCount": "many"},
    ],
)
def test_wedding_package_rejects_bad_input(client, catalog_store, override):
    params = {k: v for k, v in {**BUDGETS, **override}.items() if v is not None}
    resp = client.get("/wedding-package", params=params)
    assert resp.status_code == 400
    assert "detail" in resp.json()
