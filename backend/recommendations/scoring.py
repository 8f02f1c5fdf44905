"""
Scoring engine for wedding-package candidates.

Every score is a weighted sum of independently normalised sub-scores. Rows
may be a ``pd.Series`` produced by the allocator or a plain ``dict``.

Sub-scores are not clamped to [0, 100]: an item far above a dish sub-budget
pushes the dish budget term below 0.
"""
from __future__ import annotations

from typing import Any, Mapping

VENUE_WEIGHTS: dict[str, float] = {"budget": 0.25, "rating": 0.40, "popularity": 0.15, "capacity": 0.20}
STUDIO_WEIGHTS: dict[str, float] = {"budget": 0.25, "rating": 0.40, "popularity": 0.15, "location": 0.20}
DISH_WEIGHTS: dict[str, float] = {"rating": 0.60, "popularity": 0.25, "budget": 0.15}

OVER_BUDGET_SCORE = 50.0
CAPACITY_UNKNOWN_SCORE = 50.0
CAPACITY_FLOOR_SCORE = 80.0
CAPACITY_SHORTFALL_SCORE = 20.0
LOCATION_MATCH_SCORE = 100.0
LOCATION_MISMATCH_SCORE = 30.0
LOCATION_UNKNOWN_SCORE = 50.0


def budget_fit_score(price: float, budget: float) -> float:
    """100 at price 0, 70 at price == budget, flat 50 once over budget."""
    if price <= budget:
        return 100 - (price / budget) * 30
    return OVER_BUDGET_SCORE


def rating_score(rating: float | None) -> float:
    return (float(rating or 0.0) / 5.0) * 100


def popularity_score(ordered_count: int | None, multiplier: int = 2) -> float:
    return min((ordered_count or 0) * multiplier, 100)


def capacity_fit_score(capacity: int | None, guest_count: int | None) -> float:
    if guest_count is None:
        return CAPACITY_UNKNOWN_SCORE
    if capacity and capacity >= guest_count:
        # Penalise unused seats, but never below the floor.
        unused_share = (capacity - guest_count) / capacity
        return max(100 - unused_share * 100, CAPACITY_FLOOR_SCORE)
    return CAPACITY_SHORTFALL_SCORE


def location_fit_score(location: str | None, requested: str | None) -> float:
    if not requested:
        return LOCATION_UNKNOWN_SCORE
    if requested.strip().lower() in (location or "").lower():
        return LOCATION_MATCH_SCORE
    return LOCATION_MISMATCH_SCORE


def dish_budget_score(price: float, category_budget: float) -> float:
    return 100 - (price / category_budget) * 50


def score_venue(
    row: Mapping[str, Any],
    budget: float,
    guest_count: int | None = None,
    weights: dict[str, float] | None = None,
) -> float:
    w = weights or VENUE_WEIGHTS
    return (
        w["budget"] * budget_fit_score(float(row["price"]), budget)
        + w["rating"] * rating_score(row.get("rating"))
        + w["popularity"] * popularity_score(row.get("ordered_count"))
        + w["capacity"] * capacity_fit_score(row.get("capacity"), guest_count)
    )


def score_studio(
    row: Mapping[str, Any],
    budget: float,
    location: str | None = None,
    weights: dict[str, float] | None = None,
) -> float:
    w = weights or STUDIO_WEIGHTS
    return (
        w["budget"] * budget_fit_score(float(row["price"]), budget)
        + w["rating"] * rating_score(row.get("rating"))
        + w["popularity"] * popularity_score(row.get("ordered_count"))
        + w["location"] * location_fit_score(row.get("location"), location)
    )


def score_dish(
    row: Mapping[str, Any],
    category_budget: float,
    weights: dict[str, float] | None = None,
) -> float:
    w = weights or DISH_WEIGHTS
    return (
        w["rating"] * rating_score(row.get("rating"))
        + w["popularity"] * popularity_score(row.get("ordered_count"), multiplier=5)
        + w["budget"] * dish_budget_score(float(row["price"]), category_budget)
    )
