"""
Wedding package allocator.

Responsibilities:
- Filter each catalog (venues, studios, dish categories) against its own budget.
- Score candidates with the scoring engine and keep the best per category.
- Admit dishes greedily so the food total never exceeds the food budget.
- Summarise utilisation and produce advisory benefit/recommendation text.

Results are deterministic: ties keep catalog order (stable sorts only).
"""
from __future__ import annotations

import logging
import time
from typing import Sequence

import pandas as pd

from ..catalog.data_store import to_frame
from ..catalog.models import Cuisine, Studio, Venue
from .models import (
    Budget,
    BudgetAnalysis,
    CategoryBreakdown,
    PackageInsights,
    PackageRecommendation,
    PackageRequest,
    ScoredDish,
    ScoredStudio,
    ScoredVenue,
    SearchCriteria,
    WeddingPackage,
)
from .scoring import rating_score, score_dish, score_studio, score_venue

logger = logging.getLogger(__name__)

PRICE_GRACE = 1.1  # venues/studios may overrun their budget by 10%
DISH_CATEGORY_GRACE = 1.5
FALLBACK_DISH_SHARE = 0.3  # of the whole food budget
LOW_UTILIZATION_PCT = 90
HIGH_RATING = 4.0


def _best_label(candidates: pd.DataFrame) -> int:
    ranked = candidates.sort_values("_score", ascending=False, kind="stable")
    return int(ranked.index[0])


def select_venue(
    venues: Sequence[Venue],
    budget: float,
    location: str | None = None,
    guest_count: int | None = None,
) -> ScoredVenue | None:
    if not venues:
        return None
    df = to_frame(venues)

    # --- Hard filters ---
    mask = df["price"] <= budget * PRICE_GRACE
    if location:
        mask = mask & df["location"].str.contains(location.strip(), case=False, regex=False, na=False)
    if guest_count is not None:
        mask = mask & (df["capacity"] >= guest_count)

    candidates = df.loc[mask].copy()
    if candidates.empty:
        return None

    candidates["_score"] = candidates.apply(score_venue, axis=1, budget=budget, guest_count=guest_count)
    label = _best_label(candidates)
    return ScoredVenue(**venues[label].model_dump(), score=float(candidates.at[label, "_score"]))


def select_studio(
    studios: Sequence[Studio],
    budget: float,
    location: str | None = None,
    preferred_services: Sequence[str] = (),
) -> ScoredStudio | None:
    if not studios:
        return None
    df = to_frame(studios)

    mask = df["price"] <= budget * PRICE_GRACE
    if location:
        mask = mask & df["location"].str.contains(location.strip(), case=False, regex=False, na=False)
    wanted = {s.strip() for s in preferred_services if s.strip()}
    if wanted:
        mask = mask & df["services"].apply(lambda services: bool(wanted & set(services)))

    candidates = df.loc[mask].copy()
    if candidates.empty:
        return None

    candidates["_score"] = candidates.apply(score_studio, axis=1, budget=budget, location=location)
    label = _best_label(candidates)
    return ScoredStudio(**studios[label].model_dump(), score=float(candidates.at[label, "_score"]))


def _best_dish_in_category(cuisine: Cuisine, category_budget: float, food_budget: float) -> ScoredDish | None:
    df = to_frame(cuisine.dishes)
    affordable = df.loc[df["price"] <= category_budget * DISH_CATEGORY_GRACE].copy()

    if affordable.empty:
        # Fall back to the cheapest dish, scored on rating alone.
        label = int(df["price"].idxmin())
        dish = cuisine.dishes[label]
        if dish.price <= food_budget * FALLBACK_DISH_SHARE:
            return ScoredDish(**dish.model_dump(), category=cuisine.category, score=rating_score(dish.rating))
        return None

    affordable["_score"] = affordable.apply(score_dish, axis=1, category_budget=category_budget)
    label = _best_label(affordable)
    return ScoredDish(
        **cuisine.dishes[label].model_dump(),
        category=cuisine.category,
        score=float(affordable.at[label, "_score"]),
    )


def select_dishes(cuisines: Sequence[Cuisine], food_budget: float) -> list[ScoredDish]:
    if not cuisines:
        return []

    # Every category present counts towards the split, even an empty one.
    category_budget = food_budget / len(cuisines)
    best_per_category: list[ScoredDish] = []
    for cuisine in cuisines:
        if not cuisine.dishes:
            continue
        best = _best_dish_in_category(cuisine, category_budget, food_budget)
        if best is not None:
            best_per_category.append(best)

    best_per_category.sort(key=lambda d: d.score, reverse=True)

    selected: list[ScoredDish] = []
    running_total = 0.0
    for dish in best_per_category:
        if running_total + dish.price <= food_budget:
            selected.append(dish)
            running_total += dish.price
    return selected


def package_score(
    venue: ScoredVenue | None,
    studio: ScoredStudio | None,
    dishes: Sequence[ScoredDish],
) -> int:
    total = 0.0
    if venue:
        total += rating_score(venue.rating) * 0.4
    if studio:
        total += rating_score(studio.rating) * 0.3
    if dishes:
        avg_rating = sum(d.rating for d in dishes) / len(dishes)
        total += rating_score(avg_rating) * 0.3
    return round(total)


def _pct(used: float, allocated: float) -> int:
    return round(used / allocated * 100) if allocated else 0


def _breakdown(allocated: float, used: float) -> CategoryBreakdown:
    return CategoryBreakdown(
        allocated=allocated,
        used=used,
        remaining=allocated - used,
        utilization=_pct(used, allocated),
    )


def _insights(
    budget: Budget,
    venue: ScoredVenue | None,
    studio: ScoredStudio | None,
    dishes: Sequence[ScoredDish],
    package_total: float,
) -> PackageInsights:
    savings = budget.total - package_total
    utilization = _pct(package_total, budget.total)
    benefits: list[str] = []
    recommendations: list[str] = []

    if package_total <= budget.total:
        benefits.append("Complete package within budget")
    if savings > 0:
        benefits.append(f"Save {savings:,.0f} for additional services")
    if venue and venue.rating >= HIGH_RATING:
        benefits.append("High-rated venue included")
    if studio and studio.rating >= HIGH_RATING:
        benefits.append("Professional photography service")
    if dishes:
        benefits.append(f"{len(dishes)} dishes across {len({d.category for d in dishes})} cuisine categories")

    if utilization < LOW_UTILIZATION_PCT:
        recommendations.append("Consider upgrading venue or adding more food options")
    if venue is None:
        recommendations.append(
            f"No venue found within budget {budget.venue:,.0f}; "
            "increase venue budget or consider a different location"
        )
    if studio is None:
        recommendations.append(
            f"No studio found within budget {budget.studio:,.0f}; "
            "increase photography budget or reduce service requirements"
        )
    if not dishes:
        recommendations.append(f"No dishes fit within food budget {budget.food:,.0f}; consider increasing it")

    return PackageInsights(
        benefits=benefits,
        recommendations=recommendations,
        package_score=package_score(venue, studio, dishes),
    )


def recommend_package(
    request: PackageRequest,
    venues: Sequence[Venue],
    studios: Sequence[Studio],
    cuisines: Sequence[Cuisine],
) -> PackageRecommendation:
    """Build one venue + studio + dishes package within three independent budgets."""
    start_time = time.time()
    budget = request.budget

    venue = select_venue(venues, budget.venue, request.location, request.guest_count)
    studio = select_studio(studios, budget.studio, request.location, request.preferred_services)
    dishes = select_dishes(cuisines, budget.food)

    venue_price = venue.price if venue else 0.0
    studio_price = studio.price if studio else 0.0
    dishes_price = sum(d.price for d in dishes)
    package_total = venue_price + studio_price + dishes_price

    categories: list[str] = []
    for dish in dishes:
        if dish.category not in categories:
            categories.append(dish.category)

    response = PackageRecommendation(
        package=WeddingPackage(
            venue=venue,
            studio=studio,
            dishes=dishes,
            total_price=package_total,
            dishes_count=len(dishes),
            categories_included=categories,
        ),
        budget_analysis=BudgetAnalysis(
            total_budget=budget.total,
            package_total=package_total,
            budget_utilization=_pct(package_total, budget.total),
            savings=budget.total - package_total,
            breakdown={
                "venue": _breakdown(budget.venue, venue_price),
                "studio": _breakdown(budget.studio, studio_price),
                "food": _breakdown(budget.food, dishes_price),
            },
        ),
        insights=_insights(budget, venue, studio, dishes, package_total),
        search_criteria=SearchCriteria(
            budget=budget,
            location=request.location or "Any",
            guest_count=request.guest_count,
            preferred_services=list(request.preferred_services),
        ),
    )

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.info(
        "Package recommended in %sms: venue=%s studio=%s dishes=%d total=%.2f",
        elapsed_ms,
        venue.id if venue else None,
        studio.id if studio else None,
        len(dishes),
        package_total,
    )
    return response
