from __future__ import annotations

import pydantic
from fastapi import APIRouter, Depends, Query

from ..dependencies import get_store
from ..errors import ValidationError
from ..storage.document_store import DocumentStore
from .allocator import recommend_package
from .models import Budget, PackageRecommendation, PackageRequest

router = APIRouter(tags=["recommendations"])


def parse_package_request(
    venue_budget: str | None,
    studio_budget: str | None,
    food_budget: str | None,
    location: str | None = None,
    guest_count: str | None = None,
    preferred_services: str | None = None,
) -> PackageRequest:
    """Validate raw query values before any scoring happens."""
    try:
        budget = Budget(venue=venue_budget, studio=studio_budget, food=food_budget)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Please provide valid positive venueBudget, studioBudget and foodBudget amounts"
        ) from exc

    services = [s.strip() for s in (preferred_services or "").split(",") if s.strip()]
    try:
        return PackageRequest(
            budget=budget,
            location=(location or "").strip() or None,
            guest_count=guest_count or None,
            preferred_services=services,
        )
    except pydantic.ValidationError as exc:
        raise ValidationError("guestCount must be a positive whole number") from exc


@router.get("/wedding-package", response_model=PackageRecommendation)
def wedding_package(
    venue_budget: str | None = Query(default=None, alias="venueBudget"),
    studio_budget: str | None = Query(default=None, alias="studioBudget"),
    food_budget: str | None = Query(default=None, alias="foodBudget"),
    location: str | None = Query(default=None),
    guest_count: str | None = Query(default=None, alias="guestCount"),
    preferred_services: str | None = Query(default=None, alias="preferredServices"),
    store: DocumentStore = Depends(get_store),
) -> PackageRecommendation:
    request = parse_package_request(
        venue_budget, studio_budget, food_budget, location, guest_count, preferred_services,
    )
    # Snapshots: later catalog writes do not affect this computation.
    return recommend_package(
        request,
        venues=store.venues.find(),
        studios=store.studios.find(),
        cuisines=store.cuisines.find(),
    )
