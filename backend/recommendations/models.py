from __future__ import annotations

from pydantic import ConfigDict, Field

from ..catalog.models import Dish, Studio, Venue
from ..schemas import CamelModel


class Budget(CamelModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    venue: float = Field(..., gt=0)
    studio: float = Field(..., gt=0)
    food: float = Field(..., gt=0)

    @property
    def total(self) -> float:
        return self.venue + self.studio + self.food


class PackageRequest(CamelModel):
    budget: Budget
    location: str | None = None
    guest_count: int | None = Field(default=None, ge=1)
    preferred_services: list[str] = Field(default_factory=list)


class ScoredVenue(Venue):
    score: float


class ScoredStudio(Studio):
    score: float


class ScoredDish(Dish):
    category: str
    score: float


class WeddingPackage(CamelModel):
    venue: ScoredVenue | None = None
    studio: ScoredStudio | None = None
    dishes: list[ScoredDish] = Field(default_factory=list)
    total_price: float = 0.0
    dishes_count: int = 0
    categories_included: list[str] = Field(default_factory=list)


class CategoryBreakdown(CamelModel):
    allocated: float
    used: float
    remaining: float
    utilization: int


class BudgetAnalysis(CamelModel):
    total_budget: float
    package_total: float
    budget_utilization: int
    savings: float
    breakdown: dict[str, CategoryBreakdown]


class PackageInsights(CamelModel):
    benefits: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    package_score: int = 0


class SearchCriteria(CamelModel):
    budget: Budget
    location: str
    guest_count: int | None = None
    preferred_services: list[str] = Field(default_factory=list)


class PackageRecommendation(CamelModel):
    package: WeddingPackage
    budget_analysis: BudgetAnalysis
    insights: PackageInsights
    search_criteria: SearchCriteria
