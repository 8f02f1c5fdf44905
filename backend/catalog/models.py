from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from pydantic import Field

from ..orders.models import BookedDate
from ..schemas import CamelModel
from ..storage.document_store import Document, new_id, utcnow


class StudioService(str, Enum):
    wedding_photography = "Wedding Photography"
    pre_wedding_shoot = "Pre-wedding Shoot"
    video_recording = "Video Recording"
    album_design = "Album Design"
    digital_copies = "Digital Copies"
    drone_photography = "Drone Photography"


class Venue(Document):
    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    capacity: int = Field(..., ge=1, description="Maximum number of guests")
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    ordered_count: int = Field(default=0, ge=0)
    image_id: str | None = None


class Studio(Document):
    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    ordered_count: int = Field(default=0, ge=0)
    services: list[StudioService] = Field(default_factory=list)
    image_id: str | None = None
    photo_ids: list[str] = Field(default_factory=list)


class Rating(CamelModel):
    user_id: str
    rating: int = Field(..., ge=1, le=5)
    rated_at: datetime = Field(default_factory=utcnow)


class Dish(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    ordered_count: int = Field(default=0, ge=0)
    image_id: str | None = None
    total_ratings: int = Field(default=0, ge=0)
    ratings: list[Rating] = Field(default_factory=list, exclude=True)

    def record_rating(self, user_id: str, value: int) -> int | None:
        """Store one rating per user and refresh the average.

        Returns the rating it replaced, or ``None`` for a first rating.
        """
        previous = next((r for r in self.ratings if r.user_id == user_id), None)
        old_value = None
        if previous is None:
            self.ratings.append(Rating(user_id=user_id, rating=value))
        else:
            old_value = previous.rating
            previous.rating = value
            previous.rated_at = utcnow()
        self.total_ratings = len(self.ratings)
        average = Decimal(sum(r.rating for r in self.ratings)) / self.total_ratings
        self.rating = float(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
        return old_value


class Cuisine(Document):
    category: str = Field(..., min_length=1)
    dishes: list[Dish] = Field(default_factory=list)


class Decoration(Document):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    image_id: str | None = None


# ── Admin request bodies ────────────────────────────────────────────────


class VenueCreate(CamelModel):
    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    capacity: int = Field(..., ge=1)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    image_id: str | None = None


class StudioCreate(CamelModel):
    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    services: list[StudioService] = Field(default_factory=list)
    image_id: str | None = None
    photo_ids: list[str] = Field(default_factory=list)


class DishCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    image_id: str | None = None


class CuisineCreate(CamelModel):
    category: str = Field(..., min_length=1)
    dishes: list[DishCreate] = Field(default_factory=list)


class DecorationCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    image_id: str | None = None


class VenueUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    location: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    capacity: int | None = Field(default=None, ge=1)
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    image_id: str | None = None


class StudioUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    location: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    services: list[StudioService] | None = None
    image_id: str | None = None
    photo_ids: list[str] | None = None


class DishUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    image_id: str | None = None


class RatingRequest(CamelModel):
    rating: int = Field(..., ge=1, le=5)


# ── Responses ────────────────────────────────────────────────────────────


class VenueDetail(Venue):
    booked_dates: list[BookedDate] = Field(default_factory=list)
    total_bookings: int = 0


class StudioDetail(Studio):
    booked_dates: list[BookedDate] = Field(default_factory=list)
    total_bookings: int = 0


class Pagination(CamelModel):
    total: int
    current_page: int
    total_pages: int
    limit: int


class VenueSearchPage(CamelModel):
    venues: list[Venue]
    pagination: Pagination


class StudioSearchPage(CamelModel):
    studios: list[Studio]
    pagination: Pagination
