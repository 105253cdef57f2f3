# marketplace/models/rating.py

"""Aggregate rating snapshot for a listing."""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class RatingSummary:
    """Average review rating (0-5) and number of reviews.

    Replaced wholesale on every fetch; ``count == 0`` normally implies
    ``rating == 0`` but the backend is the source of truth.
    """

    rating: float = 0.0
    count: int = 0

    @classmethod
    def zero(cls) -> "RatingSummary":
        """The value shown before the first successful fetch."""
        return cls(rating=0.0, count=0)

    @classmethod
    def from_ratings(cls, ratings: Iterable[float]) -> "RatingSummary":
        """Average individual review ratings, rounded to one decimal."""
        values = [float(r) for r in ratings]
        if not values:
            return cls.zero()
        average = sum(values) / len(values)
        return cls(rating=round(average, 1), count=len(values))
