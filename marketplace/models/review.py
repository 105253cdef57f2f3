# marketplace/models/review.py

"""Product review data model."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


@dataclass
class Review:
    """A single product review left on a listing."""

    id: str
    listing_id: str
    reviewer_id: str
    rating: int
    comment: str = ""
    created_at: str = ""
    reviewer_name: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Review":
        """Build a Review from a ``reviews`` row (optionally enriched)."""
        reviewer = row.get("reviewer")
        name = ""
        if isinstance(reviewer, dict):
            name = str(reviewer.get("name") or "")
        return cls(
            id=str(row.get("id") or ""),
            listing_id=str(row.get("listing_id") or ""),
            reviewer_id=str(row.get("reviewer_id") or ""),
            rating=int(row.get("rating") or 0),
            comment=str(row.get("comment") or ""),
            created_at=str(row.get("created_at") or ""),
            reviewer_name=name,
        )


def rating_distribution(reviews: Iterable[Review]) -> dict[int, int]:
    """Count reviews per star value, 5 down to 1."""
    distribution = {star: 0 for star in (5, 4, 3, 2, 1)}
    for review in reviews:
        if review.rating in distribution:
            distribution[review.rating] += 1
    return distribution
