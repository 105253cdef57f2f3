# marketplace/services/review_submission.py

"""Product review submission flow used by the listing page."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from typing import Protocol

from marketplace.models.review import Review
from marketplace.services.errors import ReviewValidationError

logger = logging.getLogger("marketplace.reviews")


class ReviewAspect(Enum):
    """Quick-pick statements appended to a review comment."""

    QUALITY_AS_EXPECTED = "Quality as expected"
    ACCURATE_DESCRIPTION = "Accurate description"
    GOOD_VALUE = "Good value for money"
    WOULD_RECOMMEND = "Would recommend"


class ReviewSink(Protocol):
    """Write side of the backend used for reviews."""

    def submit_review(
        self,
        listing_id: str,
        seller_id: str,
        reviewer_id: str,
        rating: int,
        comment: str,
    ) -> Review: ...


def format_comment(
    comment: str, aspects: Iterable[ReviewAspect] = (),
) -> str:
    """Append selected aspects to the comment as bullet lines."""
    chosen = set(aspects)
    selected = [a.value for a in ReviewAspect if a in chosen]
    text = comment.strip()
    if not selected:
        return text
    bullets = "• " + "\n• ".join(selected)
    return f"{text}\n\n{bullets}" if text else bullets


class ReviewSubmission:
    """Validates and records a product review, then signals success.

    ``on_success`` is awaited exactly once per recorded review and
    carries no payload.
    """

    def __init__(
        self,
        sink: ReviewSink,
        listing_id: str,
        seller_id: str,
        reviewer_id: str,
        on_success: Callable[[], Awaitable[object]] | None = None,
    ) -> None:
        self._sink = sink
        self.listing_id = listing_id
        self.seller_id = seller_id
        self.reviewer_id = reviewer_id
        self._on_success = on_success

    def _validate(self, rating: int) -> None:
        if not rating:
            msg = "Please select a rating"
            raise ReviewValidationError(msg)
        if isinstance(rating, bool) or not isinstance(rating, int):
            msg = f"Rating must be a whole number of stars, got {rating!r}"
            raise ReviewValidationError(msg)
        if not 1 <= rating <= 5:
            msg = f"Rating must be between 1 and 5, got {rating}"
            raise ReviewValidationError(msg)
        if not self.listing_id:
            msg = "Listing ID is required for product reviews"
            raise ReviewValidationError(msg)
        if not self.reviewer_id:
            msg = (
                "A reviewer id is required to submit a review "
                "(set REVIEWER_ID)"
            )
            raise ReviewValidationError(msg)

    async def submit(
        self,
        rating: int,
        comment: str = "",
        aspects: Iterable[ReviewAspect] = (),
    ) -> Review:
        """Record the review and fire the success callback.

        Backend errors propagate; the callback only runs after the
        review has been stored.
        """
        self._validate(rating)
        text = format_comment(comment, aspects)
        review: Review = await asyncio.to_thread(
            self._sink.submit_review,
            self.listing_id,
            self.seller_id,
            self.reviewer_id,
            rating,
            text,
        )
        logger.info(
            "Review submitted for listing %s", self.listing_id
        )
        if self._on_success is not None:
            await self._on_success()
        return review
