# marketplace/services/listing_page.py

"""Page controller for the product detail page.

Loads a listing and its aggregate rating concurrently, keeps the page
state, and re-fetches the rating after a review has been submitted.

Initialisation is all-or-nothing: if either fetch fails the page goes
to ``FAILED`` and neither half is exposed. A rating refresh is
fail-soft: errors are logged and the previous rating stays in place.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Protocol

from marketplace.models.listing import Listing
from marketplace.models.rating import RatingSummary
from marketplace.services.errors import (
    FetchFailure,
    PageStateError,
    RefreshFailure,
)

logger = logging.getLogger("marketplace.page")

FAILED_MESSAGE = "Failed to load product details"


class ListingDataSource(Protocol):
    """Read side of the backend used by the page."""

    def fetch_listing(self, listing_id: str) -> Listing: ...

    def fetch_rating(self, listing_id: str) -> RatingSummary: ...


class PagePhase(Enum):
    """Lifecycle of a single page instance."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"
    REFRESHING_RATING = "refreshing_rating"


class FailurePolicy(Enum):
    """What a failed fetch does to the page state."""

    FAIL_HARD = "fail_hard"            # discard everything, show error
    KEEP_PREVIOUS = "keep_previous"    # log, keep last-known-good values


@dataclass(frozen=True)
class PageState:
    """Immutable snapshot of what the page displays."""

    phase: PagePhase = PagePhase.IDLE
    listing: Listing | None = None
    rating: RatingSummary = field(default_factory=RatingSummary.zero)
    error: FetchFailure | None = None
    refresh_error: RefreshFailure | None = None

    @property
    def loading(self) -> bool:
        """True while the initial fetch is in flight."""
        return self.phase is PagePhase.LOADING


StateObserver = Callable[[PageState], None]


class ListingPageController:
    """Coordinates listing + rating retrieval for one page instance."""

    def __init__(self, source: ListingDataSource) -> None:
        self._source = source
        self._state = PageState()
        self._alive = True
        self._pending: set[asyncio.Task[Any]] = set()
        self._observers: list[StateObserver] = []

    @property
    def state(self) -> PageState:
        """The current page state snapshot."""
        return self._state

    @property
    def closed(self) -> bool:
        """True once the page has been torn down."""
        return not self._alive

    def subscribe(self, observer: StateObserver) -> None:
        """Call *observer* with every new state snapshot."""
        self._observers.append(observer)

    # ── Private helpers ──────────────────────────────────

    def _apply(self, state: PageState) -> None:
        """Replace the state and notify observers, unless torn down."""
        if not self._alive:
            logger.debug(
                "Page closed, discarding %s state update",
                state.phase.value,
            )
            return
        self._state = state
        for observer in list(self._observers):
            observer(state)

    async def _join(
        self,
        listing_id: str,
        *fetchers: Callable[[str], Any],
    ) -> list[Any]:
        """Run blocking fetchers concurrently and wait for all to settle.

        Returns one entry per fetcher: its result, or the exception it
        raised.
        """
        tasks = [
            asyncio.create_task(asyncio.to_thread(fetch, listing_id))
            for fetch in fetchers
        ]
        for task in tasks:
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return list(
            await asyncio.gather(*tasks, return_exceptions=True)
        )

    def _on_failure(
        self,
        policy: FailurePolicy,
        listing_id: str,
        errors: list[BaseException],
    ) -> PageState:
        """Log the originating errors and apply *policy* to the state."""
        for err in errors:
            logger.error(
                "Error fetching details for listing %s: %s",
                listing_id,
                err,
                exc_info=err,
            )

        if policy is FailurePolicy.FAIL_HARD:
            failure = FetchFailure(listing_id, errors)
            failure.__cause__ = errors[0]
            self._apply(
                PageState(phase=PagePhase.FAILED, error=failure)
            )
        else:
            refresh_failure = RefreshFailure(
                f"Error refreshing rating for listing {listing_id}: "
                f"{errors[0]}"
            )
            refresh_failure.__cause__ = errors[0]
            self._apply(
                replace(
                    self._state,
                    phase=PagePhase.LOADED,
                    refresh_error=refresh_failure,
                )
            )
        return self._state

    # ── Operations ───────────────────────────────────────

    async def initialize(self, listing_id: str | None) -> PageState:
        """Fetch the listing and its rating concurrently.

        A falsy *listing_id* is a no-op. Raises :class:`PageStateError`
        if this page instance has already been initialised.
        """
        if not listing_id:
            logger.debug("No listing id given, page stays idle")
            return self._state
        if not self._alive:
            return self._state
        if self._state.phase is not PagePhase.IDLE:
            msg = (
                f"Page already {self._state.phase.value}; "
                "open a new page to load again"
            )
            raise PageStateError(msg)

        self._apply(replace(self._state, phase=PagePhase.LOADING))
        logger.info("Loading listing %s", listing_id)

        results = await self._join(
            listing_id,
            self._source.fetch_listing,
            self._source.fetch_rating,
        )
        if not self._alive:
            logger.debug(
                "Page for listing %s closed mid-load, results discarded",
                listing_id,
            )
            return self._state

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            return self._on_failure(
                FailurePolicy.FAIL_HARD, listing_id, errors
            )

        listing, rating = results
        self._apply(
            PageState(
                phase=PagePhase.LOADED,
                listing=listing,
                rating=rating,
            )
        )
        logger.info(
            "Listing %s loaded (rating %.1f from %d reviews)",
            listing_id,
            rating.rating,
            rating.count,
        )
        return self._state

    async def refresh_rating(self, listing_id: str) -> PageState:
        """Re-fetch only the rating, keeping the listing untouched.

        Only valid once the page is ``LOADED``; any other phase raises
        :class:`PageStateError` without fetching.
        """
        if not self._alive:
            return self._state
        if self._state.phase is not PagePhase.LOADED:
            msg = (
                "Cannot refresh rating while page is "
                f"{self._state.phase.value}"
            )
            raise PageStateError(msg)

        self._apply(
            replace(
                self._state,
                phase=PagePhase.REFRESHING_RATING,
                refresh_error=None,
            )
        )
        (result,) = await self._join(
            listing_id, self._source.fetch_rating
        )
        if not self._alive:
            return self._state

        if isinstance(result, BaseException):
            return self._on_failure(
                FailurePolicy.KEEP_PREVIOUS, listing_id, [result]
            )

        self._apply(
            replace(self._state, phase=PagePhase.LOADED, rating=result)
        )
        logger.info(
            "Rating for listing %s refreshed: %.1f (%d reviews)",
            listing_id,
            result.rating,
            result.count,
        )
        return self._state

    def close(self) -> None:
        """Tear the page down; late results are discarded."""
        if not self._alive:
            return
        self._alive = False
        for task in list(self._pending):
            task.cancel()
        logger.debug("Page closed (%d fetches cancelled)", len(self._pending))
