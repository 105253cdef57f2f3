# marketplace/ui/listing_screen.py

"""Product detail screen: listing, rating, reviews and review form."""

import asyncio
import logging
from typing import cast

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    LoadingIndicator,
    Select,
    Static,
)

from marketplace.models.review import Review, rating_distribution
from marketplace.services.backend_client import BackendClient
from marketplace.services.errors import (
    BackendError,
    PageStateError,
    ReviewValidationError,
)
from marketplace.services.listing_page import (
    FAILED_MESSAGE,
    ListingPageController,
    PagePhase,
    PageState,
)
from marketplace.services.review_submission import (
    ReviewAspect,
    ReviewSubmission,
)
from marketplace.ui.render import (
    format_price,
    render_badges,
    render_rating,
)

logger = logging.getLogger("marketplace.ui")

_BAR_WIDTH = 20


def _distribution_text(reviews: list[Review]) -> Text:
    """Horizontal bars with the number of reviews per star value."""
    counts = rating_distribution(reviews)
    total = len(reviews)
    text = Text()
    for star, count in counts.items():
        filled = round(_BAR_WIDTH * count / total) if total else 0
        text.append(f"{star} ★ ", style="#FF9800")
        text.append("█" * filled, style="#FF9800")
        text.append("░" * (_BAR_WIDTH - filled), style="dim")
        text.append(f" ({count})\n")
    text.rstrip()
    return text


class ListingScreen(Screen[None]):
    """One page instance for a single listing.

    Owns a :class:`ListingPageController`; removing the screen closes
    the controller so late fetch results are dropped.
    """

    BINDINGS = [
        Binding("r", "reload_reviews", "Reload Reviews"),
    ]

    def __init__(
        self,
        listing_id: str,
        client: BackendClient,
        reviewer_id: str = "",
    ) -> None:
        super().__init__()
        self.listing_id = listing_id
        self.client = client
        self.reviewer_id = reviewer_id
        self.reviews: list[Review] = []
        self.controller = ListingPageController(client)
        self.controller.subscribe(self._render_state)

    def compose(self) -> ComposeResult:
        """Build the widget tree for the page."""
        aspect_boxes = [
            Checkbox(aspect.value, id=f"aspect_{aspect.name.lower()}")
            for aspect in ReviewAspect
        ]

        yield Header()
        yield LoadingIndicator(id="loading")
        yield Static(FAILED_MESSAGE, id="error")
        yield VerticalScroll(
            Static(id="title"),
            Static(id="badges"),
            Static(id="price"),
            Static(id="seller"),
            Static(id="description"),
            Static(id="rating"),
            Static(id="distribution"),
            DataTable(
                id="reviews_table",
                zebra_stripes=True,
                cursor_type="row",
            ),

            # Review form
            Static("Leave a Review", id="review_heading"),
            Select(
                [(f"{n} ★", n) for n in (5, 4, 3, 2, 1)],
                prompt="Rating",
                id="review_rating",
            ),
            Input(
                placeholder="Share your experience with this product...",
                id="review_comment",
            ),
            Horizontal(*aspect_boxes, id="review_aspects"),
            Button("Submit Review", variant="primary", id="submit_review"),
            Static("", id="review_status"),
            id="content",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Set up the reviews table and start loading the page."""
        table = cast(
            DataTable[str],
            self.query_one("#reviews_table", DataTable),
        )
        table.add_columns("Rating", "Reviewer", "Comment", "Date")
        self.query_one("#error", Static).display = False
        self.query_one("#content", VerticalScroll).display = False
        self.run_worker(self._load_page(), exclusive=True, group="page")

    def on_unmount(self) -> None:
        """Tear down the page controller with the screen."""
        self.controller.close()

    # ── State rendering ──────────────────────────────────

    def _render_state(self, state: PageState) -> None:
        """Reflect a controller state snapshot in the widgets."""
        loading = self.query_one("#loading", LoadingIndicator)
        error = self.query_one("#error", Static)
        content = self.query_one("#content", VerticalScroll)

        loading.display = state.phase is PagePhase.LOADING
        error.display = state.phase is PagePhase.FAILED
        content.display = state.listing is not None
        if state.listing is None:
            return

        listing = state.listing
        self.query_one("#title", Static).update(
            Text(listing.title, style="bold")
        )
        self.query_one("#badges", Static).update(
            render_badges(listing)
        )
        self.query_one("#price", Static).update(
            Text(format_price(listing), style="bold green")
        )
        seller = listing.seller_name or listing.seller_id or "Unknown seller"
        details = [f"Seller: {seller}"]
        if listing.category:
            details.append(f"Category: {listing.category}")
        if listing.condition:
            details.append(f"Condition: {listing.condition}")
        if listing.location:
            details.append(f"Location: {listing.location}")
        self.query_one("#seller", Static).update(" | ".join(details))
        self.query_one("#description", Static).update(
            listing.description or "No description provided."
        )
        self.query_one("#rating", Static).update(
            render_rating(state.rating)
        )

    def _populate_reviews(self) -> None:
        """Fill the reviews table and distribution bars."""
        table = cast(
            DataTable[str],
            self.query_one("#reviews_table", DataTable),
        )
        table.clear()
        for review in self.reviews:
            table.add_row(
                "★" * review.rating,
                review.reviewer_name or "Anonymous",
                review.comment.replace("\n", " ")[:80],
                review.created_at[:10],
            )
        self.query_one("#distribution", Static).update(
            _distribution_text(self.reviews)
        )

    # ── Workers ──────────────────────────────────────────

    async def _load_page(self) -> None:
        """Initialise the controller, then fetch the review list."""
        state = await self.controller.initialize(self.listing_id)
        if state.phase is PagePhase.LOADED:
            await self._load_reviews()

    async def _load_reviews(self) -> None:
        """Fetch the review list; failures leave the table as is."""
        try:
            reviews = await asyncio.to_thread(
                self.client.fetch_reviews, self.listing_id
            )
        except BackendError as exc:
            logger.error(
                "Error fetching reviews for listing %s: %s",
                self.listing_id,
                exc,
                exc_info=True,
            )
            self.notify("Could not load reviews", severity="warning")
            return
        if self.controller.closed:
            return
        self.reviews = reviews
        self._populate_reviews()

    async def _after_review(self) -> None:
        """Refresh the rating (and review list) after a submission."""
        try:
            await self.controller.refresh_rating(self.listing_id)
        except PageStateError as exc:
            logger.warning("Rating refresh skipped: %s", exc)
            return
        await self._load_reviews()

    async def _submit_review(self) -> None:
        """Validate and send the review form."""
        listing = self.controller.state.listing
        if listing is None:
            return

        value = self.query_one("#review_rating", Select).value
        rating = value if isinstance(value, int) else 0
        comment_input = self.query_one("#review_comment", Input)
        aspects = [
            aspect
            for aspect in ReviewAspect
            if self.query_one(
                f"#aspect_{aspect.name.lower()}", Checkbox
            ).value
        ]
        status = self.query_one("#review_status", Static)
        button = self.query_one("#submit_review", Button)

        submission = ReviewSubmission(
            self.client,
            listing_id=listing.id,
            seller_id=listing.seller_id,
            reviewer_id=self.reviewer_id,
            on_success=self._after_review,
        )
        button.disabled = True
        try:
            await submission.submit(rating, comment_input.value, aspects)
        except ReviewValidationError as exc:
            status.update(Text(str(exc), style="red"))
            self.notify(str(exc), severity="warning")
            return
        except BackendError as exc:
            logger.error("Error submitting review: %s", exc, exc_info=True)
            status.update(
                Text(
                    "Failed to submit review. Please try again.",
                    style="red",
                )
            )
            self.notify("Review submission failed", severity="error")
            return
        finally:
            button.disabled = False

        comment_input.value = ""
        for aspect in ReviewAspect:
            self.query_one(
                f"#aspect_{aspect.name.lower()}", Checkbox
            ).value = False
        status.update(
            Text("Your review has been submitted!", style="green")
        )

    # ── Events & actions ─────────────────────────────────

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button click events."""
        if event.button.id == "submit_review":
            self.run_worker(
                self._submit_review(), exclusive=True, group="review"
            )

    def action_reload_reviews(self) -> None:
        """Re-fetch the review list."""
        if self.controller.state.phase is PagePhase.LOADED:
            self.run_worker(
                self._load_reviews(), exclusive=True, group="reviews"
            )
