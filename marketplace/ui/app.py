# marketplace/ui/app.py

"""Terminal UI for browsing a marketplace listing."""

import logging

from textual.app import App
from textual.binding import Binding

from marketplace.config.settings import Settings
from marketplace.services.backend_client import BackendClient
from marketplace.ui.listing_screen import ListingScreen

logger = logging.getLogger("marketplace.ui")


class ListingApp(App[object]):
    """Terminal UI for a single marketplace listing."""

    TITLE = "Marketplace"

    CSS = """
    #loading { height: 3; }
    #error { color: $error; text-style: bold; padding: 1 2; }
    #content { padding: 0 2; }
    #title { margin-top: 1; }
    #badges, #price, #seller, #rating { margin-top: 1; }
    #description { margin: 1 0; text-style: italic; }
    #distribution { margin: 1 0; }
    #reviews_table { height: auto; max-height: 12; }
    #review_heading { margin-top: 1; text-style: bold; }
    #review_aspects { height: auto; }
    #review_status { margin-bottom: 1; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("c", "copy_id", "Copy ID"),
    ]

    def __init__(
        self,
        listing_id: str,
        client: BackendClient | None = None,
    ) -> None:
        super().__init__()
        self.listing_id = listing_id
        self.settings = Settings()
        self.client = client or BackendClient()

    def on_mount(self) -> None:
        """Open the listing page."""
        self.sub_title = self.listing_id
        self.push_screen(
            ListingScreen(
                self.listing_id,
                self.client,
                reviewer_id=self.settings.REVIEWER_ID,
            )
        )

    def action_copy_id(self) -> None:
        """Copy the listing id to the clipboard."""
        try:
            import pyperclip  # type: ignore[import-untyped]

            pyperclip.copy(self.listing_id)
            self.notify("Listing ID copied")
        except Exception:
            logger.error(
                "Failed to copy listing id to clipboard",
                exc_info=True,
            )
            self.notify("Install pyperclip", severity="warning")
