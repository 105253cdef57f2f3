# marketplace/ui/render.py

"""Rich renderables for listing badges, prices and ratings."""

from rich.text import Text

from marketplace.config.settings import Settings
from marketplace.models.listing import Listing
from marketplace.models.rating import RatingSummary

_FULL_STAR = "★"
_HALF_STAR = "⯪"
_EMPTY_STAR = "☆"


def render_badges(listing: Listing) -> Text:
    """Coloured badge chips for the listing's status flags."""
    text = Text()
    for badge in Settings.LISTING_BADGES:
        if not getattr(listing, badge["flag"], False):
            continue
        if text:
            text.append(" ")
        text.append(f" {badge['label']} ", style=badge["style"])
    return text


def render_stars(rating: float) -> str:
    """Five-star bar at half-star precision."""
    halves = round(max(0.0, min(rating, 5.0)) * 2)
    full, half = divmod(halves, 2)
    return (
        _FULL_STAR * full
        + _HALF_STAR * half
        + _EMPTY_STAR * (5 - full - half)
    )


def render_rating(summary: RatingSummary) -> Text:
    """Stars, numeric average and review count."""
    noun = "review" if summary.count == 1 else "reviews"
    text = Text(render_stars(summary.rating), style="#FF9800")
    text.append(f" {summary.rating:.1f}", style="bold")
    text.append(f" ({summary.count} {noun})", style="dim")
    return text


def format_price(listing: Listing) -> str:
    """Price with currency, or N/A for unpriced listings."""
    if listing.price <= 0:
        return "N/A"
    return f"{listing.currency} {listing.price:,.2f}"
