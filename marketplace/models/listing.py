# marketplace/models/listing.py

"""Listing data model for the product detail page."""

from dataclasses import dataclass, field
from typing import Any

from marketplace.config.settings import Settings


def _to_float(value: Any) -> float:
    """Coerce a backend price value to float, 0.0 when unusable."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _embedded_name(row: dict[str, Any], key: str) -> str:
    """Return ``row[key]["name"]`` for an embedded PostgREST object."""
    embedded = row.get(key)
    if isinstance(embedded, dict):
        return str(embedded.get("name") or "")
    return ""


@dataclass(frozen=True)
class Listing:
    """A single marketplace item record.

    Fetched once per page and never mutated locally.
    """

    id: str
    title: str
    seller_id: str = ""
    price: float = 0.0
    currency: str = Settings.CURRENCY
    description: str = ""
    status: str = ""
    condition: str = ""
    location: str = ""
    category: str = ""
    seller_name: str = ""
    images: tuple[str, ...] = field(default_factory=tuple)
    is_official_store: bool = False
    is_deal: bool = False
    is_promoted: bool = False
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Listing":
        """Build a Listing from a ``listings`` row.

        The row may embed the seller as ``user`` and the category as
        ``category`` (PostgREST resource embedding).
        """
        listing_id = row.get("id")
        if not listing_id:
            msg = "Listing row has no id"
            raise ValueError(msg)

        images = row.get("images") or ()
        if isinstance(images, str):
            images = (images,)

        return cls(
            id=str(listing_id),
            title=str(row.get("title") or ""),
            seller_id=str(row.get("user_id") or ""),
            price=_to_float(row.get("price")),
            description=str(row.get("description") or ""),
            status=str(row.get("status") or ""),
            condition=str(row.get("condition") or ""),
            location=str(row.get("location") or ""),
            category=_embedded_name(row, "category"),
            seller_name=_embedded_name(row, "user"),
            images=tuple(str(i) for i in images),
            is_official_store=bool(row.get("is_official_store")),
            is_deal=bool(row.get("is_deal")),
            is_promoted=bool(row.get("is_promoted")),
            created_at=str(row.get("created_at") or ""),
        )

    def badges(self) -> list[str]:
        """Labels of the badges this listing carries, in display order."""
        return [
            badge["label"]
            for badge in Settings.LISTING_BADGES
            if getattr(self, badge["flag"], False)
        ]
