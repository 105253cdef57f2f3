# marketplace/services/errors.py

"""Exceptions raised by the data access layer and the page controller."""


class BackendError(Exception):
    """Base exception for data access failures."""


class NotFoundError(BackendError):
    """Raised when the requested listing does not exist."""


class TransportError(BackendError):
    """Raised on network failures, non-2xx responses or bad payloads."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchFailure(Exception):
    """Raised when a page could not be initialised."""

    def __init__(self, listing_id: str, errors: list[BaseException]) -> None:
        super().__init__(
            f"Failed to load listing {listing_id}: "
            + "; ".join(str(e) for e in errors)
        )
        self.listing_id = listing_id
        self.errors = errors


class RefreshFailure(Exception):
    """Raised when the rating could not be refreshed after a review."""


class PageStateError(RuntimeError):
    """Raised when a page operation is invoked in the wrong state."""


class ReviewValidationError(ValueError):
    """Raised when a review is rejected before reaching the backend."""
