# marketplace/services/backend_client.py

"""REST client for the hosted marketplace backend (Supabase / PostgREST)."""

import json
import logging
from typing import Any

from curl_cffi import requests as curl_requests

from marketplace.config.settings import Settings
from marketplace.models.listing import Listing
from marketplace.models.rating import RatingSummary
from marketplace.models.review import Review
from marketplace.services.errors import NotFoundError, TransportError

_LISTING_SELECT = (
    "*,"
    "user:user_id(id,name,email,university,profile_image),"
    "category:category_id(id,name)"
)


class BackendClient:
    """Synchronous data access client for listings, reviews and RPCs.

    Every call is a single attempt: failures surface as
    :class:`TransportError` (or :class:`NotFoundError` for a missing
    listing) and it is up to the caller to decide what to do with them.
    """

    def __init__(self, api_key: str | None = None) -> None:
        self.logger = logging.getLogger("marketplace.backend")
        self.settings = Settings()
        self.base_url: str = self.settings.SUPABASE_URL
        self._api_key: str = (
            api_key or self.settings.SUPABASE_ANON_KEY
        )
        if not self.base_url or not self._api_key:
            msg = (
                "Missing Supabase URL or key; set SUPABASE_URL and "
                "SUPABASE_ANON_KEY in the environment or .env file"
            )
            raise ValueError(msg)
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    # ── Transport ────────────────────────────────────────

    def _headers(
        self, extra: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Auth + default headers for a REST call."""
        return {
            **self.settings.DEFAULT_HEADERS,
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            **(extra or {}),
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}/rest/v1/{path.lstrip('/')}"

    def _check_response(
        self, resp: curl_requests.Response, method: str, path: str,
    ) -> curl_requests.Response:
        """Raise TransportError for any non-2xx response."""
        if 200 <= resp.status_code < 300:
            return resp
        self.logger.warning(
            "HTTP %d on %s %s: %s",
            resp.status_code,
            method,
            path,
            resp.text[:200],
        )
        msg = f"HTTP {resp.status_code} on {method} {path}"
        raise TransportError(msg, status_code=resp.status_code)

    def _fetch_get(
        self,
        path: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> curl_requests.Response:
        """Single GET against the REST API."""
        try:
            resp = self.session.get(
                self._url(path),
                params=params,
                headers=self._headers(headers),
                timeout=self._request_timeout,
            )
        except Exception as exc:
            self.logger.warning(
                "Request error on GET %s: %s",
                path,
                exc,
                exc_info=True,
            )
            msg = f"GET {path} failed: {exc}"
            raise TransportError(msg) from exc
        return self._check_response(resp, "GET", path)

    def _fetch_post(
        self,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> curl_requests.Response:
        """Single POST against the REST API."""
        try:
            resp = self.session.post(
                self._url(path),
                json=payload,
                headers=self._headers(headers),
                timeout=self._request_timeout,
            )
        except Exception as exc:
            self.logger.warning(
                "Request error on POST %s: %s",
                path,
                exc,
                exc_info=True,
            )
            msg = f"POST {path} failed: {exc}"
            raise TransportError(msg) from exc
        return self._check_response(resp, "POST", path)

    @staticmethod
    def _decode(resp: curl_requests.Response, path: str) -> Any:
        """Decode a JSON body; empty bodies decode to ``None``."""
        text = resp.text
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON from {path}: {exc}"
            raise TransportError(msg) from exc

    def _rows(self, resp: curl_requests.Response, path: str) -> list[dict[str, Any]]:
        """Decode a PostgREST row list."""
        data = self._decode(resp, path)
        if data is None:
            return []
        if not isinstance(data, list):
            msg = f"Expected a row list from {path}"
            raise TransportError(msg)
        return data

    def _fetch_product_reviews(
        self, params: dict[str, str],
    ) -> list[dict[str, Any]]:
        """Query the reviews table restricted to product reviews.

        Databases created before the ``review_type`` column existed
        answer 400 to that filter; the query is then repeated once
        without it.
        """
        table = self.settings.REVIEWS_TABLE
        filtered = {
            **params,
            "review_type": f"eq.{self.settings.REVIEW_TYPE}",
        }
        try:
            resp = self._fetch_get(table, params=filtered)
        except TransportError as exc:
            if exc.status_code != 400:
                raise
            self.logger.info(
                "Falling back to reviews query without review_type"
            )
            resp = self._fetch_get(table, params=params)
        return self._rows(resp, table)

    # ── Listings ─────────────────────────────────────────

    def fetch_listing(self, listing_id: str) -> Listing:
        """Fetch one listing with its seller and category embedded."""
        table = self.settings.LISTINGS_TABLE
        resp = self._fetch_get(
            table,
            params={
                "select": _LISTING_SELECT,
                "id": f"eq.{listing_id}",
                "limit": "1",
            },
        )
        rows = self._rows(resp, table)
        if not rows:
            msg = f"Listing {listing_id} not found"
            raise NotFoundError(msg)
        try:
            listing = Listing.from_row(rows[0])
        except ValueError as exc:
            msg = f"Malformed listing row for {listing_id}: {exc}"
            raise TransportError(msg) from exc
        self.logger.debug(
            "Fetched listing %s (%s)", listing.id, listing.title
        )
        return listing

    # ── Reviews ──────────────────────────────────────────

    def fetch_rating(self, listing_id: str) -> RatingSummary:
        """Average rating and review count for a listing.

        Only product reviews are counted.
        """
        rows = self._fetch_product_reviews(
            {"select": "rating", "listing_id": f"eq.{listing_id}"}
        )
        summary = RatingSummary.from_ratings(
            row["rating"] for row in rows
            if row.get("rating") is not None
        )
        self.logger.debug(
            "Rating for listing %s: %.1f (%d reviews)",
            listing_id,
            summary.rating,
            summary.count,
        )
        return summary

    def fetch_reviews(self, listing_id: str) -> list[Review]:
        """Product reviews for a listing, newest first, with reviewer names."""
        rows = self._fetch_product_reviews(
            {
                "select": "*",
                "listing_id": f"eq.{listing_id}",
                "order": "created_at.desc",
            }
        )
        if not rows:
            return []

        reviewer_ids = sorted(
            {str(r["reviewer_id"]) for r in rows if r.get("reviewer_id")}
        )
        if reviewer_ids:
            users_table = self.settings.USERS_TABLE
            try:
                users_resp = self._fetch_get(
                    users_table,
                    params={
                        "select": "id,name,avatar_url",
                        "id": f"in.({','.join(reviewer_ids)})",
                    },
                )
                users = {
                    str(u.get("id")): u
                    for u in self._rows(users_resp, users_table)
                }
            except TransportError as exc:
                # Reviews are still shown, just without reviewer names
                self.logger.error(
                    "Error fetching reviewer details: %s",
                    exc,
                    exc_info=True,
                )
                users = {}
            for row in rows:
                row["reviewer"] = users.get(str(row.get("reviewer_id")))

        return [Review.from_row(row) for row in rows]

    def submit_review(
        self,
        listing_id: str,
        seller_id: str,
        reviewer_id: str,
        rating: int,
        comment: str,
    ) -> Review:
        """Record a product review and return the stored row."""
        table = self.settings.REVIEWS_TABLE
        resp = self._fetch_post(
            table,
            payload={
                "listing_id": listing_id,
                "seller_id": seller_id,
                "reviewer_id": reviewer_id,
                "rating": rating,
                "comment": comment,
                "review_type": self.settings.REVIEW_TYPE,
            },
            headers={"Prefer": "return=representation"},
        )
        rows = self._rows(resp, table)
        if not rows:
            msg = "Backend did not return the stored review"
            raise TransportError(msg)
        review = Review.from_row(rows[0])
        self.logger.info(
            "Review %s recorded for listing %s (%d stars)",
            review.id,
            listing_id,
            rating,
        )
        return review

    # ── RPC / admin ──────────────────────────────────────

    def execute_sql(
        self, sql: str, function: str = "exec_sql",
    ) -> Any:
        """Run SQL text through a remote execute-SQL procedure."""
        param = self.settings.SQL_RPC_FUNCTIONS.get(function)
        if param is None:
            valid = ", ".join(sorted(self.settings.SQL_RPC_FUNCTIONS))
            msg = f"Unknown SQL function '{function}' (valid: {valid})"
            raise ValueError(msg)
        path = f"rpc/{function}"
        resp = self._fetch_post(path, payload={param: sql})
        return self._decode(resp, path)

    def probe(self, path: str) -> curl_requests.Response:
        """Raw GET used by connectivity checks; never raises on status."""
        return self.session.get(
            self._url(path),
            headers=self._headers(),
            timeout=self._request_timeout,
        )
