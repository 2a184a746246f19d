# bookreserve/services/catalog_service.py
from __future__ import annotations

import json
import time

import requests
from flask import current_app

from bookreserve.errors import UpstreamUnavailable


def placeholder_title(isbn: str) -> str:
    return f"Unknown Book (ISBN: {isbn})"


class CatalogService:
    """
    Google Books volumes API.
    Slow and unreliable by nature: callers must treat both ``None`` and
    UpstreamUnavailable as "use the placeholder".
    """

    @staticmethod
    def fetch_book_by_isbn(isbn: str) -> dict | None:
        if not current_app.config.get("CATALOG_ENABLED", True):
            return None

        params = {"q": f"isbn:{isbn}"}
        api_key = current_app.config.get("GOOGLE_BOOKS_API_KEY")
        if api_key:
            params["key"] = api_key

        timeout = current_app.config.get("CATALOG_TIMEOUT_SECONDS", 5)
        deadline = time.monotonic() + timeout
        try:
            resp = requests.get(
                current_app.config["GOOGLE_BOOKS_API_URL"],
                params=params,
                headers={"Accept": "application/json"},
                timeout=timeout,
                stream=True,
            )
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Google Books API unreachable: {e}") from e

        try:
            if not resp.ok:
                raise UpstreamUnavailable(f"Google Books API error: {resp.status_code} {resp.reason}")
            body = CatalogService._read_body(resp, deadline)
        finally:
            resp.close()

        try:
            data = json.loads(body)
        except ValueError as e:
            raise UpstreamUnavailable("Google Books API returned invalid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamUnavailable("Google Books API returned an unexpected body")

        items = data.get("items") or []
        if not isinstance(items, list):
            raise UpstreamUnavailable("Google Books API returned an unexpected body")
        if not items or data.get("totalItems") == 0:
            current_app.logger.info(f"[catalog] No book found for ISBN: {isbn}")
            return None

        return CatalogService._to_metadata(isbn, items[0], data)

    @staticmethod
    def _read_body(resp, deadline: float) -> bytes:
        # requests only bounds each socket read, so a slow drip is cut off here
        chunks = []
        try:
            for chunk in resp.iter_content(chunk_size=8192):
                chunks.append(chunk)
                if time.monotonic() > deadline:
                    raise UpstreamUnavailable("Google Books API timed out while sending the body")
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Google Books API unreachable: {e}") from e
        return b"".join(chunks)

    @staticmethod
    def _to_metadata(isbn: str, volume: dict, raw: dict) -> dict:
        if not isinstance(volume, dict):
            raise UpstreamUnavailable(f"Google Books API returned a malformed volume for {isbn}")
        info = volume.get("volumeInfo") or {}
        if not isinstance(info, dict):
            raise UpstreamUnavailable(f"Google Books API returned a malformed volume for {isbn}")
        images = info.get("imageLinks") or {}
        if not isinstance(images, dict):
            raise UpstreamUnavailable(f"Google Books API returned a malformed volume for {isbn}")
        return {
            "google_books_id": volume.get("id") or None,
            "title": info.get("title") or placeholder_title(isbn),
            "subtitle": info.get("subtitle") or None,
            "authors": info.get("authors") or [],
            "publisher": info.get("publisher") or None,
            "published_date": info.get("publishedDate") or None,
            "description": info.get("description") or None,
            "page_count": info.get("pageCount") or None,
            "categories": info.get("categories") or [],
            "language": info.get("language") or None,
            "thumbnail_url": images.get("thumbnail") or None,
            "small_thumbnail_url": images.get("smallThumbnail") or None,
            "average_rating": info.get("averageRating") or None,
            "ratings_count": info.get("ratingsCount") or None,
            "raw_metadata": raw,
        }

    @staticmethod
    def placeholder_metadata(isbn: str, error: str | None = None) -> dict:
        return {
            "google_books_id": None,
            "title": placeholder_title(isbn),
            "subtitle": None,
            "authors": [],
            "publisher": None,
            "published_date": None,
            "description": None,
            "page_count": None,
            "categories": [],
            "language": None,
            "thumbnail_url": None,
            "small_thumbnail_url": None,
            "average_rating": None,
            "ratings_count": None,
            "raw_metadata": {
                "not_found_in_api": True,
                "error": error or "Book not found in Google Books API",
            },
        }

    @staticmethod
    def lookup_or_placeholder(isbn: str) -> dict:
        try:
            metadata = CatalogService.fetch_book_by_isbn(isbn)
        except UpstreamUnavailable as e:
            current_app.logger.warning(f"[catalog] Lookup failed for {isbn}: {e}")
            return CatalogService.placeholder_metadata(isbn, str(e))
        if metadata is None:
            return CatalogService.placeholder_metadata(isbn)
        return metadata
