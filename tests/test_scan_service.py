import pytest
from sqlalchemy.exc import SQLAlchemyError

from bookreserve.errors import InvalidISBN, PersistenceError, UpstreamUnavailable
from bookreserve.models.scan_event import ScanEvent
from bookreserve.repositories.book_repo import BookRepo
from bookreserve.repositories.scan_repo import ScanRepo
from bookreserve.services import catalog_service
from bookreserve.services.catalog_service import CatalogService
from bookreserve.services.scan_service import BOOK_WRITE_WARNING, ScanService

from tests.conftest import FakeResponse, ISBN_A, ISBN_B


def test_first_scan_of_unknown_isbn_creates_placeholder_book(app):
    result = ScanService.record_scan(ISBN_A, scanner_id="desk-1")

    assert result.warning is None
    assert result.book.title == "Unknown Book (ISBN: 9780140328721)"
    assert result.book.authors == []
    assert result.book.quantity_available == 1
    assert result.book.scan_count == 1
    assert result.book.first_scanned_at is not None

    assert ScanRepo.count_for_isbn(ISBN_A) == 1
    assert ScanEvent.query.filter_by(id=result.scan_id).one().scanner_id == "desk-1"


def test_catalog_not_found_uses_placeholder(app, monkeypatch):
    app.config["CATALOG_ENABLED"] = True
    monkeypatch.setattr(CatalogService, "fetch_book_by_isbn", lambda isbn: None)

    book = ScanService.record_scan(ISBN_A).book
    assert book.title == "Unknown Book (ISBN: 9780140328721)"
    assert book.quantity_available == 1


def test_catalog_failure_does_not_block_scan(app, monkeypatch):
    def boom(isbn):
        raise UpstreamUnavailable("timeout")

    monkeypatch.setattr(CatalogService, "fetch_book_by_isbn", boom)
    result = ScanService.record_scan(ISBN_A)
    assert result.book.title.startswith("Unknown Book")
    assert result.book.raw_metadata["error"] == "timeout"


@pytest.mark.parametrize("payload", [[], {"totalItems": 1, "items": [{"volumeInfo": "oops"}]}])
def test_malformed_catalog_body_still_records_book(app, monkeypatch, payload):
    app.config["CATALOG_ENABLED"] = True
    monkeypatch.setattr(catalog_service.requests, "get", lambda *a, **k: FakeResponse(payload))

    first = ScanService.record_scan(ISBN_A)
    assert first.warning is None
    assert first.book.title == "Unknown Book (ISBN: 9780140328721)"
    assert first.book.raw_metadata["not_found_in_api"] is True

    second = ScanService.record_scan(ISBN_A)
    assert second.book.quantity_available == 2
    assert ScanRepo.count_for_isbn(ISBN_A) == 2


def test_catalog_metadata_is_stored(app, monkeypatch):
    meta = CatalogService.placeholder_metadata(ISBN_B)
    meta.update(title="Numerical Recipes", authors=["Press"], raw_metadata={"kind": "books#volumes"})
    monkeypatch.setattr(CatalogService, "fetch_book_by_isbn", lambda isbn: meta)

    book = ScanService.record_scan("978-0-306-40615-7").book
    assert book.isbn == ISBN_B
    assert book.title == "Numerical Recipes"
    assert book.authors == ["Press"]


def test_repeated_scans_count_copies(app, monkeypatch):
    calls = []
    monkeypatch.setattr(CatalogService, "fetch_book_by_isbn", lambda isbn: calls.append(isbn))

    for _ in range(4):
        result = ScanService.record_scan(ISBN_A)

    assert result.book.scan_count == 4
    assert result.book.quantity_available == 4
    assert result.book.last_scanned_at >= result.book.first_scanned_at
    assert ScanRepo.count_for_isbn(ISBN_A) == 4
    # metadata is fetched once, on the first scan only
    assert calls == [ISBN_A]


def test_invalid_isbn_is_rejected_before_logging(app):
    with pytest.raises(InvalidISBN):
        ScanService.record_scan("9780140328722")
    with pytest.raises(InvalidISBN):
        ScanService.record_scan(None)
    assert ScanEvent.query.count() == 0


def test_book_write_failure_keeps_the_scan(app, monkeypatch):
    def fail(book, commit=True):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(BookRepo, "create", fail)
    result = ScanService.record_scan(ISBN_A)

    assert result.book is None
    assert result.warning == BOOK_WRITE_WARNING
    assert result.scan_id is not None
    assert ScanRepo.count_for_isbn(ISBN_A) == 1
    assert BookRepo.get(ISBN_A) is None


def test_scan_log_failure_is_a_persistence_error(app, monkeypatch):
    def fail(event):
        raise SQLAlchemyError("db down")

    monkeypatch.setattr(ScanRepo, "log", fail)
    with pytest.raises(PersistenceError):
        ScanService.record_scan(ISBN_A)
