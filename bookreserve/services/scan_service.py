from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from bookreserve.errors import PersistenceError
from bookreserve.extensions import db
from bookreserve.models.book import Book
from bookreserve.models.scan_event import ScanEvent
from bookreserve.repositories.book_repo import BookRepo
from bookreserve.repositories.scan_repo import ScanRepo
from bookreserve.services.catalog_service import CatalogService
from bookreserve.utils.isbn import require_valid_isbn

BOOK_WRITE_WARNING = "Scan recorded, but failed to store book metadata"


@dataclass
class ScanResult:
    scan_id: int
    book: Book | None
    warning: str | None = None


class ScanService:
    @staticmethod
    def record_scan(isbn, scanner_id=None) -> ScanResult:
        clean = require_valid_isbn(isbn)

        # 1) the physical scan is logged first and on its own
        try:
            event = ScanRepo.log(ScanEvent(isbn=clean, scanner_id=scanner_id or None, scanned_at=datetime.utcnow()))
            scan_id = event.id
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.exception(f"[scan] Could not record scan for {clean}")
            raise PersistenceError("Database error while recording scan") from e

        # 2) inventory; failures here never lose the scan
        try:
            book = ScanService._upsert_book(clean)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[scan] Scan {scan_id} recorded but book {clean} was not stored")
            return ScanResult(scan_id=scan_id, book=None, warning=BOOK_WRITE_WARNING)

        return ScanResult(scan_id=scan_id, book=book)

    @staticmethod
    def _upsert_book(isbn: str) -> Book:
        now = datetime.utcnow()
        if BookRepo.record_rescan(isbn, now):
            db.session.commit()
            return BookRepo.get(isbn)
        db.session.rollback()

        current_app.logger.info(f"[scan] New ISBN {isbn}, fetching catalog metadata")
        metadata = CatalogService.lookup_or_placeholder(isbn)

        book = Book(
            isbn=isbn,
            **metadata,
            first_scanned_at=now,
            last_scanned_at=now,
            scan_count=1,
            quantity_available=1,
        )
        try:
            return BookRepo.create(book)
        except IntegrityError:
            # another scanner created the row between our update and insert
            db.session.rollback()
            if not BookRepo.record_rescan(isbn, now):
                raise
            db.session.commit()
            return BookRepo.get(isbn)
