# bookreserve/services/request_service.py
from __future__ import annotations

import threading
import time
import zlib
from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from bookreserve.errors import (
    AlreadyProcessed,
    BookNotFound,
    ExceedsRequested,
    InsufficientInventory,
    InvalidQuantity,
    PersistenceError,
    RequestNotFound,
    ServiceError,
)
from bookreserve.extensions import db
from bookreserve.models.professor_request import (
    ProfessorRequest,
    STATUS_APPROVED,
    STATUS_PARTIAL,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from bookreserve.repositories.book_repo import BookRepo
from bookreserve.repositories.request_repo import RequestRepo
from bookreserve.utils.isbn import require_valid_isbn

# quantity columns are 32-bit INTEGERs on every supported backend
MAX_QUANTITY = 2**31 - 1
LOCK_STRIPES = 64


@dataclass
class DecisionResult:
    request: ProfessorRequest
    message: str


class _IsbnLocks:
    """Serializes reservations per ISBN inside one process.

    The conditional UPDATE already protects stock across processes; the lock
    keeps same-process approvals from fighting over the database write lock.
    ISBNs hash onto a fixed set of stripes; ISBNs sharing a stripe wait on
    each other.
    """

    def __init__(self, stripes: int = LOCK_STRIPES):
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def __len__(self):
        return len(self._locks)

    def for_isbn(self, isbn: str) -> threading.Lock:
        return self._locks[zlib.crc32(isbn.encode("utf-8")) % len(self._locks)]


isbn_locks = _IsbnLocks()


def _positive_int(value) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if 1 <= value <= MAX_QUANTITY else None


class RequestService:
    # ------------------------------------------------------------------
    # professor side
    # ------------------------------------------------------------------
    @staticmethod
    def create_request(
        professor_id: str,
        isbn,
        quantity,
        course_code: str | None = None,
        course_name: str | None = None,
        professor_email: str | None = None,
    ) -> ProfessorRequest:
        """
        New ``pending`` request. Stock is not checked here; it is only
        reserved when an admin approves.
        """
        if _positive_int(quantity) is None:
            raise InvalidQuantity(f"Invalid request: quantity must be a whole number from 1 to {MAX_QUANTITY}")

        clean = require_valid_isbn(isbn)
        if not BookRepo.get(clean):
            raise BookNotFound()

        req = ProfessorRequest(
            professor_id=str(professor_id),
            professor_email=professor_email or None,
            isbn=clean,
            quantity_requested=quantity,
            course_code=course_code or None,
            course_name=course_name or None,
            status=STATUS_PENDING,
            requested_at=datetime.utcnow(),
        )
        try:
            RequestRepo.create(req)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.exception(f"[requests] Failed to create request for {clean}")
            raise PersistenceError("Failed to create request") from e

        current_app.logger.info(f"[requests] {req.id} created by {professor_id}: {quantity} x {clean}")
        return req

    # ------------------------------------------------------------------
    # admin decisions
    # ------------------------------------------------------------------
    @staticmethod
    def approve(request_id: str, actor_id: str) -> DecisionResult:
        return RequestService._reserve(request_id, actor_id, quantity_approved=None)

    @staticmethod
    def partial(request_id: str, actor_id: str, quantity_approved) -> DecisionResult:
        if _positive_int(quantity_approved) is None:
            raise InvalidQuantity(f"Invalid quantity_approved: must be a whole number from 1 to {MAX_QUANTITY}")
        return RequestService._reserve(request_id, actor_id, quantity_approved=quantity_approved)

    @staticmethod
    def reject(request_id: str, actor_id: str, reason: str | None = None) -> DecisionResult:
        def _unit():
            req = RequestService._load_pending(request_id)
            title = req.book.title if req.book else None

            changed = RequestRepo.mark_processed(
                request_id,
                status=STATUS_REJECTED,
                rejection_reason=reason or None,
                processed_at=datetime.utcnow(),
                processed_by=str(actor_id),
            )
            if not changed:
                raise AlreadyProcessed(RequestRepo.current_status(request_id) or "processed")

            db.session.commit()
            return title

        title = RequestService._run_unit(_unit, request_id)
        req = RequestRepo.get(request_id)
        current_app.logger.info(f"[requests] {request_id} rejected by {actor_id}")
        return DecisionResult(req, f'Request rejected for "{title}"')

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    @staticmethod
    def _load_pending(request_id: str) -> ProfessorRequest:
        req = RequestRepo.get(request_id)
        if not req:
            raise RequestNotFound()
        if req.status != STATUS_PENDING:
            raise AlreadyProcessed(req.status)
        return req

    @staticmethod
    def _reserve(request_id: str, actor_id: str, quantity_approved: int | None) -> DecisionResult:
        """
        Approve (``quantity_approved is None``) or partially approve a request.

        Status transition and stock decrement are one transaction: both
        guarded UPDATEs succeed and commit, or the whole unit rolls back.
        """
        # fail fast before taking any lock; isbn never changes on a request
        isbn = RequestService._load_pending(request_id).isbn
        db.session.rollback()

        def _unit():
            req = RequestService._load_pending(request_id)
            requested = req.quantity_requested
            available = BookRepo.available_quantity(req.isbn)
            title = req.book.title if req.book else None

            if quantity_approved is None:
                status, amount = STATUS_APPROVED, requested
            else:
                if quantity_approved > requested:
                    raise ExceedsRequested(requested)
                status, amount = STATUS_PARTIAL, quantity_approved

            if available < amount:
                raise InsufficientInventory(available)

            changed = RequestRepo.mark_processed(
                request_id,
                status=status,
                quantity_approved=amount,
                processed_at=datetime.utcnow(),
                processed_by=str(actor_id),
            )
            if not changed:
                raise AlreadyProcessed(RequestRepo.current_status(request_id) or "processed")

            if not BookRepo.reserve_stock(req.isbn, amount):
                raise InsufficientInventory(BookRepo.available_quantity(req.isbn))

            db.session.commit()
            return status, amount, requested, title

        with isbn_locks.for_isbn(isbn):
            status, amount, requested, title = RequestService._run_unit(_unit, request_id)

        req = RequestRepo.get(request_id)
        current_app.logger.info(f"[requests] {request_id} {status} by {actor_id}: {amount}/{requested} x {isbn}")
        if status == STATUS_PARTIAL:
            return DecisionResult(req, f'Partially approved {amount} of {requested} for "{title}"')
        return DecisionResult(req, f'Request approved for "{title}"')

    @staticmethod
    def _run_unit(unit, request_id: str):
        """
        Runs ``unit`` as one transaction. Service errors and database errors
        roll everything back; a locked database retries the whole unit.
        """
        delays = tuple(current_app.config.get("RESERVATION_RETRY_DELAYS", ()))
        attempt = 0
        while True:
            try:
                return unit()
            except ServiceError:
                db.session.rollback()
                raise
            except OperationalError as e:
                db.session.rollback()
                if attempt >= len(delays):
                    current_app.logger.exception(f"[requests] {request_id}: giving up after {attempt + 1} attempts")
                    raise PersistenceError("Failed to process request") from e
                current_app.logger.warning(f"[requests] {request_id}: transient database error, retrying: {e}")
                time.sleep(delays[attempt])
                attempt += 1
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.exception(f"[requests] {request_id}: database error, rolled back")
                raise PersistenceError("Failed to process request") from e
