from collections import defaultdict

from bookreserve.errors import ValidationError
from bookreserve.models.professor_request import REQUEST_STATUSES
from bookreserve.repositories.book_repo import BookRepo, SORTABLE_FIELDS
from bookreserve.repositories.request_repo import RequestRepo
from bookreserve.utils.isbn import normalize_isbn

UNKNOWN_BOOK_TITLE = "Unknown Book"


def _iso(value):
    return value.isoformat() if value else None


def _request_view(req) -> dict:
    book = req.book
    return {
        "id": req.id,
        "isbn": req.isbn,
        "book_title": book.title if book and book.title else UNKNOWN_BOOK_TITLE,
        "book_authors": (book.authors or []) if book else [],
        "book_thumbnail": book.thumbnail_url if book else None,
        "quantity_requested": req.quantity_requested,
        "quantity_approved": req.quantity_approved,
        "status": req.status,
        "rejection_reason": req.rejection_reason,
        "requested_at": _iso(req.requested_at),
        "processed_at": _iso(req.processed_at),
        "course_code": req.course_code,
        "course_name": req.course_name,
    }


class QueryService:
    @staticmethod
    def list_books_with_pending_counts(search=None, sort="title", order="asc"):
        """Books with their live pending requests attached; counts are never stored."""
        sort = (sort or "title").strip()
        order = (order or "asc").strip().lower()
        if sort not in SORTABLE_FIELDS:
            raise ValidationError(f"Cannot sort by '{sort}'", kind="invalid_sort")
        if order not in ("asc", "desc"):
            raise ValidationError(f"Invalid order '{order}'", kind="invalid_sort")

        books = BookRepo.list_for_admin((search or "").strip() or None, sort, order)

        by_isbn = defaultdict(list)
        for r in RequestRepo.list_pending_for_isbns([b.isbn for b in books]):
            by_isbn[r.isbn].append({
                "id": r.id,
                "professor_email": r.professor_email,
                "quantity_requested": r.quantity_requested,
                "requested_at": _iso(r.requested_at),
                "course_code": r.course_code,
                "course_name": r.course_name,
            })

        return [
            {
                "isbn": b.isbn,
                "title": b.title,
                "authors": b.authors or [],
                "publisher": b.publisher,
                "thumbnail_url": b.thumbnail_url,
                "quantity_available": b.quantity_available or 0,
                "pending_requests_count": len(by_isbn[b.isbn]),
                "requests": by_isbn[b.isbn],
            }
            for b in books
        ]

    @staticmethod
    def list_requests_for_professor(professor_id: str):
        return [_request_view(r) for r in RequestRepo.list_by_professor(str(professor_id))]

    @staticmethod
    def list_requests_for_admin(status=None, professor_email=None, isbn=None):
        if status and status not in REQUEST_STATUSES:
            raise ValidationError(f"Unknown status '{status}'", kind="invalid_filter")

        rows = RequestRepo.list_filtered(
            status=status or None,
            professor_email=professor_email or None,
            isbn=normalize_isbn(isbn) or None,
        )
        data = []
        for r in rows:
            view = _request_view(r)
            view.update({
                "professor_id": r.professor_id,
                "professor_email": r.professor_email,
                "quantity_available": (r.book.quantity_available or 0) if r.book else 0,
                "processed_by": r.processed_by,
            })
            data.append(view)
        return data
