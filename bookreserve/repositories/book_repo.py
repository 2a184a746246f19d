from sqlalchemy import String, cast, or_, update

from bookreserve.models.book import Book
from bookreserve.extensions import db

SORTABLE_FIELDS = {
    "title": Book.title,
    "isbn": Book.isbn,
    "quantity_available": Book.quantity_available,
    "scan_count": Book.scan_count,
    "last_scanned_at": Book.last_scanned_at,
}


class BookRepo:
    @staticmethod
    def get(isbn: str):
        return db.session.get(Book, isbn)

    @staticmethod
    def create(book: Book, commit: bool = True):
        db.session.add(book)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return book

    @staticmethod
    def record_rescan(isbn: str, now) -> bool:
        """One more physical copy scanned. False if the book row does not exist yet."""
        result = db.session.execute(
            update(Book)
            .where(Book.isbn == isbn)
            .values(
                scan_count=Book.scan_count + 1,
                quantity_available=Book.quantity_available + 1,
                last_scanned_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def reserve_stock(isbn: str, quantity: int) -> bool:
        """Atomic conditional decrement; False when fewer than ``quantity`` copies remain."""
        result = db.session.execute(
            update(Book)
            .where(Book.isbn == isbn, Book.quantity_available >= quantity)
            .values(quantity_available=Book.quantity_available - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def available_quantity(isbn: str) -> int:
        value = db.session.execute(
            db.select(Book.quantity_available).where(Book.isbn == isbn)
        ).scalar_one_or_none()
        return int(value or 0)

    @staticmethod
    def search(term: str, isbn_term: str, limit: int = 10):
        pattern = f"%{term}%"
        conditions = [
            Book.title.ilike(pattern),
            cast(Book.authors, String).ilike(pattern),
            Book.isbn.ilike(pattern),
        ]
        if isbn_term and isbn_term != term:
            conditions.append(Book.isbn.ilike(f"%{isbn_term}%"))
        return (
            Book.query
            .filter(or_(*conditions))
            .order_by(Book.quantity_available.desc(), Book.title.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def list_for_admin(search: str | None = None, sort: str = "title", order: str = "asc"):
        q = Book.query
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(Book.title.ilike(pattern), Book.isbn.ilike(pattern)))
        column = SORTABLE_FIELDS[sort]
        q = q.order_by(column.asc() if order == "asc" else column.desc(), Book.isbn.asc())
        return q.all()
