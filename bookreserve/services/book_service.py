from bookreserve.errors import BookNotFound, ValidationError
from bookreserve.repositories.book_repo import BookRepo
from bookreserve.utils.isbn import normalize_isbn, require_valid_isbn

SEARCH_LIMIT = 10


class BookService:
    @staticmethod
    def get_book(isbn):
        book = BookRepo.get(require_valid_isbn(isbn))
        if not book:
            raise BookNotFound()
        return book

    @staticmethod
    def search_books(query):
        term = (query or "").strip()
        if len(term) < 2:
            raise ValidationError("Search query must be at least 2 characters", kind="invalid_query")
        return BookRepo.search(term, normalize_isbn(term), limit=SEARCH_LIMIT)
