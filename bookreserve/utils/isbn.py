"""ISBN-10 / ISBN-13 normalization and checksum validation."""
import re

from bookreserve.errors import InvalidISBN

_STRIP = re.compile(r"[-\s]")
_ISBN10 = re.compile(r"^\d{9}[\dX]$")
_ISBN13 = re.compile(r"^\d{13}$")


def normalize_isbn(raw) -> str:
    if raw is None:
        return ""
    return _STRIP.sub("", str(raw)).upper()


def _is_valid_isbn10(isbn: str) -> bool:
    if not _ISBN10.match(isbn):
        return False
    total = sum(int(isbn[i]) * (10 - i) for i in range(9))
    total += 10 if isbn[9] == "X" else int(isbn[9])
    return total % 11 == 0


def _is_valid_isbn13(isbn: str) -> bool:
    if not _ISBN13.match(isbn):
        return False
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(isbn[:12]))
    return int(isbn[12]) == (10 - total % 10) % 10


def is_valid_isbn(isbn) -> bool:
    clean = normalize_isbn(isbn)
    if len(clean) == 10:
        return _is_valid_isbn10(clean)
    if len(clean) == 13:
        return _is_valid_isbn13(clean)
    return False


def require_valid_isbn(raw) -> str:
    """Normalize ``raw`` and raise InvalidISBN unless it passes the checksum."""
    clean = normalize_isbn(raw)
    if not clean:
        raise InvalidISBN("ISBN is required")
    if not is_valid_isbn(clean):
        raise InvalidISBN()
    return clean
