"""Service-level error taxonomy.

Every error carries a stable ``kind`` for clients and a human readable
message. Controllers turn them into ``{"success": False, ...}`` bodies with
``status_code``.
"""


class ServiceError(ValueError):
    kind = "error"
    status_code = 400

    def __init__(self, message: str, kind: str | None = None):
        super().__init__(message)
        self.message = message
        if kind:
            self.kind = kind

    def to_dict(self):
        return {"success": False, "code": self.kind, "message": self.message}


# --- validation (400) ---
class ValidationError(ServiceError):
    kind = "validation_error"
    status_code = 400


class InvalidISBN(ValidationError):
    kind = "invalid_isbn"

    def __init__(self, message: str = "Invalid ISBN format"):
        super().__init__(message)


class InvalidQuantity(ValidationError):
    kind = "invalid_quantity"


# --- not found (404) ---
class NotFoundError(ServiceError):
    kind = "not_found"
    status_code = 404


class BookNotFound(NotFoundError):
    kind = "book_not_found"

    def __init__(self, message: str = "Book not found"):
        super().__init__(message)


class RequestNotFound(NotFoundError):
    kind = "request_not_found"

    def __init__(self, message: str = "Request not found"):
        super().__init__(message)


# --- conflicts (400) ---
class ConflictError(ServiceError):
    kind = "conflict"
    status_code = 400


class AlreadyProcessed(ConflictError):
    kind = "already_processed"

    def __init__(self, status: str):
        super().__init__(f"Request already {status}")
        self.status = status


class InsufficientInventory(ConflictError):
    kind = "insufficient_inventory"

    def __init__(self, available: int):
        super().__init__(f"Insufficient inventory. Only {available} available.")
        self.available = available


class ExceedsRequested(ConflictError):
    kind = "exceeds_requested"

    def __init__(self, requested: int):
        super().__init__(f"Cannot approve more than requested ({requested})")
        self.requested = requested


# --- infrastructure ---
class UpstreamUnavailable(ServiceError):
    kind = "upstream_unavailable"
    status_code = 502


class PersistenceError(ServiceError):
    kind = "persistence_error"
    status_code = 500
