from datetime import datetime
from bookreserve.extensions import db


class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint("quantity_available >= 0", name="ck_books_quantity_non_negative"),
    )

    isbn = db.Column(db.String(13), primary_key=True)

    google_books_id = db.Column(db.String(64), nullable=True)
    title = db.Column(db.String(500), nullable=False, index=True)
    subtitle = db.Column(db.String(500), nullable=True)
    authors = db.Column(db.JSON, nullable=False, default=list)
    publisher = db.Column(db.String(255), nullable=True)
    published_date = db.Column(db.String(32), nullable=True)
    description = db.Column(db.Text, nullable=True)
    page_count = db.Column(db.Integer, nullable=True)
    categories = db.Column(db.JSON, nullable=False, default=list)
    language = db.Column(db.String(16), nullable=True)
    thumbnail_url = db.Column(db.String(1000), nullable=True)
    small_thumbnail_url = db.Column(db.String(1000), nullable=True)
    average_rating = db.Column(db.Float, nullable=True)
    ratings_count = db.Column(db.Integer, nullable=True)
    # "metadata" is reserved on declarative classes
    raw_metadata = db.Column("metadata", db.JSON, nullable=True)

    quantity_available = db.Column(db.Integer, nullable=False, default=0)

    scan_count = db.Column(db.Integer, nullable=False, default=0)
    first_scanned_at = db.Column(db.DateTime, nullable=True)
    last_scanned_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "isbn": self.isbn,
            "google_books_id": self.google_books_id,
            "title": self.title,
            "subtitle": self.subtitle,
            "authors": self.authors or [],
            "publisher": self.publisher,
            "published_date": self.published_date,
            "description": self.description,
            "page_count": self.page_count,
            "categories": self.categories or [],
            "language": self.language,
            "thumbnail_url": self.thumbnail_url,
            "small_thumbnail_url": self.small_thumbnail_url,
            "average_rating": self.average_rating,
            "ratings_count": self.ratings_count,
            "quantity_available": self.quantity_available or 0,
            "scan_count": self.scan_count or 0,
            "first_scanned_at": self.first_scanned_at.isoformat() if self.first_scanned_at else None,
            "last_scanned_at": self.last_scanned_at.isoformat() if self.last_scanned_at else None,
        }
