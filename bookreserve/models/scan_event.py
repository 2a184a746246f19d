from datetime import datetime
from bookreserve.extensions import db


class ScanEvent(db.Model):
    __tablename__ = "scanned_books"

    id = db.Column(db.Integer, primary_key=True)
    isbn = db.Column(db.String(13), nullable=False, index=True)
    scanner_id = db.Column(db.String(255), nullable=True)
    scanned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
