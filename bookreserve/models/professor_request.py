import uuid
from datetime import datetime
from bookreserve.extensions import db

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_PARTIAL = "partial"
STATUS_REJECTED = "rejected"

REQUEST_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_PARTIAL, STATUS_REJECTED)


def _new_request_id() -> str:
    return uuid.uuid4().hex


class ProfessorRequest(db.Model):
    __tablename__ = "professor_requests"
    __table_args__ = (
        db.CheckConstraint("quantity_requested >= 1", name="ck_requests_quantity_positive"),
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'partial', 'rejected')",
            name="ck_requests_status",
        ),
    )

    id = db.Column(db.String(32), primary_key=True, default=_new_request_id)

    professor_id = db.Column(db.String(255), nullable=False, index=True)
    professor_email = db.Column(db.String(255), nullable=True, index=True)

    isbn = db.Column(db.String(13), db.ForeignKey("books.isbn"), nullable=False, index=True)

    quantity_requested = db.Column(db.Integer, nullable=False)
    quantity_approved = db.Column(db.Integer, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    rejection_reason = db.Column(db.String(1000), nullable=True)

    course_code = db.Column(db.String(50), nullable=True)
    course_name = db.Column(db.String(255), nullable=True)

    requested_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    processed_at = db.Column(db.DateTime, nullable=True)
    processed_by = db.Column(db.String(255), nullable=True)

    # at most one book; None when the row is gone
    book = db.relationship("Book", uselist=False, lazy="joined")

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING
