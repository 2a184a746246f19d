from sqlalchemy import update

from bookreserve.models.professor_request import ProfessorRequest, STATUS_PENDING
from bookreserve.extensions import db


class RequestRepo:
    @staticmethod
    def get(request_id: str):
        return db.session.get(ProfessorRequest, request_id)

    @staticmethod
    def current_status(request_id: str):
        return db.session.execute(
            db.select(ProfessorRequest.status).where(ProfessorRequest.id == request_id)
        ).scalar_one_or_none()

    @staticmethod
    def create(req: ProfessorRequest, commit: bool = True):
        db.session.add(req)
        if commit:
            db.session.commit()
        return req

    @staticmethod
    def mark_processed(request_id: str, **values) -> bool:
        """Leave ``pending`` exactly once: matches nothing if someone else got there first."""
        result = db.session.execute(
            update(ProfessorRequest)
            .where(ProfessorRequest.id == request_id, ProfessorRequest.status == STATUS_PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def list_by_professor(professor_id: str):
        return (
            ProfessorRequest.query
            .filter_by(professor_id=professor_id)
            .order_by(ProfessorRequest.requested_at.desc())
            .all()
        )

    @staticmethod
    def list_filtered(status=None, professor_email=None, isbn=None):
        q = ProfessorRequest.query
        if status:
            q = q.filter(ProfessorRequest.status == status)
        if professor_email:
            q = q.filter(ProfessorRequest.professor_email == professor_email)
        if isbn:
            q = q.filter(ProfessorRequest.isbn == isbn)
        return q.order_by(ProfessorRequest.requested_at.desc()).all()

    @staticmethod
    def list_pending_for_isbns(isbns):
        if not isbns:
            return []
        return (
            ProfessorRequest.query
            .filter(ProfessorRequest.status == STATUS_PENDING, ProfessorRequest.isbn.in_(list(isbns)))
            .order_by(ProfessorRequest.requested_at.asc())
            .all()
        )
