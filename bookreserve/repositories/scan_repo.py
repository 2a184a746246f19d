from bookreserve.models.scan_event import ScanEvent
from bookreserve.extensions import db


class ScanRepo:
    @staticmethod
    def log(event: ScanEvent):
        db.session.add(event)
        db.session.commit()
        return event

    @staticmethod
    def count_for_isbn(isbn: str) -> int:
        return ScanEvent.query.filter_by(isbn=isbn).count()
