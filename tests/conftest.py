import json
from datetime import datetime

import pytest
from flask_jwt_extended import create_access_token

from bookreserve import create_app
from bookreserve.config import Config
from bookreserve.extensions import db
from bookreserve.models.book import Book
from bookreserve.services.request_service import RequestService

ISBN_A = "9780140328721"
ISBN_B = "9780306406157"
ISBN_C = "9780262033848"


class FakeResponse:
    def __init__(self, payload=None, status_code=200, reason="OK", bad_json=False, chunks=None):
        self.status_code = status_code
        self.reason = reason
        if chunks is not None:
            self._chunks = chunks
        elif bad_json:
            self._chunks = [b"<html>not json</html>"]
        else:
            self._chunks = [json.dumps(payload).encode()]
        self.closed = False

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def iter_content(self, chunk_size=1):
        yield from self._chunks

    def close(self):
        self.closed = True


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length-for-hs256"
    CATALOG_ENABLED = False
    RESERVATION_RETRY_DELAYS = (0, 0, 0)
    LOG_LEVEL = "DEBUG"


@pytest.fixture()
def app(tmp_path):
    cfg = type("FileTestConfig", (TestConfig,), {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'bookreserve.db'}",
    })
    app = create_app(cfg)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_book(app):
    def _make(isbn=ISBN_A, quantity=5, title="Fantastic Mr Fox", authors=None):
        now = datetime.utcnow()
        book = Book(
            isbn=isbn,
            title=title,
            authors=authors if authors is not None else ["Roald Dahl"],
            categories=[],
            quantity_available=quantity,
            scan_count=quantity,
            first_scanned_at=now,
            last_scanned_at=now,
        )
        db.session.add(book)
        db.session.commit()
        return book
    return _make


@pytest.fixture()
def make_request(app):
    def _make(isbn=ISBN_A, quantity=1, professor_id="prof-1", email="prof1@uni.edu", **kwargs):
        return RequestService.create_request(
            professor_id=professor_id,
            isbn=isbn,
            quantity=quantity,
            professor_email=email,
            **kwargs,
        )
    return _make


@pytest.fixture()
def auth_header(app):
    def _header(user_id="prof-1", role="professor", email=None):
        token = create_access_token(
            identity=user_id,
            additional_claims={"role": role, "email": email or f"{user_id}@uni.edu"},
        )
        return {"Authorization": f"Bearer {token}"}
    return _header
