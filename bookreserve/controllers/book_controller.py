# bookreserve/controllers/book_controller.py

from flask import Blueprint, request, jsonify
from bookreserve.errors import ServiceError
from bookreserve.services.book_service import BookService

book_bp = Blueprint("books", __name__, url_prefix="/api/books")


def _summary(b):
    return {
        "isbn": b.isbn,
        "title": b.title,
        "subtitle": b.subtitle,
        "authors": b.authors or [],
        "publisher": b.publisher,
        "published_date": b.published_date,
        "thumbnail_url": b.thumbnail_url,
        "quantity_available": b.quantity_available or 0,
    }


@book_bp.get("/search")
def search_books():
    try:
        books = BookService.search_books(request.args.get("q"))
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code

    results = [_summary(b) for b in books]
    return jsonify({
        "success": True,
        "query": (request.args.get("q") or "").strip(),
        "count": len(results),
        "results": results,
    })


@book_bp.get("/<string:isbn>")
def get_book(isbn: str):
    try:
        b = BookService.get_book(isbn)
        return jsonify({"success": True, "data": _summary(b)})
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
