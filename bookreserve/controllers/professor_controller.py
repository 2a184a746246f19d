from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity, get_jwt
from bookreserve.errors import ServiceError
from bookreserve.services.request_service import RequestService
from bookreserve.services.query_service import QueryService

professor_bp = Blueprint("professor", __name__, url_prefix="/api/professor")


@professor_bp.post("/request")
@jwt_required()
def create_request():
    data = request.get_json(silent=True) or {}
    try:
        req = RequestService.create_request(
            professor_id=get_jwt_identity(),
            isbn=data.get("isbn"),
            quantity=data.get("quantity_requested"),
            course_code=data.get("course_code"),
            course_name=data.get("course_name"),
            professor_email=(get_jwt() or {}).get("email"),
        )
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code

    title = req.book.title if req.book else req.isbn
    return jsonify({
        "success": True,
        "request_id": req.id,
        "message": f'Request submitted for "{title}"',
    }), 201


@professor_bp.get("/requests")
@jwt_required()
def my_requests():
    # always scoped to the caller
    return jsonify({"success": True, "data": QueryService.list_requests_for_professor(get_jwt_identity())})
