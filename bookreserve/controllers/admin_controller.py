# bookreserve/controllers/admin_controller.py

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from bookreserve.errors import ServiceError
from bookreserve.services.request_service import RequestService
from bookreserve.services.query_service import QueryService
from bookreserve.utils.decorators import role_required

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _decision(result):
    r = result.request
    return jsonify({
        "success": True,
        "message": result.message,
        "data": {
            "id": r.id,
            "status": r.status,
            "quantity_approved": r.quantity_approved,
            "rejection_reason": r.rejection_reason,
            "processed_at": r.processed_at.isoformat() if r.processed_at else None,
            "processed_by": r.processed_by,
        },
    })


@admin_bp.get("/books")
@jwt_required()
@role_required("admin")
def books_with_requests():
    try:
        data = QueryService.list_books_with_pending_counts(
            search=request.args.get("search"),
            sort=request.args.get("sort", "title"),
            order=request.args.get("order", "asc"),
        )
        return jsonify({"success": True, "data": data})
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@admin_bp.get("/requests")
@jwt_required()
@role_required("admin")
def all_requests():
    try:
        data = QueryService.list_requests_for_admin(
            status=request.args.get("status"),
            professor_email=request.args.get("professor_email"),
            isbn=request.args.get("isbn"),
        )
        return jsonify({"success": True, "data": data})
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@admin_bp.post("/requests/<string:request_id>/approve")
@jwt_required()
@role_required("admin")
def approve(request_id: str):
    try:
        return _decision(RequestService.approve(request_id, get_jwt_identity()))
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@admin_bp.post("/requests/<string:request_id>/partial")
@jwt_required()
@role_required("admin")
def partial(request_id: str):
    data = request.get_json(silent=True) or {}
    try:
        return _decision(RequestService.partial(request_id, get_jwt_identity(), data.get("quantity_approved")))
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@admin_bp.post("/requests/<string:request_id>/reject")
@jwt_required()
@role_required("admin")
def reject(request_id: str):
    data = request.get_json(silent=True) or {}
    try:
        return _decision(RequestService.reject(request_id, get_jwt_identity(), data.get("rejection_reason")))
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
