# bookreserve/controllers/scan_controller.py

from flask import Blueprint, request, jsonify
from bookreserve.errors import ServiceError
from bookreserve.services.scan_service import ScanService

scan_bp = Blueprint("scan", __name__, url_prefix="/api/scan")


@scan_bp.post("")
def record_scan():
    # scanner devices post here without a user token
    data = request.get_json(silent=True) or {}
    try:
        result = ScanService.record_scan(data.get("isbn"), data.get("scanner_id"))
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code

    body = {
        "success": True,
        "scan_id": result.scan_id,
        "book": result.book.to_dict() if result.book else None,
    }
    if result.warning:
        body["warning"] = result.warning
    return jsonify(body)


@scan_bp.get("")
def describe():
    return jsonify({
        "message": "ISBN Scanner API",
        "version": "1.0.0",
        "endpoints": {
            "scan": {
                "method": "POST",
                "path": "/api/scan",
                "body": {"isbn": "string (required)", "scanner_id": "string (optional)"},
            }
        },
    })
