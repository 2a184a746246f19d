from functools import wraps
from flask import current_app, jsonify, request
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity


def role_required(*roles):
    """Reject callers whose token ``role`` claim is not one of ``roles`` (403)."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = (get_jwt() or {}).get("role")
            if role not in roles:
                current_app.logger.warning(
                    "Access blocked: user=%s role=%s path=%s", get_jwt_identity(), role, request.path
                )
                return jsonify({
                    "success": False,
                    "code": "forbidden",
                    "message": f"Forbidden: {' or '.join(roles)} access required",
                }), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
