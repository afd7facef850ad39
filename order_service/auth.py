from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt, verify_jwt_in_request


def seller_required(fn):
    """Like jwt_required(), but the token must also carry role == "seller"."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if get_jwt().get("role") != "seller":
            return jsonify({"success": False, "message": "Not Authorized"}), 403
        return fn(*args, **kwargs)
    return wrapper
