# backend/utils/auth.py
from functools import wraps

import jwt
from flask import request, jsonify, g, current_app

from database import users_col
from utils.jwt_manager import decode_token
from utils.mongo import to_object_id


def get_request_token(req):
    header = req.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header.split(" ", 1)[1].strip()
    return req.cookies.get(current_app.config["JWT_COOKIE_NAME"], "")


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = get_request_token(request)
        if not token:
            current_app.logger.warning("Token missing for %s", request.path)
            return jsonify({"error": "Not authorized, no token"}), 401

        try:
            payload = decode_token(token)
        except jwt.ExpiredSignatureError:
            current_app.logger.info("Expired token on %s", request.path)
            return jsonify({"error": "Not authorized, token expired"}), 401
        except jwt.InvalidTokenError as e:
            current_app.logger.warning("Invalid token on %s: %s", request.path, e)
            return jsonify({"error": "Not authorized, token failed"}), 401

        user_oid = to_object_id(payload.get("user_id"))
        user = users_col.find_one({"_id": user_oid}) if user_oid else None
        if not user:
            current_app.logger.warning("Token user %s not found", payload.get("user_id"))
            return jsonify({"error": "Not authorized, user not found"}), 401

        g.current_user = user
        return f(*args, **kwargs)
    return decorated


def teacher_required(f):
    @wraps(f)
    @token_required
    def decorated(*args, **kwargs):
        if g.current_user.get("role") != "teacher":
            current_app.logger.warning(
                "Teacher action denied for %s on %s",
                g.current_user.get("email"), request.path,
            )
            return jsonify({"error": "Not authorized as teacher"}), 403
        return f(*args, **kwargs)
    return decorated


def is_teacher():
    return g.current_user.get("role") == "teacher"


def current_user_id():
    return str(g.current_user["_id"])
