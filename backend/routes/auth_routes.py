# backend/routes/auth_routes.py

from datetime import datetime
from flask import Blueprint, request, jsonify, g, current_app
from pymongo.errors import DuplicateKeyError
from werkzeug.security import generate_password_hash

from database import users_col
from models.user import check_password, public_user, profile_view
from utils.auth import token_required
from utils.jwt_manager import create_token
from utils.payload import get_text

auth = Blueprint("auth", __name__)


def _set_token_cookie(resp, token, expires=None):
    cfg = current_app.config
    resp.set_cookie(
        cfg["JWT_COOKIE_NAME"],
        token,
        httponly=True,
        secure=cfg["IS_PRODUCTION"],
        samesite="None" if cfg["IS_PRODUCTION"] else "Lax",
        max_age=None if expires is not None else cfg["JWT_EXPIRE_DAYS"] * 24 * 3600,
        expires=expires,
    )


# =====================================================
# LOGIN (EMAIL OR GENERATED USER ID)
# =====================================================
@auth.post("/auth")
def login():
    data = request.get_json(silent=True) or {}
    login_value = data.get("login")
    password = data.get("password")

    if not isinstance(login_value, str) or not isinstance(password, str):
        return jsonify({"error": "Please provide login credentials and password"}), 400
    login_value = login_value.strip()
    if not login_value or not password:
        return jsonify({"error": "Please provide login credentials and password"}), 400

    user = users_col.find_one({"$or": [
        {"email": login_value.lower()},
        {"userId": login_value},
    ]})

    if not check_password(user, password):
        current_app.logger.warning("Failed login for %s", login_value)
        return jsonify({"error": "Invalid login credentials or password"}), 401

    token = create_token(user["_id"], user["role"])
    current_app.logger.info("User %s logged in as %s", user["email"], user["role"])

    body = public_user(user)
    body["token"] = token
    body["message"] = "User successfully logged in with role: " + user["role"]

    resp = jsonify(body)
    _set_token_cookie(resp, token)
    return resp, 201


@auth.post("/logout")
def logout():
    resp = jsonify({"message": "User logged out"})
    _set_token_cookie(resp, "", expires=0)
    return resp, 200


# =====================================================
# OWN PROFILE
# =====================================================
@auth.get("/profile")
@token_required
def get_profile():
    return jsonify(profile_view(g.current_user)), 200


@auth.put("/profile")
@token_required
def update_profile():
    data = request.get_json(silent=True) or {}
    user = g.current_user
    changes = {}

    try:
        name = get_text(data, "name")
        email = get_text(data, "email").lower()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    password = data.get("password") or ""
    if not isinstance(password, str):
        return jsonify({"error": "password must be a string"}), 400

    if name:
        changes["name"] = name

    if email and email != user["email"]:
        if users_col.find_one({"email": email, "_id": {"$ne": user["_id"]}}):
            return jsonify({"error": "Email already in use"}), 400
        changes["email"] = email

    if password:
        changes["password"] = generate_password_hash(password)
        # the issued password is no longer valid
        changes["generatedPassword"] = ""

    if changes:
        changes["updatedAt"] = datetime.utcnow()
        try:
            users_col.update_one({"_id": user["_id"]}, {"$set": changes})
        except DuplicateKeyError:
            return jsonify({"error": "Email already in use"}), 400
        current_app.logger.info("Profile updated for %s", user["email"])

    updated = users_col.find_one({"_id": user["_id"]})
    return jsonify(profile_view(updated)), 200
