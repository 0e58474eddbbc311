# backend/routes/user_routes.py

from datetime import datetime
import io

import pandas as pd
from flask import Blueprint, request, jsonify, g, current_app, Response
from pymongo.errors import DuplicateKeyError
from werkzeug.security import generate_password_hash

from database import users_col
from models.user import ROLES, PROFILE_FIELDS, new_user_doc, public_user, password_row
from utils.auth import teacher_required
from utils.credentials import generate_random_password, unique_user_id, unique_username
from utils.csv_import import CSVImportError, read_rows, import_students, template_csv
from utils.mongo import to_object_id, fix_many
from utils.payload import get_text

users = Blueprint("users", __name__)

PASSWORD_COLUMNS = ["User ID", "Name", "Email", "Role", "Password", "Phone",
                    "University", "Department", "Created At"]


# =====================================================
# CREATE USER (TEACHER)
# =====================================================
@users.post("/")
@teacher_required
def create_user():
    data = request.get_json(silent=True) or {}

    try:
        name = get_text(data, "name")
        email = get_text(data, "email").lower()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    role = data.get("role") or "student"
    password = data.get("password")
    if password is not None and not isinstance(password, str):
        return jsonify({"error": "password must be a string"}), 400

    if not name or not email:
        return jsonify({"error": "name and email are required"}), 400
    if role not in ROLES:
        return jsonify({"error": f"role must be one of {', '.join(ROLES)}"}), 400
    if users_col.find_one({"email": email}):
        return jsonify({"error": "User Already Exists"}), 400

    plain_password = password or generate_random_password()
    doc = new_user_doc(
        name=name,
        email=email,
        password=plain_password,
        role=role,
        user_id=unique_user_id(name),
        username=unique_username(email),
        generated_password=plain_password,
        **{f: data.get(f) for f in PROFILE_FIELDS},
    )

    try:
        users_col.insert_one(doc)
    except DuplicateKeyError:
        return jsonify({"error": "User Already Exists"}), 400

    current_app.logger.info("Teacher %s created %s %s", g.current_user["email"], role, email)

    body = public_user(doc)
    body["message"] = "User Successfully created with role: " + role
    return jsonify(body), 201


# =====================================================
# LIST USERS (TEACHER)
# =====================================================
@users.get("/")
@teacher_required
def list_users():
    rows = users_col.find({}, {"password": 0}).sort("createdAt", -1)
    return jsonify(fix_many(rows)), 200


# =====================================================
# UPDATE / DELETE USER (TEACHER)
# =====================================================
@users.put("/<user_id>")
@teacher_required
def update_user(user_id):
    oid = to_object_id(user_id)
    user = users_col.find_one({"_id": oid}) if oid else None
    if not user:
        return jsonify({"error": "User Not Found"}), 404

    data = request.get_json(silent=True) or {}
    changes = {}

    try:
        name = get_text(data, "name")
        email = get_text(data, "email").lower()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if name:
        changes["name"] = name

    if email:
        if email != user["email"] and users_col.find_one({"email": email}):
            return jsonify({"error": "Email already in use"}), 400
        changes["email"] = email

    if data.get("role"):
        if data["role"] not in ROLES:
            return jsonify({"error": f"role must be one of {', '.join(ROLES)}"}), 400
        changes["role"] = data["role"]

    for field in PROFILE_FIELDS:
        if data.get(field):
            changes[field] = str(data[field]).strip()

    password = data.get("password")
    if password:
        if not isinstance(password, str):
            return jsonify({"error": "password must be a string"}), 400
        changes["password"] = generate_password_hash(password)
        changes["generatedPassword"] = password

    if changes:
        changes["updatedAt"] = datetime.utcnow()
        try:
            users_col.update_one({"_id": oid}, {"$set": changes})
        except DuplicateKeyError:
            return jsonify({"error": "Email already in use"}), 400
        current_app.logger.info("Teacher %s updated user %s", g.current_user["email"], user_id)

    updated = users_col.find_one({"_id": oid})
    body = public_user(updated)
    body.pop("generatedPassword", None)
    return jsonify(body), 200


@users.delete("/<user_id>")
@teacher_required
def delete_user(user_id):
    oid = to_object_id(user_id)
    user = users_col.find_one({"_id": oid}) if oid else None
    if not user:
        return jsonify({"error": "User not found"}), 404

    if user["_id"] == g.current_user["_id"]:
        return jsonify({"error": "Cannot delete your own account"}), 400

    users_col.delete_one({"_id": oid})
    current_app.logger.info("Teacher %s deleted user %s", g.current_user["email"], user["email"])
    return jsonify({"message": "User deleted successfully"}), 200


# =====================================================
# CSV UPLOAD (GOOGLE FORMS EXPORT)
# =====================================================
@users.post("/upload-csv")
@teacher_required
def upload_csv():
    csv_file = request.files.get("usersFile")
    if not csv_file or not csv_file.filename:
        return jsonify({"error": "No CSV file uploaded"}), 400

    if csv_file.mimetype != "text/csv" and not csv_file.filename.lower().endswith(".csv"):
        return jsonify({"error": "Only CSV files are allowed"}), 400

    raw = csv_file.read()
    if len(raw) > current_app.config["MAX_CSV_SIZE"]:
        return jsonify({"error": "CSV file is too large"}), 400

    try:
        rows = read_rows(raw)
    except CSVImportError as e:
        return jsonify({"error": str(e)}), 400

    report = import_students(rows)
    current_app.logger.info(
        "CSV import by %s: %s", g.current_user["email"], report["summary"]
    )
    return jsonify(report), 201


@users.get("/csv-template")
@teacher_required
def csv_template():
    return Response(
        template_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment;filename=hackathon_user_upload_template.csv"},
    )


# =====================================================
# GENERATED PASSWORDS (TEACHER)
# =====================================================
@users.get("/with-passwords")
@teacher_required
def users_with_passwords():
    rows = [password_row(u) for u in users_col.find({})]
    return jsonify({"users": rows}), 200


@users.get("/with-passwords/export")
@teacher_required
def export_users_with_passwords():
    rows = []
    for u in users_col.find({}).sort("createdAt", 1):
        created = u.get("createdAt")
        rows.append([
            u.get("userId", ""), u.get("name", ""), u.get("email", ""),
            u.get("role", ""), u.get("generatedPassword", ""), u.get("phone", ""),
            u.get("university", ""), u.get("department", ""),
            created.strftime("%Y-%m-%d") if created else "",
        ])

    output = io.StringIO()
    pd.DataFrame(rows, columns=PASSWORD_COLUMNS).to_csv(output, index=False)

    filename = f"users_with_passwords_{datetime.utcnow():%Y-%m-%d}.csv"
    return Response(
        output.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment;filename={filename}"},
    )
