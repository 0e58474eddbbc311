# backend/models/user.py
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from utils.mongo import fix

ROLES = ("student", "teacher")

PROFILE_FIELDS = [
    "phone", "university", "department", "academicYear",
    "participationType", "previousParticipation", "technicalSkills",
]


def new_user_doc(name, email, password, role="student", user_id=None,
                 username=None, generated_password="", **profile):
    now = datetime.utcnow()
    doc = {
        "name": name.strip(),
        "email": email.strip().lower(),
        "password": generate_password_hash(password),
        "role": role,
        "generatedPassword": generated_password,
        "createdAt": now,
        "updatedAt": now,
    }
    # sparse unique indexes, leave the key out instead of storing null
    if user_id:
        doc["userId"] = user_id
    if username:
        doc["username"] = username
    for field in PROFILE_FIELDS:
        doc[field] = str(profile.get(field) or "").strip()
    return doc


def check_password(user, raw):
    return bool(user) and check_password_hash(user.get("password", ""), raw)


def public_user(user):
    """User document without the password hash."""
    data = fix(user)
    data.pop("password", None)
    return data


def profile_view(user):
    return {
        "_id": str(user["_id"]),
        "name": user.get("name", ""),
        "email": user.get("email", ""),
        "role": user.get("role", ""),
    }


def password_row(user):
    return {
        "userId": user.get("userId", ""),
        "name": user.get("name", ""),
        "email": user.get("email", ""),
        "role": user.get("role", ""),
        "phone": user.get("phone", ""),
        "generatedPassword": user.get("generatedPassword", ""),
        "university": user.get("university", ""),
        "department": user.get("department", ""),
        "academicYear": user.get("academicYear", ""),
        "createdAt": fix(user.get("createdAt")),
    }
