# backend/utils/credentials.py
import re
import secrets
import string

from database import users_col

PASSWORD_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_random_password(length=8):
    return "".join(secrets.choice(PASSWORD_CHARS) for _ in range(length))


def generate_user_id(name, count=None):
    clean_name = re.sub(r"[^a-zA-Z0-9]", "", re.sub(r"\s+", "", name)).lower()
    random_num = 1000 + secrets.randbelow(9000)
    suffix = f"_{count}" if count else ""
    return f"{clean_name}{random_num}{suffix}"


def unique_user_id(name):
    user_id = generate_user_id(name)
    count = 1
    while users_col.find_one({"userId": user_id}):
        user_id = generate_user_id(name, count)
        count += 1
    return user_id


def unique_username(email):
    base = email.split("@")[0]
    username = base
    count = 1
    while users_col.find_one({"username": username}):
        username = f"{base}{count}"
        count += 1
    return username
