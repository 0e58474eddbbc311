# backend/utils/csv_import.py
"""Bulk student import from a Google Forms csv export."""
import io
import re

import pandas as pd
from pymongo.errors import PyMongoError

from database import users_col
from models.user import new_user_doc
from utils.credentials import generate_random_password, unique_user_id, unique_username

# header (lowercased, whitespace removed) -> user field
COLUMN_MAP = {
    "fullname": "name",
    "emailaddress": "email",
    "phonenumber(whatsapp)": "phone",
    "university/institution": "university",
    "department/program": "department",
    "academicyear/experiencelevel": "academicYear",
    "academicyear": "academicYear",
}
REQUIRED = ("name", "email", "phone")
PREVIEW_LIMIT = 10

TEMPLATE_COLUMNS = [
    "Full Name", "Email Address", "Phone Number (WhatsApp)",
    "University/Institution", "Department/Program", "Academic Year",
]


class CSVImportError(ValueError):
    pass


def _normalize_header(header):
    return re.sub(r"\s+", "", str(header)).lower()


def read_rows(raw):
    """Parse csv bytes into user dicts, dropping rows without name/email/phone."""
    try:
        df = pd.read_csv(io.BytesIO(raw), dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        raise CSVImportError("CSV file is empty")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise CSVImportError(f"CSV parsing error: {e}")

    columns = {}
    for col in df.columns:
        field = COLUMN_MAP.get(_normalize_header(col))
        if field and field not in columns:
            columns[field] = col

    rows = []
    for record in df.to_dict(orient="records"):
        row = {field: str(record.get(col, "")).strip() for field, col in columns.items()}
        if not all(row.get(key) for key in REQUIRED):
            continue
        row["email"] = row["email"].lower()
        rows.append(row)
    return rows


def import_students(rows):
    created, skipped, errors = [], [], []

    for row in rows:
        if users_col.find_one({"email": row["email"]}):
            skipped.append(f"User with email {row['email']} already exists")
            continue

        try:
            plain_password = generate_random_password()
            doc = new_user_doc(
                name=row["name"],
                email=row["email"],
                password=plain_password,
                role="student",
                user_id=unique_user_id(row["name"]),
                username=unique_username(row["email"]),
                generated_password=plain_password,
                phone=row.get("phone"),
                university=row.get("university"),
                department=row.get("department"),
                academicYear=row.get("academicYear"),
            )
            users_col.insert_one(doc)
        except PyMongoError as e:
            errors.append(f"Error creating user {row['email']}: {e}")
            continue

        created.append({
            "userId": doc["userId"],
            "username": doc["username"],
            "name": doc["name"],
            "email": doc["email"],
            "role": doc["role"],
            "phone": doc["phone"],
            "generatedPassword": plain_password,
            "university": doc["university"],
            "department": doc["department"],
            "academicYear": doc["academicYear"],
        })

    report = {
        "message": "CSV Processing Complete",
        "summary": {
            "totalRecords": len(rows),
            "successCount": len(created),
            "skippedCount": len(skipped),
            "errorCount": len(errors),
        },
        "createdUsers": created[:PREVIEW_LIMIT],
        "skippedUsers": skipped[:PREVIEW_LIMIT],
    }
    if errors:
        report["errors"] = errors
    return report


def template_csv():
    sample = [["John Doe", "john@example.com", "03001234567", "Example University", "Computer Science", "3rd Year"]]
    return pd.DataFrame(sample, columns=TEMPLATE_COLUMNS).to_csv(index=False)
