import io
import re
from unittest.mock import patch

from pymongo.errors import DuplicateKeyError, PyMongoError

import database

GOOGLE_FORMS_CSV = (
    "Timestamp,Full Name,Email Address,Phone Number (WhatsApp) ,University / Institution ,"
    "Department / Program ,Academic Year / Experience Level \n"
    "2024/01/01,Ali Khan,ALI@Example.com,0300 1234567,FAST,CS,3rd Year\n"
    "2024/01/01,Sara Ahmed,sara@example.com,+92 321 7654321,NUST,EE,2nd Year\n"
    "2024/01/01,No Phone,nophone@example.com,,LUMS,BBA,1st Year\n"
    "2024/01/01,Sam Again,sam@school.edu,03111111111,FAST,CS,4th Year\n"
)


def upload(client, headers, content, filename="users.csv", content_type="text/csv"):
    data = {"usersFile": (io.BytesIO(content.encode()), filename, content_type)}
    return client.post("/api/users/upload-csv", headers=headers, data=data,
                       content_type="multipart/form-data")


# =====================================================
# CRUD
# =====================================================
def test_create_user_generates_credentials(client, teacher_headers):
    resp = client.post("/api/users/", headers=teacher_headers,
                       json={"name": "Mary Jane", "email": "mj@example.com", "phone": "0300"})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["role"] == "student"
    assert re.fullmatch(r"maryjane\d{4}", body["userId"])
    assert body["username"] == "mj"
    assert len(body["generatedPassword"]) == 8
    assert "password" not in body

    login = client.post("/api/users/auth",
                        json={"login": body["userId"], "password": body["generatedPassword"]})
    assert login.status_code == 201


def test_create_user_with_explicit_password(client, teacher_headers):
    resp = client.post("/api/users/", headers=teacher_headers, json={
        "name": "T Two", "email": "t2@example.com", "password": "chosen99", "role": "teacher",
    })
    assert resp.status_code == 201
    assert resp.get_json()["generatedPassword"] == "chosen99"


def test_create_user_duplicate_email(client, teacher_headers, student):
    resp = client.post("/api/users/", headers=teacher_headers,
                       json={"name": "Dup", "email": "SAM@school.edu"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "User Already Exists"


def test_create_user_bad_role(client, teacher_headers):
    resp = client.post("/api/users/", headers=teacher_headers,
                       json={"name": "X", "email": "x@example.com", "role": "admin"})
    assert resp.status_code == 400


def test_username_collision_gets_suffix(client, teacher_headers, student):
    resp = client.post("/api/users/", headers=teacher_headers,
                       json={"name": "Other Sam", "email": "sam@other.org"})
    assert resp.get_json()["username"] == "sam1"


def test_student_cannot_manage_users(client, student_headers):
    assert client.get("/api/users/", headers=student_headers).status_code == 403
    assert client.post("/api/users/", headers=student_headers,
                       json={"name": "x", "email": "x@x.com"}).status_code == 403
    assert client.get("/api/users/with-passwords", headers=student_headers).status_code == 403


def test_list_users_hides_hashes(client, teacher_headers, student):
    resp = client.get("/api/users/", headers=teacher_headers)
    assert resp.status_code == 200
    users = resp.get_json()
    assert len(users) == 2
    assert all("password" not in u for u in users)


def test_update_user(client, teacher_headers, student):
    resp = client.put(f"/api/users/{student['_id']}", headers=teacher_headers,
                      json={"department": "Cyber", "password": "reset123"})
    assert resp.status_code == 200
    assert resp.get_json()["department"] == "Cyber"

    stored = database.users_col.find_one({"_id": student["_id"]})
    assert stored["generatedPassword"] == "reset123"


def test_update_unknown_user(client, teacher_headers):
    resp = client.put("/api/users/64b000000000000000000000", headers=teacher_headers, json={"name": "x"})
    assert resp.status_code == 404
    resp = client.put("/api/users/not-an-id", headers=teacher_headers, json={"name": "x"})
    assert resp.status_code == 404


def test_delete_user(client, teacher_headers, student):
    resp = client.delete(f"/api/users/{student['_id']}", headers=teacher_headers)
    assert resp.status_code == 200
    assert database.users_col.find_one({"_id": student["_id"]}) is None


def test_cannot_delete_self(client, teacher, teacher_headers):
    resp = client.delete(f"/api/users/{teacher['_id']}", headers=teacher_headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Cannot delete your own account"


# =====================================================
# CSV IMPORT
# =====================================================
def test_csv_import(client, teacher_headers, student):
    resp = upload(client, teacher_headers, GOOGLE_FORMS_CSV)
    assert resp.status_code == 201
    body = resp.get_json()

    # row without a phone number is dropped before processing
    assert body["summary"] == {"totalRecords": 3, "successCount": 2, "skippedCount": 1, "errorCount": 0}
    assert body["skippedUsers"] == ["User with email sam@school.edu already exists"]
    assert "errors" not in body

    ali = next(u for u in body["createdUsers"] if u["name"] == "Ali Khan")
    assert ali["email"] == "ali@example.com"
    assert ali["phone"] == "0300 1234567"
    assert ali["university"] == "FAST"
    assert ali["academicYear"] == "3rd Year"
    assert ali["role"] == "student"
    assert re.fullmatch(r"alikhan\d{4}", ali["userId"])

    stored = database.users_col.find_one({"email": "ali@example.com"})
    assert stored["generatedPassword"] == ali["generatedPassword"]
    assert stored["password"] != ali["generatedPassword"]


def test_csv_import_template_headers(client, teacher_headers):
    content = (
        "Full Name,Email Address,Phone Number (WhatsApp),University/Institution,Department/Program,Academic Year\n"
        "Zed Zee,zed@example.com,03001112223,UET,ME,1st Year\n"
    )
    body = upload(client, teacher_headers, content).get_json()
    assert body["summary"]["successCount"] == 1
    assert body["createdUsers"][0]["department"] == "ME"


def test_csv_import_rejects_non_csv(client, teacher_headers):
    resp = upload(client, teacher_headers, "hello", filename="users.txt", content_type="text/plain")
    assert resp.status_code == 400


def test_csv_import_requires_file(client, teacher_headers):
    resp = client.post("/api/users/upload-csv", headers=teacher_headers, data={},
                       content_type="multipart/form-data")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "No CSV file uploaded"


def test_csv_import_empty_file(client, teacher_headers):
    resp = upload(client, teacher_headers, "")
    assert resp.status_code == 400


def test_csv_template(client, teacher_headers):
    resp = client.get("/api/users/csv-template", headers=teacher_headers)
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert resp.get_data(as_text=True).startswith("Full Name,Email Address,Phone Number (WhatsApp)")


# =====================================================
# GENERATED PASSWORDS
# =====================================================
def test_users_with_passwords(client, teacher_headers):
    client.post("/api/users/", headers=teacher_headers,
                json={"name": "Pat", "email": "pat@example.com", "password": "pw123456"})
    resp = client.get("/api/users/with-passwords", headers=teacher_headers)
    assert resp.status_code == 200
    pat = next(u for u in resp.get_json()["users"] if u["email"] == "pat@example.com")
    assert pat["generatedPassword"] == "pw123456"


def test_export_users_with_passwords(client, teacher_headers):
    client.post("/api/users/", headers=teacher_headers,
                json={"name": "Pat", "email": "pat@example.com", "password": "pw123456"})
    resp = client.get("/api/users/with-passwords/export", headers=teacher_headers)
    assert resp.status_code == 200
    assert "users_with_passwords_" in resp.headers["Content-Disposition"]
    lines = resp.get_data(as_text=True).strip().splitlines()
    assert lines[0] == "User ID,Name,Email,Role,Password,Phone,University,Department,Created At"
    assert any("pat@example.com" in line and "pw123456" in line for line in lines[1:])


# =====================================================
# WRITE FAILURES
# =====================================================
def test_create_user_email_taken_during_insert(client, teacher_headers):
    with patch.object(database.users_col, "insert_one",
                      side_effect=DuplicateKeyError("E11000 duplicate key error")):
        resp = client.post("/api/users/", headers=teacher_headers,
                           json={"name": "Racer", "email": "racer@example.com"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "User Already Exists"


def test_update_user_email_taken_during_write(client, teacher_headers, student):
    with patch.object(database.users_col, "update_one",
                      side_effect=DuplicateKeyError("E11000 duplicate key error")):
        resp = client.put(f"/api/users/{student['_id']}", headers=teacher_headers,
                          json={"email": "taken@example.com"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Email already in use"


def test_create_user_rejects_non_string_fields(client, teacher_headers):
    assert client.post("/api/users/", headers=teacher_headers,
                       json={"name": 123, "email": "n@example.com"}).status_code == 400
    assert client.post("/api/users/", headers=teacher_headers,
                       json={"name": "N", "email": "n@example.com", "password": 123}).status_code == 400


def test_update_user_rejects_non_string_email(client, teacher_headers, student):
    resp = client.put(f"/api/users/{student['_id']}", headers=teacher_headers, json={"email": ["a@b.c"]})
    assert resp.status_code == 400


def test_csv_import_too_large(app, client, teacher_headers):
    app.config["MAX_CSV_SIZE"] = 10
    resp = upload(client, teacher_headers, GOOGLE_FORMS_CSV)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "CSV file is too large"
    assert database.users_col.count_documents({"role": "student"}) == 0


def test_csv_import_reports_row_errors(client, teacher_headers):
    content = (
        "Full Name,Email Address,Phone Number (WhatsApp)\n"
        "Ali Khan,ali@example.com,03001234567\n"
    )
    with patch.object(database.users_col, "insert_one", side_effect=PyMongoError("write failed")):
        body = upload(client, teacher_headers, content).get_json()

    assert body["summary"] == {"totalRecords": 1, "successCount": 0, "skippedCount": 0, "errorCount": 1}
    assert body["errors"] == ["Error creating user ali@example.com: write failed"]
    assert body["createdUsers"] == []
