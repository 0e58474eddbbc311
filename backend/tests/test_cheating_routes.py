from unittest.mock import patch

import pytest
from pymongo.errors import DuplicateKeyError

import database
from models.cheating_log import clean_counters, clean_screenshots, severity


def log(client, headers, exam_id, **body):
    return client.post("/api/users/cheatingLogs", headers=headers, json={"examId": exam_id, **body})


def test_first_report_creates_log(client, student_headers, exam_id):
    resp = log(client, student_headers, exam_id, noFaceCount=1, cellPhoneCount=1)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["email"] == "sam@school.edu"
    assert body["username"] == "Sam Student"
    assert body["noFaceCount"] == 1
    assert body["multipleFaceCount"] == 0
    assert body["screenshots"] == []
    assert body["totalViolations"] == 2
    assert body["severity"] == "low"


def test_later_reports_update_same_log(client, student_headers, exam_id):
    log(client, student_headers, exam_id, noFaceCount=1,
        screenshots=[{"url": "https://cdn.example.com/1.png", "type": "noFace"}])
    resp = log(client, student_headers, exam_id, noFaceCount=3, prohibitedObjectCount=1,
               screenshots=["https://cdn.example.com/2.png"])

    body = resp.get_json()
    assert body["noFaceCount"] == 3
    assert body["prohibitedObjectCount"] == 1
    assert [s["url"] for s in body["screenshots"]] == [
        "https://cdn.example.com/1.png", "https://cdn.example.com/2.png",
    ]
    assert body["screenshots"][1]["type"] == "unknown"
    assert body["severity"] == "medium"
    assert database.cheating_logs_col.count_documents({"examId": exam_id}) == 1


def test_negative_counter_rejected(client, student_headers, exam_id):
    resp = log(client, student_headers, exam_id, noFaceCount=-1)
    assert resp.status_code == 400


def test_unknown_exam(client, student_headers):
    resp = log(client, student_headers, "64b000000000000000000000", noFaceCount=1)
    assert resp.status_code == 404


def test_teacher_lists_logs(client, teacher_headers, student_headers, exam_id):
    log(client, student_headers, exam_id, multipleFaceCount=6)

    resp = client.get(f"/api/users/cheatingLogs/{exam_id}", headers=teacher_headers)
    assert resp.status_code == 200
    rows = resp.get_json()
    assert len(rows) == 1
    assert rows[0]["severity"] == "high"

    assert client.get(f"/api/users/cheatingLogs/{exam_id}", headers=student_headers).status_code == 403


def test_clean_counters():
    assert clean_counters({"noFaceCount": "4"})["noFaceCount"] == 4
    assert clean_counters({})["cellPhoneCount"] == 0
    with pytest.raises(ValueError):
        clean_counters({"cellPhoneCount": 1.5})
    with pytest.raises(ValueError):
        clean_counters({"cellPhoneCount": True})


def test_clean_screenshots():
    assert clean_screenshots(None) == []
    with pytest.raises(ValueError):
        clean_screenshots("not-a-list")
    with pytest.raises(ValueError):
        clean_screenshots([{"type": "noFace"}])


@pytest.mark.parametrize("count,expected", [(0, "none"), (1, "low"), (3, "medium"), (5, "medium"), (6, "high")])
def test_severity(count, expected):
    assert severity(count) == expected


def test_log_unique_per_user_and_exam(app):
    database.cheating_logs_col.insert_one({"examId": "e1", "userId": "u1"})
    with pytest.raises(DuplicateKeyError):
        database.cheating_logs_col.insert_one({"examId": "e1", "userId": "u1"})


def test_report_recovers_from_insert_race(client, student, student_headers, exam_id):
    real_update = database.cheating_logs_col.update_one

    def racing_update(key, update, upsert=False):
        if upsert:
            database.cheating_logs_col.insert_one({**key, "noFaceCount": 1, "screenshots": []})
            raise DuplicateKeyError("E11000 duplicate key error")
        return real_update(key, update)

    with patch.object(database.cheating_logs_col, "update_one", side_effect=racing_update):
        resp = log(client, student_headers, exam_id, noFaceCount=4,
                   screenshots=["https://cdn.example.com/3.png"])

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["noFaceCount"] == 4
    assert len(body["screenshots"]) == 1
    assert database.cheating_logs_col.count_documents({"examId": exam_id}) == 1


def test_teacher_lists_logs_with_upper_case_id(client, teacher_headers, student_headers, exam_id):
    log(client, student_headers, exam_id, noFaceCount=1)
    resp = client.get(f"/api/users/cheatingLogs/{exam_id.upper()}", headers=teacher_headers)
    assert len(resp.get_json()) == 1
