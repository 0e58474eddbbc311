import os

os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB_NAME", "cyberarena_test")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("ENVIRONMENT", "development")

import mongomock
import pytest

# database.py builds its MongoClient at import time, so the patch has to be
# live before anything imports it
_mongo_patch = mongomock.patch(servers=(("localhost", 27017),), on_new="create")
_mongo_patch.start()

import database  # noqa: E402
from app import create_app  # noqa: E402
from models.user import new_user_doc  # noqa: E402
from utils.jwt_manager import create_token  # noqa: E402


def pytest_unconfigure(config):
    _mongo_patch.stop()


@pytest.fixture
def app():
    app = create_app()
    app.config["TESTING"] = True
    # tokens are signed with the app's SECRET_KEY, fixtures need the context too
    with app.app_context():
        yield app
    for name in database.db.list_collection_names():
        database.db.drop_collection(name)


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(role="student", name="Test User", email=None, password="secret123", **extra):
    email = email or f"{name.replace(' ', '').lower()}@example.com"
    doc = new_user_doc(
        name=name,
        email=email,
        password=password,
        role=role,
        user_id=extra.pop("user_id", None),
        username=email.split("@")[0],
        generated_password=extra.pop("generated_password", ""),
        **extra,
    )
    database.users_col.insert_one(doc)
    return doc


def auth_header(user):
    return {"Authorization": f"Bearer {create_token(user['_id'], user['role'])}"}


@pytest.fixture
def teacher(app):
    return make_user(role="teacher", name="Ada Teacher", email="ada@school.edu")


@pytest.fixture
def student(app):
    return make_user(role="student", name="Sam Student", email="sam@school.edu", user_id="samstudent1234")


@pytest.fixture
def teacher_headers(teacher):
    return auth_header(teacher)


@pytest.fixture
def student_headers(student):
    return auth_header(student)


@pytest.fixture
def exam_id(client, teacher_headers):
    resp = client.post("/api/users/exam", headers=teacher_headers, json={
        "examName": "Network Security 101",
        "totalQuestions": 2,
        "duration": 30,
        "liveDate": "2020-01-01T09:00:00Z",
        "deadDate": "2099-01-01T09:00:00Z",
    })
    assert resp.status_code == 201
    return resp.get_json()["_id"]


@pytest.fixture
def mcq_questions(client, teacher_headers, exam_id):
    """Two questions, the first worth 2 marks. Returns (question id, correct option id, wrong option id)."""
    created = []
    for text, marks in (("What does TLS stand for?", 2), ("Default SSH port?", None)):
        payload = {
            "examId": exam_id,
            "question": text,
            "options": [
                {"optionText": "right", "isCorrect": True},
                {"optionText": "wrong", "isCorrect": False},
            ],
        }
        if marks:
            payload["ansmarks"] = marks
        resp = client.post("/api/users/exam/questions", headers=teacher_headers, json=payload)
        assert resp.status_code == 201
        q = resp.get_json()
        correct = next(o["_id"] for o in q["options"] if o["isCorrect"])
        wrong = next(o["_id"] for o in q["options"] if not o["isCorrect"])
        created.append((q["_id"], correct, wrong))
    return created
