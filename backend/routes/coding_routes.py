# backend/routes/coding_routes.py

from flask import Blueprint, request, jsonify, g, current_app
from pymongo.errors import DuplicateKeyError

from database import coding_questions_col, coding_submissions_col, users_col
from models.coding import LANGUAGES, new_coding_question_doc, submission_fields
from routes.exam_routes import find_exam
from utils.auth import token_required, teacher_required, current_user_id
from utils.code_runner import UnsupportedLanguage, run_code
from utils.mongo import to_object_id, id_str, fix, fix_many
from utils.payload import get_text

coding = Blueprint("coding", __name__)


# =====================================================
# CODING QUESTIONS
# =====================================================
@coding.post("/questions")
@teacher_required
def create_coding_question():
    data = request.get_json(silent=True) or {}

    exam_obj = find_exam(data.get("examId"))
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    try:
        text = get_text(data, "question")
        description = get_text(data, "description")
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if not text:
        return jsonify({"error": "question is required"}), 400

    doc = new_coding_question_doc(str(exam_obj["_id"]), text, description, current_user_id())
    coding_questions_col.insert_one(doc)
    return jsonify(fix(doc)), 201


@coding.get("/questions/exam/<exam_id>")
@token_required
def list_coding_questions(exam_id):
    rows = coding_questions_col.find({"examId": id_str(exam_id)}).sort("createdAt", 1)
    return jsonify(fix_many(rows)), 200


# =====================================================
# SUBMISSIONS
# =====================================================
@coding.post("/submit")
@token_required
def submit_code():
    data = request.get_json(silent=True) or {}

    oid = to_object_id(data.get("questionId"))
    question = coding_questions_col.find_one({"_id": oid}) if oid else None
    if not question:
        return jsonify({"error": "Coding question not found"}), 404

    code, language = data.get("code"), data.get("language")
    if not (code and isinstance(code, str) and language and isinstance(language, str)):
        return jsonify({"error": "code and language are required"}), 400

    fields = submission_fields(question, current_user_id(), data)
    key = {"questionId": fields["questionId"], "userId": fields["userId"]}
    try:
        coding_submissions_col.update_one(key, {"$set": fields}, upsert=True)
    except DuplicateKeyError:
        # a parallel first submit inserted it, this one replaces it
        coding_submissions_col.update_one(key, {"$set": fields})

    current_app.logger.info(
        "Coding submission by %s for question %s", g.current_user["email"], fields["questionId"]
    )
    return jsonify(fix(coding_submissions_col.find_one(key))), 201


@coding.get("/submissions/exam/<exam_id>")
@teacher_required
def list_submissions(exam_id):
    rows = []
    for sub in coding_submissions_col.find({"examId": id_str(exam_id)}).sort("submittedAt", -1):
        row = fix(sub)
        user_oid = to_object_id(sub.get("userId"))
        user = users_col.find_one({"_id": user_oid}, {"name": 1, "email": 1}) if user_oid else None
        row["name"] = user["name"] if user else "Unknown"
        row["email"] = user["email"] if user else ""
        rows.append(row)
    return jsonify(rows), 200


# =====================================================
# RUN CODE (DEVELOPMENT ONLY)
# =====================================================
@coding.post("/run")
@token_required
def run():
    if not current_app.config["CODE_EXECUTION_ENABLED"]:
        return jsonify({
            "error": "Code execution disabled in production for security",
            "note": "This feature is only available in development mode",
        }), 403

    data = request.get_json(silent=True) or {}
    language = data.get("language") or ""
    code = data.get("code") or ""
    if not isinstance(language, str) or not isinstance(code, str):
        return jsonify({"error": "code and language must be strings"}), 400
    language = language.lower()

    if not code:
        return jsonify({"error": "code is required"}), 400
    if language not in LANGUAGES:
        return jsonify({"error": f"language must be one of {', '.join(LANGUAGES)}"}), 400

    try:
        result = run_code(language, code, timeout=current_app.config["CODE_EXECUTION_TIMEOUT"])
    except UnsupportedLanguage as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(result), 200
