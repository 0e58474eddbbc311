# backend/routes/exam_routes.py

from datetime import datetime
from flask import Blueprint, request, jsonify, g, current_app

from database import (
    exams_col, questions_col, coding_questions_col, coding_submissions_col,
    results_col, cheating_logs_col,
)
from models.exam import clean_exam_payload, check_window, new_exam_doc, serialize_exam
from models.question import clean_options, clean_marks, new_question_doc, serialize_question
from utils.auth import token_required, teacher_required, is_teacher, current_user_id
from utils.mongo import to_object_id
from utils.payload import get_text

exam = Blueprint("exam", __name__)


def find_exam(exam_id):
    oid = to_object_id(exam_id)
    return exams_col.find_one({"_id": oid}) if oid else None


# =====================================================
# CREATE EXAM
# =====================================================
@exam.post("/exam")
@teacher_required
def create_exam():
    data = request.get_json(silent=True) or {}
    try:
        fields = clean_exam_payload(data)
        check_window(fields.get("liveDate"), fields.get("deadDate"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    doc = new_exam_doc(fields, current_user_id())
    exams_col.insert_one(doc)
    current_app.logger.info("Exam '%s' created by %s", doc["examName"], g.current_user["email"])

    return jsonify(serialize_exam(doc)), 201


# =====================================================
# LIST / GET EXAMS
# =====================================================
@exam.get("/exam")
@token_required
def list_exams():
    rows = exams_col.find().sort("createdAt", -1)
    return jsonify([serialize_exam(e) for e in rows]), 200


@exam.get("/exam/<exam_id>")
@token_required
def get_exam(exam_id):
    exam_obj = find_exam(exam_id)
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404
    return jsonify(serialize_exam(exam_obj)), 200


# =====================================================
# UPDATE / DELETE EXAM
# =====================================================
@exam.put("/exam/<exam_id>")
@teacher_required
def update_exam(exam_id):
    exam_obj = find_exam(exam_id)
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    data = request.get_json(silent=True) or {}
    try:
        fields = clean_exam_payload(data, partial=True)
        check_window(
            fields.get("liveDate", exam_obj.get("liveDate")),
            fields.get("deadDate", exam_obj.get("deadDate")),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if fields:
        fields["updatedAt"] = datetime.utcnow()
        exams_col.update_one({"_id": exam_obj["_id"]}, {"$set": fields})

    return jsonify(serialize_exam(exams_col.find_one({"_id": exam_obj["_id"]}))), 200


@exam.delete("/exam/<exam_id>")
@teacher_required
def delete_exam(exam_id):
    exam_obj = find_exam(exam_id)
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    key = {"examId": str(exam_obj["_id"])}
    questions_col.delete_many(key)
    coding_questions_col.delete_many(key)
    coding_submissions_col.delete_many(key)
    results_col.delete_many(key)
    cheating_logs_col.delete_many(key)
    exams_col.delete_one({"_id": exam_obj["_id"]})

    current_app.logger.info("Exam %s deleted by %s", exam_id, g.current_user["email"])
    return jsonify({"message": "Exam deleted successfully"}), 200


# =====================================================
# MCQ QUESTIONS
# =====================================================
@exam.post("/exam/questions")
@teacher_required
def add_question():
    data = request.get_json(silent=True) or {}

    exam_obj = find_exam(data.get("examId"))
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    try:
        text = get_text(data, "question")
        if not text:
            raise ValueError("question is required")
        options = clean_options(data.get("options"))
        marks = clean_marks(data.get("ansmarks"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    doc = new_question_doc(str(exam_obj["_id"]), text, options, marks, current_user_id())
    questions_col.insert_one(doc)

    return jsonify(serialize_question(doc, reveal_answer=True)), 201


@exam.get("/exam/questions/<exam_id>")
@token_required
def list_questions(exam_id):
    exam_obj = find_exam(exam_id)
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    reveal = is_teacher()
    rows = questions_col.find({"examId": str(exam_obj["_id"])}).sort("createdAt", 1)
    return jsonify([serialize_question(q, reveal_answer=reveal) for q in rows]), 200


@exam.put("/exam/questions/<question_id>")
@teacher_required
def update_question(question_id):
    oid = to_object_id(question_id)
    question = questions_col.find_one({"_id": oid}) if oid else None
    if not question:
        return jsonify({"error": "Question not found"}), 404

    data = request.get_json(silent=True) or {}
    changes = {}
    try:
        if "question" in data:
            text = get_text(data, "question")
            if not text:
                raise ValueError("question is required")
            changes["question"] = text
        if "options" in data:
            changes["options"] = clean_options(data["options"])
        if "ansmarks" in data:
            changes["ansmarks"] = clean_marks(data["ansmarks"])
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if changes:
        questions_col.update_one({"_id": oid}, {"$set": changes})

    updated = questions_col.find_one({"_id": oid})
    return jsonify(serialize_question(updated, reveal_answer=True)), 200


@exam.delete("/exam/questions/<question_id>")
@teacher_required
def delete_question(question_id):
    oid = to_object_id(question_id)
    if not oid or questions_col.delete_one({"_id": oid}).deleted_count == 0:
        return jsonify({"error": "Question not found"}), 404
    return jsonify({"message": "Question deleted successfully"}), 200
