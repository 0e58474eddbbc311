# backend/routes/result_routes.py

import io
from flask import Blueprint, jsonify, request, send_file, g, current_app
import pandas as pd
from pymongo.errors import DuplicateKeyError

from database import (
    results_col, questions_col, exams_col, users_col,
    coding_questions_col, coding_submissions_col,
)
from models.coding import submission_summary
from models.result import score_answers, new_result_doc, grading_update, summarize
from routes.exam_routes import find_exam
from utils.auth import token_required, teacher_required, is_teacher, current_user_id
from utils.mongo import to_object_id, id_str, fix

result = Blueprint("result", __name__)


# =====================================================
# HELPERS
# =====================================================
def _user_meta(user_id):
    oid = to_object_id(user_id)
    user = users_col.find_one({"_id": oid}, {"name": 1, "email": 1}) if oid else None
    if not user:
        return {"_id": user_id, "name": "Unknown", "email": ""}
    return {"_id": str(user["_id"]), "name": user.get("name", ""), "email": user.get("email", "")}


def _coding_submissions(exam_id, user_id):
    subs = list(coding_submissions_col.find({"examId": exam_id, "userId": user_id}))
    if not subs:
        return []

    question_ids = [to_object_id(s["questionId"]) for s in subs]
    texts = {
        str(q["_id"]): q.get("question", "")
        for q in coding_questions_col.find({"_id": {"$in": [q for q in question_ids if q]}})
    }
    return [submission_summary(texts.get(s["questionId"], ""), s) for s in subs]


def _with_details(doc, exam_names=None):
    row = fix(doc)
    row["user"] = _user_meta(doc["userId"])
    row["codingSubmissions"] = _coding_submissions(doc["examId"], doc["userId"])
    if exam_names is not None:
        row["examName"] = exam_names.get(doc["examId"], "Unknown Exam")
    return row


def _find_result(result_id):
    oid = to_object_id(result_id)
    return results_col.find_one({"_id": oid}) if oid else None


def _can_view(doc):
    return is_teacher() or doc["userId"] == current_user_id()


# =====================================================
# SAVE RESULT (STUDENT SUBMITS EXAM)
# =====================================================
@result.post("/results")
@token_required
def save_result():
    data = request.get_json(silent=True) or {}
    exam_id = data.get("examId")
    answers = data.get("answers")

    if not exam_id or answers is None:
        return jsonify({"error": "Please provide examId and answers"}), 400
    if not isinstance(answers, dict):
        return jsonify({"error": "answers must be an object of questionId -> optionId"}), 400

    exam_obj = find_exam(exam_id)
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    exam_id = str(exam_obj["_id"])
    user_id = current_user_id()
    if results_col.find_one({"examId": exam_id, "userId": user_id}):
        return jsonify({"error": "Result already submitted for this exam"}), 400

    questions = list(questions_col.find({"examId": exam_id}))
    score = score_answers(questions, answers)

    doc = new_result_doc(exam_id, user_id, answers, score)
    try:
        results_col.insert_one(doc)
    except DuplicateKeyError:
        return jsonify({"error": "Result already submitted for this exam"}), 400

    current_app.logger.info(
        "Result saved for exam %s by %s: %s/%s correct",
        exam_id, g.current_user["email"], score["correctAnswers"], score["totalQuestions"],
    )
    return jsonify({"success": True, "data": fix(doc)}), 201


# =====================================================
# RESULTS FOR ONE EXAM (TEACHER)
# =====================================================
@result.get("/results/exam/<exam_id>")
@teacher_required
def results_by_exam(exam_id):
    rows = [_with_details(r) for r in results_col.find({"examId": id_str(exam_id)}).sort("createdAt", -1)]
    return jsonify({"success": True, "data": rows, "summary": summarize(rows)}), 200


# =====================================================
# OWN RESULTS (STUDENT)
# =====================================================
@result.get("/results/user")
@token_required
def user_results():
    query = {"userId": current_user_id(), "showToStudent": True}
    rows = [_with_details(r) for r in results_col.find(query).sort("createdAt", -1)]
    return jsonify({"success": True, "data": rows}), 200


# =====================================================
# ALL RESULTS (TEACHER)
# =====================================================
@result.get("/results/all")
@teacher_required
def all_results():
    exam_names = {str(e["_id"]): e.get("examName", "") for e in exams_col.find({}, {"examName": 1})}
    rows = [_with_details(r, exam_names) for r in results_col.find().sort("createdAt", -1)]
    return jsonify({"success": True, "data": rows, "summary": summarize(rows)}), 200


# =====================================================
# SINGLE RESULT
# =====================================================
@result.get("/results/<result_id>")
@token_required
def get_result(result_id):
    doc = _find_result(result_id)
    if not doc:
        return jsonify({"error": "Result not found"}), 404
    if not _can_view(doc):
        return jsonify({"error": "Not authorized to view this result"}), 403
    return jsonify({"success": True, "data": _with_details(doc)}), 200


@result.put("/results/<result_id>")
@teacher_required
def update_result(result_id):
    doc = _find_result(result_id)
    if not doc:
        return jsonify({"error": "Result not found"}), 404

    data = request.get_json(silent=True) or {}
    try:
        changes = grading_update(doc, data, current_user_id())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    results_col.update_one({"_id": doc["_id"]}, {"$set": changes})
    current_app.logger.info("Result %s graded by %s", result_id, g.current_user["email"])
    return jsonify({"success": True, "data": fix(results_col.find_one({"_id": doc["_id"]}))}), 200


@result.delete("/results/<result_id>")
@teacher_required
def delete_result(result_id):
    doc = _find_result(result_id)
    if not doc:
        return jsonify({"error": "Result not found"}), 404
    results_col.delete_one({"_id": doc["_id"]})
    current_app.logger.info("Result %s deleted by %s", result_id, g.current_user["email"])
    return jsonify({"success": True, "message": "Result deleted successfully"}), 200


@result.put("/results/<result_id>/toggle-visibility")
@teacher_required
def toggle_visibility(result_id):
    doc = _find_result(result_id)
    if not doc:
        return jsonify({"error": "Result not found"}), 404

    visible = not doc.get("showToStudent", False)
    results_col.update_one({"_id": doc["_id"]}, {"$set": {"showToStudent": visible}})

    return jsonify({
        "success": True,
        "data": {
            "_id": str(doc["_id"]),
            "showToStudent": visible,
            "message": f"Result visibility {'enabled' if visible else 'disabled'} successfully",
        },
    }), 200


# =====================================================
# EXPORT CLASS RESULT -> EXCEL (TEACHER)
# =====================================================
@result.get("/results/exam/<exam_id>/export")
@teacher_required
def export_exam_results(exam_id):
    exam_obj = find_exam(exam_id)
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    rows = []
    for r in results_col.find({"examId": str(exam_obj["_id"])}).sort("createdAt", 1):
        meta = _user_meta(r["userId"])
        rows.append([
            meta["name"], meta["email"],
            r.get("correctAnswers", 0), r.get("totalQuestions", 0),
            r.get("totalMarks", 0), r.get("codingMarks", 0), r.get("totalScore", 0),
            round(r.get("percentage", 0), 2),
            "Visible" if r.get("showToStudent") else "Hidden",
        ])

    if not rows:
        return jsonify({"error": "No results found"}), 404

    df = pd.DataFrame(
        rows,
        columns=[
            "Name", "Email", "Correct", "Questions", "MCQ Marks",
            "Coding Marks", "Total Score", "Percentage", "Visibility",
        ],
    )

    out = io.BytesIO()
    df.to_excel(out, index=False, engine="openpyxl")
    out.seek(0)

    return send_file(
        out,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name=f"{exam_obj['examName']}_results.xlsx",
    )


# =====================================================
# PDF REPORT (OWNER OR TEACHER)
# =====================================================
@result.get("/results/<result_id>/pdf")
@token_required
def result_pdf(result_id):
    from reportlab.pdfgen import canvas

    doc = _find_result(result_id)
    if not doc:
        return jsonify({"error": "Result not found"}), 404
    if not _can_view(doc):
        return jsonify({"error": "Not authorized to view this result"}), 403

    exam_obj = find_exam(doc["examId"])
    exam_name = exam_obj["examName"] if exam_obj else "Unknown Exam"
    meta = _user_meta(doc["userId"])

    out = io.BytesIO()
    c = canvas.Canvas(out)

    c.setFont("Helvetica-Bold", 18)
    c.drawString(50, 800, f"Report Card - {exam_name}")
    c.drawString(50, 770, f"Student: {meta['name']} ({meta['email']})")

    c.setFont("Helvetica", 14)
    c.drawString(50, 740, f"Correct: {doc.get('correctAnswers', 0)} / {doc.get('totalQuestions', 0)}")
    c.drawString(50, 720, f"Percentage: {doc.get('percentage', 0):.1f}%")
    c.drawString(50, 700, f"MCQ Marks: {doc.get('totalMarks', 0)}  Coding Marks: {doc.get('codingMarks', 0)}")
    c.drawString(50, 680, f"Total Score: {doc.get('totalScore', 0)}")

    c.setFont("Helvetica", 12)
    y = 650
    if doc.get("feedback"):
        c.drawString(50, y, f"Feedback: {doc['feedback']}")
        y -= 24

    for sub in _coding_submissions(doc["examId"], doc["userId"]):
        c.drawString(50, y, f"{sub['question'][:60]} | {sub['language']} | {sub['status']}")
        y -= 18
        if y < 50:
            c.showPage()
            y = 800

    c.save()
    out.seek(0)
    return send_file(
        out, mimetype="application/pdf", as_attachment=True,
        download_name=f"{exam_name}_report.pdf",
    )
