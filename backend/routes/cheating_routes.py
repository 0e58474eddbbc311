# backend/routes/cheating_routes.py

from datetime import datetime
from flask import Blueprint, request, jsonify, g, current_app
from pymongo.errors import DuplicateKeyError

from database import cheating_logs_col
from models.cheating_log import clean_counters, clean_screenshots, serialize_log
from routes.exam_routes import find_exam
from utils.auth import token_required, teacher_required, current_user_id

cheating = Blueprint("cheating", __name__)


# =====================================================
# SAVE / UPDATE OWN LOG (DURING EXAM)
# =====================================================
@cheating.post("/cheatingLogs")
@token_required
def save_cheating_log():
    data = request.get_json(silent=True) or {}

    exam_obj = find_exam(data.get("examId"))
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    try:
        counters = clean_counters(data)
        screenshots = clean_screenshots(data.get("screenshots"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    user = g.current_user
    exam_id = str(exam_obj["_id"])
    now = datetime.utcnow()

    update = {
        "$set": {
            **counters,
            "username": user.get("name", ""),
            "email": user.get("email", ""),
            "updatedAt": now,
        },
        "$setOnInsert": {"createdAt": now},
    }
    if screenshots:
        update["$push"] = {"screenshots": {"$each": screenshots}}
    else:
        update["$setOnInsert"]["screenshots"] = []

    key = {"examId": exam_id, "userId": current_user_id()}
    try:
        cheating_logs_col.update_one(key, update, upsert=True)
    except DuplicateKeyError:
        # lost the insert race, apply the report to the stored log
        update.pop("$setOnInsert")
        cheating_logs_col.update_one(key, update)

    log = cheating_logs_col.find_one(key)
    if sum(counters.values()):
        current_app.logger.info(
            "Cheating log for %s on exam %s: %s", user.get("email"), exam_id, counters
        )
    return jsonify(serialize_log(log)), 201


# =====================================================
# LOGS FOR AN EXAM (TEACHER)
# =====================================================
@cheating.get("/cheatingLogs/<exam_id>")
@teacher_required
def get_cheating_logs(exam_id):
    exam_obj = find_exam(exam_id)
    if not exam_obj:
        return jsonify({"error": "Exam not found"}), 404

    rows = cheating_logs_col.find({"examId": str(exam_obj["_id"])}).sort("updatedAt", -1)
    return jsonify([serialize_log(log) for log in rows]), 200
