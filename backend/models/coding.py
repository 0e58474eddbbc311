# backend/models/coding.py
from datetime import datetime

LANGUAGES = ("python", "javascript", "java")


def new_coding_question_doc(exam_id, text, description, teacher_id):
    return {
        "examId": exam_id,
        "question": text.strip(),
        "description": (description or "").strip(),
        "createdBy": teacher_id,
        "createdAt": datetime.utcnow(),
    }


def submission_fields(question, user_id, data):
    return {
        "questionId": str(question["_id"]),
        "examId": question["examId"],
        "userId": user_id,
        "code": data["code"],
        "language": data["language"],
        "status": data.get("status") or "submitted",
        "executionTime": data.get("executionTime") or 0,
        "output": data.get("output") or "",
        "submittedAt": datetime.utcnow(),
    }


def submission_summary(question_text, submission):
    return {
        "question": question_text,
        "code": submission.get("code") or "No code submitted",
        "language": submission.get("language") or "Unknown",
        "status": submission.get("status") or "Not submitted",
        "executionTime": submission.get("executionTime") or 0,
    }
