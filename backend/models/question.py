# backend/models/question.py
from datetime import datetime
from bson import ObjectId
from utils.mongo import fix


def clean_options(options):
    if not isinstance(options, list) or len(options) < 2:
        raise ValueError("At least two options are required")

    cleaned = []
    for opt in options:
        if not isinstance(opt, dict):
            raise ValueError("Each option must be an object")
        text = str(opt.get("optionText", "")).strip()
        if not text:
            raise ValueError("optionText is required for every option")
        is_correct = opt.get("isCorrect", False)
        if not isinstance(is_correct, bool):
            raise ValueError("isCorrect must be true or false")
        cleaned.append({
            "_id": ObjectId(),
            "optionText": text,
            "isCorrect": is_correct,
        })

    if sum(1 for o in cleaned if o["isCorrect"]) != 1:
        raise ValueError("Exactly one option must be marked correct")
    return cleaned


def clean_marks(value):
    if value in (None, ""):
        return 1
    if isinstance(value, bool):
        raise ValueError("ansmarks must be a positive number")
    try:
        marks = float(value)
    except (TypeError, ValueError):
        raise ValueError("ansmarks must be a positive number")
    if marks <= 0:
        raise ValueError("ansmarks must be a positive number")
    return int(marks) if marks.is_integer() else marks


def new_question_doc(exam_id, text, options, ansmarks, teacher_id):
    return {
        "examId": exam_id,
        "question": text.strip(),
        "options": options,
        "ansmarks": ansmarks,
        "createdBy": teacher_id,
        "createdAt": datetime.utcnow(),
    }


def correct_option(question):
    for opt in question.get("options", []):
        if opt.get("isCorrect"):
            return opt
    return None


def serialize_question(question, reveal_answer=False):
    data = fix(question)
    if not reveal_answer:
        for opt in data.get("options", []):
            opt.pop("isCorrect", None)
    return data
