# backend/models/result.py
from datetime import datetime
from models.question import correct_option

GRADING_FIELDS = ("totalMarks", "percentage", "codingMarks", "totalScore", "feedback", "showToStudent")


def score_answers(questions, answers):
    """Score submitted mcq answers.

    ``answers`` maps question id (str) -> chosen option id (str). Marks come
    from each question's ``ansmarks`` (default 1); percentage is based on the
    number of correct answers, not on marks.
    """
    total_marks = 0
    correct = 0

    for question in questions:
        user_answer = answers.get(str(question["_id"]))
        if not user_answer:
            continue
        option = correct_option(question)
        if option and str(option["_id"]) == str(user_answer):
            total_marks += question.get("ansmarks") or 1
            correct += 1

    total_questions = len(questions)
    percentage = (correct / total_questions) * 100 if total_questions > 0 else 0

    return {
        "totalMarks": total_marks,
        "correctAnswers": correct,
        "totalQuestions": total_questions,
        "percentage": percentage,
    }


def new_result_doc(exam_id, user_id, answers, score):
    now = datetime.utcnow()
    return {
        "examId": exam_id,
        "userId": user_id,
        "answers": {str(k): str(v) for k, v in answers.items()},
        "totalMarks": score["totalMarks"],
        "correctAnswers": score["correctAnswers"],
        "totalQuestions": score["totalQuestions"],
        "percentage": score["percentage"],
        # visible right after submission, teachers can hide it later
        "showToStudent": True,
        "codingMarks": 0,
        "totalScore": score["totalMarks"],
        "feedback": "",
        "gradedBy": None,
        "gradedAt": None,
        "createdAt": now,
        "updatedAt": now,
    }


def grading_update(result, data, teacher_id):
    """Build the $set for a teacher's grading edit. Raises ValueError."""
    changes = {}
    for field in GRADING_FIELDS:
        if field not in data or data[field] is None:
            continue
        value = data[field]
        if field == "feedback":
            changes[field] = str(value)
        elif field == "showToStudent":
            if not isinstance(value, bool):
                raise ValueError("showToStudent must be true or false")
            changes[field] = value
        else:
            if isinstance(value, bool):
                raise ValueError(f"{field} must be a number")
            try:
                changes[field] = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"{field} must be a number")

    if "percentage" in changes and not 0 <= changes["percentage"] <= 100:
        raise ValueError("percentage must be between 0 and 100")

    if "codingMarks" in changes and "totalScore" not in changes:
        base = changes.get("totalMarks", result.get("totalMarks", 0))
        changes["totalScore"] = base + changes["codingMarks"]

    now = datetime.utcnow()
    changes["gradedBy"] = teacher_id
    changes["gradedAt"] = now
    changes["updatedAt"] = now
    return changes


def summarize(results):
    count = len(results)
    average = sum(r.get("percentage") or 0 for r in results) / count if count else 0
    return {
        "count": count,
        "averagePercentage": round(average, 2),
        "codingSubmissionCount": sum(len(r.get("codingSubmissions", [])) for r in results),
    }
