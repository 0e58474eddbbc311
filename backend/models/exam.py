# backend/models/exam.py
from datetime import datetime, timezone
from utils.mongo import fix
from utils.payload import get_text


def parse_datetime(value):
    """ISO string -> naive UTC datetime. Returns None for empty values and
    raises ValueError for garbage."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _non_negative_int(value, field):
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"{field} must be a whole number")


def clean_exam_payload(data, partial=False):
    """Validate exam input. Raises ValueError with a user facing message."""
    fields = {}

    if not partial or "examName" in data:
        name = get_text(data, "examName")
        if not name:
            raise ValueError("examName is required")
        fields["examName"] = name

    if "description" in data or not partial:
        fields["description"] = get_text(data, "description")

    for key in ("totalQuestions", "duration"):
        if key in data:
            fields[key] = _non_negative_int(data[key], key)
        elif not partial:
            fields[key] = 0

    for key in ("liveDate", "deadDate"):
        if key in data:
            try:
                fields[key] = parse_datetime(data[key])
            except ValueError:
                raise ValueError(f"{key} must be an ISO date")

    return fields


def check_window(live, dead):
    if live and dead and dead <= live:
        raise ValueError("deadDate must be after liveDate")


def exam_status(exam, now=None):
    now = now or datetime.utcnow()
    live = exam.get("liveDate")
    dead = exam.get("deadDate")
    if live and now < live:
        return "upcoming"
    if dead and now > dead:
        return "ended"
    return "live"


def new_exam_doc(fields, teacher_id):
    now = datetime.utcnow()
    doc = {
        "examName": fields["examName"],
        "description": fields.get("description", ""),
        "totalQuestions": fields.get("totalQuestions", 0),
        "duration": fields.get("duration", 0),
        "liveDate": fields.get("liveDate"),
        "deadDate": fields.get("deadDate"),
        "createdBy": teacher_id,
        "createdAt": now,
        "updatedAt": now,
    }
    return doc


def serialize_exam(exam):
    data = fix(exam)
    data["examId"] = data["_id"]
    data["status"] = exam_status(exam)
    return data
