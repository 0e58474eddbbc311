# backend/models/cheating_log.py
from datetime import datetime
from utils.mongo import fix

COUNTERS = ("noFaceCount", "multipleFaceCount", "cellPhoneCount", "prohibitedObjectCount")


def clean_counters(data):
    counters = {}
    for key in COUNTERS:
        value = data.get(key, 0)
        if value in (None, ""):
            value = 0
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise ValueError(f"{key} must be a non-negative whole number")
        if isinstance(value, str):
            if not value.strip().isdigit():
                raise ValueError(f"{key} must be a non-negative whole number")
            value = int(value.strip())
        if value < 0:
            raise ValueError(f"{key} must be a non-negative whole number")
        counters[key] = value
    return counters


def clean_screenshots(screenshots):
    if not screenshots:
        return []
    if not isinstance(screenshots, list):
        raise ValueError("screenshots must be a list")
    now = datetime.utcnow()
    cleaned = []
    for shot in screenshots:
        if isinstance(shot, str):
            shot = {"url": shot}
        if not isinstance(shot, dict) or not shot.get("url"):
            raise ValueError("each screenshot needs a url")
        cleaned.append({
            "url": str(shot["url"]),
            "type": str(shot.get("type") or "unknown"),
            "detectedAt": shot.get("detectedAt") or now.isoformat(),
        })
    return cleaned


def total_violations(log):
    return sum(int(log.get(key) or 0) for key in COUNTERS)


def severity(count):
    if count > 5:
        return "high"
    if count > 2:
        return "medium"
    if count > 0:
        return "low"
    return "none"


def serialize_log(log):
    data = fix(log)
    total = total_violations(log)
    data["totalViolations"] = total
    data["severity"] = severity(total)
    return data
