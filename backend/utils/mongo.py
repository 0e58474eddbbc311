# backend/utils/mongo.py
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value):
    """Return an ObjectId for ``value`` or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def fix(doc):
    """Make a mongo document JSON safe (ObjectId -> str, datetime -> iso)."""
    if doc is None:
        return None
    if isinstance(doc, dict):
        return {k: fix(v) for k, v in doc.items()}
    if isinstance(doc, list):
        return [fix(v) for v in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    return doc


def fix_many(docs):
    return [fix(d) for d in docs]


def id_str(value):
    """Canonical hex form of an id from a url, or the value unchanged."""
    oid = to_object_id(value)
    return str(oid) if oid else value
