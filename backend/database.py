# backend/database.py
from pymongo import MongoClient, ASCENDING
from config import Config

MONGO_URI = Config.MONGO_URI

if not MONGO_URI:
    raise RuntimeError("MONGO_URI environment variable not set")

client = MongoClient(MONGO_URI)
# DATABASE (auto-created)
db = client[Config.MONGO_DB_NAME]

# COLLECTIONS
users_col = db["users"]                    # teachers + students
exams_col = db["exams"]
questions_col = db["questions"]            # mcq
coding_questions_col = db["coding_questions"]
coding_submissions_col = db["coding_submissions"]
results_col = db["results"]
cheating_logs_col = db["cheating_logs"]


def ensure_indexes():
    users_col.create_index("email", unique=True)
    users_col.create_index("userId", unique=True, sparse=True)
    users_col.create_index("username", unique=True, sparse=True)

    questions_col.create_index("examId")
    coding_questions_col.create_index("examId")

    # one submission per question, one result and one log per exam, per user
    coding_submissions_col.create_index(
        [("questionId", ASCENDING), ("userId", ASCENDING)], unique=True
    )
    results_col.create_index([("examId", ASCENDING), ("userId", ASCENDING)], unique=True)
    cheating_logs_col.create_index([("examId", ASCENDING), ("userId", ASCENDING)], unique=True)
