# backend/config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def code_execution_allowed(environment):
    # never runs submitted code in production, whatever the flag says
    if environment == "production":
        return False
    return _flag("CODE_EXECUTION_ENABLED", True)


class Config:
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    IS_PRODUCTION = ENVIRONMENT == "production"

    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_THIS_SECRET")
    JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "30"))
    JWT_COOKIE_NAME = "jwt"

    MONGO_URI = os.getenv("MONGO_URI")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "cyberarena")

    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
    CLIENT_URL = os.getenv("CLIENT_URL")
    DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "92")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # 10mb request bodies, csv uploads are checked separately
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024
    MAX_CSV_SIZE = int(os.getenv("MAX_CSV_SIZE", str(5 * 1024 * 1024)))

    CODE_EXECUTION_ENABLED = code_execution_allowed(ENVIRONMENT)
    CODE_EXECUTION_TIMEOUT = int(os.getenv("CODE_EXECUTION_TIMEOUT", "10"))

    @classmethod
    def cors_origins(cls):
        origins = [cls.CLIENT_URL, "http://localhost:3000", cls.FRONTEND_URL]
        return list(dict.fromkeys(o for o in origins if o))
