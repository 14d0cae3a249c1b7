import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) == "1"


class Config:
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-secret")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # LOCAL mode uses SQLite
    LOCAL_DB = _flag("LOCAL_DB", "1")

    if os.getenv("DATABASE_URL"):
        SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    elif LOCAL_DB:
        SQLALCHEMY_DATABASE_URI = "sqlite:///local.db"
    else:
        DB_USER = os.getenv("DB_USER", "")
        DB_PASS = os.getenv("DB_PASS", "")
        DB_NAME = os.getenv("DB_NAME", "")
        CLOUD_SQL_CONNECTION_NAME = os.getenv("CLOUD_SQL_CONNECTION_NAME", "")
        SQLALCHEMY_DATABASE_URI = (
            f"postgresql+psycopg2://{DB_USER}:{DB_PASS}@/"
            f"{DB_NAME}?host=/cloudsql/{CLOUD_SQL_CONNECTION_NAME}"
        )

    # Email (Resend). Without a key, emails are skipped with a warning.
    RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
    RESEND_FROM_EMAIL = os.getenv("RESEND_FROM_EMAIL", "onboarding@resend.dev")
    RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
    EMAIL_TIMEOUT_SECONDS = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10"))

    # Postal lookup (zippopotam.us)
    ZIPPOPOTAM_BASE_URL = os.getenv("ZIPPOPOTAM_BASE_URL", "https://api.zippopotam.us")
    GEO_TIMEOUT_SECONDS = float(os.getenv("GEO_TIMEOUT_SECONDS", "10"))

    # Firestore order audit log. Use database id "default" (Native), not "(default)".
    ORDER_EVENTS_ENABLED = _flag("ORDER_EVENTS_ENABLED")
    FIRESTORE_DB_ID = os.getenv("FIRESTORE_DB_ID", "default")

    SECRET_MANAGER_ENABLED = _flag("SECRET_MANAGER_ENABLED")
