import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "postgresql://localhost:5432/booktracker"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"connect_timeout": 5},
    }

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Bearer tokens handed out at login (seconds)
    AUTH_TOKEN_MAX_AGE = int(os.environ.get("AUTH_TOKEN_MAX_AGE", 7 * 24 * 3600))

    # Allow the Quick Update path to move a Received book back to Registered
    ALLOW_BOOK_REOPEN = os.environ.get("ALLOW_BOOK_REOPEN", "false").lower() == "true"

    # File upload settings
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "/tmp/booktracker-uploads")
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max upload size
