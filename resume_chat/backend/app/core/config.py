import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    PROJECT_NAME: str = "Resume Chat API"
    PROJECT_VERSION: str = "0.1.0"

    # Database settings (SQLite for local dev, Postgres URL in production)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./resume_chat.db")

    # Gemini API settings
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # Supabase storage settings
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_KEY: str = os.getenv("SUPABASE_SERVICE_KEY", "")
    RESUMES_BUCKET: str = os.getenv("RESUMES_BUCKET", "resumes")

    # Upload settings
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
    ALLOWED_CONTENT_TYPES: tuple = (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )
    RECORD_SAVE_ATTEMPTS: int = int(os.getenv("RECORD_SAVE_ATTEMPTS", "3"))
    RECORD_SAVE_RETRY_DELAY: float = float(os.getenv("RECORD_SAVE_RETRY_DELAY", "2"))

    # CORS settings
    CORS_ORIGINS: list = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
