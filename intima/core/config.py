from pydantic import BaseModel
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

DEFAULT_RULES_DIR = str(Path(__file__).resolve().parent.parent / "rules")


class Settings(BaseModel):
    database_url: str
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60
    upload_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout_seconds: float = 60.0
    validation_max_attempts: int = 3
    validation_retry_wait_seconds: float = 1.0
    rules_dir: str = DEFAULT_RULES_DIR
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]


_settings: Optional[Settings] = None


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        database_url = os.getenv("DATABASE_URL", "")
        jwt_secret_key = os.getenv("JWT_SECRET_KEY", "")
        if not jwt_secret_key:
            raise RuntimeError("JWT_SECRET_KEY is not set")
        _settings = Settings(
            database_url=database_url,
            jwt_secret_key=jwt_secret_key,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expires_minutes=int(os.getenv("JWT_EXPIRES_MINUTES", "60")),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
            gemini_base_url=os.getenv(
                "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
            ),
            gemini_timeout_seconds=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60")),
            validation_max_attempts=int(os.getenv("VALIDATION_MAX_ATTEMPTS", "3")),
            validation_retry_wait_seconds=float(os.getenv("VALIDATION_RETRY_WAIT_SECONDS", "1.0")),
            rules_dir=os.getenv("RULES_DIR", DEFAULT_RULES_DIR),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            cors_origins=_split_origins(
                os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
            ),
        )
    return _settings
