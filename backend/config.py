import os
from dotenv import load_dotenv

load_dotenv()

class Config:

    APP_NAME = "StudyKit API"
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

    # LLM provider: "openrouter" | "openai" | "gemini" (auto-detected from keys when unset)
    AI_PROVIDER = os.getenv("AI_PROVIDER", "").lower()
    OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
    OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "meta-llama/llama-3.3-70b-instruct")
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    GEMINI_API_KEY = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))

    # Uploads
    MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(25 * 1024 * 1024)))
    ALLOWED_CONTENT_TYPE = "application/pdf"
    # Documents longer than this are truncated before prompting
    MAX_DOCUMENT_CHARS = int(os.getenv("MAX_DOCUMENT_CHARS", "100000"))

    # Sessions
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session_id")
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "86400"))
    # "auto" tries Redis and falls back to process memory
    SESSION_BACKEND = os.getenv("SESSION_BACKEND", "auto").lower()
    INVALIDATE_ON_UPLOAD = os.getenv("INVALIDATE_ON_UPLOAD", "true").lower() == "true"
    HTTPS_ONLY = os.getenv("HTTPS_ONLY", "false").lower() == "true"

    # Redis
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    REDIS_KEY_PREFIX = os.getenv("REDIS_KEY_PREFIX", "studykit:session:")

    CORS_ORIGINS = [
        "http://localhost:3000",
        "https://localhost:3000",
    ]
    CORS_ORIGIN_REGEX = os.getenv("CORS_ORIGIN_REGEX", r"https://.*\.pages\.dev$")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    # One JSON object per line instead of key=value text
    LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"

    @classmethod
    def validate(cls):
        import logging as _logging
        _log = _logging.getLogger(__name__)
        if not (cls.OPENROUTER_API_KEY or cls.OPENAI_API_KEY or cls.GEMINI_API_KEY):
            _log.warning(
                "None of OPENROUTER_API_KEY, OPENAI_API_KEY or GOOGLE_API_KEY is set. "
                "Content generation will fail until a provider key is configured."
            )
            return False
        return True

    @classmethod
    def get_cors_origins(cls):
        cors_origins = os.getenv("CORS_ORIGINS")
        if cors_origins:
            return [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
        return cls.CORS_ORIGINS
