import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    # Gemini Configuration
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_GENERATION_MODEL = os.getenv("GEMINI_GENERATION_MODEL", "gemini-2.5-flash")
    GEMINI_MAX_RETRIES = int(os.getenv("GEMINI_MAX_RETRIES", "3"))
    EXTRACTION_TIMEOUT_SECONDS = float(os.getenv("EXTRACTION_TIMEOUT_SECONDS", "300"))  # exam PDFs are slow

    # Document store Configuration
    STORE_BACKEND = os.getenv("STORE_BACKEND", "memory").lower()
    DATABASE_URL = os.getenv("DATABASE_URL")

    # Redis Configuration (extraction cache)
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", "") or None
    REDIS_ENABLED = os.getenv("REDIS_ENABLED", "false").lower() == "true"
    CACHE_TTL = int(os.getenv("CACHE_TTL", "86400"))  # 1 day default

    # Catalogue administrators (comma-separated uids)
    ADMIN_UIDS = [uid.strip() for uid in os.getenv("ADMIN_UIDS", "").split(",") if uid.strip()]

    # Query limits
    PUBLISHED_PAPERS_LIMIT = int(os.getenv("PUBLISHED_PAPERS_LIMIT", "100"))
    SEARCH_LIMIT = int(os.getenv("SEARCH_LIMIT", "12"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # CORS Configuration
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:4200").split(",")
    CORS_ALLOW_CREDENTIALS = os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
    CORS_ALLOW_METHODS = ["*"] if os.getenv("CORS_ALLOW_METHODS", "*") == "*" else os.getenv("CORS_ALLOW_METHODS", "*").split(",")
    CORS_ALLOW_HEADERS = ["*"] if os.getenv("CORS_ALLOW_HEADERS", "*") == "*" else os.getenv("CORS_ALLOW_HEADERS", "*").split(",")

    @classmethod
    def validate(cls):
        """Validate required configuration"""
        if not cls.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY is required")
        if cls.STORE_BACKEND not in ("memory", "postgres"):
            raise ValueError(f"Unknown STORE_BACKEND: {cls.STORE_BACKEND}")
        if cls.STORE_BACKEND == "postgres" and not cls.DATABASE_URL:
            raise ValueError("DATABASE_URL is required when STORE_BACKEND=postgres")
        return True

    @classmethod
    def get_api_key(cls) -> str:
        """Resolve the Gemini credential at call time so rotated keys are picked up"""
        api_key = os.getenv("GEMINI_API_KEY") or cls.GEMINI_API_KEY
        if not api_key:
            from paperhub.exceptions import MissingAPIKeyError
            raise MissingAPIKeyError("GEMINI_API_KEY environment variable not set")
        return api_key

config = Config()
