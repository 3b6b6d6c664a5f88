"""
Configuration for LawDesk Backend
=================================

Environment variables (case-insensitive, optionally from .env):
- JWT_SECRET_KEY: Token signing secret (default is for development only)
- JWT_ACCESS_TOKEN_EXPIRE_MINUTES: Token lifetime, 0 disables expiry (default: 1440)
- BCRYPT_ROUNDS: Password hashing cost factor (default: 10)
- UPLOAD_DIR: Root directory for case documents (default: ./uploads)
- AI_BASE_URL / AI_API_KEY: OpenAI-compatible API used for OCR, STT, TTS, chat
- ENRICHMENT_BASE_URL: Case argument extraction service
- CORS_ALLOW_ORIGINS: Comma separated list of allowed origins
- ADMIN_EMAIL / ADMIN_PASSWORD: Bootstrap admin account created at startup

DATABASE_URL is read by db.session at engine creation time.
"""

from typing import Optional, List
from pydantic_settings import BaseSettings
from functools import lru_cache


DEFAULT_JWT_SECRET = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Tokens
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 1440

    # Password hashing
    bcrypt_rounds: int = 10

    # Document storage
    upload_dir: str = "./uploads"
    public_upload_prefix: str = "/api/uploads"
    allowed_document_extensions: List[str] = ["pdf", "doc", "docx", "txt"]
    max_upload_bytes: int = 25 * 1024 * 1024

    # AI service (OpenAI-compatible)
    ai_base_url: str = "https://api.openai.com/v1"
    ai_api_key: Optional[str] = None
    ocr_model: str = "gpt-4o-mini"
    stt_model: str = "whisper-1"
    stt_language: str = "en"
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"
    format_model: str = "gpt-4"
    chat_model: str = "gpt-3.5-turbo"
    ai_timeout: int = 60

    # Case argument extraction service
    enrichment_base_url: str = "http://localhost:8001"
    enrichment_feed_path: str = "/feed_documents"
    enrichment_query_path: str = "/query"
    enrichment_question: str = "give some arguments"
    enrichment_timeout: int = 120

    # HTTP
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000"
    enforce_https: bool = False
    hsts_max_age: int = 31536000

    # Bootstrap admin
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    admin_username: str = "admin"

    # Service info
    service_version: str = "1.0.0"

    class Config:
        env_prefix = ""
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"

    def validate_config(self) -> List[str]:
        """Validate configuration, return list of warnings"""
        warnings = []

        if self.jwt_secret_key == DEFAULT_JWT_SECRET:
            warnings.append("JWT_SECRET_KEY not set - using development secret")

        if not self.ai_api_key:
            warnings.append("AI_API_KEY not set - OCR, speech and chat endpoints will fail")

        if self.jwt_access_token_expire_minutes <= 0:
            warnings.append("JWT_ACCESS_TOKEN_EXPIRE_MINUTES <= 0 - issued tokens never expire")

        if bool(self.admin_email) != bool(self.admin_password):
            warnings.append("ADMIN_EMAIL and ADMIN_PASSWORD must both be set to bootstrap an admin")

        return warnings

    def cors_origins(self) -> List[str]:
        origins: List[str] = []
        for item in self.cors_allow_origins.split(","):
            origin = item.strip().strip('"').strip("'").rstrip("/")
            if origin:
                origins.append(origin)
        return origins


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
