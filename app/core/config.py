"""Application configuration via Pydantic Settings."""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API Settings
    PROJECT_NAME: str = "Dream Log API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"  # "production" hides error details

    # Database Settings
    # Plain PostgreSQL URLs are upgraded to the psycopg3 driver in database.py
    DATABASE_URL: str = "sqlite:///./dreamlog.db"
    AUTO_CREATE_TABLES: bool = True

    # Generative provider (OpenAI-compatible HTTP API)
    OPENAI_API_KEY: str = ""  # Empty = every generation operation fails closed
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    PROVIDER_TIMEOUT_SECONDS: float = 60.0  # Per attempt
    PROVIDER_MAX_ATTEMPTS: int = 3

    CHAT_MODEL: str = "gpt-4"
    IMAGE_MODEL: str = "dall-e-3"
    IMAGE_SIZE: str = "1024x1024"
    IMAGE_QUALITY: str = "standard"
    SPEECH_MODEL: str = "tts-1"
    TRANSCRIPTION_MODEL: str = "whisper-1"
    TRANSCRIPTION_LANGUAGE: str = "en"
    MAX_AUDIO_UPLOAD_MB: int = 10

    # Admission control: (max admissions, window seconds) per operation class
    RATE_LIMIT_GENERAL_MAX: int = 100
    RATE_LIMIT_GENERAL_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_STORY_MAX: int = 5
    RATE_LIMIT_STORY_WINDOW_SECONDS: int = 60
    RATE_LIMIT_IMAGE_MAX: int = 3
    RATE_LIMIT_IMAGE_WINDOW_SECONDS: int = 60
    RATE_LIMIT_ANALYSIS_MAX: int = 5
    RATE_LIMIT_ANALYSIS_WINDOW_SECONDS: int = 60
    RATE_LIMIT_SPEECH_MAX: int = 10
    RATE_LIMIT_SPEECH_WINDOW_SECONDS: int = 60

    # Identity provider (JWT bearer tokens verified against a JWKS endpoint)
    # Setting only FIREBASE_PROJECT_ID derives the Firebase ID token defaults.
    FIREBASE_PROJECT_ID: str = ""
    AUTH_JWKS_URL: str = ""
    AUTH_ISSUER: str = ""
    AUTH_AUDIENCE: str = ""
    AUTH_ALGORITHMS: List[str] = ["RS256"]

    # CORS Settings
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:5173"]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def max_audio_upload_bytes(self) -> int:
        return self.MAX_AUDIO_UPLOAD_MB * 1024 * 1024

    @property
    def jwks_url(self) -> str:
        if self.AUTH_JWKS_URL:
            return self.AUTH_JWKS_URL
        if self.FIREBASE_PROJECT_ID:
            return "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
        return ""

    @property
    def token_issuer(self) -> str:
        if self.AUTH_ISSUER:
            return self.AUTH_ISSUER
        if self.FIREBASE_PROJECT_ID:
            return f"https://securetoken.google.com/{self.FIREBASE_PROJECT_ID}"
        return ""

    @property
    def token_audience(self) -> str:
        return self.AUTH_AUDIENCE or self.FIREBASE_PROJECT_ID

    @property
    def identity_provider_configured(self) -> bool:
        return bool(self.jwks_url)


# Global settings instance
settings = Settings()
