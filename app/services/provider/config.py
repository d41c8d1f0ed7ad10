"""
Provider Configuration

Immutable snapshot of everything needed to talk to the generative provider.
Built once at startup from Settings and injected into the gateway and the
orchestrator; nothing on the request path reads Settings for these values.
"""

from dataclasses import dataclass, field

from app.core.config import Settings


@dataclass(frozen=True)
class ProviderConfig:
    """Credential, endpoint and model choices for the generative provider."""

    api_key: str = field(default="", repr=False)
    """Empty means not configured: every generation operation fails closed."""

    base_url: str = "https://api.openai.com/v1"

    timeout_seconds: float = 60.0
    """Upper bound per attempt. Exceeding it counts as a retryable network failure."""

    max_attempts: int = 3
    """Total attempts for retried calls (first try included)."""

    # ─────────────────────────────────────────────────────────────
    # Models
    # ─────────────────────────────────────────────────────────────
    chat_model: str = "gpt-4"
    image_model: str = "dall-e-3"
    image_size: str = "1024x1024"
    image_quality: str = "standard"
    speech_model: str = "tts-1"
    transcription_model: str = "whisper-1"
    transcription_language: str = "en"

    max_audio_bytes: int = 10 * 1024 * 1024
    """Largest accepted transcription upload."""

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderConfig":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
            max_attempts=settings.PROVIDER_MAX_ATTEMPTS,
            chat_model=settings.CHAT_MODEL,
            image_model=settings.IMAGE_MODEL,
            image_size=settings.IMAGE_SIZE,
            image_quality=settings.IMAGE_QUALITY,
            speech_model=settings.SPEECH_MODEL,
            transcription_model=settings.TRANSCRIPTION_MODEL,
            transcription_language=settings.TRANSCRIPTION_LANGUAGE,
            max_audio_bytes=settings.max_audio_upload_bytes,
        )
