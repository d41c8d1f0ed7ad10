"""
Generation Orchestrator

Composes provider gateway calls into the user-facing dream operations:
transcribe, title, story, images, analysis and speech.

Every operation:
1. Validates its input (DomainValidationError, no provider call)
2. Fails closed with ConfigurationError when no credential is configured
3. Delegates to the gateway (retried for text/image calls, single attempt for audio)

Stateless apart from injected collaborators; one instance serves the process.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional
from uuid import UUID

from app.domain.exceptions import ConfigurationError, DomainValidationError
from app.models.dto.generation import DreamAnalysisResult, SceneImage
from app.services.generation import prompts
from app.services.generation.segmenter import segment
from app.services.provider.config import ProviderConfig
from app.services.provider.gateway import ProviderGateway

logger = logging.getLogger(__name__)

ALLOWED_AUDIO_TYPES = ("audio/wav", "audio/webm", "audio/mpeg", "audio/mp4", "audio/ogg")

TITLE_MAX_TOKENS = 50
TITLE_TEMPERATURE = 0.8
STORY_TEMPERATURE = 0.8
ANALYSIS_MAX_TOKENS = 500
ANALYSIS_TEMPERATURE = 0.7

VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")
DEFAULT_VOICE = "alloy"
MIN_SPEED = 0.25
MAX_SPEED = 4.0

EMOTION_KEYWORDS = ("happy", "sad", "anxious", "peaceful", "excited", "fearful", "content", "frustrated")
THEME_KEYWORDS = ("freedom", "control", "love", "loss", "growth", "conflict", "journey", "transformation")

QUOTE_CHARS = "\"'“”‘’«»"

# (owner_id, dream_id, analysis_text, themes, emotions) -> new analysis id
AnalysisRecorder = Callable[[UUID, UUID, str, list[str], list[str]], Awaitable[UUID]]


def extract_keywords(text: str, vocabulary: tuple[str, ...]) -> list[str]:
    """Vocabulary words found in text (case-insensitive substring), in vocabulary order."""
    lowered = text.lower()
    return [word for word in vocabulary if word in lowered]


def clean_title(raw: str) -> str:
    """Strip whitespace and surrounding quotation artifacts."""
    return raw.strip().strip(QUOTE_CHARS).strip()


def normalize_mime_type(mime_type: str | None) -> str:
    """'audio/webm;codecs=opus' → 'audio/webm'."""
    return (mime_type or "").split(";", 1)[0].strip().lower()


def clamp_speed(speed: float) -> float:
    return max(MIN_SPEED, min(MAX_SPEED, speed))


def resolve_voice(voice: str | None) -> str:
    """Unknown voices silently fall back to alloy."""
    return voice if voice in VOICES else DEFAULT_VOICE


def _require_text(value: str | None, message: str) -> str:
    if not value or not value.strip():
        raise DomainValidationError(message)
    return value


class GenerationOrchestrator:
    """
    Dream generation operations over the provider gateway.

    Args:
        config: Immutable provider configuration
        gateway: Shared resilient call gateway
        analysis_recorder: Persists analyses when a dream and owner are given
    """

    def __init__(
        self,
        config: ProviderConfig,
        gateway: ProviderGateway,
        analysis_recorder: Optional[AnalysisRecorder] = None,
    ):
        self.config = config
        self.gateway = gateway
        self.analysis_recorder = analysis_recorder

    def _ensure_configured(self) -> None:
        if not self.config.is_configured:
            raise ConfigurationError("OpenAI API key not configured")

    async def _complete(self, endpoint: str, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float) -> str:
        response = await self.gateway.call(
            endpoint,
            lambda: self.gateway.client.chat.completions.create(
                model=self.config.chat_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            ),
        )
        return response.choices[0].message.content or ""

    # ═══════════════════════════════════════════════════════════════════
    # Speech-to-text
    # ═══════════════════════════════════════════════════════════════════

    async def transcribe(self, audio: bytes, mime_type: str | None, filename: str = "audio.wav") -> str:
        """Transcribe an audio upload. Single attempt."""
        if not audio:
            raise DomainValidationError("No audio file provided")

        content_type = normalize_mime_type(mime_type)
        if content_type not in ALLOWED_AUDIO_TYPES:
            raise DomainValidationError("Invalid file type. Only audio files are allowed.")
        if len(audio) > self.config.max_audio_bytes:
            raise DomainValidationError("File too large")

        self._ensure_configured()

        response = await self.gateway.send_once(
            "audio.transcriptions",
            lambda: self.gateway.client.audio.transcriptions.create(
                file=(filename, audio, content_type),
                model=self.config.transcription_model,
                language=self.config.transcription_language,
            ),
        )
        return response.text

    # ═══════════════════════════════════════════════════════════════════
    # Text generation
    # ═══════════════════════════════════════════════════════════════════

    async def generate_title(self, dream_text: str) -> str:
        _require_text(dream_text, "Dream text is required")
        self._ensure_configured()

        raw = await self._complete(
            "chat.completions",
            prompts.TITLE_SYSTEM_PROMPT,
            prompts.build_title_user_prompt(dream_text),
            max_tokens=TITLE_MAX_TOKENS,
            temperature=TITLE_TEMPERATURE,
        )
        return clean_title(raw)

    async def generate_story(self, dream_text: str, tone: str | None = None, length: str | None = None) -> str:
        """Fairy tale in the requested tone; token budget follows the length band."""
        _require_text(dream_text, "Dream text is required")
        self._ensure_configured()

        band = prompts.resolve_length(length)
        return await self._complete(
            "chat.completions",
            prompts.build_story_system_prompt(tone, length),
            prompts.build_story_user_prompt(dream_text),
            max_tokens=band.max_tokens,
            temperature=STORY_TEMPERATURE,
        )

    # ═══════════════════════════════════════════════════════════════════
    # Illustrations
    # ═══════════════════════════════════════════════════════════════════

    async def generate_images(self, story: str, tone: str | None = None) -> list[SceneImage]:
        """
        Illustrate the story's beginning, middle and end.

        The three requests run concurrently and are joined on a barrier that
        waits for all of them. A failed scene comes back with url=None and
        error=True; the others are unaffected. Always returns three results
        in scene order.
        """
        _require_text(story, "Story text is required")
        self._ensure_configured()

        scene_prompts = prompts.build_scene_prompts(segment(story), tone)

        outcomes = await asyncio.gather(
            *(self._illustrate(scene) for scene in scene_prompts),
            return_exceptions=True,
        )

        images: list[SceneImage] = []
        for scene, outcome in zip(scene_prompts, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Image generation failed for {scene.scene.value}: {outcome}")
                images.append(SceneImage(
                    url=None,
                    scene=scene.scene,
                    description=scene.description,
                    prompt=scene.prompt,
                    error=True,
                ))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                images.append(outcome)

        return images

    async def _illustrate(self, scene: prompts.ScenePrompt) -> SceneImage:
        response = await self.gateway.call(
            "images.generate",
            lambda: self.gateway.client.images.generate(
                model=self.config.image_model,
                prompt=scene.prompt,
                size=self.config.image_size,
                quality=self.config.image_quality,
                n=1,
            ),
        )
        return SceneImage(
            url=response.data[0].url,
            scene=scene.scene,
            description=scene.description,
            prompt=scene.prompt,
        )

    # ═══════════════════════════════════════════════════════════════════
    # Analysis
    # ═══════════════════════════════════════════════════════════════════

    async def analyze_dream(
        self,
        dream_text: str,
        dream_id: Optional[UUID] = None,
        owner_id: Optional[UUID] = None,
    ) -> DreamAnalysisResult:
        """
        Reflective analysis plus local keyword extraction.

        Themes and emotions are matched against fixed vocabularies, not asked
        of the provider. Saved as a new DreamAnalysis only when both a dream
        and an owner are given.
        """
        _require_text(dream_text, "Dream text is required")
        self._ensure_configured()

        analysis_text = await self._complete(
            "chat.completions",
            prompts.ANALYSIS_SYSTEM_PROMPT,
            prompts.build_analysis_user_prompt(dream_text),
            max_tokens=ANALYSIS_MAX_TOKENS,
            temperature=ANALYSIS_TEMPERATURE,
        )

        themes = extract_keywords(analysis_text, THEME_KEYWORDS)
        emotions = extract_keywords(analysis_text, EMOTION_KEYWORDS)

        result = DreamAnalysisResult(analysis=analysis_text, themes=themes, emotions=emotions)

        if dream_id is not None and owner_id is not None and self.analysis_recorder is not None:
            result.analysis_id = await self.analysis_recorder(owner_id, dream_id, analysis_text, themes, emotions)
            result.saved = True

        return result

    # ═══════════════════════════════════════════════════════════════════
    # Text-to-speech
    # ═══════════════════════════════════════════════════════════════════

    async def text_to_speech(self, text: str, voice: str | None = None, speed: float = 1.0) -> bytes:
        """MP3 narration. Single attempt; any failure is terminal."""
        _require_text(text, "Text is required")
        self._ensure_configured()

        response = await self.gateway.send_once(
            "audio.speech",
            lambda: self.gateway.client.audio.speech.create(
                model=self.config.speech_model,
                input=text,
                voice=resolve_voice(voice),
                speed=clamp_speed(speed),
            ),
        )
        return response.content
