"""
Generation API Routes

Speech-to-text, title, story, illustrations, analysis and narration.
All routes are thin adapters over GenerationOrchestrator.

Pattern: async routes; the orchestrator awaits the provider without
blocking the event loop. Database work for analyses runs in the thread
pool in short sessions, never across the provider call.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from app.api.deps import RequireAdmission, get_current_user_id, get_orchestrator
from app.core.database import get_db_session
from app.domain.dream_operations import DreamOperations
from app.middleware.rate_limit import (
    DREAM_ANALYSIS,
    IMAGE_GENERATION,
    SPEECH_SYNTHESIS,
    STORY_GENERATION,
)
from app.models.dto.generation import (
    AnalysisRequest,
    DreamAnalysisResult,
    ImagesRequest,
    ImagesResponse,
    SpeechRequest,
    StoryRequest,
    StoryResponse,
    TitleRequest,
    TitleResponse,
    TranscriptionResponse,
)
from app.services.generation.orchestrator import GenerationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])


@router.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe(
    audio: Optional[UploadFile] = File(None),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
) -> TranscriptionResponse:
    """Transcribe a multipart `audio` upload (wav, webm, mpeg, mp4, ogg)."""
    if audio is None:
        content, content_type, filename = b"", None, "audio.wav"
    else:
        # One byte past the limit is enough to reject an oversize upload
        content = await audio.read(orchestrator.config.max_audio_bytes + 1)
        content_type = audio.content_type
        filename = audio.filename or "audio.wav"

    text = await orchestrator.transcribe(content, content_type, filename=filename)
    return TranscriptionResponse(text=text)


@router.post(
    "/generate-title",
    response_model=TitleResponse,
    dependencies=[Depends(RequireAdmission(STORY_GENERATION))],
)
async def generate_title(
    data: TitleRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
) -> TitleResponse:
    title = await orchestrator.generate_title(data.dream_text)
    return TitleResponse(title=title)


@router.post(
    "/generate-story",
    response_model=StoryResponse,
    dependencies=[Depends(RequireAdmission(STORY_GENERATION))],
)
async def generate_story(
    data: StoryRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
) -> StoryResponse:
    """Fairy tale from a dream. Unknown tones fall back to whimsical, lengths to medium."""
    story = await orchestrator.generate_story(data.dream_text, tone=data.tone, length=data.length)
    return StoryResponse(story=story)


@router.post(
    "/generate-images",
    response_model=ImagesResponse,
    dependencies=[Depends(RequireAdmission(IMAGE_GENERATION))],
)
async def generate_images(
    data: ImagesRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
) -> ImagesResponse:
    """
    Three scene illustrations. Always 200 with three entries once admitted;
    failed scenes carry url=null and error=true.
    """
    images = await orchestrator.generate_images(data.story, tone=data.tone)
    return ImagesResponse(images=images)


def _ensure_owned(user_id: UUID, dream_id: UUID) -> None:
    with get_db_session() as session:
        DreamOperations.get_or_raise(session, user_id, dream_id)


@router.post(
    "/analyze-dream",
    response_model=DreamAnalysisResult,
    dependencies=[Depends(RequireAdmission(DREAM_ANALYSIS))],
)
async def analyze_dream(
    data: AnalysisRequest,
    user_id: Optional[UUID] = Depends(get_current_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
) -> DreamAnalysisResult:
    """
    Reflective analysis with extracted themes and emotions.

    Saved against dream_id when the caller is authenticated and owns it;
    ownership is checked before the provider is called.
    """
    if data.dream_id is not None and user_id is not None and data.dream_text.strip():
        await run_in_threadpool(_ensure_owned, user_id, data.dream_id)

    return await orchestrator.analyze_dream(data.dream_text, dream_id=data.dream_id, owner_id=user_id)


@router.post(
    "/text-to-speech",
    dependencies=[Depends(RequireAdmission(SPEECH_SYNTHESIS))],
    response_class=Response,
    responses={200: {"content": {"audio/mpeg": {}}}},
)
async def text_to_speech(
    data: SpeechRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
) -> Response:
    """MP3 narration of the given text."""
    audio = await orchestrator.text_to_speech(data.text, voice=data.voice, speed=data.speed)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Cache-Control": "public, max-age=3600"},
    )
