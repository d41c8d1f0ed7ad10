"""Request and response DTOs for the generation endpoints."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.database.dreams import SceneLabel
from app.models.database.mixins.camel import CAMEL_CASE


# ─────────────────────────────────────────────────────────────
# Requests
# ─────────────────────────────────────────────────────────────
# Text fields are not length-validated here: emptiness is a domain rule
# enforced by the orchestrator so every caller gets the same 400.


class TitleRequest(BaseModel):
    model_config = CAMEL_CASE

    dream_text: str = ""


class StoryRequest(BaseModel):
    model_config = CAMEL_CASE

    dream_text: str = ""
    tone: Optional[str] = Field(default=None, description="whimsical | mystical | adventurous | gentle | mysterious | comedy")
    length: Optional[str] = Field(default=None, description="short | medium | long")


class ImagesRequest(BaseModel):
    story: str = ""
    tone: Optional[str] = None


class AnalysisRequest(BaseModel):
    model_config = CAMEL_CASE

    dream_text: str = ""
    dream_id: Optional[UUID] = Field(default=None, description="Persist the analysis against this dream (requires auth)")


class SpeechRequest(BaseModel):
    text: str = ""
    voice: Optional[str] = None
    speed: float = 1.0


# ─────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────


class TranscriptionResponse(BaseModel):
    text: str


class TitleResponse(BaseModel):
    title: str


class StoryResponse(BaseModel):
    story: str


class SceneImage(BaseModel):
    """Outcome of one scene's illustration. Failed scenes carry url=None and error=True."""

    url: Optional[str] = None
    scene: SceneLabel
    description: str
    prompt: Optional[str] = None
    error: bool = False


class ImagesResponse(BaseModel):
    images: list[SceneImage]


class DreamAnalysisResult(BaseModel):
    model_config = CAMEL_CASE

    analysis: str
    themes: list[str] = Field(default_factory=list)
    emotions: list[str] = Field(default_factory=list)
    saved: bool = False
    analysis_id: Optional[UUID] = None
