# Data Transfer Objects (DTOs)
# Request/response models for API endpoints

from app.models.dto.dreams import (
    DreamFilters,
    PageRequest,
    DreamPage,
    DreamSaveResponse,
    DreamAnalysesResponse,
    DreamStats,
    TagCount,
    MoodCount,
)
from app.models.dto.generation import (
    TitleRequest,
    StoryRequest,
    ImagesRequest,
    AnalysisRequest,
    SpeechRequest,
    TranscriptionResponse,
    TitleResponse,
    StoryResponse,
    SceneImage,
    ImagesResponse,
    DreamAnalysisResult,
)

__all__ = [
    "DreamFilters",
    "PageRequest",
    "DreamPage",
    "DreamSaveResponse",
    "DreamAnalysesResponse",
    "DreamStats",
    "TagCount",
    "MoodCount",
    "TitleRequest",
    "StoryRequest",
    "ImagesRequest",
    "AnalysisRequest",
    "SpeechRequest",
    "TranscriptionResponse",
    "TitleResponse",
    "StoryResponse",
    "SceneImage",
    "ImagesResponse",
    "DreamAnalysisResult",
]
