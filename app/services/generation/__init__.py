"""
Dream Generation Service

Turns a dream description into a title, an illustrated story, narration
and an analysis by orchestrating the generative provider.

Main Components:
    GenerationOrchestrator - The user-facing generation operations
    segment - Deterministic three-scene story split
    record_analysis - Persists analyses after the provider call
"""

from app.services.generation.orchestrator import GenerationOrchestrator
from app.services.generation.recorder import record_analysis
from app.services.generation.segmenter import StorySegments, segment, split_sentences

__all__ = [
    "GenerationOrchestrator",
    "record_analysis",
    "StorySegments",
    "segment",
    "split_sentences",
]
