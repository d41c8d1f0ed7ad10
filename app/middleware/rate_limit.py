"""Admission control: per-operation-class moving-window rate limits.

Built on the `limits` library (the engine underneath slowapi). Each
(operation class, caller) pair has its own window; callers are the
authenticated subject id when there is one, else the client address.
Expired entries are dropped lazily by the storage, never on the hot path.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Request
from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from slowapi.util import get_remote_address

from app.core.config import Settings, settings

logger = logging.getLogger(__name__)

GENERAL_TRAFFIC = "general-traffic"
STORY_GENERATION = "story-generation"
IMAGE_GENERATION = "image-generation"
DREAM_ANALYSIS = "dream-analysis"
SPEECH_SYNTHESIS = "speech-synthesis"


@dataclass(frozen=True)
class AdmissionPolicy:
    """At most `max_admissions` per `window_seconds` for one caller."""
    max_admissions: int
    window_seconds: int
    message: str = "Too many requests, please try again later."

    @property
    def item(self) -> RateLimitItem:
        return RateLimitItemPerSecond(self.max_admissions, self.window_seconds)


def policies_from_settings(config: Settings) -> Dict[str, AdmissionPolicy]:
    return {
        GENERAL_TRAFFIC: AdmissionPolicy(
            config.RATE_LIMIT_GENERAL_MAX,
            config.RATE_LIMIT_GENERAL_WINDOW_SECONDS,
            "Too many requests from this IP, please try again later.",
        ),
        STORY_GENERATION: AdmissionPolicy(
            config.RATE_LIMIT_STORY_MAX,
            config.RATE_LIMIT_STORY_WINDOW_SECONDS,
            "Story generation rate limit exceeded. Please wait a moment.",
        ),
        IMAGE_GENERATION: AdmissionPolicy(
            config.RATE_LIMIT_IMAGE_MAX,
            config.RATE_LIMIT_IMAGE_WINDOW_SECONDS,
            "Image generation rate limit exceeded. Please wait a moment.",
        ),
        DREAM_ANALYSIS: AdmissionPolicy(
            config.RATE_LIMIT_ANALYSIS_MAX,
            config.RATE_LIMIT_ANALYSIS_WINDOW_SECONDS,
            "Dream analysis rate limit exceeded. Please wait a moment.",
        ),
        SPEECH_SYNTHESIS: AdmissionPolicy(
            config.RATE_LIMIT_SPEECH_MAX,
            config.RATE_LIMIT_SPEECH_WINDOW_SECONDS,
            "Text-to-speech rate limit exceeded. Please wait a moment.",
        ),
    }


class AdmissionController:
    """
    Moving-window admission per (operation class, caller).

    MemoryStorage locks per key, so unrelated callers and classes never
    serialize on one another.
    """

    def __init__(self, policies: Dict[str, AdmissionPolicy]):
        self.policies = dict(policies)
        self._storage = MemoryStorage()
        self._limiter = MovingWindowRateLimiter(self._storage)

    def policy(self, operation_class: str) -> AdmissionPolicy:
        try:
            return self.policies[operation_class]
        except KeyError:
            raise ValueError(f"Unknown operation class: {operation_class}") from None

    def admit(self, operation_class: str, caller_identity: str) -> bool:
        """Count one admission; False once the caller's window is full."""
        policy = self.policy(operation_class)
        admitted = self._limiter.hit(policy.item, operation_class, caller_identity)
        if not admitted:
            logger.info(f"Admission rejected: class={operation_class} caller={caller_identity}")
        return admitted

    def retry_after(self, operation_class: str) -> int:
        """Retry hint in seconds: the class's window size."""
        return self.policy(operation_class).window_seconds

    def reset(self) -> None:
        self._storage.reset()


_controller: Optional[AdmissionController] = None


def get_admission_controller() -> AdmissionController:
    """Process-wide controller built from settings on first use."""
    global _controller
    if _controller is None:
        _controller = AdmissionController(policies_from_settings(settings))
    return _controller


def caller_identity(request: Request, subject_id: Optional[str] = None) -> str:
    """Authenticated subject when known, otherwise the client address."""
    if subject_id:
        return f"user:{subject_id}"
    return f"ip:{get_remote_address(request)}"
