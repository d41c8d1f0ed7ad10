"""Tests for per-operation-class admission control."""
import time
from unittest.mock import MagicMock

import pytest

from app.core.config import Settings
from app.middleware.rate_limit import (
    DREAM_ANALYSIS,
    GENERAL_TRAFFIC,
    IMAGE_GENERATION,
    SPEECH_SYNTHESIS,
    STORY_GENERATION,
    AdmissionController,
    AdmissionPolicy,
    caller_identity,
    policies_from_settings,
)


@pytest.fixture
def controller():
    return AdmissionController(policies_from_settings(Settings()))


def test_default_policies():
    policies = policies_from_settings(Settings())

    assert (policies[GENERAL_TRAFFIC].max_admissions, policies[GENERAL_TRAFFIC].window_seconds) == (100, 900)
    assert (policies[STORY_GENERATION].max_admissions, policies[STORY_GENERATION].window_seconds) == (5, 60)
    assert (policies[IMAGE_GENERATION].max_admissions, policies[IMAGE_GENERATION].window_seconds) == (3, 60)
    assert (policies[DREAM_ANALYSIS].max_admissions, policies[DREAM_ANALYSIS].window_seconds) == (5, 60)
    assert (policies[SPEECH_SYNTHESIS].max_admissions, policies[SPEECH_SYNTHESIS].window_seconds) == (10, 60)


def test_policies_are_overridable():
    policies = policies_from_settings(Settings(RATE_LIMIT_STORY_MAX=2, RATE_LIMIT_STORY_WINDOW_SECONDS=30))
    assert policies[STORY_GENERATION].max_admissions == 2
    assert policies[STORY_GENERATION].window_seconds == 30


def test_story_generation_admits_five_then_rejects(controller):
    results = [controller.admit(STORY_GENERATION, "user:alice") for _ in range(6)]

    assert results == [True, True, True, True, True, False]
    assert 0 < controller.retry_after(STORY_GENERATION) <= 60


def test_windows_are_independent_per_caller(controller):
    for _ in range(3):
        assert controller.admit(IMAGE_GENERATION, "ip:10.0.0.1")
    assert not controller.admit(IMAGE_GENERATION, "ip:10.0.0.1")

    assert controller.admit(IMAGE_GENERATION, "ip:10.0.0.2")


def test_windows_are_independent_per_class(controller):
    for _ in range(3):
        controller.admit(IMAGE_GENERATION, "user:bob")
    assert not controller.admit(IMAGE_GENERATION, "user:bob")

    assert controller.admit(STORY_GENERATION, "user:bob")
    assert controller.admit(DREAM_ANALYSIS, "user:bob")


def test_window_expires():
    controller = AdmissionController({"burst": AdmissionPolicy(max_admissions=1, window_seconds=1)})

    assert controller.admit("burst", "user:carol")
    assert not controller.admit("burst", "user:carol")

    time.sleep(1.1)
    assert controller.admit("burst", "user:carol")


def test_unknown_class_raises(controller):
    with pytest.raises(ValueError, match="Unknown operation class"):
        controller.admit("teleportation", "user:dave")


def test_reset_clears_counters(controller):
    for _ in range(5):
        controller.admit(STORY_GENERATION, "user:erin")
    controller.reset()
    assert controller.admit(STORY_GENERATION, "user:erin")


def test_caller_identity_prefers_subject():
    request = MagicMock()
    request.client.host = "203.0.113.7"

    assert caller_identity(request, "firebase-uid") == "user:firebase-uid"
    assert caller_identity(request, None) == "ip:203.0.113.7"
