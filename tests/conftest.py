"""
Pytest configuration and fixtures for testing.

Database tests run against in-memory SQLite shared through a StaticPool,
installed as the process engine with set_engine() so code that opens its
own sessions (get_db, get_db_session) sees the same data.
Provider tests go through httpx.MockTransport; no real network calls.
"""
import json
from typing import Callable
from uuid import uuid4

import httpx
import openai
import pytest
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_current_user_id, require_current_user_id
from app.core import database
from app.core.auth import VerifiedIdentity, get_current_identity
from app.core.config import Settings
import app.models.database  # noqa: F401  (registers every table)
from app.middleware.rate_limit import AdmissionController, get_admission_controller, policies_from_settings
from app.models.database.user import User
from app.services.provider.config import ProviderConfig
from app.services.provider.gateway import ProviderGateway
from main import create_app


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    database.set_engine(engine)
    yield engine
    database.set_engine(None)
    engine.dispose()


@pytest.fixture
def session(engine) -> Session:
    db = database.new_session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def user(session) -> User:
    user = User(auth_uid=f"uid-{uuid4()}", email=f"{uuid4().hex[:8]}@dreams.test", display_name="Dreamer")
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def other_user(session) -> User:
    user = User(auth_uid=f"uid-{uuid4()}", email=f"{uuid4().hex[:8]}@dreams.test", display_name="Someone Else")
    session.add(user)
    session.commit()
    return user


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class SleepRecorder:
    """Collects backoff delays instead of waiting them out."""

    def __init__(self):
        self.delays: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        api_key="test-key",
        base_url="https://provider.test/v1",
        timeout_seconds=5.0,
        max_attempts=3,
        max_audio_bytes=1024,
    )


def make_openai_client(handler: Callable[[httpx.Request], httpx.Response]) -> openai.AsyncOpenAI:
    """Async OpenAI client whose HTTP traffic is answered by handler."""
    return openai.AsyncOpenAI(
        api_key="test-key",
        base_url="https://provider.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def make_gateway(config: ProviderConfig, handler, sleeper: SleepRecorder) -> ProviderGateway:
    return ProviderGateway(config, client=make_openai_client(handler), sleep=sleeper.sleep)


def chat_response(content: str) -> httpx.Response:
    return httpx.Response(200, json={
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 0,
        "model": "gpt-4",
        "choices": [{
            "index": 0,
            "finish_reason": "stop",
            "message": {"role": "assistant", "content": content},
        }],
    })


def image_response(url: str) -> httpx.Response:
    return httpx.Response(200, json={"created": 0, "data": [{"url": url}]})


def error_response(status: int, message: str = "provider error") -> httpx.Response:
    return httpx.Response(status, json={"error": {"message": message, "type": "test"}})


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

@pytest.fixture
def admission() -> AdmissionController:
    """Fresh admission windows per test, default policies."""
    return AdmissionController(policies_from_settings(Settings()))


@pytest.fixture
def api_app(engine, admission, provider_config):
    """
    Application without lifespan: the engine fixture supplies the database
    and tests install their own orchestrator on app.state.
    """
    app = create_app()
    app.dependency_overrides[get_admission_controller] = lambda: admission
    app.state.provider_config = provider_config
    as_guest(app)
    yield app
    app.dependency_overrides.clear()


def as_guest(app) -> None:
    app.dependency_overrides[get_current_identity] = lambda: None
    app.dependency_overrides[get_current_user_id] = lambda: None
    app.dependency_overrides.pop(require_current_user_id, None)


def as_user(app, user: User) -> None:
    """Treat every request as coming from user (token already verified)."""
    identity = VerifiedIdentity(subject_id=user.auth_uid, email=user.email)
    app.dependency_overrides[get_current_identity] = lambda: identity
    app.dependency_overrides[get_current_user_id] = lambda: user.id
    app.dependency_overrides[require_current_user_id] = lambda: user.id
