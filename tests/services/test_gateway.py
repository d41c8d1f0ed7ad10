"""
Tests for the resilient provider gateway (mocked HTTP, recorded backoff).
"""
import httpx
import pytest

from app.domain.exceptions import ExhaustedRetriesError, TerminalError
from app.services.provider.gateway import ProviderGateway, build_client
from conftest import chat_response, error_response, make_gateway


class ScriptedProvider:
    """Answers successive requests from a fixed script of statuses/exceptions."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        step = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(step, Exception):
            raise step
        if step == 200:
            return chat_response("ok")
        return error_response(step, f"status {step}")


def _chat(gateway: ProviderGateway):
    return lambda: gateway.client.chat.completions.create(
        model="gpt-4",
        messages=[{"role": "user", "content": "hi"}],
    )


# ============================================================================
# Retry behaviour
# ============================================================================

@pytest.mark.asyncio
async def test_retries_server_errors_then_succeeds(provider_config, sleeper):
    """[500, 500, 200] → 3 calls, backoff 1s then 2s."""
    provider = ScriptedProvider([500, 500, 200])
    gateway = make_gateway(provider_config, provider, sleeper)

    response = await gateway.call("chat.completions", _chat(gateway), max_attempts=3)

    assert response.choices[0].message.content == "ok"
    assert provider.calls == 3
    assert len(sleeper.delays) == 2
    assert sleeper.delays[0] >= 1
    assert sleeper.delays[1] >= 2


@pytest.mark.asyncio
async def test_client_error_fails_immediately(provider_config, sleeper):
    """404 → exactly 1 call, TerminalError, no backoff."""
    provider = ScriptedProvider([404])
    gateway = make_gateway(provider_config, provider, sleeper)

    with pytest.raises(TerminalError) as exc_info:
        await gateway.call("chat.completions", _chat(gateway))

    assert provider.calls == 1
    assert sleeper.delays == []
    assert exc_info.value.status_code == 404
    assert exc_info.value.endpoint == "chat.completions"


@pytest.mark.asyncio
async def test_bad_request_is_terminal(provider_config, sleeper):
    provider = ScriptedProvider([400, 200])
    gateway = make_gateway(provider_config, provider, sleeper)

    with pytest.raises(TerminalError):
        await gateway.call("chat.completions", _chat(gateway))

    assert provider.calls == 1


@pytest.mark.asyncio
async def test_rate_limited_response_is_retried(provider_config, sleeper):
    provider = ScriptedProvider([429, 200])
    gateway = make_gateway(provider_config, provider, sleeper)

    await gateway.call("chat.completions", _chat(gateway))

    assert provider.calls == 2
    assert sleeper.delays == [1]


@pytest.mark.asyncio
async def test_exhausted_retries_carry_last_status(provider_config, sleeper):
    provider = ScriptedProvider([500, 502, 503])
    gateway = make_gateway(provider_config, provider, sleeper)

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        await gateway.call("chat.completions", _chat(gateway), max_attempts=3)

    assert provider.calls == 3
    assert exc_info.value.status_code == 503
    assert exc_info.value.attempts == 3
    assert "status 503" in exc_info.value.message
    # No wait after the final attempt
    assert len(sleeper.delays) == 2


@pytest.mark.asyncio
async def test_timeouts_are_retryable(provider_config, sleeper):
    provider = ScriptedProvider([httpx.ReadTimeout("too slow")])
    gateway = make_gateway(provider_config, provider, sleeper)

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        await gateway.call("chat.completions", _chat(gateway), max_attempts=2)

    assert provider.calls == 2
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_connection_error_then_success(provider_config, sleeper):
    provider = ScriptedProvider([httpx.ConnectError("reset"), 200])
    gateway = make_gateway(provider_config, provider, sleeper)

    await gateway.call("chat.completions", _chat(gateway))

    assert provider.calls == 2


@pytest.mark.asyncio
async def test_backoff_is_capped_at_ten_seconds(provider_config, sleeper):
    provider = ScriptedProvider([500])
    gateway = make_gateway(provider_config, provider, sleeper)

    with pytest.raises(ExhaustedRetriesError):
        await gateway.call("chat.completions", _chat(gateway), max_attempts=6)

    assert sleeper.delays == [1, 2, 4, 8, 10]


@pytest.mark.asyncio
async def test_default_attempts_come_from_config(provider_config, sleeper):
    provider = ScriptedProvider([500])
    gateway = make_gateway(provider_config, provider, sleeper)

    with pytest.raises(ExhaustedRetriesError):
        await gateway.call("chat.completions", _chat(gateway))

    assert provider.calls == provider_config.max_attempts


# ============================================================================
# Single attempt
# ============================================================================

@pytest.mark.asyncio
async def test_send_once_never_retries(provider_config, sleeper):
    provider = ScriptedProvider([500, 200])
    gateway = make_gateway(provider_config, provider, sleeper)

    with pytest.raises(TerminalError) as exc_info:
        await gateway.send_once("audio.speech", _chat(gateway))

    assert provider.calls == 1
    assert sleeper.delays == []
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_send_once_success(provider_config, sleeper):
    provider = ScriptedProvider([200])
    gateway = make_gateway(provider_config, provider, sleeper)

    response = await gateway.send_once("chat.completions", _chat(gateway))

    assert response.choices[0].message.content == "ok"


def test_build_client_disables_sdk_retries(provider_config):
    client = build_client(provider_config)
    assert client.max_retries == 0
    assert str(client.base_url).startswith("https://provider.test/v1")
