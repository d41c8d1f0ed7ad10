"""
Resilient Call Gateway for the generative provider.

Features:
- Bounded retry with exponential backoff (tenacity): 1s, 2s, 4s ... capped at 10s
- Retries: 5xx, 429, connection errors and per-attempt timeouts
- Fails fast on any other 4xx (TerminalError)
- Raises ExhaustedRetriesError with the last status/message once attempts run out
- Single-attempt mode for payloads that are not cheap to resend (audio)

The SDK's own retry loop is disabled (max_retries=0) so tenacity is the
only place attempts are counted. The gateway holds no per-request state and
is shared by every request of the process.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import openai
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.domain.exceptions import ExhaustedRetriesError, ProviderError, TerminalError
from app.services.provider.config import ProviderConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")
RequestFactory = Callable[[], Awaitable[T]]

BACKOFF_MIN_SECONDS = 1
BACKOFF_MAX_SECONDS = 10


class RetryableProviderError(ProviderError):
    """Transient failure (5xx, 429, network). Never leaves the gateway."""


def build_client(config: ProviderConfig) -> openai.AsyncOpenAI:
    """Async OpenAI client bound to the configured endpoint and per-attempt timeout."""
    return openai.AsyncOpenAI(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.timeout_seconds,
        max_retries=0,
    )


def classify(exc: openai.OpenAIError, endpoint: str) -> ProviderError:
    """Map an SDK failure onto retryable vs terminal."""
    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        if status == 429 or status >= 500:
            return RetryableProviderError(exc.message, status_code=status, endpoint=endpoint)
        return TerminalError(exc.message, status_code=status, endpoint=endpoint)

    if isinstance(exc, openai.APIConnectionError):
        # Includes APITimeoutError
        return RetryableProviderError(exc.message or "Network failure", endpoint=endpoint)

    return TerminalError(str(exc), endpoint=endpoint)


class ProviderGateway:
    """
    Issues outbound provider calls.

    Callers hand over a zero-argument coroutine factory that performs one
    attempt with `self.client`; the gateway owns attempt counting, backoff
    and error classification.
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[openai.AsyncOpenAI] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.client = client or build_client(config)
        self._sleep = sleep

    async def call(
        self,
        endpoint: str,
        request: RequestFactory[T],
        max_attempts: Optional[int] = None,
    ) -> T:
        """
        Run request with bounded retry.

        Args:
            endpoint: Provider operation name, used for logs and errors
            request: Performs a single attempt
            max_attempts: Total attempts (defaults to config.max_attempts)

        Returns:
            Whatever the successful attempt returned

        Raises:
            TerminalError: 4xx other than 429, on the first occurrence
            ExhaustedRetriesError: every attempt hit a retryable failure
        """
        attempts = max_attempts or self.config.max_attempts

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RetryableProviderError),
            wait=wait_exponential(multiplier=1, min=BACKOFF_MIN_SECONDS, max=BACKOFF_MAX_SECONDS),
            stop=stop_after_attempt(attempts),
            sleep=self._sleep,
            before_sleep=self._log_retry,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(endpoint, request)
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.error(
                f"Provider call {endpoint} failed after {attempts} attempts: "
                f"status={last.status_code} message={last.message}"
            )
            raise ExhaustedRetriesError(
                last.message,
                status_code=last.status_code,
                endpoint=endpoint,
                attempts=attempts,
            ) from last
        except TerminalError as e:
            logger.error(f"Provider rejected {endpoint}: status={e.status_code} message={e.message}")
            raise

    async def send_once(self, endpoint: str, request: RequestFactory[T]) -> T:
        """Single attempt. Any failure, transient or not, surfaces as TerminalError."""
        try:
            return await self._attempt(endpoint, request)
        except RetryableProviderError as e:
            logger.error(f"Provider call {endpoint} failed (no retry): status={e.status_code} message={e.message}")
            raise TerminalError(e.message, status_code=e.status_code, endpoint=endpoint) from e
        except TerminalError as e:
            logger.error(f"Provider rejected {endpoint}: status={e.status_code} message={e.message}")
            raise

    async def aclose(self) -> None:
        await self.client.close()

    async def _attempt(self, endpoint: str, request: RequestFactory[T]) -> T:
        try:
            return await request()
        except openai.OpenAIError as exc:
            raise classify(exc, endpoint) from exc

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Provider call {getattr(exc, 'endpoint', '?')} attempt {retry_state.attempt_number} failed "
            f"(status={getattr(exc, 'status_code', None)}), retrying in {delay:.1f}s"
        )
