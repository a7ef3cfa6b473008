"""
Async helpers for the research pipeline.

- ``gather_settled``: fan-out that waits for every task and keeps results
  positional; one failure never cancels its siblings.
- ``LLMCaller``: runs a synchronous LLM client in the default executor with
  a per-call timeout, returning a UnifiedResponse in every case.
"""

import asyncio
import uuid
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from api.base_client import BaseLLMClient
from models.unified_response import NormalizedError, TokenUsage, UnifiedResponse
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _bounded(awaitable: Awaitable[T], timeout_s: float | None) -> T:
    if timeout_s is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout_s)


async def gather_settled(
    awaitables: list[Awaitable[T]], timeout_s: float | None = None
) -> list[Settled[T]]:
    """
    Await all tasks concurrently and report each outcome in input order.

    Args:
        awaitables: coroutines to run
        timeout_s: optional per-task timeout (a timeout is recorded as that task's error)
    """
    outcomes = await asyncio.gather(
        *(_bounded(a, timeout_s) for a in awaitables), return_exceptions=True
    )
    settled: list[Settled[T]] = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            settled.append(Settled(error=outcome))
        else:
            settled.append(Settled(value=outcome))
    return settled


class LLMCaller:
    """Async, timeout-bounded facade over a synchronous BaseLLMClient."""

    def __init__(self, client: BaseLLMClient, timeout_s: float = 60.0):
        self.client = client
        self.timeout_s = timeout_s

    @property
    def provider_name(self) -> str:
        return getattr(self.client, "provider_name", "unknown")

    @property
    def model_name(self) -> str:
        return getattr(self.client, "model_name", None) or "unknown"

    def _error_response(
        self, code: str, message: str, latency_ms: int, details: dict[str, Any]
    ) -> UnifiedResponse:
        return UnifiedResponse(
            request_id=str(uuid.uuid4()),
            text="",
            provider=self.provider_name,
            model=self.model_name,
            latency_ms=latency_ms,
            token_usage=TokenUsage(),
            finish_reason="error",
            error=NormalizedError(
                code=code,
                message=message,
                provider=self.provider_name,
                retryable=code == "timeout",
                details=details,
            ),
        )

    async def complete(self, messages: list[dict[str, str]], **kwargs) -> UnifiedResponse:
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        try:
            return await asyncio.wait_for(
                loop.run_in_executor(
                    None, lambda: self.client.get_completion(messages=messages, **kwargs)
                ),
                timeout=self.timeout_s,
            )

        except asyncio.TimeoutError:
            elapsed_ms = int((loop.time() - start_time) * 1000)
            logger.warning(
                f"LLM call timed out for {self.provider_name}/{self.model_name}",
                extra={
                    "extra_fields": {
                        "provider": self.provider_name,
                        "model": self.model_name,
                        "timeout_s": self.timeout_s,
                    }
                },
            )
            return self._error_response(
                "timeout",
                f"Request timed out after {self.timeout_s}s",
                elapsed_ms,
                {"timeout_seconds": self.timeout_s},
            )

        except Exception as e:
            elapsed_ms = int((loop.time() - start_time) * 1000)
            logger.error(
                f"Unexpected LLM client error for {self.provider_name}/{self.model_name}: {e}",
                extra={
                    "extra_fields": {
                        "provider": self.provider_name,
                        "model": self.model_name,
                        "error_type": type(e).__name__,
                    }
                },
            )
            return self._error_response(
                "unknown",
                f"Unexpected error: {e!s}",
                elapsed_ms,
                {"exception_type": type(e).__name__},
            )
