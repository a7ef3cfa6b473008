import time
import uuid
from abc import ABC, abstractmethod
from typing import Any

from models.unified_response import NormalizedError, TokenUsage, UnifiedResponse


class BaseLLMClient(ABC):
    """
    Abstract base class for chat-completion clients.

    Implementations must never raise from ``get_completion``; failures are
    returned as a UnifiedResponse carrying a NormalizedError.
    """

    provider_name: str = "unknown"

    def __init__(self, api_key: str | None = None, **kwargs):
        """
        Initialize the client.

        Args:
            api_key: API key for the service (may be None for local backends)
            **kwargs: Additional client-specific parameters (model_name, timeout_s)
        """
        self.api_key = api_key
        self.model_name = kwargs.get("model_name")
        self.timeout_s = kwargs.get("timeout_s", 60.0)

    @abstractmethod
    def get_completion(
        self,
        prompt: str | None = None,
        *,
        messages: list[dict[str, str]] | None = None,
        **kwargs,
    ) -> UnifiedResponse:
        """
        Get a completion from the model.

        Args:
            prompt: Single user prompt (converted to one user message)
            messages: Ordered role-tagged messages; takes precedence over prompt
            **kwargs: temperature, max_tokens, model overrides

        Returns:
            UnifiedResponse: text on success, error set on failure
        """

    # ---------- shared helpers ----------

    def _generate_request_id(self) -> str:
        return str(uuid.uuid4())

    def _measure_latency(self, start_time: float) -> int:
        return int((time.time() - start_time) * 1000)

    def _normalize_input(
        self, prompt: str | None = None, messages: list[dict[str, str]] | None = None
    ) -> list[dict[str, str]]:
        if messages:
            normalized = []
            for message in messages:
                role = message.get("role")
                if role not in {"system", "user", "assistant"}:
                    raise ValueError(f"Invalid message role: {role!r}")
                normalized.append({"role": role, "content": str(message.get("content", ""))})
            return normalized
        if prompt is None or not str(prompt).strip():
            raise ValueError("Either prompt or messages must be provided")
        return [{"role": "user", "content": prompt}]

    def _normalize_finish_reason(self, reason: Any) -> str | None:
        if reason is None:
            return None
        mapping = {
            "stop": "stop",
            "eos": "stop",
            "length": "length",
            "max_tokens": "length",
            "content_filter": "content_filter",
        }
        return mapping.get(str(reason).lower(), str(reason))

    def _normalize_error(self, exc: Exception) -> NormalizedError:
        """Map a transport/SDK exception onto the shared error taxonomy."""
        name = type(exc).__name__.lower()
        message = str(exc) or type(exc).__name__
        status = getattr(exc, "status_code", None)
        if status is None:
            response = getattr(exc, "response", None)
            status = getattr(response, "status_code", None)

        if "timeout" in name or "timed out" in message.lower():
            code, retryable = "timeout", True
        elif status in (401, 403) or "authentication" in name or "permission" in name:
            code, retryable = "auth", False
        elif status == 429 or "ratelimit" in name:
            code, retryable = "rate_limit", True
        elif status is not None and 400 <= status < 500:
            code, retryable = "bad_request", False
        elif status is not None or "connect" in name or "apierror" in name:
            code, retryable = "provider_error", True
        else:
            code, retryable = "unknown", False

        return NormalizedError(
            code=code,
            message=message,
            provider=self.provider_name,
            retryable=retryable,
            details={"exception_type": type(exc).__name__, "status_code": status},
        )

    def _create_error_response(
        self, *, request_id: str, error: NormalizedError, latency_ms: int, model: str | None
    ) -> UnifiedResponse:
        return UnifiedResponse(
            request_id=request_id,
            text="",
            provider=self.provider_name,
            model=model or self.model_name or "unknown",
            latency_ms=latency_ms,
            token_usage=TokenUsage(),
            finish_reason="error",
            error=error,
        )
