import time

import httpx

from models.unified_response import TokenUsage, UnifiedResponse
from utils.logger import get_logger

from .base_client import BaseLLMClient

logger = get_logger(__name__)


class OllamaClient(BaseLLMClient):
    """Client for a local Ollama instance (``POST /api/chat``, non-streaming)."""

    provider_name = "ollama"

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:11434",
        model_name: str = "llama3.1",
        *,
        timeout_s: float = 60.0,
        transport: httpx.BaseTransport | None = None,
        **kwargs,
    ):
        super().__init__(None, model_name=model_name, timeout_s=timeout_s, **kwargs)
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(timeout=timeout_s, transport=transport)

    def get_completion(
        self,
        prompt: str | None = None,
        *,
        messages: list[dict[str, str]] | None = None,
        **kwargs,
    ) -> UnifiedResponse:
        request_id = self._generate_request_id()
        start_time = time.time()
        model = kwargs.get("model", self.model_name)

        try:
            normalized_messages = self._normalize_input(prompt=prompt, messages=messages)
            response = self._http.post(
                f"{self.base_url}/api/chat",
                json={"model": model, "messages": normalized_messages, "stream": False},
            )
            response.raise_for_status()
            data = response.json()

            message = data.get("message") or {}
            text = message.get("content") or data.get("response") or ""
            latency_ms = self._measure_latency(start_time)

            return UnifiedResponse(
                request_id=request_id,
                text=text,
                provider=self.provider_name,
                model=model,
                latency_ms=latency_ms,
                token_usage=TokenUsage(
                    prompt_tokens=int(data.get("prompt_eval_count") or 0),
                    completion_tokens=int(data.get("eval_count") or 0),
                ),
                finish_reason=self._normalize_finish_reason(data.get("done_reason") or "stop"),
            )

        except Exception as e:
            latency_ms = self._measure_latency(start_time)
            error = self._normalize_error(e)
            if isinstance(e, httpx.ConnectError):
                error = type(error)(
                    code="provider_error",
                    message="Ollama service is not running. Please start Ollama and try again.",
                    provider=self.provider_name,
                    retryable=True,
                    details=error.details,
                )

            logger.error(
                f"Ollama completion failed: {error.code}",
                extra={
                    "extra_fields": {
                        "request_id": request_id,
                        "model": model,
                        "base_url": self.base_url,
                        "error_code": error.code,
                        "error_message": error.message,
                    }
                },
            )
            return self._create_error_response(
                request_id=request_id, error=error, latency_ms=latency_ms, model=model
            )
