import time

import openai

from models.unified_response import NormalizedError, TokenUsage, UnifiedResponse
from utils.logger import get_logger

from .base_client import BaseLLMClient

logger = get_logger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterClient(BaseLLMClient):
    """
    OpenRouter chat client returning UnifiedResponse.

    OpenRouter exposes an OpenAI-compatible API, so the OpenAI SDK is used
    with a custom base URL plus the attribution headers OpenRouter expects.
    """

    provider_name = "openrouter"

    def __init__(
        self,
        api_key: str | None,
        model_name: str = "meta-llama/llama-3.1-405b-instruct:free",
        *,
        base_url: str = OPENROUTER_BASE_URL,
        app_url: str = "http://localhost:3000",
        app_title: str = "SkillForge",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout_s: float = 60.0,
        **kwargs,
    ):
        super().__init__(api_key, model_name=model_name, timeout_s=timeout_s, **kwargs)
        # without a key every completion reports an auth error instead
        self.client = (
            openai.OpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout_s,
                default_headers={"HTTP-Referer": app_url, "X-Title": app_title},
            )
            if api_key
            else None
        )
        self.temperature = temperature
        self.max_tokens = max_tokens

    def get_completion(
        self,
        prompt: str | None = None,
        *,
        messages: list[dict[str, str]] | None = None,
        **kwargs,
    ) -> UnifiedResponse:
        """
        Get a completion from OpenRouter.

        IMPORTANT: Never raises exceptions - returns UnifiedResponse with error instead
        """
        request_id = self._generate_request_id()
        start_time = time.time()
        model = kwargs.get("model", self.model_name)

        if self.client is None:
            error = NormalizedError(
                code="auth",
                message="OpenRouter API key is not configured",
                provider=self.provider_name,
                retryable=False,
            )
            logger.error(
                "OpenRouter completion skipped: missing API key",
                extra={"extra_fields": {"request_id": request_id, "model": model}},
            )
            return self._create_error_response(
                request_id=request_id, error=error, latency_ms=0, model=model
            )

        try:
            normalized_messages = self._normalize_input(prompt=prompt, messages=messages)

            response = self.client.chat.completions.create(
                model=model,
                messages=normalized_messages,
                temperature=kwargs.get("temperature", self.temperature),
                max_tokens=kwargs.get("max_tokens", self.max_tokens),
            )

            latency_ms = self._measure_latency(start_time)
            choice = response.choices[0] if response.choices else None
            text = (choice.message.content if choice else None) or ""

            usage = getattr(response, "usage", None)
            token_usage = TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            )

            logger.info(
                "OpenRouter completion successful",
                extra={
                    "extra_fields": {
                        "request_id": request_id,
                        "model": model,
                        "latency_ms": latency_ms,
                        "tokens": token_usage.total_tokens,
                    }
                },
            )

            return UnifiedResponse(
                request_id=request_id,
                text=text,
                provider=self.provider_name,
                model=model,
                latency_ms=latency_ms,
                token_usage=token_usage,
                finish_reason=self._normalize_finish_reason(choice.finish_reason if choice else None),
            )

        except Exception as e:
            latency_ms = self._measure_latency(start_time)
            error = self._normalize_error(e)

            logger.error(
                f"OpenRouter completion failed: {error.code}",
                extra={
                    "extra_fields": {
                        "request_id": request_id,
                        "model": model,
                        "error_code": error.code,
                        "error_message": error.message,
                        "retryable": error.retryable,
                    }
                },
            )

            return self._create_error_response(
                request_id=request_id, error=error, latency_ms=latency_ms, model=model
            )
