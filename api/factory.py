"""Factory for the configured LLM completion client."""

from config.config import LLMProvider, LLMSettings
from utils.logger import get_logger

from .base_client import BaseLLMClient

logger = get_logger(__name__)


def create_llm_client(settings: LLMSettings) -> BaseLLMClient:
    """
    Build the completion client selected by ``settings.provider``.

    Raises:
        ValueError: unknown provider or missing OpenRouter key
    """
    provider = settings.provider.lower()

    if provider == LLMProvider.OPENROUTER.value:
        from .openrouter_client import OpenRouterClient

        client = OpenRouterClient(
            api_key=settings.api_key,
            model_name=settings.model_name,
            base_url=settings.base_url,
            app_url=settings.app_url,
            app_title=settings.app_title,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout_s=settings.timeout_s,
        )
    elif provider == LLMProvider.OLLAMA.value:
        from .ollama_client import OllamaClient

        client = OllamaClient(
            base_url=settings.ollama_url,
            model_name=settings.ollama_model,
            timeout_s=settings.timeout_s,
        )
    else:
        raise ValueError(f"Unsupported LLM provider: {settings.provider}. Must be 'openrouter' or 'ollama'")

    logger.info(
        "LLM client initialized",
        extra={"extra_fields": {"provider": provider, "model": client.model_name}},
    )
    return client
