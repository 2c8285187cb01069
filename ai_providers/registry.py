# ai_providers/registry.py
import logging

from .anthropic_provider import AnthropicProvider
from .base import AIProvider
from .deepseek_provider import DeepSeekProvider
from .errors import (
    ContextLengthExceeded, MissingCredentials, ProviderCallFailed, ProviderHttpError,
    ProviderUnreachable, UnknownProvider, UnparseableResponse,
    looks_like_context_overflow,
)
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider
from .mistral_provider import MistralProvider
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDERS = {
    "openai": OpenAIProvider(),
    "anthropic": AnthropicProvider(),
    "deepseek": DeepSeekProvider(),
    "gemini": GeminiProvider(),
    "mistral": MistralProvider(),
    "ollama": OllamaProvider(),
    "groq": GroqProvider(),
}

DEFAULT_MODELS = {
    "openai": "gpt-4",
    "anthropic": "claude-3-5-sonnet-latest",
    "deepseek": "deepseek-chat",
    "gemini": "gemini-1.5-pro",
    "mistral": "mistral-large-latest",
    "ollama": "llama3",
    "groq": "llama-3.3-70b-versatile",
}

DISPLAY_NAMES = {
    "openai": "OpenAI",
    "anthropic": "Anthropic",
    "deepseek": "DeepSeek",
    "gemini": "Google (Gemini)",
    "mistral": "Mistral AI",
    "ollama": "Ollama (Local)",
    "groq": "Groq",
}


def get_provider(name: str) -> AIProvider:
    try:
        return PROVIDERS[name]
    except KeyError:
        raise UnknownProvider(name) from None


def register_provider(name: str, provider: AIProvider):
    PROVIDERS[name] = provider


def display_name(name: str) -> str:
    return DISPLAY_NAMES.get(name, name)


def check_credentials(config) -> AIProvider:
    provider = get_provider(config.provider)
    if provider.requires_api_key and not (config.api_key or "").strip():
        raise MissingCredentials(display_name(config.provider))
    return provider


def call_provider(config, system: str, user: str, max_tokens: int, temperature=None) -> str:
    """
    Route one request to the adapter registered for `config.provider`.

    ContextLengthExceeded and UnparseableResponse reach the caller untouched;
    any other failure, an unreachable local server included, is wrapped in
    ProviderCallFailed with the provider and model attached.
    """
    provider = check_credentials(config)
    model = config.model or DEFAULT_MODELS.get(config.provider, "")
    logger.info("Calling %s (%s), max_tokens=%s", config.provider, model, max_tokens)
    try:
        return provider.call(system, user, config, model, max_tokens, temperature=temperature)
    except (ContextLengthExceeded, UnparseableResponse):
        raise
    except ProviderHttpError as e:
        if looks_like_context_overflow(e.message):
            raise ContextLengthExceeded(e.message) from e
        raise ProviderCallFailed(config.provider, model, e) from e
    except ProviderUnreachable as e:
        logger.warning("%s", e)
        raise ProviderCallFailed(config.provider, model, e) from e
    except Exception as e:
        logger.exception("%s (%s) call failed", config.provider, model)
        raise ProviderCallFailed(config.provider, model, e) from e


