# ai_providers/mistral_provider.py
from .base import OpenAICompatibleProvider

MISTRAL_URL = "https://api.mistral.ai/v1/chat/completions"

OVERFLOW_PHRASES = ("too large for model", "maximum context length")


class MistralProvider(OpenAICompatibleProvider):
    name = "mistral"
    url = MISTRAL_URL

    def is_context_overflow(self, err, message, text):
        if err.get("type") == "context_length_exceeded":
            return True
        m = message.lower()
        return any(p in m for p in OVERFLOW_PHRASES)
