# ai_providers/deepseek_provider.py
from .base import OpenAICompatibleProvider

DEEPSEEK_URL = "https://api.deepseek.com/chat/completions"


class DeepSeekProvider(OpenAICompatibleProvider):
    name = "deepseek"
    url = DEEPSEEK_URL

    def is_context_overflow(self, err, message, text):
        return err.get("code") == "invalid_request_error" and "context length" in message.lower()
