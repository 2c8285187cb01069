# ai_providers/ollama_provider.py
import requests

from .base import HTTPProvider
from .errors import ProviderUnreachable

OLLAMA_URL = "http://localhost:11434"  # default

# Ollama errors are free text, no structured code to look at
OVERFLOW_PHRASES = ("context length", "context window", "exceeds the context", "prompt is too long")


class OllamaProvider(HTTPProvider):
    name = "ollama"
    requires_api_key = False
    temperature = 0.7

    def call(self, system, user, credentials, model, max_tokens, temperature=None):
        base_url = (getattr(credentials, "endpoint", None) or OLLAMA_URL).rstrip("/")
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "stream": False,
            "options": {
                "temperature": self.temperature if temperature is None else temperature,
                "num_predict": max_tokens,
            },
        }
        try:
            data = self.post(f"{base_url}/api/chat", payload)
        except requests.exceptions.ConnectionError as e:
            raise ProviderUnreachable(base_url) from e
        return self.extract_text(data)

    def extract_text(self, data):
        return self.require_text((data.get("message") or {}).get("content"))

    def is_context_overflow(self, err, message, text):
        t = (text or "").lower()
        return any(p in t for p in OVERFLOW_PHRASES)
