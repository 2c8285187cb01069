# ai_providers/anthropic_provider.py
from .base import HTTPProvider

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

OVERFLOW_PHRASES = ("prompt is too long", "context window", "too many tokens")


class AnthropicProvider(HTTPProvider):
    name = "anthropic"

    def call(self, system, user, credentials, model, max_tokens, temperature=None):
        # instructions travel inside the single user turn
        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": f"{system}\n\n{user}"}],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        headers = {
            "x-api-key": credentials.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        return self.extract_text(self.post(ANTHROPIC_URL, payload, headers=headers))

    def extract_text(self, data):
        blocks = data.get("content") or []
        text = "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        return self.require_text(text)

    def is_context_overflow(self, err, message, text):
        if err.get("type") == "context_length_exceeded":
            return True
        m = message.lower()
        return any(p in m for p in OVERFLOW_PHRASES)
