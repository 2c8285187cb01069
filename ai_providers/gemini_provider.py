# ai_providers/gemini_provider.py
from .base import HTTPProvider

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

OVERFLOW_PHRASES = ("exceeds the maximum number of tokens", "input token count", "too long")


class GeminiProvider(HTTPProvider):
    name = "gemini"
    temperature = 0.7

    def call(self, system, user, credentials, model, max_tokens, temperature=None):
        payload = {
            "contents": [{"parts": [{"text": f"{system}\n\n{user}"}]}],
            "generationConfig": {
                "temperature": self.temperature if temperature is None else temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        data = self.post(
            GEMINI_URL.format(model=model),
            payload,
            headers={"Content-Type": "application/json"},
            params={"key": credentials.api_key},
        )
        return self.extract_text(data)

    def extract_text(self, data):
        candidates = data.get("candidates") or []
        if not candidates:
            return self.require_text("")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return self.require_text("".join(p.get("text", "") for p in parts))

    def is_context_overflow(self, err, message, text):
        m = message.lower()
        return any(p in m for p in OVERFLOW_PHRASES)
