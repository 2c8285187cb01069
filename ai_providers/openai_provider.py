# ai_providers/openai_provider.py
import re

from .base import OpenAICompatibleProvider

OPENAI_URL = "https://api.openai.com/v1/chat/completions"

# o1, o3, o4-mini ... reasoning tokens are billed against the completion budget
REASONING_MODEL = re.compile(r"^o\d")
REASONING_TOKEN_MULTIPLIER = 8
# these variants reject a separate system message
NO_SYSTEM_ROLE = ("o1-mini", "o1-preview")


def is_reasoning_model(model: str) -> bool:
    return bool(REASONING_MODEL.match(model or ""))


class OpenAIProvider(OpenAICompatibleProvider):
    name = "openai"
    url = OPENAI_URL

    def build_payload(self, system, user, model, max_tokens, temperature=None):
        if not is_reasoning_model(model):
            return super().build_payload(system, user, model, max_tokens, temperature)

        if model.startswith(NO_SYSTEM_ROLE):
            messages = [{"role": "user", "content": f"{system}\n\n{user}"}]
        else:
            messages = [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ]
        # reasoning models only accept the default temperature
        return {
            "model": model,
            "messages": messages,
            "max_completion_tokens": max_tokens * REASONING_TOKEN_MULTIPLIER,
        }

    def is_context_overflow(self, err, message, text):
        return err.get("code") == "context_length_exceeded"
