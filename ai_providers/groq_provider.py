# ai_providers/groq_provider.py
import logging

from groq import APIStatusError, Groq

from .base import AIProvider
from .errors import ContextLengthExceeded, ProviderHttpError, ProviderResponseError

logger = logging.getLogger(__name__)


class GroqProvider(AIProvider):
    name = "groq"
    temperature = 0.2

    def call(self, system, user, credentials, model, max_tokens, temperature=None):
        # fresh client per call; the SDK's own retries are switched off
        client = Groq(api_key=credentials.api_key, max_retries=0)
        try:
            resp = client.chat.completions.create(
                model=model,
                messages=[{"role": "system", "content": system},
                          {"role": "user", "content": user}],
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=max_tokens,
            )
        except APIStatusError as e:
            # the SDK usually unwraps "error" already, older builds do not
            body = e.body if isinstance(e.body, dict) else {}
            err = body["error"] if isinstance(body.get("error"), dict) else body
            message = str(err.get("message") or e.message)
            if err.get("code") == "context_length_exceeded":
                raise ContextLengthExceeded(message) from e
            logger.warning("groq returned HTTP %s: %s", e.status_code, message[:200])
            raise ProviderHttpError(e.status_code, e.response.text, message) from e

        if not resp.choices:
            raise ProviderResponseError("groq: missing or empty choices")
        content = resp.choices[0].message.content or ""
        if not content.strip():
            raise ProviderResponseError("No content from groq.")
        return content
