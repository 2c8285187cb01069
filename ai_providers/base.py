# ai_providers/base.py
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

import requests

from .errors import ContextLengthExceeded, ProviderHttpError, ProviderResponseError

logger = logging.getLogger(__name__)

# unset -> requests default (no timeout)
REQUEST_TIMEOUT = float(os.getenv("QUIZ_HTTP_TIMEOUT", "0")) or None


class AIProvider(ABC):
    name = ""
    requires_api_key = True

    @abstractmethod
    def call(self, system: str, user: str, credentials, model: str, max_tokens: int,
             temperature: Optional[float] = None) -> str:
        """
        Send one completion request and return the raw completion text.
        `credentials` carries `api_key` and, for local servers, `endpoint`.
        A temperature of None means the provider default.
        """


def _error_payload(body) -> dict:
    """Most providers nest details under "error"; Mistral puts them at top level."""
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            return err
        if isinstance(err, str):
            return {"message": err}
        return body
    return {}


class HTTPProvider(AIProvider):
    """
    Shared plumbing for providers spoken to over plain JSON-over-HTTP:
    post once, turn non-2xx into ProviderHttpError / ContextLengthExceeded,
    hand the decoded body to `extract_text`.
    """

    def post(self, url: str, payload: dict, headers: Optional[dict] = None,
             params: Optional[dict] = None) -> dict:
        logger.debug("POST %s (%s)", url, self.name)
        resp = requests.post(url, json=payload, headers=headers, params=params, timeout=REQUEST_TIMEOUT)
        if not resp.ok:
            self.raise_for_error(resp.status_code, resp.text)
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderResponseError(f"{self.name}: response is not JSON") from e

    def raise_for_error(self, status: int, text: str):
        try:
            body = json.loads(text)
        except ValueError:
            body = None
        err = _error_payload(body)
        message = str(err.get("message") or text or "")
        if self.is_context_overflow(err, message, text):
            logger.warning("%s rejected prompt as too large (HTTP %s)", self.name, status)
            raise ContextLengthExceeded(message)
        logger.warning("%s returned HTTP %s: %s", self.name, status, message[:200])
        raise ProviderHttpError(status, text, message)

    def is_context_overflow(self, err: dict, message: str, text: str) -> bool:
        return False

    @abstractmethod
    def extract_text(self, data: dict) -> str:
        ...

    def require_text(self, content) -> str:
        if not content or not str(content).strip():
            raise ProviderResponseError(f"No content from {self.name}.")
        return str(content)


class OpenAICompatibleProvider(HTTPProvider):
    """Chat-completions shape shared by OpenAI, DeepSeek and Mistral."""

    url = ""
    temperature = 0.7

    def headers(self, credentials) -> dict:
        return {
            "Authorization": f"Bearer {credentials.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(self, system: str, user: str, model: str, max_tokens: int,
                      temperature: Optional[float] = None) -> dict:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens,
        }

    def call(self, system, user, credentials, model, max_tokens, temperature=None):
        payload = self.build_payload(system, user, model, max_tokens, temperature)
        data = self.post(self.url, payload, headers=self.headers(credentials))
        return self.extract_text(data)

    def extract_text(self, data):
        choices = data.get("choices") or []
        if not choices:
            raise ProviderResponseError(f"{self.name}: missing or empty choices")
        message = choices[0].get("message") or {}
        return self.require_text(message.get("content"))
