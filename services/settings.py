# services/settings.py
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from ai_providers.errors import UnknownProvider
from ai_providers.ollama_provider import OLLAMA_URL
from ai_providers.registry import DEFAULT_MODELS, PROVIDERS, get_provider
from models import Setting
from services.schema import ProviderConfig

DEFAULT_PROVIDER = "openai"


@dataclass
class Settings:
    provider: str = DEFAULT_PROVIDER
    api_keys: Dict[str, str] = field(default_factory=dict)
    models: Dict[str, str] = field(default_factory=dict)
    ollama_url: str = OLLAMA_URL

    def provider_config(self) -> ProviderConfig:
        p = self.provider
        return ProviderConfig(
            provider=p,
            api_key=self.api_keys.get(p) or None,
            model=self.models.get(p) or DEFAULT_MODELS.get(p),
            endpoint=self.ollama_url if p == "ollama" else None,
        )

    def masked(self) -> dict:
        """Settings safe to hand back to a client: keys reduced to their last 4 chars."""
        return {
            "provider": self.provider,
            "api_keys": {p: ("..." + k[-4:] if k else "") for p, k in self.api_keys.items()},
            "models": dict(self.models),
            "ollama_url": self.ollama_url,
        }


def from_env() -> Settings:
    s = Settings(provider=os.getenv("LLM_PROVIDER", DEFAULT_PROVIDER),
                 ollama_url=os.getenv("OLLAMA_URL", OLLAMA_URL))
    for p in PROVIDERS:
        key = os.getenv(f"{p.upper()}_API_KEY")
        if key:
            s.api_keys[p] = key
        s.models[p] = os.getenv(f"{p.upper()}_MODEL") or DEFAULT_MODELS.get(p, "")
    return s


class SettingsStore:
    """
    Key/value rows in the `settings` table layered over the environment:
    "provider", "ollama_url", "api_key.<provider>", "model.<provider>".
    """

    def __init__(self, session):
        self.session = session

    def get(self) -> Settings:
        s = from_env()
        for row in self.session.query(Setting).all():
            if row.key == "provider":
                s.provider = row.value
            elif row.key == "ollama_url":
                s.ollama_url = row.value
            elif row.key.startswith("api_key."):
                s.api_keys[row.key[len("api_key."):]] = row.value
            elif row.key.startswith("model."):
                s.models[row.key[len("model."):]] = row.value
        return s

    def set(self, provider: Optional[str] = None, api_keys: Optional[dict] = None,
            models: Optional[dict] = None, ollama_url: Optional[str] = None) -> Settings:
        changes = {}
        if provider is not None:
            get_provider(provider)
            changes["provider"] = provider
        for p, key in (api_keys or {}).items():
            self._check(p)
            changes[f"api_key.{p}"] = (key or "").strip()
        for p, model in (models or {}).items():
            self._check(p)
            changes[f"model.{p}"] = model
        if ollama_url is not None:
            changes["ollama_url"] = ollama_url.strip()

        for key, value in changes.items():
            row = self.session.get(Setting, key)
            if row is None:
                self.session.add(Setting(key=key, value=value))
            else:
                row.value = value
        self.session.commit()
        return self.get()

    def _check(self, provider: str):
        if provider not in PROVIDERS:
            raise UnknownProvider(provider)
