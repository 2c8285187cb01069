import json
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to sys.path so the flat packages import
ROOT = Path(__file__).resolve().parent.parent
if ROOT.as_posix() not in sys.path:
    sys.path.insert(0, ROOT.as_posix())

from ai_providers.base import AIProvider  # noqa: E402
from ai_providers.registry import PROVIDERS  # noqa: E402


class LocalStub(AIProvider):
    """Provider that answers every call with a canned reply and records the calls."""

    name = "stub"
    requires_api_key = False

    def __init__(self, reply: str = ""):
        self.reply = reply
        self.calls = []

    def call(self, system, user, credentials, model, max_tokens, temperature=None):
        self.calls.append({
            'system': system, 'user': user, 'model': model,
            'max_tokens': max_tokens, 'temperature': temperature,
        })
        return self.reply


def make_response(status=200, body=None, text=None):
    """Stand-in for a requests.Response."""
    resp = Mock()
    resp.status_code = status
    resp.ok = status < 400
    resp.text = text if text is not None else json.dumps(body)
    if body is None:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture
def fake_provider(monkeypatch):
    """Register a LocalStub under the id "fake" for the duration of a test."""
    def _register(reply: str) -> LocalStub:
        stub = LocalStub(reply)
        monkeypatch.setitem(PROVIDERS, "fake", stub)
        return stub
    return _register


@pytest.fixture
def photosynthesis():
    return "Photosynthesis converts light to energy."


@pytest.fixture
def session():
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker

    from models import Base

    engine = create_engine("sqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    s = sessionmaker(bind=engine)()
    yield s
    s.close()
    engine.dispose()


@pytest.fixture
def clean_env(monkeypatch):
    """Strip provider settings the developer's shell may carry."""
    for var in ("LLM_PROVIDER", "OLLAMA_URL"):
        monkeypatch.delenv(var, raising=False)
    for p in PROVIDERS:
        monkeypatch.delenv(f"{p.upper()}_API_KEY", raising=False)
        monkeypatch.delenv(f"{p.upper()}_MODEL", raising=False)
