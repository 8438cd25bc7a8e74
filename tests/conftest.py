"""Shared fixtures: in-memory credentials, settings, and a wired assistant."""

import pytest

from docassist.core.engine import DocumentAssistant
from docassist.credentials.store import InMemoryCredentialStore
from docassist.llm.provider_config import IMAGE_CREDENTIAL, TEXT_CREDENTIAL, Settings
from docassist.retrieval.context_aggregator import ContextAggregator
from tests.helpers import FakeImageClient, FakeTextClient, url_transport


@pytest.fixture(autouse=True)
def isolate_credential_env(monkeypatch):
    """Keep real API keys in the environment from leaking into tests."""
    monkeypatch.delenv("TEXT_API_KEY", raising=False)
    monkeypatch.delenv("IMAGE_API_KEY", raising=False)


@pytest.fixture
def settings():
    return Settings(
        text_api_url="https://text.example/v1/chat/completions",
        text_model="test-chat",
        image_api_url_template="https://image.example/models/{model}:generateContent",
        image_model="test-image",
        request_timeout_seconds=5.0,
    )


@pytest.fixture
def store():
    return InMemoryCredentialStore({
        TEXT_CREDENTIAL: "sk-text-123456789",
        IMAGE_CREDENTIAL: "img-key-987654321",
    })


@pytest.fixture
def text_client():
    return FakeTextClient()


@pytest.fixture
def image_client():
    return FakeImageClient()


@pytest.fixture
def pages():
    """URL -> (status, text) map served by the assistant's mock transport."""
    return {}


@pytest.fixture
def assistant(store, text_client, image_client, pages):
    return DocumentAssistant(
        store=store,
        aggregator=ContextAggregator(transport=url_transport(pages)),
        text_client=text_client,
        image_client=image_client,
    )
