"""Provider/runtime configuration for the generation layer.

Architectural role:
    Centralizes endpoint, model, timeout, and credential-slot settings consumed by
    `docassist.llm.client`, `docassist.image.client`,
    `docassist.retrieval.context_aggregator`, and `docassist.credentials.store`.

Determinism:
    Deterministic for a fixed process environment. Module constants are resolved
    at import time; `load_settings()` re-reads the environment on each call.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


# Text provider (OpenAI-compatible chat completion).
TEXT_API_URL = os.getenv("TEXT_API_URL", "https://api.deepseek.com/v1/chat/completions")
TEXT_MODEL_NAME = os.getenv("TEXT_MODEL_NAME", "deepseek-chat")

# Image provider (multimodal generateContent).
IMAGE_API_URL_TEMPLATE = os.getenv(
    "IMAGE_API_URL_TEMPLATE",
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
)
IMAGE_MODEL_NAME = os.getenv("IMAGE_MODEL_NAME", "gemini-2.0-flash-preview-image-generation")

# Shared system instruction sent with every text-generation request.
SYSTEM_MESSAGE = "You are a helpful assistant that generates markdown."

# Named credential slots.
TEXT_CREDENTIAL = "text_api_key"
IMAGE_CREDENTIAL = "image_api_key"
CREDENTIAL_SLOTS = (TEXT_CREDENTIAL, IMAGE_CREDENTIAL)

# Environment variables that override stored credentials.
CREDENTIAL_ENV_VARS = {
    TEXT_CREDENTIAL: "TEXT_API_KEY",
    IMAGE_CREDENTIAL: "IMAGE_API_KEY",
}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings snapshot.

    Relevant environment variables:
        - `TEXT_API_URL`, `TEXT_MODEL_NAME`
        - `IMAGE_API_URL_TEMPLATE`, `IMAGE_MODEL_NAME`
        - `REQUEST_TIMEOUT_SECONDS`
        - `CONTEXT_TIMEOUT_SECONDS`, `CONTEXT_USER_AGENT`, `CONTEXT_EXTRACT_HTML`
        - `CREDENTIALS_PATH`
    """

    text_api_url: str = TEXT_API_URL
    text_model: str = TEXT_MODEL_NAME
    image_api_url_template: str = IMAGE_API_URL_TEMPLATE
    image_model: str = IMAGE_MODEL_NAME
    request_timeout_seconds: float = 120.0
    context_timeout_seconds: float = 15.0
    context_user_agent: str = "docassist/1.0"
    context_extract_html: bool = False
    credentials_path: str = "config/credentials.json"

    @property
    def image_api_url(self) -> str:
        return self.image_api_url_template.format(model=self.image_model)


def load_settings() -> Settings:
    """Build a `Settings` snapshot from the current environment."""
    return Settings(
        text_api_url=os.getenv("TEXT_API_URL", TEXT_API_URL),
        text_model=os.getenv("TEXT_MODEL_NAME", TEXT_MODEL_NAME),
        image_api_url_template=os.getenv("IMAGE_API_URL_TEMPLATE", IMAGE_API_URL_TEMPLATE),
        image_model=os.getenv("IMAGE_MODEL_NAME", IMAGE_MODEL_NAME),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "120")),
        context_timeout_seconds=float(os.getenv("CONTEXT_TIMEOUT_SECONDS", "15")),
        context_user_agent=os.getenv("CONTEXT_USER_AGENT", "docassist/1.0").strip(),
        context_extract_html=_env_flag("CONTEXT_EXTRACT_HTML"),
        credentials_path=os.getenv("CREDENTIALS_PATH", "config/credentials.json"),
    )
