"""
HTTP API adapter for the DocAssist engine.

Architectural role:
- Expose document generation, image generation, and credential management.
- Validate request bodies with pydantic models.
- Delegate generation work to `docassist.core.engine.DocumentAssistant`.
- Map pipeline exceptions to HTTP status codes with `{"error": ...}` bodies.

Endpoint responsibilities:
- `POST /v1/documents/generate`: context-augmented document generation.
- `POST /v1/images/generate`: multimodal image generation.
- `GET /v1/credentials`: configured state and masked value per slot.
- `PUT /v1/credentials/{name}`, `DELETE /v1/credentials/{name}`: save/clear.

Error mapping:
- `MissingCredential`, `EmptyPrompt` -> 400
- `NoImageProduced` -> 422 (body keeps `accompanying_text`)
- `ProviderError`, `MalformedResponse` -> 502

Side effects:
- Loads environment variables at import time via `load_dotenv()`.
- Credential writes persist through the injected store.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from docassist.core.engine import DocumentAssistant
from docassist.credentials.store import default_store, mask_credential, resolve_slot
from docassist.errors import (
    DocAssistError,
    EmptyPrompt,
    MalformedResponse,
    MissingCredential,
    NoImageProduced,
    ProviderError,
)
from docassist.image.client import ImageGenerationClient
from docassist.llm.client import TextGenerationClient
from docassist.llm.provider_config import CREDENTIAL_SLOTS, load_settings
from docassist.retrieval.context_aggregator import (
    AggregatorConfig,
    ContextAggregator,
    FileSource,
    parse_url_lines,
)


logger = logging.getLogger(__name__)

app = FastAPI(title="DocAssist")
# Request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"


# ============================================================
# Engine wiring
# ============================================================

_ASSISTANT: DocumentAssistant | None = None


def get_assistant() -> DocumentAssistant:
    """Lazily build the process-wide assistant from current settings."""
    global _ASSISTANT
    if _ASSISTANT is None:
        settings = load_settings()
        _ASSISTANT = DocumentAssistant(
            store=default_store(settings.credentials_path),
            aggregator=ContextAggregator(AggregatorConfig.from_settings(settings)),
            text_client=TextGenerationClient(settings),
            image_client=ImageGenerationClient(settings),
        )
    return _ASSISTANT


# ============================================================
# Request Schemas
# ============================================================

class UploadedFile(BaseModel):
    name: str
    content: str


class DocumentRequest(BaseModel):
    """`urls` accepts a list or a newline-separated string."""

    prompt: str
    urls: list[str] | str = Field(default_factory=list)
    files: list[UploadedFile] = Field(default_factory=list)


class ImageRequest(BaseModel):
    prompt: str


class CredentialValue(BaseModel):
    value: str


# ============================================================
# Error mapping
# ============================================================

def _status_for(exc: DocAssistError) -> int:
    if isinstance(exc, (MissingCredential, EmptyPrompt)):
        return 400
    if isinstance(exc, NoImageProduced):
        return 422
    if isinstance(exc, (ProviderError, MalformedResponse)):
        return 502
    return 500


@app.exception_handler(DocAssistError)
async def handle_pipeline_error(request, exc: DocAssistError):
    content = {"error": str(exc)}
    if isinstance(exc, NoImageProduced):
        content["accompanying_text"] = exc.accompanying_text
    if DEBUG:
        logger.info("Request to %s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=_status_for(exc), content=content)


# ============================================================
# Generation
# ============================================================

@app.post("/v1/documents/generate")
async def generate_document(
    body: DocumentRequest,
    assistant: DocumentAssistant = Depends(get_assistant),
):
    """Generate a markdown document, optionally grounded on URLs and files."""
    urls = parse_url_lines(body.urls) if isinstance(body.urls, str) else body.urls
    files = [FileSource.from_text(f.name, f.content) for f in body.files]

    if DEBUG:
        logger.info("Document request: urls=%d files=%d", len(urls), len(files))

    outcome = await assistant.agenerate_document(body.prompt, urls, files)

    return {
        "document": outcome.document,
        "context_errors": outcome.context_errors,
    }


@app.post("/v1/images/generate")
def generate_image(
    body: ImageRequest,
    assistant: DocumentAssistant = Depends(get_assistant),
):
    """Generate an image data URI plus optional accompanying text."""
    result = assistant.generate_image(body.prompt)
    return {
        "image_data_uri": result.image_data_uri,
        "accompanying_text": result.accompanying_text,
    }


# ============================================================
# Credentials
# ============================================================

@app.get("/v1/credentials")
def list_credentials(assistant: DocumentAssistant = Depends(get_assistant)):
    """Report which credential slots are configured, masked."""
    data = []
    for slot in CREDENTIAL_SLOTS:
        value = assistant.store.get(slot)
        data.append({
            "name": slot,
            "configured": bool(value),
            "masked": mask_credential(value),
        })
    return {"object": "list", "data": data}


@app.put("/v1/credentials/{name}")
def save_credential(
    name: str,
    body: CredentialValue,
    assistant: DocumentAssistant = Depends(get_assistant),
):
    slot = resolve_slot(name)
    if slot is None:
        return JSONResponse(status_code=404, content={"error": f"Unknown credential: {name}"})

    value = body.value.strip()
    if not value:
        return JSONResponse(status_code=400, content={"error": "Credential value is empty"})

    assistant.store.set(slot, value)
    return {"name": slot, "configured": True, "masked": mask_credential(value)}


@app.delete("/v1/credentials/{name}")
def clear_credential(name: str, assistant: DocumentAssistant = Depends(get_assistant)):
    slot = resolve_slot(name)
    if slot is None:
        return JSONResponse(status_code=404, content={"error": f"Unknown credential: {name}"})

    assistant.store.clear(slot)
    return {"name": slot, "configured": False}
