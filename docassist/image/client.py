"""Multimodal image-generation client.

Processing flow:
    1. Validate credential and prompt (no request on failure).
    2. POST `{contents, generationConfig:{responseModalities:["TEXT","IMAGE"]}}`
       with the credential as the `key` query parameter.
    3. Demultiplex `candidates[0].content.parts` in arrival order:
       inline-data parts become a `data:` URI, text parts are accumulated.

Demultiplexing rules:
    - The last inline-data part wins; earlier images are overwritten.
    - Text parts are newline-joined in arrival order.
    - Inline-data parts missing their payload or MIME type are skipped.
    - A response without any inline-data part raises `NoImageProduced`, which
      still carries the accumulated text.

Error handling strategy:
    - Non-success status -> `ProviderError` with `error.message` from the body,
      or `"API error: {status} {status_text}"` when the body cannot be parsed.
    - Transport errors -> `ProviderError`.

Retry behavior:
    None. One attempt per call.
"""

import logging

import requests
from pydantic import BaseModel, Field, ValidationError

from docassist.core.types import ImageGenerationResult
from docassist.errors import EmptyPrompt, MissingCredential, NoImageProduced, ProviderError
from docassist.llm.provider_config import IMAGE_CREDENTIAL, Settings, load_settings


logger = logging.getLogger(__name__)


# ============================================================
# WIRE ENVELOPES (multimodal provider)
# ============================================================

class InlineData(BaseModel):
    """Inline binary payload; a part missing either field is not an image."""

    data: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class ContentPart(BaseModel):
    """One response segment: inline binary data, text, or something else."""

    inline_data: InlineData | None = Field(default=None, alias="inlineData")
    text: str | None = None


class CandidateContent(BaseModel):
    parts: list[ContentPart] = Field(default_factory=list)


class Candidate(BaseModel):
    content: CandidateContent | None = None


class GenerateContentResponse(BaseModel):
    """Success envelope: `{candidates:[{content:{parts:[...]}}]}`."""

    candidates: list[Candidate] = Field(default_factory=list)

    def parts(self) -> list[ContentPart]:
        if not self.candidates or self.candidates[0].content is None:
            return []
        return self.candidates[0].content.parts


class ProviderErrorDetail(BaseModel):
    message: str | None = None


class GenerateContentError(BaseModel):
    """Error envelope: `{error:{message}}`."""

    error: ProviderErrorDetail | None = None


def to_data_uri(mime_type: str, data: str) -> str:
    """Combine base64 payload and MIME type into a self-contained data URI."""
    return f"data:{mime_type};base64,{data}"


def demultiplex_parts(parts: list[ContentPart]) -> ImageGenerationResult:
    """Split an ordered part sequence into one image and accompanying text.

    Raises:
        NoImageProduced: When no inline-data part is present.
    """
    image_data_uri = None
    texts = []

    for part in parts:
        inline = part.inline_data
        if inline is not None and inline.data and inline.mime_type:
            image_data_uri = to_data_uri(inline.mime_type, inline.data)
        elif inline is None and part.text is not None:
            texts.append(part.text)

    accompanying_text = "\n".join(texts) if texts else None

    if image_data_uri is None:
        raise NoImageProduced(accompanying_text)

    return ImageGenerationResult(
        image_data_uri=image_data_uri,
        accompanying_text=accompanying_text,
    )


# ============================================================
# CLIENT
# ============================================================

class ImageGenerationClient:
    """Text-to-image client for a `generateContent`-style endpoint."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or load_settings()

    @staticmethod
    def build_payload(prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

    def generate_image(self, prompt: str, credential: str) -> ImageGenerationResult:
        """Generate one image (plus optional caption text) for `prompt`."""
        if not credential:
            raise MissingCredential(IMAGE_CREDENTIAL)
        if not prompt or not prompt.strip():
            raise EmptyPrompt()

        logger.info("Dispatching image generation: model=%s", self.settings.image_model)

        try:
            response = requests.post(
                self.settings.image_api_url,
                params={"key": credential},
                headers={"Content-Type": "application/json"},
                json=self.build_payload(prompt),
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.exceptions.RequestException as err:
            logger.warning("Image provider request failed: %s", type(err).__name__)
            raise ProviderError(f"Image provider request failed ({type(err).__name__})") from err

        if not response.ok:
            message = self._error_message(response)
            logger.warning("Image provider returned %s: %s", response.status_code, message)
            raise ProviderError(message, status_code=response.status_code)

        try:
            parsed = GenerateContentResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            logger.warning("Image provider returned an unparseable success body")
            parsed = GenerateContentResponse()

        result = demultiplex_parts(parsed.parts())
        logger.info(
            "Image generated: data_uri_chars=%d text=%s",
            len(result.image_data_uri or ""),
            result.accompanying_text is not None,
        )
        return result

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            envelope = GenerateContentError.model_validate(response.json())
        except (ValueError, ValidationError):
            envelope = GenerateContentError()

        if envelope.error is not None and envelope.error.message:
            return envelope.error.message
        return f"API error: {response.status_code} {response.reason or ''}".rstrip()
