"""Chat-completion transport client for document generation.

Architectural role:
    Sends one composed prompt to an OpenAI-compatible chat-completion endpoint
    and extracts the single generated document from the response envelope.

Model invocation flow:
    `engine.generate_document` -> `TextGenerationClient.generate(prompt, key)`
    -> POST `{model, messages, stream:false}` -> `choices[0].message.content`.

Retry behavior:
    No retry loop is implemented. Each call is attempted once.

Failure handling model:
    Failures raise `docassist.errors` exceptions; nothing is converted into
    return-value error strings:
        - empty credential -> `MissingCredential` (no request is sent)
        - blank prompt -> `EmptyPrompt` (no request is sent)
        - non-success status / transport error -> `ProviderError`
        - missing `choices[0].message.content` -> `MalformedResponse`
"""

import logging

import requests
from pydantic import BaseModel, ValidationError

from docassist.core.types import GenerationResult
from docassist.errors import EmptyPrompt, MalformedResponse, MissingCredential, ProviderError
from docassist.llm.provider_config import SYSTEM_MESSAGE, TEXT_CREDENTIAL, Settings, load_settings


logger = logging.getLogger(__name__)


# ============================================================
# WIRE ENVELOPES (chat-completion provider)
# ============================================================

class ChatMessage(BaseModel):
    role: str | None = None
    content: str | None = None


class ChatChoice(BaseModel):
    message: ChatMessage | None = None


class ChatCompletionResponse(BaseModel):
    """Success envelope: `{choices:[{message:{content}}]}`."""

    choices: list[ChatChoice] | None = None


class ChatErrorEnvelope(BaseModel):
    """Error envelope: `{message}`."""

    message: str | None = None


# ============================================================
# CLIENT
# ============================================================

class TextGenerationClient:
    """Non-streaming chat-completion client."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or load_settings()

    def build_payload(self, prompt: str) -> dict:
        """Build the request body for one prompt."""
        return {
            "model": self.settings.text_model,
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
        }

    def generate(self, prompt: str, credential: str) -> GenerationResult:
        """Generate one document for `prompt`.

        Args:
            prompt: Composed prompt (context already merged in).
            credential: Bearer token for the provider.

        Returns:
            `GenerationResult` holding the generated document.
        """
        if not credential:
            raise MissingCredential(TEXT_CREDENTIAL)
        if not prompt or not prompt.strip():
            raise EmptyPrompt()

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credential}",
        }

        logger.info(
            "Dispatching text generation: model=%s prompt_chars=%d",
            self.settings.text_model,
            len(prompt),
        )

        try:
            response = requests.post(
                self.settings.text_api_url,
                headers=headers,
                json=self.build_payload(prompt),
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.exceptions.RequestException as err:
            logger.warning("Text provider request failed: %s", type(err).__name__)
            raise ProviderError(f"Text provider request failed ({type(err).__name__})") from err

        if not response.ok:
            message = self._error_message(response)
            logger.warning("Text provider returned %s: %s", response.status_code, message)
            raise ProviderError(message, status_code=response.status_code)

        return GenerationResult(document=self._extract_document(response))

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Prefer the envelope's `message`, else fall back to the status text."""
        try:
            envelope = ChatErrorEnvelope.model_validate(response.json())
        except (ValueError, ValidationError):
            envelope = ChatErrorEnvelope()

        if envelope.message:
            return envelope.message
        return f"API error: {response.reason or response.status_code}"

    @staticmethod
    def _extract_document(response: requests.Response) -> str:
        try:
            parsed = ChatCompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as err:
            raise MalformedResponse("response body is not a chat-completion envelope") from err

        if not parsed.choices:
            raise MalformedResponse("response has no choices")

        message = parsed.choices[0].message
        if message is None or message.content is None:
            raise MalformedResponse("first choice has no message content")

        return message.content
