"""Request orchestration for document and image generation.

Control-flow model:
    Document path:
        1. Read the text credential (`MissingCredential` before any network use).
        2. Validate the instruction (`EmptyPrompt`).
        3. Aggregate URL/file context when any sources were supplied.
        4. Compose context + instruction.
        5. Dispatch to the text client; return the document with context errors.
    Image path (independent):
        1. Read the image credential.
        2. Dispatch to the image client.

Shared state:
    The two paths share nothing but the injected credential store, which is
    only read here.

Error handling strategy:
    Generation errors propagate unchanged to adapters. Context-source failures
    are returned as strings on `DocumentOutcome.context_errors`.
"""

import asyncio
import logging
from typing import Iterable

from docassist.core.types import DocumentOutcome, ImageGenerationResult
from docassist.credentials.store import CredentialStore
from docassist.errors import EmptyPrompt, MissingCredential
from docassist.image.client import ImageGenerationClient
from docassist.llm.client import TextGenerationClient
from docassist.llm.provider_config import IMAGE_CREDENTIAL, TEXT_CREDENTIAL
from docassist.prompting.prompt_composer import compose
from docassist.retrieval.context_aggregator import ContextAggregator, FileSource, UrlSource


logger = logging.getLogger(__name__)


class DocumentAssistant:
    """Wires the generation pipeline around an injected credential store."""

    def __init__(
        self,
        store: CredentialStore,
        aggregator: ContextAggregator | None = None,
        text_client: TextGenerationClient | None = None,
        image_client: ImageGenerationClient | None = None,
    ):
        self.store = store
        self.aggregator = aggregator or ContextAggregator()
        self.text_client = text_client or TextGenerationClient()
        self.image_client = image_client or ImageGenerationClient()

    def _credential(self, slot: str) -> str:
        credential = (self.store.get(slot) or "").strip()
        if not credential:
            raise MissingCredential(slot)
        return credential

    async def agenerate_document(
        self,
        instruction: str,
        urls: Iterable[str | UrlSource] = (),
        files: Iterable[FileSource] = (),
    ) -> DocumentOutcome:
        """Generate a document, optionally grounded on URL/file context."""
        credential = self._credential(TEXT_CREDENTIAL)
        if not instruction or not instruction.strip():
            raise EmptyPrompt()

        url_list = list(urls)
        file_list = list(files)
        context = ""
        context_errors: list[str] = []

        if url_list or file_list:
            bundle = await self.aggregator.aaggregate(url_list, file_list)
            context = bundle.text
            context_errors = bundle.error_messages
            if not bundle.has_content:
                logger.warning("No context gathered; generating from instruction only")

        prompt = compose(context, instruction)
        result = await asyncio.to_thread(self.text_client.generate, prompt, credential)

        return DocumentOutcome(document=result.document, context_errors=context_errors)

    def generate_document(
        self,
        instruction: str,
        urls: Iterable[str | UrlSource] = (),
        files: Iterable[FileSource] = (),
    ) -> DocumentOutcome:
        """Synchronous wrapper for `agenerate_document`."""
        return asyncio.run(self.agenerate_document(instruction, urls, files))

    def generate_image(self, prompt: str) -> ImageGenerationResult:
        """Generate an image plus optional caption text."""
        credential = self._credential(IMAGE_CREDENTIAL)
        return self.image_client.generate_image(prompt, credential)
