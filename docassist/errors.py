"""Error taxonomy shared by the generation pipeline.

Propagation model:
    - Generation errors (`MissingCredential`, `EmptyPrompt`, `ProviderError`,
      `MalformedResponse`, `NoImageProduced`) abort a single generation call and
      are surfaced verbatim to the caller. They are never retried.
    - Per-source context failures are not raised. They are collected as
      `SourceError` records inside a `ContextBundle` (see
      `docassist.retrieval.context_aggregator`).

User-facing text:
    `str(exc)` is always a complete, user-visible message.
"""


class DocAssistError(Exception):
    """Base class for all pipeline errors."""


class MissingCredential(DocAssistError):
    """Raised when a provider credential is not configured."""

    def __init__(self, slot: str = ""):
        self.slot = slot
        label = f" ({slot})" if slot else ""
        super().__init__(f"API key is not configured{label}. Save it in settings first.")


class EmptyPrompt(DocAssistError):
    """Raised when a prompt is empty after trimming."""

    def __init__(self):
        super().__init__("Please enter a prompt.")


class ProviderError(DocAssistError):
    """Raised when a provider rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class MalformedResponse(DocAssistError):
    """Raised when a successful provider response lacks the expected content path."""

    def __init__(self, detail: str = "generated content not found in provider response"):
        super().__init__(f"Malformed response: {detail}")


class NoImageProduced(DocAssistError):
    """Raised when a multimodal response carries no inline image part.

    Any text the provider returned is kept on `accompanying_text` so callers can
    still show it.
    """

    def __init__(self, accompanying_text: str | None = None):
        self.accompanying_text = accompanying_text
        super().__init__("No image was generated.")


class NoContextRetrieved(DocAssistError):
    """Marker for a context batch that had no sources at all."""

    MESSAGE = "No context retrieved."

    def __init__(self):
        super().__init__(self.MESSAGE)
