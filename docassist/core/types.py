"""Result contracts returned by generation clients and the engine."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GenerationResult:
    """Single generated document from the text provider."""

    document: str


@dataclass(frozen=True)
class ImageGenerationResult:
    """Demultiplexed multimodal output.

    Attributes:
        image_data_uri: Self-contained `data:{mime};base64,...` URI.
        accompanying_text: Newline-joined text parts, or `None` when absent.
    """

    image_data_uri: str | None = None
    accompanying_text: str | None = None


@dataclass(frozen=True)
class DocumentOutcome:
    """Generated document plus any non-fatal context-gathering errors."""

    document: str
    context_errors: list[str] = field(default_factory=list)
