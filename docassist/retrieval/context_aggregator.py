"""Reference-context aggregation for context-augmented generation.

Architectural role:
    Gathers heterogeneous reference material (remote URLs, local files) and merges
    it into a single context blob with provenance markers. The blob is handed to
    `docassist.prompting.prompt_composer.compose` by the engine.

Retrieval strategy:
    1. Normalize URL input (trim, drop blanks).
    2. Fetch every URL with one GET each, in submission order.
    3. Read every local file, in submission order.
    4. Record exactly one outcome per source: a content entry or an error record.
    5. Concatenate content entries with `--- Content from {label} ---` markers.

Ordering contract:
    URLs first, then files, each group in submission order. The fetch phase is
    sequential; total latency is the sum of per-source latencies.

Failure model:
    Per-source failures never abort the batch. They are collected on the bundle
    and logged. There is no retry: each source is attempted once.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Literal, Union

import httpx
import trafilatura

from docassist.errors import NoContextRetrieved
from docassist.llm.provider_config import Settings, load_settings


logger = logging.getLogger(__name__)


# ============================================================
# SOURCE TYPES
# ============================================================

@dataclass(frozen=True)
class UrlSource:
    """Remote reference identified by its URL."""

    location: str
    kind: Literal["url"] = field(default="url", init=False)


@dataclass(frozen=True)
class FileSource:
    """Local reference with a lazy content provider.

    `read` returns `str` or UTF-8 `bytes`, or an awaitable of either.
    """

    name: str
    read: Callable[[], Union[str, bytes, Awaitable[Union[str, bytes]]]]
    kind: Literal["file"] = field(default="file", init=False)

    @classmethod
    def from_path(cls, path: str | Path, name: str | None = None) -> "FileSource":
        """Build a source that reads `path` as bytes when aggregated."""
        file_path = Path(path)
        return cls(name=name or file_path.name, read=file_path.read_bytes)

    @classmethod
    def from_text(cls, name: str, text: str) -> "FileSource":
        """Build a source over already-loaded text (uploads, API payloads)."""
        return cls(name=name, read=lambda: text)


ReferenceSource = Union[UrlSource, FileSource]


# ============================================================
# BUNDLE
# ============================================================

@dataclass(frozen=True)
class ContextEntry:
    source_label: str
    body: str


@dataclass(frozen=True)
class SourceError:
    source_label: str
    message: str


@dataclass
class ContextBundle:
    """Ordered content entries plus ordered per-source error records."""

    entries: list[ContextEntry] = field(default_factory=list)
    errors: list[SourceError] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(self.entries)

    @property
    def text(self) -> str:
        """Concatenated context with a provenance marker before every entry."""
        return "".join(
            f"\n\n--- Content from {entry.source_label} ---\n{entry.body}"
            for entry in self.entries
        )

    @property
    def error_messages(self) -> list[str]:
        return [error.message for error in self.errors]


def parse_url_lines(text: str | None) -> list[str]:
    """Split newline-separated URL input, trimming and dropping blank lines."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


# ============================================================
# AGGREGATOR
# ============================================================

@dataclass(frozen=True)
class AggregatorConfig:
    """Network settings for URL fetching.

    `extract_html` enables main-text extraction for HTML responses; when it is
    off the raw response body is used as context.
    """

    timeout_seconds: float = 15.0
    user_agent: str = "docassist/1.0"
    extract_html: bool = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AggregatorConfig":
        settings = settings or load_settings()
        return cls(
            timeout_seconds=settings.context_timeout_seconds,
            user_agent=settings.context_user_agent,
            extract_html=settings.context_extract_html,
        )


class ContextAggregator:
    """Fetches URLs and reads files into a `ContextBundle`.

    Args:
        config: Network settings.
        transport: Optional httpx transport, used to substitute a mock transport.
    """

    def __init__(
        self,
        config: AggregatorConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or AggregatorConfig()
        self.transport = transport

    def aggregate(
        self,
        urls: Iterable[str | UrlSource] = (),
        files: Iterable[FileSource] = (),
    ) -> ContextBundle:
        """Synchronous wrapper for `aaggregate`.

        Calling this from a running event loop propagates `asyncio.run` limits.
        """
        return self._run_async(self.aaggregate(urls, files))

    async def aaggregate(
        self,
        urls: Iterable[str | UrlSource] = (),
        files: Iterable[FileSource] = (),
    ) -> ContextBundle:
        """Gather every source into a bundle, URLs first then files.

        Returns:
            A bundle with one entry or one error per source. With zero sources
            the bundle carries the single synthetic "No context retrieved." error.
        """
        url_list = [url for url in (self._location(item) for item in urls) if url]
        file_list = list(files)
        bundle = ContextBundle()

        if not url_list and not file_list:
            bundle.errors.append(SourceError("", NoContextRetrieved.MESSAGE))
            return bundle

        if url_list:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                follow_redirects=True,
                headers=self._default_headers(),
                transport=self.transport,
            ) as client:
                for url in url_list:
                    await self._collect_url(client, url, bundle)

        for source in file_list:
            await self._collect_file(source, bundle)

        logger.info(
            "Context aggregated: %d entries, %d errors",
            len(bundle.entries),
            len(bundle.errors),
        )
        return bundle

    async def _collect_url(self, client: httpx.AsyncClient, url: str, bundle: ContextBundle) -> None:
        try:
            response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._record_error(bundle, url, f"Failed to fetch {url}: {self._describe(exc)}")
            return

        if not response.is_success:
            reason = f"{response.status_code} {response.reason_phrase}".strip()
            self._record_error(bundle, url, f"Failed to fetch {url}: {reason}")
            return

        bundle.entries.append(ContextEntry(url, self._response_body(response)))

    async def _collect_file(self, source: FileSource, bundle: ContextBundle) -> None:
        try:
            content = source.read()
            if inspect.isawaitable(content):
                content = await content
            if isinstance(content, bytes):
                content = content.decode("utf-8")
        except Exception as exc:
            self._record_error(bundle, source.name, f"Failed to read {source.name}: {self._describe(exc)}")
            return

        bundle.entries.append(ContextEntry(source.name, content))

    def _response_body(self, response: httpx.Response) -> str:
        body = response.text
        if not self.config.extract_html:
            return body
        if "html" not in response.headers.get("content-type", "").lower():
            return body

        extracted = trafilatura.extract(
            body,
            include_comments=False,
            include_tables=True,
            include_images=False,
            include_links=False,
            output_format="txt",
        ) or ""
        return extracted if extracted.strip() else body

    @staticmethod
    def _location(item: str | UrlSource) -> str:
        location = item.location if isinstance(item, UrlSource) else item
        return (location or "").strip()

    @staticmethod
    def _record_error(bundle: ContextBundle, label: str, message: str) -> None:
        logger.warning(message)
        bundle.errors.append(SourceError(label, message))

    @staticmethod
    def _describe(exc: Exception) -> str:
        return str(exc) or type(exc).__name__

    def _default_headers(self) -> dict[str, str]:
        return {
            "Accept": "text/html, text/plain;q=0.9, */*;q=0.8",
            "User-Agent": self.config.user_agent,
        }

    def _run_async(self, coroutine: Any) -> Any:
        return asyncio.run(coroutine)
