import httpx
import pytest

from docassist.retrieval.context_aggregator import (
    AggregatorConfig,
    ContextAggregator,
    ContextBundle,
    ContextEntry,
    FileSource,
    UrlSource,
    parse_url_lines,
)
from tests.helpers import url_transport


def make_aggregator(pages, **config):
    return ContextAggregator(AggregatorConfig(**config), transport=url_transport(pages))


def test_parse_url_lines_trims_and_drops_blanks():
    text = "  https://a.example/one  \n\n   \nhttps://b.example/two\n"
    assert parse_url_lines(text) == ["https://a.example/one", "https://b.example/two"]
    assert parse_url_lines("") == []
    assert parse_url_lines(None) == []


def test_urls_then_files_in_submission_order():
    pages = {
        "https://a.example/one": (200, "alpha"),
        "https://b.example/two": (200, "beta"),
    }
    files = [
        FileSource.from_text("notes.md", "gamma"),
        FileSource.from_text("todo.txt", "delta"),
    ]

    bundle = make_aggregator(pages).aggregate(
        ["https://b.example/two", "https://a.example/one"], files
    )

    assert [e.source_label for e in bundle.entries] == [
        "https://b.example/two",
        "https://a.example/one",
        "notes.md",
        "todo.txt",
    ]
    assert [e.body for e in bundle.entries] == ["beta", "alpha", "gamma", "delta"]
    assert bundle.errors == []


def test_concatenation_uses_provenance_markers():
    pages = {"https://a.example/doc": (200, "alpha")}
    bundle = make_aggregator(pages).aggregate(
        ["https://a.example/doc"], [FileSource.from_text("empty.md", "")]
    )

    assert bundle.text == (
        "\n\n--- Content from https://a.example/doc ---\nalpha"
        "\n\n--- Content from empty.md ---\n"
    )


def test_failed_sources_are_collected_without_aborting_batch(tmp_path):
    pages = {
        "https://ok.example/page": (200, "fine"),
        "https://down.example/page": (500, "boom"),
        "https://gone.example/page": httpx.ConnectError("connection refused"),
    }
    files = [
        FileSource.from_path(tmp_path / "missing.md"),
        FileSource.from_text("kept.md", "kept"),
    ]

    bundle = make_aggregator(pages).aggregate(
        ["https://down.example/page", "https://gone.example/page", "https://ok.example/page"],
        files,
    )

    assert [e.source_label for e in bundle.entries] == ["https://ok.example/page", "kept.md"]
    assert bundle.error_messages[0] == "Failed to fetch https://down.example/page: 500 Internal Server Error"
    assert bundle.error_messages[1] == "Failed to fetch https://gone.example/page: connection refused"
    assert bundle.error_messages[2].startswith("Failed to read missing.md: ")
    assert [e.source_label for e in bundle.errors] == [
        "https://down.example/page",
        "https://gone.example/page",
        "missing.md",
    ]


def test_every_source_failing_yields_one_error_each():
    def broken():
        raise OSError("disk unavailable")

    bundle = make_aggregator({}).aggregate(
        ["https://nowhere.example/a", "https://nowhere.example/b"],
        [FileSource("broken.md", broken)],
    )

    assert bundle.entries == []
    assert not bundle.has_content
    assert len(bundle.errors) == 3
    assert bundle.error_messages[2] == "Failed to read broken.md: disk unavailable"


def test_zero_sources_produce_synthetic_error():
    bundle = make_aggregator({}).aggregate([], [])

    assert bundle.entries == []
    assert bundle.error_messages == ["No context retrieved."]


def test_blank_urls_are_not_sources():
    bundle = make_aggregator({}).aggregate(["", "   "], [])

    assert bundle.error_messages == ["No context retrieved."]


def test_url_sources_and_bytes_files(tmp_path):
    path = tmp_path / "ref.md"
    path.write_bytes("café".encode("utf-8"))
    pages = {"https://a.example/doc": (200, "alpha")}

    bundle = make_aggregator(pages).aggregate(
        [UrlSource("  https://a.example/doc ")], [FileSource.from_path(path)]
    )

    assert bundle.entries == [
        ContextEntry("https://a.example/doc", "alpha"),
        ContextEntry("ref.md", "café"),
    ]


def test_invalid_utf8_file_is_a_read_error():
    bundle = make_aggregator({}).aggregate([], [FileSource("bin.dat", lambda: b"\xff\xfe\x00")])

    assert bundle.entries == []
    assert bundle.error_messages[0].startswith("Failed to read bin.dat: ")


def test_async_file_provider_is_awaited():
    async def read():
        return "from coroutine"

    bundle = make_aggregator({}).aggregate([], [FileSource("async.md", read)])

    assert bundle.entries == [ContextEntry("async.md", "from coroutine")]


def test_html_extraction_is_opt_in(monkeypatch):
    html = "<html><body><p>Main text</p></body></html>"

    def handler(request):
        return httpx.Response(200, text=html, headers={"content-type": "text/html"})

    calls = []

    def fake_extract(body, **kwargs):
        calls.append(body)
        return "Main text"

    monkeypatch.setattr("docassist.retrieval.context_aggregator.trafilatura.extract", fake_extract)

    raw = ContextAggregator(transport=httpx.MockTransport(handler)).aggregate(["https://a.example/p"])
    assert raw.entries[0].body == html
    assert calls == []

    extracted = ContextAggregator(
        AggregatorConfig(extract_html=True), transport=httpx.MockTransport(handler)
    ).aggregate(["https://a.example/p"])
    assert extracted.entries[0].body == "Main text"


def test_html_extraction_falls_back_to_raw_body(monkeypatch):
    def handler(request):
        return httpx.Response(200, text="<p></p>", headers={"content-type": "text/html"})

    monkeypatch.setattr(
        "docassist.retrieval.context_aggregator.trafilatura.extract", lambda body, **kw: None
    )

    bundle = ContextAggregator(
        AggregatorConfig(extract_html=True), transport=httpx.MockTransport(handler)
    ).aggregate(["https://a.example/p"])

    assert bundle.entries[0].body == "<p></p>"


def test_requests_carry_user_agent():
    seen = []

    def handler(request):
        seen.append(request.headers["user-agent"])
        return httpx.Response(200, text="ok")

    ContextAggregator(
        AggregatorConfig(user_agent="docassist-test/0"), transport=httpx.MockTransport(handler)
    ).aggregate(["https://a.example/p"])

    assert seen == ["docassist-test/0"]


@pytest.mark.parametrize("entries,expected", [
    ([], False),
    ([ContextEntry("a", "")], True),
])
def test_bundle_has_content(entries, expected):
    assert ContextBundle(entries=entries).has_content is expected
