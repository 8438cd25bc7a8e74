"""
Command-line adapter for DocAssist.

Architectural role:
- Exposes document generation, image generation, and credential management
  from a terminal.
- Delegates all generation to `docassist.core.engine.DocumentAssistant`.

Commands:
- `generate --prompt ... [--url ...] [--urls-file ...] [--file ...] [--output ...]`
- `image --prompt ... [--output ...]`
- `key show|set|clear [text|image]`

Error handling strategy:
- Pipeline errors print their message to stderr and exit with status 1.
- Context-source failures are printed as warnings; generation still proceeds.

Side effects:
- Writes generated documents and images to the requested output paths.
- Credential changes persist through the file-backed store.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import base64
import getpass
import logging
import mimetypes
import sys
from pathlib import Path

from docassist.core.engine import DocumentAssistant
from docassist.credentials.store import default_store, mask_credential, resolve_slot
from docassist.errors import DocAssistError, NoImageProduced
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

DEFAULT_DOCUMENT_NAME = "generated.md"


def build_assistant() -> DocumentAssistant:
    """Build an assistant wired to the configured file-backed credential store."""
    settings = load_settings()
    return DocumentAssistant(
        store=default_store(settings.credentials_path),
        aggregator=ContextAggregator(AggregatorConfig.from_settings(settings)),
        text_client=TextGenerationClient(settings),
        image_client=ImageGenerationClient(settings),
    )


def decode_data_uri(data_uri: str) -> tuple[str, bytes]:
    """Split a `data:{mime};base64,{data}` URI into MIME type and raw bytes."""
    header, _, encoded = data_uri.partition(",")
    if not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URI")
    mime_type = header[len("data:"):-len(";base64")]
    return mime_type, base64.b64decode(encoded, validate=True)


# =========================================================
# COMMANDS
# =========================================================

def cmd_generate(args, assistant: DocumentAssistant) -> int:
    urls = list(args.url or [])
    if args.urls_file:
        urls.extend(parse_url_lines(Path(args.urls_file).read_text(encoding="utf-8")))
    files = [FileSource.from_path(path) for path in args.file or []]

    outcome = assistant.generate_document(args.prompt, urls, files)

    for message in outcome.context_errors:
        print(f"Warning: {message}", file=sys.stderr)

    output = Path(args.output)
    output.write_text(outcome.document, encoding="utf-8")
    print(f"Document written to {output}")
    return 0


def cmd_image(args, assistant: DocumentAssistant) -> int:
    try:
        result = assistant.generate_image(args.prompt)
    except NoImageProduced as exc:
        if exc.accompanying_text:
            print(exc.accompanying_text)
        raise

    mime_type, data = decode_data_uri(result.image_data_uri)
    output = args.output
    if not output:
        output = "image" + (mimetypes.guess_extension(mime_type) or ".bin")

    Path(output).write_bytes(data)
    print(f"Image ({mime_type}) written to {output}")
    if result.accompanying_text:
        print(result.accompanying_text)
    return 0


def cmd_key(args, assistant: DocumentAssistant) -> int:
    store = assistant.store

    if args.action == "show":
        slots = CREDENTIAL_SLOTS if not args.name else (resolve_slot(args.name),)
        for slot in slots:
            if slot is None:
                print(f"Unknown credential: {args.name}", file=sys.stderr)
                return 1
            value = store.get(slot)
            print(f"{slot}: {mask_credential(value) if value else '(not set)'}")
        return 0

    slot = resolve_slot(args.name or "")
    if slot is None:
        print(f"Unknown credential: {args.name}", file=sys.stderr)
        return 1

    if args.action == "clear":
        store.clear(slot)
        print(f"{slot} cleared.")
        return 0

    value = (args.value or getpass.getpass(f"{slot}: ")).strip()
    if not value:
        print("Credential value is empty.", file=sys.stderr)
        return 1
    store.set(slot, value)
    print(f"{slot} saved ({mask_credential(value)}).")
    return 0


# =========================================================
# MAIN
# =========================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docassist", description="Context-augmented document assistant")
    parser.add_argument("--verbose", action="store_true", help="Enable INFO logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a markdown document")
    gen.add_argument("--prompt", required=True)
    gen.add_argument("--url", action="append", help="Context URL (repeatable)")
    gen.add_argument("--urls-file", default=None, help="File with newline-separated URLs")
    gen.add_argument("--file", action="append", help="Local context file (repeatable)")
    gen.add_argument("--output", default=DEFAULT_DOCUMENT_NAME)

    img = sub.add_parser("image", help="Generate an image")
    img.add_argument("--prompt", required=True)
    img.add_argument("--output", default=None)

    key = sub.add_parser("key", help="Manage stored API keys")
    key.add_argument("action", choices=["show", "set", "clear"])
    key.add_argument("name", nargs="?", default=None, help="text | image")
    key.add_argument("--value", default=None, help="Key value (prompted when omitted)")

    return parser


COMMANDS = {
    "generate": cmd_generate,
    "image": cmd_image,
    "key": cmd_key,
}


def main(argv=None, assistant: DocumentAssistant | None = None) -> int:
    """Parse arguments, run one command, and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    assistant = assistant or build_assistant()

    try:
        return COMMANDS[args.command](args, assistant)
    except DocAssistError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
