"""Test helpers: canned HTTP responses and fake generation clients."""

import json

import httpx
import requests

from docassist.core.types import GenerationResult, ImageGenerationResult


def make_response(status_code=200, body=None, reason="OK", raw=None):
    """Build a real `requests.Response` with a JSON (or raw) body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    if raw is not None:
        response._content = raw.encode("utf-8")
    else:
        response._content = json.dumps(body if body is not None else {}).encode("utf-8")
    response.encoding = "utf-8"
    return response


def url_transport(pages):
    """httpx mock transport serving `pages[url] -> (status, text)`.

    A value that is an exception instance is raised as a transport failure.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        outcome = pages.get(str(request.url))
        if outcome is None:
            return httpx.Response(404, text="missing")
        if isinstance(outcome, Exception):
            raise outcome
        status, text = outcome
        return httpx.Response(status, text=text, headers={"content-type": "text/plain"})

    return httpx.MockTransport(handler)


class FakeTextClient:
    def __init__(self, document="# Generated"):
        self.document = document
        self.calls = []

    def generate(self, prompt, credential):
        self.calls.append((prompt, credential))
        return GenerationResult(document=self.document)


class FakeImageClient:
    def __init__(self, result=None, error=None):
        self.result = result or ImageGenerationResult(
            image_data_uri="data:image/png;base64,aGVsbG8=",
            accompanying_text="A caption",
        )
        self.error = error
        self.calls = []

    def generate_image(self, prompt, credential):
        self.calls.append((prompt, credential))
        if self.error is not None:
            raise self.error
        return self.result

