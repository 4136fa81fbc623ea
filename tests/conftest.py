"""Shared fixtures and helpers for InceptionDB client tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import httpx
import pytest

from inceptiondb.client import InceptionDBClient
from inceptiondb.stream import JsonStream

BASE_URL = 'http://inceptiondb.test'


class RecordingByteStream(httpx.SyncByteStream):
    """Response body that records how many chunks were read and how often it was closed."""

    def __init__(self, *chunks: bytes) -> None:
        self.chunks = chunks
        self.chunks_read = 0
        self.close_calls = 0

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self.chunks:
            self.chunks_read += 1
            yield chunk

    def close(self) -> None:
        self.close_calls += 1


def make_stream(*chunks: bytes, status_code: int = 200) -> tuple[JsonStream, RecordingByteStream]:
    """Build a JsonStream over the given body chunks."""
    body = RecordingByteStream(*chunks)
    return JsonStream(httpx.Response(status_code, stream=body)), body


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_client(requests_seen: list[httpx.Request]) -> Callable[..., InceptionDBClient]:
    """Factory for clients backed by an httpx.MockTransport handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs: object) -> InceptionDBClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            request.read()
            requests_seen.append(request)
            return handler(request)

        http_client = httpx.Client(transport=httpx.MockTransport(recording_handler))
        return InceptionDBClient(BASE_URL, http_client=http_client, **kwargs)  # type: ignore[arg-type]

    return factory
