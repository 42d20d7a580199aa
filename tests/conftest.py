"""Shared pytest fixtures for Listcraft tests."""

from __future__ import annotations

import base64
import io
import json
from collections.abc import Callable

import httpx
import pytest
from PIL import Image

from listcraft.core.config import ListcraftConfig
from listcraft.core.models import Provider

KEY_ENV_VARS = [
    f"{prefix}{provider.value.upper()}_API_KEY"
    for provider in Provider
    for prefix in ("", "LISTCRAFT_")
]


class Recorder:
    """MockTransport handler that records every request it answers.

    Args:
        handler: Function mapping an ``httpx.Request`` to an ``httpx.Response``.
            May be a coroutine function.
    """

    def __init__(self, handler: Callable) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.handler(request)

    @property
    def count(self) -> int:
        return len(self.requests)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def json_bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.content]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real provider keys in the environment out of every test."""
    for name in KEY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def test_config() -> ListcraftConfig:
    """Configuration with fast polling and no keys.

    Returns:
        ListcraftConfig instance for testing
    """
    return ListcraftConfig(
        _env_file=None,
        intermediary_url="http://intermediary.test",
        poll_interval=0,
        poll_max_attempts=5,
    )


@pytest.fixture
def mock_client() -> Callable[[Callable], tuple[httpx.AsyncClient, Recorder]]:
    """Factory for an ``httpx.AsyncClient`` backed by a recording MockTransport.

    Usage:
        client, recorder = mock_client(handler)
    """

    def factory(handler: Callable) -> tuple[httpx.AsyncClient, Recorder]:
        recorder = Recorder(handler)
        return httpx.AsyncClient(transport=httpx.MockTransport(recorder)), recorder

    return factory


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_b64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def offline_client(mock_client):
    """Client for tests that must not touch the network; assert on ``recorder.count``."""
    return mock_client(lambda request: httpx.Response(500, json={"error": "unexpected request"}))
