"""Pytest configuration helpers.

This conftest ensures `backend/` is on `sys.path` so tests can import the
`empire` package regardless of how pytest is invoked, and forces mock mode
so no test ever reaches a real generation endpoint.
"""
import base64
import os
import sys

import pytest

os.environ.setdefault("USE_MOCK_API", "true")
os.environ.setdefault("SPLASH_DURATION_MS", "20")
os.environ.setdefault("SETTLE_DELAY_MS", "10")

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

from empire.services.media_gen import ContentPart, InlineData  # noqa: E402


class FakeHost:
    """Records observe/unobserve calls like a browser intersection observer would."""

    def __init__(self):
        self.observed: list[tuple[str, float]] = []
        self.unobserved: list[str] = []
        self.disconnected = False

    def observe(self, target_id, threshold):
        self.observed.append((target_id, threshold))

    def unobserve(self, target_id):
        self.unobserved.append(target_id)

    def disconnect(self):
        self.disconnected = True


class ManualSleep:
    """Injectable sleep: records requested delays and returns immediately."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def image_part(data: str = "AAAA", mime_type: str = "image/png") -> ContentPart:
    return ContentPart(inline_data=InlineData(mime_type=mime_type, data=data))


def png_b64() -> str:
    return base64.b64encode(b"\x89PNG\r\n\x1a\nfake").decode()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def manual_sleep() -> ManualSleep:
    return ManualSleep()
