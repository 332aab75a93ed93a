"""Shared pytest fixtures for Help My Barber tests."""

import base64
import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import httpx
import pytest

from helpmybarber.core.config import HelpMyBarberConfig
from helpmybarber.core.gemini_client import GeminiClient
from helpmybarber.core.prompts import PromptTemplates

FRONT_TEMPLATE = "Give this person a {haircut}. Front view."
ANGLES_TEMPLATE = "Show a {haircut} from the side, then from the back."

# Smallest JPEG-looking payload the tests need; the service never decodes it.
SAMPLE_IMAGE_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 60 + b"\xff\xd9"


class FakeClock:
    """Manually advanced clock for rate limiter tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def image_part(data: str = "aW1hZ2U=", mime_type: str = "image/png") -> dict:
    """Build an upstream response part carrying an inline image."""
    return {"inlineData": {"mimeType": mime_type, "data": data}}


def text_part(text: str = "Here is your new haircut.") -> dict:
    """Build an upstream response part carrying only text."""
    return {"text": text}


def gemini_payload(*candidates: list[dict]) -> dict:
    """Build an upstream response body from lists of parts, one per candidate."""
    return {"candidates": [{"content": {"parts": list(parts)}} for parts in candidates]}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def prompts_file(temp_dir: Path) -> Path:
    """Write a prompt template file with short, recognisable templates.

    Returns:
        Path to the JSON template file
    """
    path = temp_dir / "prompts.json"
    path.write_text(
        json.dumps(
            {
                "front_view": {"template": FRONT_TEMPLATE},
                "side_and_back_views": {"template": ANGLES_TEMPLATE},
            }
        )
    )
    return path


@pytest.fixture
def prompts(prompts_file: Path) -> PromptTemplates:
    """Load the test prompt templates."""
    return PromptTemplates.load(prompts_file)


@pytest.fixture
def test_config(prompts_file: Path) -> HelpMyBarberConfig:
    """Create a test configuration that ignores any local .env file.

    Returns:
        HelpMyBarberConfig instance for testing
    """
    return HelpMyBarberConfig(
        _env_file=None,
        prompts_file=prompts_file,
        gemini_api_base="https://gemini.test/v1beta",
        gemini_model="test-image-model",
        rate_limit_requests=10,
        rate_limit_window_seconds=60,
    )


@pytest.fixture
def api_key(monkeypatch) -> str:
    """Provide a Gemini API key through the environment."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    return "test-key"


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock starting at t=1000s that only moves when told to."""
    return FakeClock()


@pytest.fixture
def sample_image_b64() -> str:
    """Base64 encoding of a small fake JPEG."""
    return base64.b64encode(SAMPLE_IMAGE_BYTES).decode("ascii")


class RecordingTransport:
    """httpx transport handler that records requests and replays a canned response."""

    def __init__(self, status_code: int = 200, json_body=None, text: str | None = None) -> None:
        self.status_code = status_code
        self.json_body = json_body
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)


@pytest.fixture
def make_gemini_client(prompts: PromptTemplates, test_config: HelpMyBarberConfig):
    """Factory for a GeminiClient backed by a RecordingTransport.

    Returns:
        Callable taking the same arguments as RecordingTransport and returning
        ``(client, transport)``.
    """

    def _make(**transport_kwargs) -> tuple[GeminiClient, RecordingTransport]:
        transport = RecordingTransport(**transport_kwargs)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        client = GeminiClient(
            prompts,
            http_client=http_client,
            endpoint=test_config.gemini_endpoint,
            error_body_limit=50,
        )
        return client, transport

    return _make
