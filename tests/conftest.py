"""
Pytest Configuration and Fixtures
"""

import json
from typing import Any, Optional

import httpx
import pytest

from image_service_mcp.client import ImageServiceClient
from image_service_mcp.config import ServiceConfig
from image_service_mcp.handlers import ImageServiceTools
from image_service_mcp.size_cache import SizeCache


BASE_URL = "https://images.test"
API_KEY = "test-key-1234567890"

CATEGORIES = [
    {
        "name": "products",
        "sizes": [
            {"name": "thumbnail", "width": 150, "height": 150, "mimeType": "image/webp"},
            {"name": "large", "width": 1200, "height": 900, "mimeType": "image/jpeg"},
        ],
    },
    {
        "name": "avatars",
        "sizes": [
            {"name": "thumbnail", "width": 64, "height": 64, "mimeType": "image/png"},
            {"name": "medium", "width": 256, "height": 256, "mimeType": "image/png"},
        ],
    },
]

IMAGE = {
    "id": "img-123",
    "category": "products",
    "originalS3Path": "s3://bucket/original/img-123.jpg",
    "resizedFiles": [
        {"size": "thumbnail", "s3Path": "s3://bucket/thumbnail/img-123.webp"},
        {"size": "huge", "s3Path": "s3://bucket/huge/img-123.jpg"},
    ],
}


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeImageService:
    """
    In-process stand-in for the image service

    Routes (method, path) to canned responses and records every request.
    Unknown routes answer 404 with a JSON error object.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> None:
        if text is None:
            text = json.dumps(json_body)
            content_type = content_type or "application/json"
        headers = {"content-type": content_type} if content_type else {}
        self.routes[(method, path)] = (status, text, headers)

    def fail(self, method: str, path: str, error: Exception) -> None:
        self.routes[(method, path)] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        if isinstance(route, Exception):
            raise route
        status, text, headers = route
        return httpx.Response(status, content=text.encode(), headers=headers)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def config():
    return ServiceConfig(base_url=BASE_URL, api_key=API_KEY)


@pytest.fixture
def service():
    svc = FakeImageService()
    svc.add("GET", "/api/size/list", json_body=CATEGORIES)
    return svc


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(config, service):
    return ImageServiceClient(config, transport=service.transport())


@pytest.fixture
def size_cache(client, clock):
    return SizeCache(client, clock=clock)


@pytest.fixture
def tools(client, size_cache):
    return ImageServiceTools(client, size_cache)


@pytest.fixture
def image_file(tmp_path):
    """Small local file to upload (contents are never inspected)"""
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg-bytes")
    return path
