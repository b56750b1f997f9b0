"""Tests for HTTP-based adapters."""

import asyncio
import base64
import json

import httpx
import pytest

from hotspot_editor.adapters.image_fetcher import HttpxImageFetcher
from hotspot_editor.adapters.openai_retouch_client import OpenAIRetouchClient
from hotspot_editor.adapters.retouch_client import HttpxRetouchClient
from hotspot_editor.adapters.upload_client import HttpxReferenceUploadClient
from hotspot_editor.domain.errors import ProcessFailedError, UploadFailedError
from hotspot_editor.services.images import ImageFetchError
from tests.conftest import FakeImageFetcher, make_png


def _retouch_client(handler, max_polls: int = 60) -> HttpxRetouchClient:  # type: ignore[no-untyped-def]
    return HttpxRetouchClient(
        base_url="https://retouch.example.com/api",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        poll_interval_seconds=0,
        max_polls=max_polls,
    )


def _process(client: HttpxRetouchClient) -> dict[str, object]:
    return asyncio.run(
        client.process(
            image_url="https://img/1.png",
            prompt="Edit 1",
            hotspots=[{"id": 1, "x": 50.0, "y": 50.0, "prompt": "add snow"}],
        )
    )


def test_retouch_client_returns_immediate_output() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/api/predictions/general-edit"
        payload = json.loads(request.content.decode())
        assert payload["image"] == "https://img/1.png"
        assert payload["prompt"] == "Edit 1"
        assert payload["hotspots"][0]["prompt"] == "add snow"
        return httpx.Response(
            201, json={"id": "p1", "status": "succeeded", "output": "https://out/1.png"}
        )

    assert _process(_retouch_client(handler)) == {"imageUrl": "https://out/1.png"}


def test_retouch_client_polls_until_succeeded() -> None:
    statuses = iter(["processing", "succeeded"])
    seen_paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        if request.method == "POST":
            return httpx.Response(201, json={"id": "p1", "status": "starting"})
        status = next(statuses)
        output = ["https://out/2.png"] if status == "succeeded" else None
        return httpx.Response(200, json={"id": "p1", "status": status, "output": output})

    result = _process(_retouch_client(handler))

    assert result == {"imageUrl": "https://out/2.png"}
    assert seen_paths == [
        "/api/predictions/general-edit",
        "/api/predictions/p1",
        "/api/predictions/p1",
    ]


def test_retouch_client_reports_failed_prediction() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            201, json={"id": "p1", "status": "failed", "error": "NSFW content detected"}
        )

    with pytest.raises(ProcessFailedError, match="NSFW content detected"):
        _process(_retouch_client(handler))


def test_retouch_client_times_out() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(200, json={"id": "p1", "status": "processing"})

    with pytest.raises(ProcessFailedError, match="timeout"):
        _process(_retouch_client(handler, max_polls=2))
    assert calls == ["POST", "GET", "GET"]


def test_retouch_client_surfaces_service_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(402, json={"message": "Out of credits"})

    with pytest.raises(ProcessFailedError, match="Out of credits"):
        _process(_retouch_client(handler))


def test_retouch_client_rejects_non_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>Gateway</html>")

    with pytest.raises(ProcessFailedError, match="invalid response"):
        _process(_retouch_client(handler))


def test_retouch_client_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(ProcessFailedError, match="unavailable"):
        _process(_retouch_client(handler))


def test_upload_client_posts_multipart() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/upload"
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="file"; filename="ref.png"' in request.content
        assert b"png-bytes" in request.content
        return httpx.Response(200, json={"url": "https://cdn/ref.png"})

    client = HttpxReferenceUploadClient(
        base_url="https://uploads.example.com/api",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    result = asyncio.run(
        client.upload(filename="ref.png", content=b"png-bytes", content_type="image/png")
    )

    assert result == {"url": "https://cdn/ref.png"}


def test_upload_client_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(413, json={"error": "File exceeds 5MB limit"})

    client = HttpxReferenceUploadClient(
        base_url="https://uploads.example.com/api",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(UploadFailedError, match="File exceeds 5MB limit"):
        asyncio.run(
            client.upload(filename="ref.png", content=b"x", content_type="image/png")
        )


def test_upload_client_rejects_non_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>Gateway</html>")

    client = HttpxReferenceUploadClient(
        base_url="https://uploads.example.com/api",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(UploadFailedError, match="invalid response"):
        asyncio.run(
            client.upload(filename="ref.png", content=b"x", content_type="image/png")
        )


def test_image_fetcher_downloads_and_decodes_data_urls() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/missing.png":
            return httpx.Response(404)
        return httpx.Response(200, content=b"image-bytes")

    fetcher = HttpxImageFetcher(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    data_url = "data:image/png;base64," + base64.b64encode(b"inline").decode()

    assert asyncio.run(fetcher.fetch("https://cdn/photo.png")) == b"image-bytes"
    assert asyncio.run(fetcher.fetch(data_url)) == b"inline"
    with pytest.raises(ImageFetchError):
        asyncio.run(fetcher.fetch("https://cdn/missing.png"))
    with pytest.raises(ImageFetchError):
        asyncio.run(fetcher.fetch("data:image/png,plain"))


class _FakeImages:
    def __init__(self) -> None:
        self.last_payload: dict[str, object] | None = None

    async def edit(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        item = type("Item", (), {"b64_json": "ZWRpdGVk"})()
        return type("Resp", (), {"data": [item]})()


class _FakeOpenAI:
    def __init__(self) -> None:
        self.images = _FakeImages()


def test_openai_retouch_client_returns_data_url() -> None:
    openai_client = _FakeOpenAI()
    fetcher = FakeImageFetcher(images={"https://ref/1.png": make_png((0, 0, 0))})
    client = OpenAIRetouchClient(
        client=openai_client, image_fetcher=fetcher, model="gpt-image-1"
    )

    result = asyncio.run(
        client.process(
            image_url="https://img/1.png",
            prompt="Edit 1",
            hotspots=[
                {
                    "id": 1,
                    "x": 50.0,
                    "y": 50.0,
                    "prompt": "a",
                    "referenceImage": "https://ref/1.png",
                }
            ],
        )
    )

    assert result == {"imageUrl": "data:image/png;base64,ZWRpdGVk"}
    payload = openai_client.images.last_payload
    assert payload is not None
    assert payload["model"] == "gpt-image-1"
    assert payload["prompt"] == "Edit 1"
    assert [name for name, _, _ in payload["image"]] == ["image-0.png", "image-1.png"]
    assert fetcher.calls == ["https://img/1.png", "https://ref/1.png"]


def test_openai_retouch_client_unreadable_image() -> None:
    client = OpenAIRetouchClient(
        client=_FakeOpenAI(), image_fetcher=FakeImageFetcher(default=None)
    )

    with pytest.raises(ProcessFailedError):
        asyncio.run(
            client.process(image_url="https://img/1.png", prompt="p", hotspots=[])
        )
