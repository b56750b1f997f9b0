"""Shared test fixtures."""

import asyncio
import io
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import pytest
from PIL import Image

from hotspot_editor.adapters.memory_edit_state_repository import (
    InMemoryEditStateRepository,
)
from hotspot_editor.config import Settings
from hotspot_editor.containers import AppContainer, build_editor_factory
from hotspot_editor.domain.errors import ProcessFailedError, UploadFailedError
from hotspot_editor.services.editor import EditorService
from hotspot_editor.services.images import ImageFetcher, ImageFetchError
from hotspot_editor.services.registry import EditorRegistry
from hotspot_editor.services.retouch import RetouchClient
from hotspot_editor.services.uploads import ReferenceUploadClient

IMAGE_URL = "https://cdn.example.com/photo.png"


def make_png(
    color: tuple[int, int, int] = (255, 255, 255), size: tuple[int, int] = (200, 100)
) -> bytes:
    """Return PNG bytes for a solid color image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_split_png(
    left: tuple[int, int, int], right: tuple[int, int, int], size: tuple[int, int] = (200, 100)
) -> bytes:
    """Return PNG bytes whose left and right halves differ in color."""
    image = Image.new("RGB", size, left)
    image.paste(right, (size[0] // 2, 0, size[0], size[1]))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@dataclass
class FakeImageFetcher(ImageFetcher):
    """Serves images from memory; unknown URLs get the default image."""

    images: dict[str, bytes] = field(default_factory=dict)
    default: bytes | None = field(default_factory=make_png)
    calls: list[str] = field(default_factory=list)

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if url in self.images:
            return self.images[url]
        if self.default is None:
            raise ImageFetchError(f"no image at {url}")
        return self.default


@dataclass
class FakeRetouchClient(RetouchClient):
    """Fake retouch backend that records requests."""

    requests: list[dict[str, object]] = field(default_factory=list)
    error: str | None = None
    payload: dict[str, object] | None = None
    gate: asyncio.Event | None = None

    async def process(
        self,
        *,
        image_url: str,
        prompt: str,
        hotspots: list[dict[str, object]],
    ) -> dict[str, object]:
        self.requests.append(
            {"image_url": image_url, "prompt": prompt, "hotspots": hotspots}
        )
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise ProcessFailedError(self.error)
        if self.payload is not None:
            return self.payload
        return {"imageUrl": f"https://cdn.example.com/edited-{len(self.requests)}.png"}


@dataclass
class FakeUploadClient(ReferenceUploadClient):
    """Fake upload service that records uploaded files."""

    uploads: list[tuple[str, bytes, str]] = field(default_factory=list)
    error: str | None = None
    gate: asyncio.Event | None = None

    async def upload(
        self, *, filename: str, content: bytes, content_type: str
    ) -> dict[str, object]:
        self.uploads.append((filename, content, content_type))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise UploadFailedError(self.error)
        return {
            "url": f"https://cdn.example.com/refs/{filename}",
            "previewUrl": f"https://cdn.example.com/refs/thumb-{filename}",
        }


@dataclass
class FakeClock:
    """Manually advanced monotonic clock."""

    now: float = 0.0

    def __call__(self) -> float:
        return self.now


async def _noop() -> None:
    return None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        color_refresh_delay_seconds=0.0,
        retouch_base_url="https://retouch.example.com/api",
        upload_base_url="https://uploads.example.com/api",
    )


@pytest.fixture
def image_fetcher() -> FakeImageFetcher:
    return FakeImageFetcher()


@pytest.fixture
def retouch_client() -> FakeRetouchClient:
    return FakeRetouchClient()


@pytest.fixture
def upload_client() -> FakeUploadClient:
    return FakeUploadClient()


@pytest.fixture
def editor_factory(
    settings: Settings,
    image_fetcher: FakeImageFetcher,
    retouch_client: FakeRetouchClient,
    upload_client: FakeUploadClient,
) -> Callable[[], EditorService]:
    return build_editor_factory(
        settings,
        image_fetcher=image_fetcher,
        retouch_client=retouch_client,
        upload_client=upload_client,
    )


@pytest.fixture
def editor(editor_factory: Callable[[], EditorService]) -> EditorService:
    editor = editor_factory()
    asyncio.run(editor.load_image(IMAGE_URL))
    return editor


@pytest.fixture
def repository() -> InMemoryEditStateRepository:
    return InMemoryEditStateRepository()


@pytest.fixture
def container(
    settings: Settings,
    editor_factory: Callable[[], EditorService],
    repository: InMemoryEditStateRepository,
) -> AppContainer:
    close_resources: Callable[[], Awaitable[None]] = _noop
    return AppContainer(
        settings=settings,
        registry=EditorRegistry(editor_factory=editor_factory, repository=repository),
        close_resources=close_resources,
    )
