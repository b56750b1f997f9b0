"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from hotspot_editor.adapters.image_fetcher import HttpxImageFetcher
from hotspot_editor.adapters.memory_edit_state_repository import (
    InMemoryEditStateRepository,
)
from hotspot_editor.adapters.openai_retouch_client import OpenAIRetouchClient
from hotspot_editor.adapters.retouch_client import HttpxRetouchClient
from hotspot_editor.adapters.supabase_edit_state_repository import (
    SupabaseEditStateRepository,
)
from hotspot_editor.adapters.upload_client import HttpxReferenceUploadClient
from hotspot_editor.config import Settings
from hotspot_editor.services.cache import BoundedCache
from hotspot_editor.services.colors import ColorRefreshScheduler, ColorSampler
from hotspot_editor.services.drag import DragController
from hotspot_editor.services.editor import EditorService
from hotspot_editor.services.hotspots import HotspotStore
from hotspot_editor.services.images import ImageFetcher, ImageLoader
from hotspot_editor.services.registry import EditorRegistry, EditStateRepository
from hotspot_editor.services.retouch import RetouchClient, RetouchService
from hotspot_editor.services.sessions import SessionManager
from hotspot_editor.services.uploads import (
    ReferenceUploadClient,
    ReferenceUploadService,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    registry: EditorRegistry
    close_resources: Callable[[], Awaitable[None]]


def build_editor_factory(
    settings: Settings,
    *,
    image_fetcher: ImageFetcher,
    retouch_client: RetouchClient,
    upload_client: ReferenceUploadClient,
) -> Callable[[], EditorService]:
    """Return a callable that assembles a fresh editor from shared clients."""
    limits = settings.edit_limits()
    retouch_service = RetouchService(retouch_client)
    upload_service = ReferenceUploadService(
        upload_client, max_bytes=settings.max_reference_bytes
    )
    image_loader = ImageLoader(image_fetcher)

    def build_editor() -> EditorService:
        store = HotspotStore(
            edge_margin=settings.edge_margin,
            min_spacing=settings.min_hotspot_spacing,
        )
        return EditorService(
            sessions=SessionManager(store=store, limits=limits),
            sampler=ColorSampler(
                cache=BoundedCache(settings.color_cache_size),
                max_dimension=settings.color_sample_max_dimension,
                sample_size=settings.color_sample_size,
                light_threshold=settings.color_light_threshold,
            ),
            scheduler=ColorRefreshScheduler(
                delay_seconds=settings.color_refresh_delay_seconds
            ),
            drag=DragController(
                store=store, grace_seconds=settings.drag_click_grace_seconds
            ),
            retouch=retouch_service,
            uploads=upload_service,
            images=image_loader,
        )

    return build_editor


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    image_fetcher = HttpxImageFetcher.create()
    upload_client = HttpxReferenceUploadClient.create(
        resolved_settings.upload_base_url, resolved_settings.retouch_api_key
    )
    http_retouch_client: HttpxRetouchClient | None = None
    retouch_client: RetouchClient
    if resolved_settings.retouch_backend == "openai":
        if not resolved_settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai retouch backend")
        retouch_client = OpenAIRetouchClient.create(
            resolved_settings.openai_api_key,
            image_fetcher,
            resolved_settings.openai_image_model,
        )
    else:
        http_retouch_client = HttpxRetouchClient.create(
            resolved_settings.retouch_base_url, resolved_settings.retouch_api_key
        )
        http_retouch_client.poll_interval_seconds = (
            resolved_settings.retouch_poll_interval_seconds
        )
        http_retouch_client.max_polls = resolved_settings.retouch_max_polls
        retouch_client = http_retouch_client

    repository: EditStateRepository
    if resolved_settings.uses_supabase:
        supabase_client = create_client(
            str(resolved_settings.supabase_url),
            str(resolved_settings.supabase_service_key),
        )
        repository = SupabaseEditStateRepository(supabase_client)
    else:
        repository = InMemoryEditStateRepository()

    registry = EditorRegistry(
        editor_factory=build_editor_factory(
            resolved_settings,
            image_fetcher=image_fetcher,
            retouch_client=retouch_client,
            upload_client=upload_client,
        ),
        repository=repository,
    )

    async def close_resources() -> None:
        await image_fetcher.close()
        await upload_client.close()
        if http_retouch_client is not None:
            await http_retouch_client.close()

    return AppContainer(
        settings=resolved_settings,
        registry=registry,
        close_resources=close_resources,
    )
