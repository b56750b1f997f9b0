"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from hotspot_editor.api.models import (
    CreateEditorRequest,
    EditorResponse,
    PlaceHotspotRequest,
    UpdateHotspotRequest,
)
from hotspot_editor.app_logging import configure_logging
from hotspot_editor.containers import AppContainer
from hotspot_editor.domain.errors import (
    EditorNotFoundError,
    HotspotBusyError,
    HotspotNotFoundError,
    StateInvariantError,
)
from hotspot_editor.domain.hotspots import PlacementRejection
from hotspot_editor.services.editor import EditorService, ServiceFailure
from hotspot_editor.services.registry import EditorRegistry

_SERVICE_FAILURE_STATUS = {
    "upload": status.HTTP_502_BAD_GATEWAY,
    "process": status.HTTP_502_BAD_GATEWAY,
    "busy": status.HTTP_409_CONFLICT,
    "rejected": status.HTTP_409_CONFLICT,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(EditorNotFoundError)
    @app.exception_handler(HotspotNotFoundError)
    async def not_found(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(HotspotBusyError)
    @app.exception_handler(StateInvariantError)
    async def conflict(request: Request, exc: Exception) -> JSONResponse:
        logger.info("Rejected request to %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/editors", status_code=status.HTTP_201_CREATED)
    async def create_editor(
        payload: CreateEditorRequest, request: Request
    ) -> EditorResponse:
        """Open an editor on an image."""
        editor_id, editor = await _registry(request).create(payload.image_url)
        return EditorResponse.from_view(editor_id, editor.view())

    @app.get("/editors/{editor_id}")
    async def get_editor(editor_id: str, request: Request) -> EditorResponse:
        """Return the current editor state."""
        editor = await _registry(request).get(editor_id)
        return EditorResponse.from_view(editor_id, editor.view())

    @app.delete("/editors/{editor_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_editor(editor_id: str, request: Request) -> None:
        """Close an editor and drop its saved state."""
        registry = _registry(request)
        await registry.get(editor_id)
        registry.discard(editor_id)

    @app.post("/editors/{editor_id}/hotspots", status_code=status.HTTP_201_CREATED)
    async def place_hotspot(
        editor_id: str, payload: PlaceHotspotRequest, request: Request
    ) -> EditorResponse:
        """Place a hotspot at a percent position."""
        editor = await _registry(request).get(editor_id)
        result = editor.add_hotspot(payload.x, payload.y)
        if isinstance(result, PlacementRejection):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "kind": str(result.kind),
                    "reason": result.reason,
                    "code": result.code,
                },
            )
        return _saved(request, editor_id, editor)

    @app.patch("/editors/{editor_id}/hotspots/{hotspot_id}")
    async def update_hotspot(
        editor_id: str,
        hotspot_id: int,
        payload: UpdateHotspotRequest,
        request: Request,
    ) -> EditorResponse:
        """Change a hotspot's instruction text."""
        editor = await _registry(request).get(editor_id)
        editor.update_prompt(hotspot_id, payload.prompt)
        return _saved(request, editor_id, editor)

    @app.post("/editors/{editor_id}/hotspots/{hotspot_id}/move")
    async def move_hotspot(
        editor_id: str,
        hotspot_id: int,
        payload: PlaceHotspotRequest,
        request: Request,
    ) -> EditorResponse:
        """Commit a dragged hotspot to its final position."""
        editor = await _registry(request).get(editor_id)
        editor.move_hotspot(hotspot_id, payload.x, payload.y)
        return _saved(request, editor_id, editor)

    @app.delete("/editors/{editor_id}/hotspots/{hotspot_id}")
    async def remove_hotspot(
        editor_id: str, hotspot_id: int, request: Request
    ) -> EditorResponse:
        """Remove a hotspot and free its slot."""
        editor = await _registry(request).get(editor_id)
        if not editor.remove_hotspot(hotspot_id):
            raise HotspotNotFoundError(hotspot_id)
        return _saved(request, editor_id, editor)

    @app.put("/editors/{editor_id}/hotspots/{hotspot_id}/reference")
    async def attach_reference(
        editor_id: str,
        hotspot_id: int,
        request: Request,
        filename: str = "reference",
    ) -> EditorResponse:
        """Upload the request body as a hotspot's reference image."""
        editor = await _registry(request).get(editor_id)
        content = await request.body()
        content_type = request.headers.get("content-type", "application/octet-stream")
        result = await editor.attach_reference(
            hotspot_id, filename, content, content_type
        )
        _raise_for_result(result)
        return _saved(request, editor_id, editor)

    @app.delete("/editors/{editor_id}/hotspots/{hotspot_id}/reference")
    async def detach_reference(
        editor_id: str, hotspot_id: int, request: Request
    ) -> EditorResponse:
        """Remove a hotspot's reference image."""
        editor = await _registry(request).get(editor_id)
        editor.detach_reference(hotspot_id)
        return _saved(request, editor_id, editor)

    @app.post("/editors/{editor_id}/process")
    async def process_edits(editor_id: str, request: Request) -> EditorResponse:
        """Submit the described hotspots for retouching."""
        editor = await _registry(request).get(editor_id)
        result = await editor.process()
        _raise_for_result(result)
        return _saved(request, editor_id, editor)

    @app.post("/editors/{editor_id}/history/{index}")
    async def revert_to_history(
        editor_id: str, index: int, request: Request
    ) -> EditorResponse:
        """Return to an earlier processed image, or -1 for the original."""
        editor = await _registry(request).get(editor_id)
        if not await editor.revert_to_history(index):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=editor.last_error or f"No history entry at index {index}",
            )
        return _saved(request, editor_id, editor)

    @app.post("/editors/{editor_id}/reset")
    async def reset_editor(editor_id: str, request: Request) -> EditorResponse:
        """Clear hotspots, history and the edit count."""
        editor = await _registry(request).get(editor_id)
        editor.reset()
        return _saved(request, editor_id, editor)

    return app


def _registry(request: Request) -> EditorRegistry:
    container: AppContainer = request.app.state.container
    return container.registry


def _saved(request: Request, editor_id: str, editor: EditorService) -> EditorResponse:
    _registry(request).save(editor_id)
    return EditorResponse.from_view(editor_id, editor.view())


def _raise_for_result(result: object) -> None:
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Editor was reset while the request was in flight",
        )
    if isinstance(result, ServiceFailure):
        raise HTTPException(
            status_code=_SERVICE_FAILURE_STATUS.get(
                result.kind, status.HTTP_409_CONFLICT
            ),
            detail=result.message,
        )
