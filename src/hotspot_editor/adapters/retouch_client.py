"""HTTP client for the hosted retouch prediction API."""

import asyncio
from dataclasses import dataclass

import httpx

from hotspot_editor.adapters.http_responses import error_message, json_object
from hotspot_editor.domain.errors import ProcessFailedError
from hotspot_editor.services.retouch import RetouchClient


@dataclass
class HttpxRetouchClient(RetouchClient):
    """Retouch client that submits a prediction and polls until it settles."""

    base_url: str
    http_client: httpx.AsyncClient
    poll_interval_seconds: float = 1.0
    max_polls: int = 60

    @classmethod
    def create(
        cls, base_url: str, api_key: str | None = None
    ) -> "HttpxRetouchClient":
        """Create a retouch client with a managed httpx session."""
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(headers=headers),
        )

    async def process(
        self,
        *,
        image_url: str,
        prompt: str,
        hotspots: list[dict[str, object]],
    ) -> dict[str, object]:
        """Create a general-edit prediction and wait for its output."""
        prediction = await self._request(
            "POST",
            f"{self.base_url}/predictions/general-edit",
            json={"image": image_url, "prompt": prompt, "hotspots": hotspots},
            timeout=90,
        )
        polls = 0
        while True:
            status = prediction.get("status")
            output = prediction.get("output")
            if status == "succeeded" and output:
                return {"imageUrl": _first_output(output)}
            if status == "failed":
                raise ProcessFailedError(
                    str(prediction.get("error") or "Retouch processing failed")
                )
            prediction_id = prediction.get("id")
            if not prediction_id:
                raise ProcessFailedError("Retouch service returned no prediction id")
            if polls >= self.max_polls:
                raise ProcessFailedError("Retouch processing timeout")
            polls += 1
            await asyncio.sleep(self.poll_interval_seconds)
            prediction = await self._request(
                "GET", f"{self.base_url}/predictions/{prediction_id}", timeout=15
            )

    async def _request(self, method: str, url: str, **kwargs) -> dict[str, object]:  # type: ignore[no-untyped-def]
        try:
            response = await self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ProcessFailedError(f"Retouch service unavailable: {exc}") from exc
        if response.is_error:
            raise ProcessFailedError(
                error_message(response, "Failed to apply retouch")
            )
        payload = json_object(response)
        if payload is None:
            raise ProcessFailedError("Retouch service returned an invalid response")
        return payload

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _first_output(output: object) -> str:
    if isinstance(output, list):
        return str(output[0])
    return str(output)

