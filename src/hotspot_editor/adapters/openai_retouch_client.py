"""OpenAI Images API client for retouching."""

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from hotspot_editor.domain.errors import ProcessFailedError
from hotspot_editor.services.images import ImageFetcher, ImageFetchError
from hotspot_editor.services.retouch import RetouchClient


@dataclass
class OpenAIRetouchClient(RetouchClient):
    """Retouch client backed by the OpenAI image edit endpoint."""

    client: AsyncOpenAI
    image_fetcher: ImageFetcher
    model: str = "gpt-image-1"

    @classmethod
    def create(
        cls, api_key: str, image_fetcher: ImageFetcher, model: str
    ) -> "OpenAIRetouchClient":
        """Create an OpenAI retouch client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            image_fetcher=image_fetcher,
            model=model,
        )

    async def process(
        self,
        *,
        image_url: str,
        prompt: str,
        hotspots: list[dict[str, object]],
    ) -> dict[str, object]:
        """Edit the base image and return the result as a data URL."""
        urls = [image_url]
        urls.extend(
            str(hotspot["referenceImage"])
            for hotspot in hotspots
            if hotspot.get("referenceImage")
        )
        images = []
        for index, url in enumerate(urls):
            try:
                data = await self.image_fetcher.fetch(url)
            except ImageFetchError as exc:
                raise ProcessFailedError(f"Could not read image: {exc}") from exc
            mime_type = _detect_mime_type(data)
            images.append((f"image-{index}.{mime_type.split('/')[1]}", data, mime_type))

        try:
            response = await self.client.images.edit(
                model=self.model, image=images, prompt=prompt
            )
        except OpenAIError as exc:
            raise ProcessFailedError(str(exc)) from exc
        if not response.data or not response.data[0].b64_json:
            raise ProcessFailedError("OpenAI returned no image")
        return {"imageUrl": f"data:image/png;base64,{response.data[0].b64_json}"}


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
