"""Models for retouch and upload service payloads."""

from pydantic import BaseModel, ConfigDict, Field


class RetouchHotspot(BaseModel):
    """Single edit instruction sent to the retouch backend."""

    id: int
    x: float = Field(ge=0.0, le=100.0)
    y: float = Field(ge=0.0, le=100.0)
    prompt: str
    reference_image: str | None = Field(default=None, serialization_alias="referenceImage")


class RetouchResult(BaseModel):
    """Processed image returned by the retouch backend."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(alias="imageUrl")


class UploadedReference(BaseModel):
    """Stored reference image returned by the upload service."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    preview_url: str | None = Field(default=None, alias="previewUrl")
