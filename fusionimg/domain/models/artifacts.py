"""Artifacts threaded between pipeline stages.

Images carry raw bytes plus a MIME type and travel over the wire as base64.
Text artifacts are plain UTF-8 strings.
"""

import base64
import binascii
import mimetypes
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from fusionimg.domain.constants import DEFAULT_IMAGE_MIME_TYPE
from fusionimg.domain.errors import ValidationError


def validate_prompt(prompt: str | None) -> str:
    """Return the prompt with surrounding whitespace removed.

    Raises:
        ValidationError: If the prompt is missing or blank
    """
    if prompt is None or not isinstance(prompt, str):
        raise ValidationError("Prompt must be a non-empty string")
    cleaned = prompt.strip()
    if not cleaned:
        raise ValidationError("Prompt must not be empty")
    return cleaned


class ImageArtifact(BaseModel):
    """Binary image payload tagged with its MIME type."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    data: bytes
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE

    @field_validator("data")
    @classmethod
    def _data_non_empty(cls, v: bytes) -> bytes:
        if not v:
            raise ValueError("image data must be non-empty")
        return v

    @field_validator("mime_type")
    @classmethod
    def _mime_is_image(cls, v: str) -> str:
        v2 = v.strip().lower()
        if not v2.startswith("image/") or len(v2) == len("image/"):
            raise ValueError(f"mime_type must be an image type, got: {v!r}")
        return v2

    @classmethod
    def from_base64(cls, encoded: str | bytes, mime_type: str = DEFAULT_IMAGE_MIME_TYPE) -> "ImageArtifact":
        """Decode a base64 payload into an artifact.

        Raises:
            ValidationError: If the payload is not valid base64
        """
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Invalid base64 image payload: {e}") from e
        return cls(data=data, mime_type=mime_type)

    @classmethod
    def from_path(cls, path: Path) -> "ImageArtifact":
        """Load a reference image from disk, guessing the MIME type from its extension."""
        mime_type, _ = mimetypes.guess_type(path.name)
        if mime_type is None or not mime_type.startswith("image/"):
            raise ValidationError(f"Not a recognised image file: {path}")
        return cls(data=path.read_bytes(), mime_type=mime_type)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def extension(self) -> str:
        """File extension for this MIME type, including the dot."""
        ext = mimetypes.guess_extension(self.mime_type)
        if ext is None:
            return "." + self.mime_type.split("/", 1)[1]
        return ext

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path

    def __repr__(self) -> str:
        # Keep logs readable; payloads are large.
        return f"ImageArtifact(mime_type={self.mime_type!r}, size={len(self.data)})"


class _TextArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str

    @field_validator("text")
    @classmethod
    def _text_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must be non-empty")
        return v

    def __str__(self) -> str:
        return self.text


class PlanArtifact(_TextArtifact):
    """Free-form generation plan produced by the planning stage."""


class AnalysisArtifact(_TextArtifact):
    """Critique of the draft produced by the analysis stage."""
