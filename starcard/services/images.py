"""
Image payload helpers.

Images arrive either as raw bytes or as strings: a data URI
("data:image/png;base64,....") or bare base64. The analysis call needs the
bare base64 body and a MIME type; the stored card keeps a data URI.
"""

import base64
import binascii
from dataclasses import dataclass

from starcard.models.failure import FailureKind, KnownError

DEFAULT_MIME_TYPE = "image/jpeg"
SUPPORTED_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

# Magic-byte prefixes for the formats the analysis service accepts
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


class InvalidImageError(KnownError):
    """Raised when an image payload is empty or not decodable."""

    def __init__(self, reason: str):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message="The image could not be read.",
            detail=reason,
            suggestion="Upload a JPEG, PNG, GIF or WebP photo.",
            status_code=400,
        )


@dataclass(frozen=True, slots=True)
class ImagePayload:
    """Bare base64 image body with its MIME type."""

    data: str
    mime_type: str

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def sniff_mime_type(raw: bytes) -> str:
    """Guess the MIME type from leading bytes, defaulting to JPEG."""
    for signature, mime_type in _SIGNATURES:
        if raw.startswith(signature):
            return mime_type
    if raw[:4] == b"RIFF" and raw[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_MIME_TYPE


def _mime_from_header(header: str) -> str | None:
    # "data:image/PNG;base64" -> "image/png"; unsupported types are ignored
    media = header.removeprefix("data:").split(";", 1)[0].strip().lower()
    return media if media in SUPPORTED_MIME_TYPES else None


def load_image(image: bytes | str) -> ImagePayload:
    """
    Normalize an image to an ImagePayload.

    A data-URI prefix is stripped. Its MIME type, lowercased, wins over
    sniffing when it is one of SUPPORTED_MIME_TYPES.

    Raises:
        InvalidImageError: If the payload is empty or not valid base64
    """
    if isinstance(image, bytes):
        if not image:
            raise InvalidImageError("Image payload is empty")
        return ImagePayload(
            data=base64.b64encode(image).decode("ascii"),
            mime_type=sniff_mime_type(image),
        )

    text = image.strip()
    mime_type: str | None = None
    if text.startswith("data:") and "," in text:
        header, text = text.split(",", 1)
        mime_type = _mime_from_header(header)

    if not text:
        raise InvalidImageError("Image payload is empty")

    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError("Image payload is not valid base64") from e

    return ImagePayload(data=text, mime_type=mime_type or sniff_mime_type(raw))
