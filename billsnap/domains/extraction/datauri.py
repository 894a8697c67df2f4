"""
Data URI helpers - the wire representation for images.

    data:<mime>;base64,<payload>
"""

from __future__ import annotations

import base64
import binascii
import re

from billsnap.config.errors import InvalidInputError

from .models import DEFAULT_MIME_TYPE

__all__ = [
    "decode_data_uri",
    "encode_data_uri",
    "ensure_data_uri",
    "is_data_uri",
]

DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(?:;[^,;]*)*),(?P<payload>.*)$",
    re.DOTALL,
)


def is_data_uri(value: str) -> bool:
    """Whether value already embeds its MIME type and encoding."""
    return DATA_URI_PATTERN.match(value) is not None


def encode_data_uri(data: bytes, mime_type: str | None = None) -> str:
    """Encode raw bytes as a base64 data URI."""
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{b64}"


def ensure_data_uri(image: str, mime_type: str | None = None) -> str:
    """
    Return image as a data URI.

    A value that already is a data URI is returned unchanged; a bare base64
    string is prefixed using mime_type (default image/jpeg).
    """
    if is_data_uri(image):
        return image
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{image.strip()}"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """
    Split a base64 data URI into (mime_type, bytes).

    Raises:
        InvalidInputError: Not a base64 data URI, or payload is not base64
    """
    match = DATA_URI_PATTERN.match(uri)
    if match is None:
        raise InvalidInputError("Image is not a data URI")
    if ";base64" not in match.group("params"):
        raise InvalidInputError("Image data URI must be base64 encoded")

    mime_type = match.group("mime") or DEFAULT_MIME_TYPE
    payload = "".join(match.group("payload").split())
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError("Image data is not valid base64", {"reason": str(e)}) from e
    return mime_type.lower(), data
